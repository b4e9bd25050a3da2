from __future__ import annotations

import logging
import os
import secrets
from contextlib import asynccontextmanager
from typing import Dict, List

from fastapi import Depends, FastAPI, HTTPException, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.security import HTTPBasic, HTTPBasicCredentials
from dotenv import load_dotenv

from .schemas.permission import DepartmentAccess, DepartmentEntry, PermissionResponse, ResolveRequest
from .services.cache import PermissionCache
from .services.department_rules import DEFAULT_RULE_TABLE, Department, describe_department, sorted_departments
from .services.group_classifier import GroupClassifier
from .services.group_directory import InMemoryGroupDirectory, permission_for_user
from .services.metrics import MetricsTracker
from .services.permission import Permission, UserCategory
from .services.permission_resolver import PermissionResolver


load_dotenv()
LOGGER = logging.getLogger("itg_portal")
logging.basicConfig(level=os.getenv("LOG_LEVEL", "INFO").upper())


def _env_flag(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in {"1", "true", "yes", "on"}


@asynccontextmanager
async def lifespan(app: FastAPI):
    generic_manager_fallback = _env_flag("GENERIC_MANAGER_FALLBACK", "true")
    classifier = GroupClassifier(
        rule_table=DEFAULT_RULE_TABLE,
        generic_manager_fallback=generic_manager_fallback,
    )
    resolver = PermissionResolver(rule_table=DEFAULT_RULE_TABLE, classifier=classifier)
    cache_service = PermissionCache(max_entries=int(os.getenv("PERMISSION_CACHE_SIZE", "256")))
    metrics_service = MetricsTracker()

    app.state.resolver = resolver
    app.state.group_directory = InMemoryGroupDirectory(group_memberships)
    app.state.cache_service = cache_service
    app.state.metrics_service = metrics_service
    LOGGER.info("startup generic_manager_fallback=%s cache_size=%d", generic_manager_fallback, cache_service.max_entries)

    try:
        yield
    finally:
        cache_service.clear()


app = FastAPI(
    title="ITG Portal Access Service",
    description="Resolves directory group memberships into department view and edit rights.",
    version="0.1.0",
    lifespan=lifespan,
)
security = HTTPBasic()

users_db: Dict[str, Dict[str, str]] = {
    "Amina": {"password": "hodpass123"},
    "Brian": {"password": "itgmanager1"},
    "Chen": {"password": "dcipass123"},
    "Dana": {"password": "erppass123"},
    "Eli": {"password": "monitor123"},
    "Farah": {"password": "design123"},
    "Gus": {"password": "nogroups1"},
}

# Gus is deliberately absent: a failed lookup must fall back to limited access.
group_memberships: Dict[str, List[str]] = {
    "Amina": ["HOD"],
    "Brian": ["ITG Managers", "DCI Manager"],
    "Chen": ["dci"],
    "Dana": ["erp", "designers", "monitorining server infrastructure visitors"],
    "Eli": ["Monitorining Server Infrastructure Visitors"],
    "Farah": ["Designers", "Some Other Group"],
}


app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def authenticate(credentials: HTTPBasicCredentials = Depends(security)) -> Dict[str, str]:
    username = credentials.username
    password = credentials.password
    user = users_db.get(username)
    if not user or not secrets.compare_digest(user["password"], password):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials")
    return {"username": username}


def current_permission(user: Dict[str, str] = Depends(authenticate)) -> Permission:
    resolver: PermissionResolver = getattr(app.state, "resolver", None)
    directory: InMemoryGroupDirectory = getattr(app.state, "group_directory", None)
    cache_service: PermissionCache = getattr(app.state, "cache_service", None)
    metrics_service: MetricsTracker = getattr(app.state, "metrics_service", None)
    if not resolver or not directory:
        raise HTTPException(status_code=500, detail="Permission resolver is not initialized.")

    username = user["username"]
    permission, cache_hit = permission_for_user(directory, resolver, username, cache=cache_service)
    if metrics_service:
        metrics_service.record(username, permission.user_category.value, cache_hit=cache_hit)
    LOGGER.info(
        "permission_request user=%s category=%s cache_hit=%s",
        username,
        permission.user_category.value,
        cache_hit,
    )
    return permission


def require_category(permission: Permission, *categories: UserCategory) -> None:
    if permission.user_category not in categories:
        allowed = ", ".join(category.value for category in categories)
        raise HTTPException(status_code=403, detail=f"Available to {allowed} only.")


def parse_department(department_id: str) -> Department:
    try:
        return Department(department_id.strip().lower())
    except ValueError:
        raise HTTPException(status_code=404, detail=f"Unknown department '{department_id}'.") from None


@app.get("/health")
def health() -> Dict[str, str]:
    return {"status": "ok"}


@app.get("/login")
def login(
    user: Dict[str, str] = Depends(authenticate),
    permission: Permission = Depends(current_permission),
) -> Dict[str, str]:
    return {"message": f"Welcome {user['username']}!", "user_category": permission.user_category.value}


@app.get("/permissions", response_model=PermissionResponse)
def permissions(permission: Permission = Depends(current_permission)) -> PermissionResponse:
    return PermissionResponse.from_permission(permission)


@app.post("/permissions/resolve", response_model=PermissionResponse)
def resolve(
    payload: ResolveRequest,
    permission: Permission = Depends(current_permission),
) -> PermissionResponse:
    require_category(permission, UserCategory.HOD, UserCategory.MANAGER)
    resolver: PermissionResolver = getattr(app.state, "resolver", None)
    return PermissionResponse.from_permission(resolver.resolve(payload.groups))


@app.post("/permissions/cache/clear")
def clear_cache(permission: Permission = Depends(current_permission)) -> Dict[str, int]:
    require_category(permission, UserCategory.HOD)
    cache_service: PermissionCache = getattr(app.state, "cache_service", None)
    cleared = cache_service.size() if cache_service else 0
    if cache_service:
        cache_service.clear()
    return {"cleared": cleared}


@app.post("/permissions/cache/invalidate/{username}")
def invalidate_user(username: str, permission: Permission = Depends(current_permission)) -> Dict[str, object]:
    require_category(permission, UserCategory.HOD)
    cache_service: PermissionCache = getattr(app.state, "cache_service", None)
    removed = cache_service.invalidate(username) if cache_service else 0
    LOGGER.info("permission_cache_invalidated user=%s removed=%d", username, removed)
    return {"username": username, "removed": removed}


@app.get("/departments", response_model=List[DepartmentEntry])
def departments(permission: Permission = Depends(current_permission)) -> List[DepartmentEntry]:
    return [
        DepartmentEntry.from_info(describe_department(department), permission.can_edit_department(department))
        for department in sorted_departments(permission.allowed_departments)
    ]


@app.get("/departments/{department_id}/access", response_model=DepartmentAccess)
def department_access(
    department_id: str,
    permission: Permission = Depends(current_permission),
) -> DepartmentAccess:
    department = parse_department(department_id)
    return DepartmentAccess(
        department=department.value,
        can_view=permission.can_view_department(department),
        can_edit=permission.can_edit_department(department),
    )


@app.put("/departments/{department_id}/edit-check", response_model=DepartmentAccess)
def edit_check(
    department_id: str,
    permission: Permission = Depends(current_permission),
) -> DepartmentAccess:
    department = parse_department(department_id)
    if not permission.can_edit_department(department):
        raise HTTPException(
            status_code=403,
            detail=f"Editing {department.value} tasks is not permitted for this user.",
        )
    return DepartmentAccess(department=department.value, can_view=True, can_edit=True)


@app.get("/analytics")
def analytics(permission: Permission = Depends(current_permission)) -> Dict[str, object]:
    require_category(permission, UserCategory.HOD)
    metrics_service: MetricsTracker = getattr(app.state, "metrics_service", None)
    cache_service: PermissionCache = getattr(app.state, "cache_service", None)
    return {
        "resolutions": metrics_service.snapshot() if metrics_service else {},
        "cache_entries": cache_service.size() if cache_service else 0,
    }
