from typing import List, Optional

from pydantic import BaseModel, Field

from ..services.department_rules import DepartmentInfo, sorted_departments
from ..services.permission import Permission


class ResolveRequest(BaseModel):
    groups: List[str] = Field(
        default_factory=list,
        description="Raw group display names as returned by the directory.",
    )


class PermissionResponse(BaseModel):
    user_category: str = Field(..., description="Which priority branch decided the permission.")
    allowed_departments: List[str] = Field(default_factory=list, description="Departments the user may view.")
    can_edit_departments: List[str] = Field(default_factory=list, description="Departments the user may edit.")
    can_view_all: bool
    can_edit: bool
    department: Optional[str] = Field(
        default=None,
        description="Set when exactly one department is in scope for the user.",
    )
    is_executive: bool = False
    is_management: bool = False
    is_monitoring: bool = False
    raw_group_names: List[str] = Field(
        default_factory=list,
        description="Normalized group names, kept for diagnostics only.",
    )

    @classmethod
    def from_permission(cls, permission: Permission) -> "PermissionResponse":
        return cls(
            user_category=permission.user_category.value,
            allowed_departments=[d.value for d in sorted_departments(permission.allowed_departments)],
            can_edit_departments=[d.value for d in sorted_departments(permission.can_edit_departments)],
            can_view_all=permission.can_view_all,
            can_edit=permission.can_edit,
            department=permission.department.value if permission.department else None,
            is_executive=permission.is_executive,
            is_management=permission.is_management,
            is_monitoring=permission.is_monitoring,
            raw_group_names=list(permission.raw_group_names),
        )


class DepartmentEntry(BaseModel):
    id: str
    name: str = Field(..., description="Display name of the department.")
    list_name: str = Field(..., description="Backing task list for the department.")
    can_edit: bool = False

    @classmethod
    def from_info(cls, info: DepartmentInfo, can_edit: bool) -> "DepartmentEntry":
        return cls(id=info.department.value, name=info.name, list_name=info.list_name, can_edit=can_edit)


class DepartmentAccess(BaseModel):
    department: str
    can_view: bool
    can_edit: bool
