from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import FrozenSet, Optional, Tuple

from .department_rules import ALL_DEPARTMENTS, Department


class UserCategory(str, Enum):
    HOD = "hod"
    MANAGER = "manager"
    TEAM_MEMBER = "team_member"
    MONITORING = "monitoring"
    LIMITED = "limited"


VIEW_ALL_CATEGORIES: FrozenSet[UserCategory] = frozenset({
    UserCategory.HOD,
    UserCategory.MANAGER,
    UserCategory.MONITORING,
})


READ_ONLY_CATEGORIES: FrozenSet[UserCategory] = frozenset({
    UserCategory.HOD,
    UserCategory.MONITORING,
    UserCategory.LIMITED,
})


@dataclass(frozen=True)
class Permission:
    """Authorization decision for one user, as consumed by task loading and UI gating.

    Mutation call sites must check ``can_edit_department`` before writing; nothing
    below the service layer enforces it.
    """

    user_category: UserCategory
    allowed_departments: FrozenSet[Department]
    can_edit_departments: FrozenSet[Department]
    can_view_all: bool
    can_edit: bool
    department: Optional[Department] = None
    raw_group_names: Tuple[str, ...] = ()
    is_executive: bool = False
    is_management: bool = False
    is_monitoring: bool = False

    def __post_init__(self) -> None:
        if not self.can_edit_departments <= self.allowed_departments:
            raise ValueError("can_edit_departments must be a subset of allowed_departments.")
        if self.can_edit != bool(self.can_edit_departments):
            raise ValueError("can_edit must reflect whether any department is editable.")
        if self.can_view_all != (self.user_category in VIEW_ALL_CATEGORIES):
            raise ValueError(f"can_view_all is inconsistent with category {self.user_category.value}.")
        if self.department is not None and self.department not in self.allowed_departments:
            raise ValueError("department must be one of allowed_departments.")

        category = self.user_category.value
        if self.user_category in VIEW_ALL_CATEGORIES and self.allowed_departments != frozenset(ALL_DEPARTMENTS):
            raise ValueError(f"{category} must be allowed to view every department.")
        if self.user_category in READ_ONLY_CATEGORIES and self.can_edit_departments:
            raise ValueError(f"{category} must not edit any department.")
        if self.user_category == UserCategory.LIMITED and self.allowed_departments:
            raise ValueError("limited must not view any department.")
        if self.user_category == UserCategory.TEAM_MEMBER:
            if not self.allowed_departments:
                raise ValueError("team_member must belong to at least one department.")
            if self.can_edit_departments != self.allowed_departments:
                raise ValueError("team_member must edit exactly the departments it can view.")

    def can_view_department(self, department: Department) -> bool:
        return Department(department) in self.allowed_departments

    def can_edit_department(self, department: Department) -> bool:
        return Department(department) in self.can_edit_departments


def limited_permission(raw_group_names: Tuple[str, ...] = ()) -> Permission:
    """Minimal-privilege permission used when nothing matched or groups are unavailable."""
    return Permission(
        user_category=UserCategory.LIMITED,
        allowed_departments=frozenset(),
        can_edit_departments=frozenset(),
        can_view_all=False,
        can_edit=False,
        department=None,
        raw_group_names=raw_group_names,
    )
