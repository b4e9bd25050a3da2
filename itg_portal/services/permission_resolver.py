from __future__ import annotations

import logging
from typing import Iterable, Optional, Tuple

from .department_rules import ALL_DEPARTMENTS, DEFAULT_RULE_TABLE, Department, DepartmentRuleTable
from .group_classifier import GroupClassifier
from .group_matcher import normalize_group_name
from .permission import Permission, UserCategory, limited_permission


LOGGER = logging.getLogger(__name__)


def _single(departments: Tuple[Department, ...]) -> Optional[Department]:
    return departments[0] if len(departments) == 1 else None


class PermissionResolver:
    """Turns a user's group memberships into a Permission.

    Branches are checked in a fixed priority order: executive, management,
    department membership, monitoring, then the limited fallback. The first
    branch that matches decides the category. Department membership is checked
    before monitoring, so a department member who is also in a monitoring group
    still gets edit rights on their department.
    """

    def __init__(
        self,
        rule_table: Optional[DepartmentRuleTable] = None,
        classifier: Optional[GroupClassifier] = None,
    ) -> None:
        if classifier is None:
            classifier = GroupClassifier(rule_table=rule_table if rule_table is not None else DEFAULT_RULE_TABLE)
        elif rule_table is not None and rule_table is not classifier.rule_table:
            raise ValueError("rule_table does not match the table the classifier was built with.")
        self.classifier = classifier
        self.rule_table = classifier.rule_table

    def resolve(self, raw_group_names: Iterable[str]) -> Permission:
        if isinstance(raw_group_names, str):
            raw_group_names = (raw_group_names,)
        names = tuple(normalize_group_name(name) for name in raw_group_names)
        classifier = self.classifier

        is_executive = classifier.is_executive(names)
        is_management = classifier.is_management(names)
        is_monitoring = classifier.is_monitoring(names)
        flags = {
            "raw_group_names": names,
            "is_executive": is_executive,
            "is_management": is_management,
            "is_monitoring": is_monitoring,
        }

        if is_executive:
            LOGGER.info("permission_resolved category=%s groups=%d", UserCategory.HOD.value, len(names))
            return Permission(
                user_category=UserCategory.HOD,
                allowed_departments=frozenset(ALL_DEPARTMENTS),
                can_edit_departments=frozenset(),
                can_view_all=True,
                can_edit=False,
                **flags,
            )

        membership = classifier.department_membership(names)
        LOGGER.debug(
            "department_membership %s",
            " ".join(
                f"{department.value}=member:{entry.is_member},manager:{entry.is_manager}"
                for department, entry in membership.items()
            ),
        )

        if is_management:
            editable = tuple(department for department in ALL_DEPARTMENTS if membership[department].is_manager)
            LOGGER.info(
                "permission_resolved category=%s edit=%s",
                UserCategory.MANAGER.value,
                ",".join(department.value for department in editable) or "-",
            )
            return Permission(
                user_category=UserCategory.MANAGER,
                allowed_departments=frozenset(ALL_DEPARTMENTS),
                can_edit_departments=frozenset(editable),
                can_view_all=True,
                can_edit=bool(editable),
                department=_single(editable),
                **flags,
            )

        allowed = tuple(department for department in ALL_DEPARTMENTS if membership[department].has_access)
        if allowed:
            LOGGER.info(
                "permission_resolved category=%s departments=%s",
                UserCategory.TEAM_MEMBER.value,
                ",".join(department.value for department in allowed),
            )
            return Permission(
                user_category=UserCategory.TEAM_MEMBER,
                allowed_departments=frozenset(allowed),
                can_edit_departments=frozenset(allowed),
                can_view_all=False,
                can_edit=True,
                department=_single(allowed),
                **flags,
            )

        if is_monitoring:
            LOGGER.info("permission_resolved category=%s", UserCategory.MONITORING.value)
            return Permission(
                user_category=UserCategory.MONITORING,
                allowed_departments=frozenset(ALL_DEPARTMENTS),
                can_edit_departments=frozenset(),
                can_view_all=True,
                can_edit=False,
                **flags,
            )

        LOGGER.info("permission_resolved category=%s groups=%d", UserCategory.LIMITED.value, len(names))
        return limited_permission(raw_group_names=names)


def resolve_permissions(
    raw_group_names: Iterable[str],
    resolver: Optional[PermissionResolver] = None,
) -> Permission:
    """Resolve group display names into a Permission with the given or default rules."""
    return (resolver or PermissionResolver()).resolve(raw_group_names)
