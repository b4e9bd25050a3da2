from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, FrozenSet, Sequence

from .department_rules import DEFAULT_RULE_TABLE, Department, DepartmentRuleTable
from .group_matcher import matches_any


@dataclass(frozen=True)
class DepartmentMembership:
    is_member: bool
    is_manager: bool

    @property
    def has_access(self) -> bool:
        return self.is_member or self.is_manager


class GroupClassifier:
    """Pure predicates over a user's normalized group names."""

    EXECUTIVE_PHRASES: FrozenSet[str] = frozenset({
        "hod",
        "head of department",
        "hod member",
    })

    MANAGEMENT_PHRASES: FrozenSet[str] = frozenset({
        "itg manager",
        "itg managers",
        "itg management",
        "management member",
        "itg dept manager",
    })

    # "monitorining" is a legacy misspelling still used by live groups.
    MONITORING_PHRASES: FrozenSet[str] = frozenset({
        "monitoring",
        "monitorining",
        "monitor",
        "monitoring member",
        "monitorining member",
        "monitor member",
        "itg monitoring",
        "server infrastructure visitors",
        "infrastructure visitors",
    })

    def __init__(
        self,
        rule_table: DepartmentRuleTable = DEFAULT_RULE_TABLE,
        generic_manager_fallback: bool = True,
    ) -> None:
        self.rule_table = rule_table
        self.generic_manager_fallback = generic_manager_fallback

    def is_executive(self, names: Sequence[str]) -> bool:
        return matches_any(names, self.EXECUTIVE_PHRASES)

    def is_management(self, names: Sequence[str]) -> bool:
        return matches_any(names, self.MANAGEMENT_PHRASES)

    def is_monitoring(self, names: Sequence[str]) -> bool:
        return matches_any(names, self.MONITORING_PHRASES)

    def department_membership(self, names: Sequence[str]) -> Dict[Department, DepartmentMembership]:
        """Evaluate member and manager status for every department.

        With ``generic_manager_fallback`` enabled, a member of a department who
        also belongs to a group matching ``"<department> manager"`` or plain
        ``"manager"`` counts as that department's manager.
        """
        membership: Dict[Department, DepartmentMembership] = {}
        for department, rule in self.rule_table.items():
            is_member = matches_any(names, rule.member_patterns)
            is_manager = matches_any(names, rule.manager_patterns)
            if not is_manager and is_member and self.generic_manager_fallback:
                is_manager = matches_any(names, (f"{department.value} manager", "manager"))
            membership[department] = DepartmentMembership(is_member=is_member, is_manager=is_manager)
        return membership
