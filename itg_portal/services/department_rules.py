from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import Dict, FrozenSet, Iterable, Iterator, Mapping, Tuple


class Department(str, Enum):
    INFRA = "infra"
    ERP = "erp"
    OPS = "ops"
    NETWORK = "network"


ALL_DEPARTMENTS: Tuple[Department, ...] = (
    Department.INFRA,
    Department.ERP,
    Department.OPS,
    Department.NETWORK,
)


@dataclass(frozen=True)
class DepartmentRule:
    member_patterns: FrozenSet[str]
    manager_patterns: FrozenSet[str]


@dataclass(frozen=True)
class DepartmentInfo:
    department: Department
    name: str
    list_name: str
    list_guid: str


class DepartmentRuleTable:
    """Read-only mapping of each department to its member and manager phrases."""

    def __init__(self, rules: Mapping[Department, DepartmentRule]) -> None:
        missing = [department.value for department in ALL_DEPARTMENTS if department not in rules]
        if missing:
            raise ValueError(f"Rule table is missing departments: {', '.join(missing)}.")
        self._rules: Mapping[Department, DepartmentRule] = MappingProxyType(
            {department: rules[department] for department in ALL_DEPARTMENTS}
        )

    @classmethod
    def from_phrases(cls, phrases: Mapping[str, Mapping[str, Iterable[str]]]) -> "DepartmentRuleTable":
        """Build a table from plain ``{"infra": {"member": [...], "manager": [...]}}`` data."""
        rules: Dict[Department, DepartmentRule] = {}
        for department_id, entry in phrases.items():
            rules[Department(department_id)] = DepartmentRule(
                member_patterns=frozenset(entry.get("member", ())),
                manager_patterns=frozenset(entry.get("manager", ())),
            )
        return cls(rules)

    def rule_for(self, department: Department) -> DepartmentRule:
        return self._rules[Department(department)]

    def items(self) -> Iterator[Tuple[Department, DepartmentRule]]:
        return iter(self._rules.items())

    def __iter__(self) -> Iterator[Department]:
        return iter(self._rules)

    def __len__(self) -> int:
        return len(self._rules)


DEFAULT_RULE_TABLE = DepartmentRuleTable.from_phrases(
    {
        "infra": {
            "member": [
                "dci",
                "dci member",
                "dci team",
                "dci dept member",
                "data center member",
                "datacenter member",
            ],
            "manager": [
                "dci manager",
                "dci dept manager",
                "data center manager",
                "datacenter manager",
                "infra manager",
            ],
        },
        "erp": {
            "member": [
                "erp",
                "erp member",
                "erp team",
                "erp dept member",
                "software development member",
            ],
            "manager": [
                "erp manager",
                "erp managers",
                "erp dept manager",
                "software manager",
                "software development manager",
            ],
        },
        "ops": {
            "member": [
                "ops",
                "operations",
                "operations member",
                "ops member",
                "ops team",
                "ops dept member",
                "itg operations member",
            ],
            "manager": [
                "operations manager",
                "ops manager",
                "ops dept manager",
                "itg operations manager",
            ],
        },
        "network": {
            "member": [
                "network",
                "networks",
                "network member",
                "networks member",
                "network team",
                "network dept member",
                "security member",
            ],
            "manager": [
                "network manager",
                "networks manager",
                "network dept manager",
                "security manager",
            ],
        },
    }
)


DEPARTMENT_CATALOG: Mapping[Department, DepartmentInfo] = MappingProxyType(
    {
        Department.INFRA: DepartmentInfo(
            department=Department.INFRA,
            name="Data Center & Cloud Infrastructure",
            list_name="si_tasklist",
            list_guid="e41bb365-20be-4724-8ff8-18438d9c2354",
        ),
        Department.ERP: DepartmentInfo(
            department=Department.ERP,
            name="ERP & Software Development",
            list_name="erp_tasklist",
            list_guid="4693a94b-4a71-4821-b8c1-3a6fc8cdac69",
        ),
        Department.OPS: DepartmentInfo(
            department=Department.OPS,
            name="ITG Operations",
            list_name="ops_tasklist",
            list_guid="6eb2cec0-f94f-47ae-8745-5e48cd52ffd9",
        ),
        Department.NETWORK: DepartmentInfo(
            department=Department.NETWORK,
            name="Networks & Security",
            list_name="networks_tasklist",
            list_guid="1965d5a7-b9f0-4066-b2c5-8d9b8a442537",
        ),
    }
)


def describe_department(department: Department) -> DepartmentInfo:
    """Return display name and backing list for a department identifier."""
    return DEPARTMENT_CATALOG[Department(department)]


def sorted_departments(departments: Iterable[Department]) -> Tuple[Department, ...]:
    """Order departments the way the portal lists them."""
    present = set(departments)
    return tuple(department for department in ALL_DEPARTMENTS if department in present)
