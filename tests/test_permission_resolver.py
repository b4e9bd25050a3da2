import itertools
from dataclasses import FrozenInstanceError

import pytest

from itg_portal.services.department_rules import ALL_DEPARTMENTS, Department, DepartmentRuleTable
from itg_portal.services.group_classifier import GroupClassifier
from itg_portal.services.permission import Permission, UserCategory, limited_permission
from itg_portal.services.permission_resolver import PermissionResolver, resolve_permissions

ALL = frozenset(ALL_DEPARTMENTS)
INFRA = Department.INFRA
ERP = Department.ERP

MONITORING_GROUP = "Monitorining Server Infrastructure Visitors"
DEPARTMENT_GROUPS = {"DCI Manager", "dci", "erp_team", "Network-Manager"}

GROUP_POOL = [
    "HOD",
    "ITG Managers",
    "DCI Manager",
    "dci",
    "erp_team",
    "Network-Manager",
    MONITORING_GROUP,
    "project manager",
    "laptops",
    "Designers",
]


@pytest.fixture(scope="module")
def resolver() -> PermissionResolver:
    return PermissionResolver()


@pytest.mark.parametrize(
    "groups, category, allowed, editable, department",
    [
        (["HOD"], UserCategory.HOD, ALL, frozenset(), None),
        (["ITG Managers", "DCI Manager"], UserCategory.MANAGER, ALL, frozenset({INFRA}), INFRA),
        (["dci"], UserCategory.TEAM_MEMBER, frozenset({INFRA}), frozenset({INFRA}), INFRA),
        (
            ["erp", "designers", "monitorining server infrastructure visitors"],
            UserCategory.TEAM_MEMBER,
            frozenset({ERP}),
            frozenset({ERP}),
            ERP,
        ),
        (["Monitorining Server Infrastructure Visitors"], UserCategory.MONITORING, ALL, frozenset(), None),
        (["Designers", "Some Other Group"], UserCategory.LIMITED, frozenset(), frozenset(), None),
    ],
)
def test_resolution_scenarios(resolver, groups, category, allowed, editable, department):
    permission = resolver.resolve(groups)
    assert permission.user_category == category
    assert permission.allowed_departments == allowed
    assert permission.can_edit_departments == editable
    assert permission.can_edit == bool(editable)
    assert permission.department == department


def test_executive_dominates_everything(resolver):
    permission = resolver.resolve(["dci manager", "ITG Managers", "monitoring", "HOD"])
    assert permission.user_category == UserCategory.HOD
    assert permission.can_edit_departments == frozenset()
    assert permission.can_view_all


def test_pure_itg_manager_is_view_only(resolver):
    permission = resolver.resolve(["ITG Management"])
    assert permission.user_category == UserCategory.MANAGER
    assert permission.allowed_departments == ALL
    assert not permission.can_edit
    assert permission.department is None


def test_manager_edit_scope_only_covers_managed_departments():
    strict = PermissionResolver(classifier=GroupClassifier(generic_manager_fallback=False))
    permission = strict.resolve(["ITG Managers", "dci", "erp manager", "network manager"])
    assert permission.can_edit_departments == frozenset({ERP, Department.NETWORK})
    assert permission.department is None


def test_generic_manager_fallback_applies_to_any_manager_group(resolver):
    permission = resolver.resolve(["ITG Managers", "dci", "erp manager"])
    assert permission.can_edit_departments == frozenset({INFRA, ERP})


def test_generic_manager_fallback_widens_manager_scope():
    groups = ["ITG Manager", "erp"]
    assert resolve_permissions(groups).can_edit_departments == frozenset({ERP})

    strict = PermissionResolver(classifier=GroupClassifier(generic_manager_fallback=False))
    assert strict.resolve(groups).can_edit_departments == frozenset()


def test_team_member_in_several_departments(resolver):
    permission = resolver.resolve(["DCI Team", "Network Team"])
    assert permission.user_category == UserCategory.TEAM_MEMBER
    assert permission.allowed_departments == frozenset({INFRA, Department.NETWORK})
    assert permission.can_edit_departments == permission.allowed_departments
    assert not permission.can_view_all
    assert permission.department is None


def test_laptops_group_is_not_ops(resolver):
    assert resolver.resolve(["laptops"]).user_category == UserCategory.LIMITED
    assert resolver.resolve(["ops team"]).allowed_departments == frozenset({Department.OPS})


def test_malformed_input_falls_back_to_limited(resolver):
    assert resolver.resolve([]).user_category == UserCategory.LIMITED
    assert resolver.resolve(["", "   ", "???"]).user_category == UserCategory.LIMITED
    assert resolver.resolve([None, "dci"]).user_category == UserCategory.TEAM_MEMBER  # type: ignore[list-item]


def test_duplicates_are_tolerated(resolver):
    permission = resolver.resolve(["dci", "DCI", "dci"])
    assert permission.allowed_departments == frozenset({INFRA})
    assert permission.raw_group_names == ("dci", "dci", "dci")


def test_diagnostic_flags_do_not_change_decision(resolver):
    permission = resolver.resolve(["erp", "monitoring"])
    assert permission.is_monitoring
    assert permission.user_category == UserCategory.TEAM_MEMBER


def test_resolution_is_idempotent(resolver):
    groups = ["ITG Managers", "DCI Manager", "monitoring"]
    assert resolver.resolve(groups) == resolver.resolve(groups)


@pytest.mark.parametrize("size", [1, 2, 3])
def test_invariants_hold_for_group_combinations(resolver, size):
    for groups in itertools.combinations(GROUP_POOL, size):
        permission = resolver.resolve(groups)
        category = permission.user_category
        assert permission.can_edit_departments <= permission.allowed_departments
        assert permission.can_edit == bool(permission.can_edit_departments)
        if "HOD" in groups:
            assert category == UserCategory.HOD
        elif (
            "ITG Managers" not in groups
            and MONITORING_GROUP in groups
            and any(group in DEPARTMENT_GROUPS for group in groups)
        ):
            assert category == UserCategory.TEAM_MEMBER
        if category in (UserCategory.HOD, UserCategory.MANAGER, UserCategory.MONITORING):
            assert permission.allowed_departments == ALL
        if category in (UserCategory.HOD, UserCategory.MONITORING, UserCategory.LIMITED):
            assert permission.can_edit_departments == frozenset()
        if category == UserCategory.TEAM_MEMBER:
            assert permission.allowed_departments
            assert permission.can_edit_departments == permission.allowed_departments
        if category == UserCategory.LIMITED:
            assert permission.allowed_departments == frozenset()


def test_permission_is_immutable(resolver):
    permission = resolver.resolve(["dci"])
    with pytest.raises(FrozenInstanceError):
        permission.can_edit = False  # type: ignore[misc]


def test_permission_rejects_inconsistent_values():
    with pytest.raises(ValueError):
        Permission(
            user_category=UserCategory.TEAM_MEMBER,
            allowed_departments=frozenset({ERP}),
            can_edit_departments=frozenset({ERP, INFRA}),
            can_view_all=False,
            can_edit=True,
        )
    with pytest.raises(ValueError):
        Permission(
            user_category=UserCategory.MONITORING,
            allowed_departments=ALL,
            can_edit_departments=frozenset(),
            can_view_all=False,
            can_edit=False,
        )


def test_limited_permission_denies_everything():
    permission = limited_permission()
    assert not permission.can_view_department(INFRA)
    assert not permission.can_edit_department("erp")


def test_permission_rejects_category_scope_mismatch():
    with pytest.raises(ValueError):
        Permission(
            user_category=UserCategory.HOD,
            allowed_departments=frozenset({INFRA}),
            can_edit_departments=frozenset(),
            can_view_all=True,
            can_edit=False,
        )
    with pytest.raises(ValueError):
        Permission(
            user_category=UserCategory.MONITORING,
            allowed_departments=ALL,
            can_edit_departments=frozenset({ERP}),
            can_view_all=True,
            can_edit=True,
        )
    with pytest.raises(ValueError):
        Permission(
            user_category=UserCategory.TEAM_MEMBER,
            allowed_departments=frozenset({ERP, INFRA}),
            can_edit_departments=frozenset({ERP}),
            can_view_all=False,
            can_edit=True,
        )


def _placeholder_table() -> DepartmentRuleTable:
    return DepartmentRuleTable.from_phrases(
        {department.value: {"member": ["zzz"], "manager": ["zzz manager"]} for department in ALL_DEPARTMENTS}
    )


def test_custom_rule_table_is_used_for_classification():
    table = _placeholder_table()
    resolver = PermissionResolver(rule_table=table)
    assert resolver.classifier.rule_table is table
    assert resolver.resolve(["dci"]).user_category == UserCategory.LIMITED


def test_resolver_rejects_classifier_built_on_another_table():
    with pytest.raises(ValueError):
        PermissionResolver(rule_table=_placeholder_table(), classifier=GroupClassifier())

    classifier = GroupClassifier(rule_table=_placeholder_table())
    resolver = PermissionResolver(classifier=classifier)
    assert resolver.rule_table is classifier.rule_table


def test_single_group_string_is_one_group(resolver):
    permission = resolve_permissions("HOD")
    assert permission.user_category == UserCategory.HOD
    assert permission.raw_group_names == ("hod",)
    assert resolver.resolve("dci team").allowed_departments == frozenset({INFRA})
