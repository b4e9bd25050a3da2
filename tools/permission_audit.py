"""Offline permission audit.

Usage:
    uv run python tools/permission_audit.py --dataset groups.json --output audit.csv

The dataset file should contain an array of objects:
[
  {
    "username": "Dana",
    "groups": ["erp", "designers", "monitorining server infrastructure visitors"],
    "expected_category": "team_member"
  }
]

``expected_category`` is optional; rows where it is present and differs from
the resolved category are flagged in the ``mismatch`` column.
"""
from __future__ import annotations

import argparse
import csv
import json
from pathlib import Path
from typing import Dict, List

from itg_portal.services.department_rules import sorted_departments
from itg_portal.services.group_classifier import GroupClassifier
from itg_portal.services.group_directory import InMemoryGroupDirectory, permission_for_user
from itg_portal.services.permission_resolver import PermissionResolver


def audit_rows(samples: List[Dict[str, object]], generic_manager_fallback: bool = True) -> List[Dict[str, object]]:
    resolver = PermissionResolver(classifier=GroupClassifier(generic_manager_fallback=generic_manager_fallback))
    directory = InMemoryGroupDirectory(
        {str(item["username"]): item.get("groups") or [] for item in samples}
    )
    rows: List[Dict[str, object]] = []
    for item in samples:
        username = str(item["username"])
        permission, _ = permission_for_user(directory, resolver, username)
        expected = item.get("expected_category")
        rows.append(
            {
                "username": username,
                "user_category": permission.user_category.value,
                "allowed_departments": ";".join(d.value for d in sorted_departments(permission.allowed_departments)),
                "can_edit_departments": ";".join(d.value for d in sorted_departments(permission.can_edit_departments)),
                "department": permission.department.value if permission.department else "",
                "mismatch": bool(expected) and expected != permission.user_category.value,
            }
        )
    return rows


def run_audit(dataset_path: Path, output_path: Path, generic_manager_fallback: bool = True) -> List[Dict[str, object]]:
    samples: List[Dict[str, object]] = json.loads(dataset_path.read_text(encoding="utf-8"))
    rows = audit_rows(samples, generic_manager_fallback=generic_manager_fallback)
    if not rows:
        return rows

    output_path.parent.mkdir(parents=True, exist_ok=True)
    with output_path.open("w", encoding="utf-8", newline="") as handle:
        writer = csv.DictWriter(handle, fieldnames=list(rows[0].keys()))
        writer.writeheader()
        writer.writerows(rows)
    return rows


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Resolve group memberships into permissions for review.")
    parser.add_argument("--dataset", type=Path, required=True, help="Path to user/group JSON.")
    parser.add_argument("--output", type=Path, default=Path("permission_audit.csv"), help="Where to store results CSV.")
    parser.add_argument(
        "--no-generic-manager-fallback",
        action="store_true",
        help="Disable the member-plus-'manager' group heuristic.",
    )
    args = parser.parse_args()

    results = run_audit(
        dataset_path=args.dataset,
        output_path=args.output,
        generic_manager_fallback=not args.no_generic_manager_fallback,
    )
    mismatches = sum(1 for row in results if row["mismatch"])
    print(f"Audit complete. {len(results)} users, {mismatches} mismatches. Results saved to {args.output}")
