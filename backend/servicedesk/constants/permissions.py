"""Central enum-like definitions to avoid typos in permission/service strings.
Extend cautiously; never rename codes silently, tokens already issued carry them.
"""
from __future__ import annotations
from typing import List, Dict

SERVICE_ACTIONS = {
    'TKT': ['READ', 'MANAGE'],
    'CUST': ['READ', 'MANAGE'],
}


def build_all_permission_codes() -> List[str]:
    codes: List[str] = []
    for svc, actions in SERVICE_ACTIONS.items():
        for act in actions:
            codes.append(f"{svc}.{act}")
    return codes

ALL_PERMISSION_CODES = build_all_permission_codes()

ROLE_PRESETS: Dict[str, List[str]] = {
    'technician': ['TKT.READ', 'TKT.MANAGE', 'CUST.READ'],
    'manager': ['TKT.READ', 'TKT.MANAGE', 'CUST.READ', 'CUST.MANAGE'],
    'admin': ['*'],
}


def permissions_for_role(role: str) -> List[str]:
    perms = ROLE_PRESETS.get(role, [])
    if '*' in perms:
        return list(ALL_PERMISSION_CODES)
    return list(perms)
