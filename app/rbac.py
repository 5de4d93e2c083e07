"""RBAC module/action registry and per-role defaults."""
from __future__ import annotations

from typing import Literal

PermissionAction = Literal["view", "add", "edit", "delete"]

ACTION_BY_METHOD: dict[str, PermissionAction] = {
    "GET": "view",
    "HEAD": "view",
    "OPTIONS": "view",
    "POST": "add",
    "PUT": "edit",
    "PATCH": "edit",
    "DELETE": "delete",
}

SYSTEM_MODULES: list[dict[str, str]] = [
    {"key": "dashboard", "name": "Dashboard"},
    {"key": "students", "name": "Students"},
    {"key": "attendance", "name": "Attendance"},
    {"key": "notifications", "name": "Notifications"},
    {"key": "recycle_bin", "name": "Recycle Bin"},
    {"key": "users", "name": "Users"},
]


def _full_permissions() -> dict[str, bool]:
    return {"view": True, "add": True, "edit": True, "delete": True}


def _none() -> dict[str, bool]:
    return {"view": False, "add": False, "edit": False, "delete": False}


def _module_defaults(fill: dict[str, bool]) -> dict[str, dict[str, bool]]:
    return {module["key"]: dict(fill) for module in SYSTEM_MODULES}


DEFAULT_ROLE_PERMISSIONS: dict[str, dict[str, dict[str, bool]]] = {
    "admin": _module_defaults(_full_permissions()),
    "teacher": {
        **_module_defaults(_none()),
        "dashboard": {"view": True, "add": False, "edit": False, "delete": False},
        "students": {"view": True, "add": True, "edit": True, "delete": True},
        "attendance": {"view": True, "add": True, "edit": True, "delete": False},
        "notifications": {"view": True, "add": True, "edit": False, "delete": False},
        # Restore only; permanent deletion and the sweep stay with admins.
        "recycle_bin": {"view": True, "add": True, "edit": False, "delete": False},
    },
}


def has_permission(role: str, module: str, action: PermissionAction) -> bool:
    return DEFAULT_ROLE_PERMISSIONS.get(role, {}).get(module, {}).get(action, False)
