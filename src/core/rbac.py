"""Role-based access control.

A static table maps each role to the (resource, action) pairs it may use.
Entries may carry a condition that receives the acting user and a context
mapping; technicians are limited to work that is assigned to them.
Permissions are evaluated on every call, nothing is cached.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass
from typing import Any

from src.shared.enums import UserRole

Context = Mapping[str, Any]
Condition = Callable[[Any, Context], bool]

CRUD_ACTIONS = ("read", "create", "update", "delete")


@dataclass(frozen=True)
class Permission:
    resource: str
    action: str
    condition: Condition | None = None


def _crud(resource: str) -> list[Permission]:
    return [Permission(resource, action) for action in CRUD_ACTIONS]


def technician_id_of(user: Any) -> str | None:
    profile = getattr(user, "technician_profile", None)
    return getattr(profile, "technician_id", None)


def _assigned_to_technician(_: Any, context: Context) -> bool:
    return context.get("assigned_to_technician") is True


def _own_technician_id(user: Any, context: Context) -> bool:
    own_id = technician_id_of(user)
    return own_id is not None and context.get("technician_id") == own_id


ROLE_PERMISSIONS: dict[UserRole, list[Permission]] = {
    UserRole.ADMIN: [
        *_crud("appointments"),
        *_crud("schedule_assignments"),
        *_crud("customers"),
        *_crud("vehicles"),
        *_crud("technicians"),
        *_crud("technician_absences"),
        *_crud("notifications"),
        *_crud("skills"),
        *_crud("services"),
        *(
            Permission("navigation", item)
            for item in (
                "dashboard",
                "jobs",
                "customers",
                "vehicles",
                "technicians",
                "leitstand",
                "plantafel",
                "dayview",
                "calendar",
            )
        ),
        Permission("admin", "user_management"),
        Permission("admin", "system_settings"),
        Permission("admin", "reports"),
        Permission("admin", "analytics"),
    ],
    UserRole.TECHNICIAN: [
        Permission("appointments", "read", _assigned_to_technician),
        Permission("appointments", "update", _assigned_to_technician),
        Permission("customers", "read"),
        Permission("vehicles", "read"),
        Permission("schedule_assignments", "read", _own_technician_id),
        Permission("notifications", "read"),
        Permission("navigation", "dashboard"),
        Permission("navigation", "jobs"),
        Permission("technician", "update_status"),
        Permission("technician", "view_schedule"),
        Permission("technician", "request_absence"),
        Permission("skills", "read"),
        Permission("services", "read"),
    ],
}


def _role_permissions(user: Any) -> list[Permission]:
    if user is None:
        return []
    try:
        role = UserRole(getattr(user, "role", None))
    except ValueError:
        return []
    return ROLE_PERMISSIONS.get(role, [])


def find_permission(user: Any, resource: str, action: str) -> Permission | None:
    return next(
        (p for p in _role_permissions(user) if p.resource == resource and p.action == action),
        None,
    )


def has_permission(user: Any, resource: str, action: str, context: Context | None = None) -> bool:
    """Return True when the user's role grants ``action`` on ``resource``."""
    permission = find_permission(user, resource, action)
    if permission is None:
        return False
    if permission.condition is not None:
        return bool(permission.condition(user, context or {}))
    return True


def can_read(user: Any, resource: str, context: Context | None = None) -> bool:
    return has_permission(user, resource, "read", context)


def can_create(user: Any, resource: str, context: Context | None = None) -> bool:
    return has_permission(user, resource, "create", context)


def can_update(user: Any, resource: str, context: Context | None = None) -> bool:
    return has_permission(user, resource, "update", context)


def can_delete(user: Any, resource: str, context: Context | None = None) -> bool:
    return has_permission(user, resource, "delete", context)


def can_access_navigation(user: Any, item: str) -> bool:
    return has_permission(user, "navigation", item)


def is_admin(user: Any) -> bool:
    return user is not None and getattr(user, "role", None) == UserRole.ADMIN


def is_technician(user: Any) -> bool:
    return user is not None and getattr(user, "role", None) == UserRole.TECHNICIAN


def is_assigned(user: Any, appointment_id: str, assignments: Iterable[Any]) -> bool:
    own_id = technician_id_of(user)
    if own_id is None:
        return False
    return any(
        assignment.appointment_id == appointment_id and assignment.technician_id == own_id
        for assignment in assignments
    )


def can_view_appointment(user: Any, appointment: Any, assignments: Iterable[Any]) -> bool:
    if user is None:
        return False
    if is_admin(user):
        return True
    if is_technician(user):
        return can_read(
            user,
            "appointments",
            {"assigned_to_technician": is_assigned(user, appointment.appointment_id, assignments)},
        )
    return False


def can_update_appointment(user: Any, appointment: Any, assignments: Iterable[Any]) -> bool:
    if user is None:
        return False
    if is_admin(user):
        return True
    if is_technician(user):
        return can_update(
            user,
            "appointments",
            {"assigned_to_technician": is_assigned(user, appointment.appointment_id, assignments)},
        )
    return False


def accessible_resources(user: Any) -> list[str]:
    seen: dict[str, None] = {}
    for permission in _role_permissions(user):
        seen.setdefault(permission.resource, None)
    return list(seen)


def has_any_permission_for_resource(user: Any, resource: str) -> bool:
    return any(permission.resource == resource for permission in _role_permissions(user))


def filter_navigation_items(user: Any, items: Iterable[Mapping[str, Any]]) -> list[Mapping[str, Any]]:
    if user is None:
        return []
    return [item for item in items if can_access_navigation(user, item["id"])]
