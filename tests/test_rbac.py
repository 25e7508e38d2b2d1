from types import SimpleNamespace

from src.core import rbac
from src.shared.enums import UserRole


def _admin():
    return SimpleNamespace(role=UserRole.ADMIN, technician_profile=None)


def _technician(technician_id="tech-1"):
    return SimpleNamespace(
        role=UserRole.TECHNICIAN,
        technician_profile=SimpleNamespace(technician_id=technician_id),
    )


def _assignment(appointment_id, technician_id):
    return SimpleNamespace(appointment_id=appointment_id, technician_id=technician_id)


def test_admin_has_full_crud_on_workshop_resources():
    admin = _admin()
    for resource in ("appointments", "schedule_assignments", "customers", "vehicles", "technicians"):
        for action in rbac.CRUD_ACTIONS:
            assert rbac.has_permission(admin, resource, action)
    assert rbac.has_permission(admin, "admin", "user_management")
    assert rbac.can_access_navigation(admin, "plantafel")


def test_technician_appointment_access_requires_assignment():
    technician = _technician()
    appointment = SimpleNamespace(appointment_id="appt-1")

    assert not rbac.can_view_appointment(technician, appointment, [])
    assert not rbac.can_view_appointment(technician, appointment, [_assignment("appt-1", "tech-2")])
    assert rbac.can_view_appointment(technician, appointment, [_assignment("appt-1", "tech-1")])
    assert rbac.can_update_appointment(technician, appointment, [_assignment("appt-1", "tech-1")])


def test_technician_cannot_create_or_delete():
    technician = _technician()
    assert not rbac.can_create(technician, "appointments")
    assert not rbac.can_delete(technician, "appointments")
    assert not rbac.can_update(technician, "customers")
    assert rbac.can_read(technician, "customers")
    assert rbac.has_permission(technician, "technician", "request_absence")


def test_conditional_grant_without_context_is_denied():
    technician = _technician()
    assert not rbac.has_permission(technician, "appointments", "read")
    assert rbac.has_permission(technician, "appointments", "read", {"assigned_to_technician": True})
    # Truthy is not enough.
    assert not rbac.has_permission(technician, "appointments", "read", {"assigned_to_technician": "yes"})


def test_schedule_lane_visibility_is_limited_to_own_lane():
    technician = _technician()
    assert rbac.can_read(technician, "schedule_assignments", {"technician_id": "tech-1"})
    assert not rbac.can_read(technician, "schedule_assignments", {"technician_id": "tech-2"})

    unlinked = SimpleNamespace(role=UserRole.TECHNICIAN, technician_profile=None)
    assert not rbac.can_read(unlinked, "schedule_assignments", {"technician_id": None})


def test_missing_or_unknown_role_has_no_permissions():
    assert not rbac.has_permission(None, "appointments", "read")
    assert rbac.accessible_resources(SimpleNamespace(role="customer")) == []
    assert not rbac.is_admin(None)


def test_navigation_is_filtered_by_role():
    items = [{"id": "dashboard"}, {"id": "jobs"}, {"id": "plantafel"}, {"id": "leitstand"}]
    assert [item["id"] for item in rbac.filter_navigation_items(_technician(), items)] == ["dashboard", "jobs"]
    assert len(rbac.filter_navigation_items(_admin(), items)) == 4
    assert rbac.filter_navigation_items(None, items) == []


def test_accessible_resources_lists_each_resource_once():
    resources = rbac.accessible_resources(_technician())
    assert resources == [
        "appointments",
        "customers",
        "vehicles",
        "schedule_assignments",
        "notifications",
        "navigation",
        "technician",
        "skills",
        "services",
    ]
    assert rbac.has_any_permission_for_resource(_technician(), "vehicles")
    assert not rbac.has_any_permission_for_resource(_technician(), "admin")
