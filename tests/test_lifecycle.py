from datetime import datetime

import pytest
from sqlalchemy import select
from sqlalchemy.exc import OperationalError

from src.core.exceptions import BusinessLogicError, PersistenceError, SchedulingConflictError
from src.modules.notifications.models import Notification
from src.modules.notifications.service import NotificationService
from src.modules.schedule.lifecycle import AssignmentLifecycleManager, next_action
from src.modules.schedule.models import ScheduleAssignment
from src.shared import clock
from src.shared.enums import AppointmentStatus, AssignmentStatus


async def _assignments(db_session, appointment_id):
    result = await db_session.execute(
        select(ScheduleAssignment)
        .where(ScheduleAssignment.appointment_id == appointment_id)
        .execution_options(populate_existing=True)
    )
    return list(result.scalars().all())


def test_next_action_map_covers_legacy_statuses():
    assert next_action("waiting").label == "Begin Work"
    assert next_action("new").status == AppointmentStatus.IN_PROGRESS
    assert next_action(AppointmentStatus.ASSIGNED).label == "Start Work"
    assert next_action("in_progress").status == AppointmentStatus.COMPLETED
    assert next_action("paused").label == "Resume"
    assert next_action("waiting_parts").label == "Continue"
    assert next_action("completed") is None
    assert next_action("cancelled") is None
    assert next_action(None) is None


@pytest.mark.asyncio
async def test_drop_on_technician_creates_single_live_assignment(db_session, seed):
    technician = await seed.technician()
    appointment = await seed.appointment(aw=15)
    manager = AssignmentLifecycleManager(db_session)

    result = await manager.drop_on_technician(appointment.appointment_id, technician.technician_id, seed.at(9))

    assert result.appointment.status == AppointmentStatus.ASSIGNED
    assert result.report.findings == []
    (assignment,) = await _assignments(db_session, appointment.appointment_id)
    assert assignment.technician_id == technician.technician_id
    assert clock.localize(assignment.start_time) == seed.at(9)
    assert clock.localize(assignment.end_time) == seed.at(10, 30)
    assert assignment.aw_planned == 15
    assert assignment.status == AssignmentStatus.SCHEDULED


@pytest.mark.asyncio
async def test_reassignment_replaces_previous_lane(db_session, seed):
    first = await seed.technician(name="Jonas")
    second = await seed.technician(name="Lena")
    appointment = await seed.appointment()
    await seed.assignment(appointment, first, seed.at(8), seed.at(9, 30))
    manager = AssignmentLifecycleManager(db_session)

    await manager.drop_on_technician(appointment.appointment_id, second.technician_id, seed.at(13, 7))

    rows = await _assignments(db_session, appointment.appointment_id)
    assert [row.technician_id for row in rows] == [second.technician_id]
    # 13:07 snaps onto the 15 minute grid.
    assert clock.localize(rows[0].start_time) == seed.at(13)


@pytest.mark.asyncio
async def test_moving_within_own_lane_is_not_a_self_conflict(db_session, seed):
    technician = await seed.technician()
    appointment = await seed.appointment()
    await seed.assignment(appointment, technician, seed.at(9), seed.at(10, 30))
    manager = AssignmentLifecycleManager(db_session)

    result = await manager.drop_on_technician(appointment.appointment_id, technician.technician_id, seed.at(9, 30))

    assert "double_booking" not in result.report.codes()


@pytest.mark.asyncio
async def test_conflicting_drop_is_refused_and_nothing_changes(db_session, seed):
    technician = await seed.technician()
    booked = await seed.appointment(title="Brakes", status=AppointmentStatus.ASSIGNED)
    await seed.assignment(booked, technician, seed.at(9), seed.at(10, 30))
    appointment = await seed.appointment()
    manager = AssignmentLifecycleManager(db_session)

    with pytest.raises(SchedulingConflictError) as excinfo:
        await manager.drop_on_technician(appointment.appointment_id, technician.technician_id, seed.at(10))

    assert excinfo.value.status_code == 409
    assert "double_booking" in [item["code"] for item in excinfo.value.report["findings"]]
    assert await _assignments(db_session, appointment.appointment_id) == []
    refreshed = await manager.get_appointment(appointment.appointment_id)
    assert refreshed.status == AppointmentStatus.WAITING


@pytest.mark.asyncio
async def test_start_defaults_to_next_grid_line(db_session, seed, monkeypatch):
    technician = await seed.technician()
    appointment = await seed.appointment(aw=5)
    manager = AssignmentLifecycleManager(db_session)
    monkeypatch.setattr(clock, "now", lambda: seed.at(10, 2))

    plan = await manager.prepare_assignment(appointment.appointment_id, technician.technician_id)

    assert plan.start == seed.at(10, 15)
    assert plan.end == seed.at(10, 45)


@pytest.mark.asyncio
async def test_terminal_and_inactive_targets_are_rejected(db_session, seed):
    technician = await seed.technician()
    idle = await seed.technician(name="Lena", is_active=False)
    done = await seed.appointment(status=AppointmentStatus.COMPLETED)
    waiting = await seed.appointment()
    manager = AssignmentLifecycleManager(db_session)

    with pytest.raises(BusinessLogicError) as excinfo:
        await manager.drop_on_technician(done.appointment_id, technician.technician_id, seed.at(9))
    assert excinfo.value.status_code == 409

    with pytest.raises(BusinessLogicError) as excinfo:
        await manager.drop_on_technician(waiting.appointment_id, idle.technician_id, seed.at(9))
    assert excinfo.value.status_code == 422


@pytest.mark.asyncio
async def test_drop_to_inbox_clears_assignments(db_session, seed):
    technician = await seed.technician()
    appointment = await seed.appointment(status=AppointmentStatus.ASSIGNED)
    await seed.assignment(appointment, technician, seed.at(9), seed.at(10, 30))
    manager = AssignmentLifecycleManager(db_session)

    result = await manager.drop_to_inbox(appointment.appointment_id)

    assert result.appointment.status == AppointmentStatus.WAITING
    assert result.appointment.assignments == []
    assert await _assignments(db_session, appointment.appointment_id) == []


@pytest.mark.asyncio
async def test_progress_button_walks_the_status_machine(db_session, seed):
    technician = await seed.technician()
    appointment = await seed.appointment(status=AppointmentStatus.ASSIGNED)
    await seed.assignment(appointment, technician, seed.at(9), seed.at(10, 30))
    manager = AssignmentLifecycleManager(db_session)

    started = await manager.advance_progress(appointment.appointment_id)
    assert started.appointment.status == AppointmentStatus.IN_PROGRESS
    assert started.appointment.assignments[0].status == AssignmentStatus.IN_PROGRESS

    finished = await manager.advance_progress(appointment.appointment_id)
    assert finished.appointment.status == AppointmentStatus.COMPLETED
    assert finished.appointment.assignments[0].status == AssignmentStatus.COMPLETED

    with pytest.raises(BusinessLogicError) as excinfo:
        await manager.advance_progress(appointment.appointment_id)
    assert excinfo.value.status_code == 409


@pytest.mark.asyncio
async def test_board_status_moves_accept_legacy_names(db_session, seed):
    appointment = await seed.appointment()
    manager = AssignmentLifecycleManager(db_session)

    result = await manager.move_to_status(appointment.appointment_id, "waiting_parts")
    assert result.appointment.status == AppointmentStatus.PAUSED

    with pytest.raises(BusinessLogicError):
        await manager.move_to_status(appointment.appointment_id, "cancelled")


@pytest.mark.asyncio
async def test_status_column_move_leaves_assignment_rows_alone(db_session, seed):
    technician = await seed.technician()
    appointment = await seed.appointment(status=AppointmentStatus.ASSIGNED)
    await seed.assignment(appointment, technician, seed.at(9), seed.at(10, 30))
    manager = AssignmentLifecycleManager(db_session)

    for target in (AppointmentStatus.IN_PROGRESS, AppointmentStatus.COMPLETED):
        result = await manager.move_to_status(appointment.appointment_id, target)
        assert result.appointment.status == target
        (assignment,) = await _assignments(db_session, appointment.appointment_id)
        assert assignment.status == AssignmentStatus.SCHEDULED


@pytest.mark.asyncio
async def test_cancel_marks_live_assignments_cancelled(db_session, seed):
    technician = await seed.technician()
    appointment = await seed.appointment(status=AppointmentStatus.ASSIGNED)
    await seed.assignment(appointment, technician, seed.at(9), seed.at(10, 30))
    manager = AssignmentLifecycleManager(db_session)

    result = await manager.cancel(appointment.appointment_id)
    again = await manager.cancel(appointment.appointment_id)

    assert result.appointment.status == AppointmentStatus.CANCELLED
    assert again.appointment.status == AppointmentStatus.CANCELLED
    (assignment,) = await _assignments(db_session, appointment.appointment_id)
    assert assignment.status == AssignmentStatus.CANCELLED


@pytest.mark.asyncio
async def test_flush_failure_rolls_back_and_keeps_previous_state(db_session, seed, monkeypatch):
    first = await seed.technician(name="Jonas")
    second = await seed.technician(name="Lena")
    appointment = await seed.appointment(status=AppointmentStatus.ASSIGNED)
    await seed.assignment(appointment, first, seed.at(8), seed.at(9, 30))
    appointment_id = appointment.appointment_id
    first_id, second_id = first.technician_id, second.technician_id
    manager = AssignmentLifecycleManager(db_session)

    real_flush = db_session.flush
    calls = {"count": 0}

    async def failing_flush(*args, **kwargs):
        calls["count"] += 1
        if calls["count"] == 2:
            raise OperationalError("INSERT INTO schedule_assignments", {}, Exception("disk I/O error"))
        return await real_flush(*args, **kwargs)

    monkeypatch.setattr(db_session, "flush", failing_flush)

    with pytest.raises(PersistenceError) as excinfo:
        await manager.drop_on_technician(appointment_id, second_id, seed.at(13))
    assert excinfo.value.status_code == 503

    monkeypatch.undo()
    rows = await _assignments(db_session, appointment_id)
    assert [row.technician_id for row in rows] == [first_id]
    refreshed = await manager.get_appointment(appointment_id)
    assert refreshed.status == AppointmentStatus.ASSIGNED


class _BrokenNotifications(NotificationService):
    async def notify_technician_assignment(self, appointment, technician):
        raise RuntimeError("push backend down")


@pytest.mark.asyncio
async def test_notification_failure_does_not_undo_assignment(db_session, seed):
    technician = await seed.technician()
    appointment = await seed.appointment()
    appointment_id, technician_id = appointment.appointment_id, technician.technician_id
    manager = AssignmentLifecycleManager(db_session, _BrokenNotifications(db_session))

    result = await manager.drop_on_technician(appointment_id, technician_id, seed.at(9))

    assert result.appointment.status == AppointmentStatus.ASSIGNED
    rows = await _assignments(db_session, appointment_id)
    assert [row.technician_id for row in rows] == [technician_id]


@pytest.mark.asyncio
async def test_assignment_and_completion_notify_people(db_session, seed):
    await seed.admin()
    technician = await seed.technician()
    appointment = await seed.appointment(title="Oil change")
    technician_user_id = technician.user_id
    manager = AssignmentLifecycleManager(db_session, NotificationService(db_session))

    await manager.drop_on_technician(appointment.appointment_id, technician.technician_id, seed.at(9))
    await manager.move_to_status(appointment.appointment_id, AppointmentStatus.COMPLETED)

    result = await db_session.execute(select(Notification).order_by(Notification.created_at))
    notifications = list(result.scalars().all())
    messages = [item.message for item in notifications]
    assert "New appointment assigned: Oil change (Erika Mustermann)" in messages
    assert "Technician assigned: Oil change → Jonas" in messages
    assert any(message.endswith("assigned → completed") for message in messages)
    assert any(item.user_id == technician_user_id for item in notifications)


@pytest.mark.asyncio
async def test_resolve_start_localizes_naive_input(db_session):
    manager = AssignmentLifecycleManager(db_session)
    resolved = manager.resolve_start(datetime(2026, 3, 10, 9, 8))
    assert resolved == datetime(2026, 3, 10, 9, 15, tzinfo=clock.workshop_tz())
