import json

import httpx
import pytest
import pytest_asyncio
from sqlalchemy import select
from sqlalchemy.exc import OperationalError
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine

from src.core.database import Base
from src.modules.notifications.models import Notification
from src.modules.notifications.push import PushGateway
from src.modules.notifications.scheduler import NotificationScheduler
from src.modules.notifications.service import NotificationService
from src.shared.enums import AppointmentStatus, NotificationType


def _gateway(handler) -> PushGateway:
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return PushGateway("https://push.werkstatt.test/hook", client=client)


async def _notifications(db_session, user_id=None):
    stmt = select(Notification)
    if user_id is not None:
        stmt = stmt.where(Notification.user_id == user_id)
    result = await db_session.execute(stmt)
    return list(result.scalars().all())


@pytest.mark.asyncio
async def test_push_gateway_posts_payload():
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(json.loads(request.content))
        return httpx.Response(202)

    delivered = await _gateway(handler).send("user-1", {"message": "hello"})

    assert delivered is True
    assert seen == [{"user_id": "user-1", "message": "hello"}]


@pytest.mark.asyncio
async def test_push_gateway_reports_failures_without_raising():
    rejected = await _gateway(lambda request: httpx.Response(500)).send("user-1", {"message": "x"})

    def unreachable(request):
        raise httpx.ConnectError("connection refused", request=request)

    offline = await _gateway(unreachable).send("user-1", {"message": "x"})

    assert rejected is False
    assert offline is False


@pytest.mark.asyncio
async def test_created_notifications_are_pushed(db_session, seed):
    admin = await seed.admin()
    pushed = []

    def handler(request):
        pushed.append(json.loads(request.content))
        return httpx.Response(200)

    service = NotificationService(db_session, _gateway(handler))
    created = await service.notify_admins("New appointment created: Inspection", NotificationType.SUCCESS)
    assert pushed == []
    await service.commit()

    assert len(created) == 1
    assert pushed[0]["user_id"] == admin.user_id
    assert pushed[0]["type"] == "success"


@pytest.mark.asyncio
async def test_failed_commit_pushes_nothing(db_session, seed, monkeypatch):
    await seed.admin()
    pushed = []

    def handler(request):
        pushed.append(json.loads(request.content))
        return httpx.Response(200)

    service = NotificationService(db_session, _gateway(handler))
    await service.notify_admins("Technician assigned: Brakes")

    async def failing_commit():
        raise OperationalError("COMMIT", {}, Exception("database is locked"))

    monkeypatch.setattr(db_session, "commit", failing_commit)
    with pytest.raises(OperationalError):
        await service.commit()
    monkeypatch.undo()
    await db_session.rollback()

    assert await service.send_pending() == 0
    assert pushed == []
    assert await _notifications(db_session) == []


@pytest.mark.asyncio
async def test_technician_without_profile_is_skipped(db_session, seed):
    technician = await seed.technician(with_user=False)
    service = NotificationService(db_session)

    assert await service.notify_technician(technician.technician_id, "hello") is None
    assert await _notifications(db_session) == []


@pytest.mark.asyncio
async def test_reminders_are_sent_once_per_assignment(db_session, seed):
    technician = await seed.technician()
    soon = await seed.appointment(title="Inspection", status=AppointmentStatus.ASSIGNED)
    later = await seed.appointment(title="Tyres", status=AppointmentStatus.ASSIGNED)
    await seed.assignment(soon, technician, seed.at(9), seed.at(10, 30))
    await seed.assignment(later, technician, seed.at(14), seed.at(15, 30))
    service = NotificationService(db_session)

    first = await service.create_reminders(now=seed.at(8, 45))
    await db_session.commit()
    second = await service.create_reminders(now=seed.at(8, 50))

    assert first == 1
    assert second == 0
    (reminder,) = await _notifications(db_session, technician.user_id)
    assert reminder.message == "Reminder: Appointment starting soon - Inspection (Erika Mustermann)"
    assert reminder.type == NotificationType.WARNING
    assert reminder.action_link == "/jobs"


@pytest.mark.asyncio
async def test_overdue_work_is_flagged_once(db_session, seed):
    admin = await seed.admin()
    technician = await seed.technician()
    appointment = await seed.appointment(title="Clutch", status=AppointmentStatus.IN_PROGRESS)
    await seed.assignment(appointment, technician, seed.at(8), seed.at(9))
    service = NotificationService(db_session)

    # Still inside the grace period.
    assert await service.check_overdue(now=seed.at(9, 45)) == 0
    assert await service.check_overdue(now=seed.at(10, 30)) == 1
    await db_session.commit()
    assert await service.check_overdue(now=seed.at(11)) == 0

    (alert,) = await _notifications(db_session, admin.user_id)
    assert alert.message == "Overdue appointment: Clutch (Erika Mustermann) - Jonas"
    assert alert.action_link == "/leitstand"
    assert len(await _notifications(db_session, technician.user_id)) == 1


@pytest.mark.asyncio
async def test_mark_read_is_limited_to_owner(db_session, seed):
    from fastapi import HTTPException

    admin = await seed.admin()
    other = await seed.admin(email="other@werkstatt.test")
    service = NotificationService(db_session)
    created = await service.notify_admins("hello", dedupe_key="once")
    assert len(created) == 2
    assert await service.notify_admins("hello", dedupe_key="once") == []
    await db_session.commit()

    mine = await service.list_for_user(admin, unread_only=True)
    assert len(mine) == 1
    with pytest.raises(HTTPException):
        await service.mark_read(mine[0].notification_id, other)

    updated = await service.mark_read(mine[0].notification_id, admin)
    assert updated.is_read
    assert await service.list_for_user(admin, unread_only=True) == []
    await service.mark_all_read(other)
    assert await service.list_for_user(other, unread_only=True) == []


@pytest_asyncio.fixture
async def file_session_factory(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'checks.db'}", future=True)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield async_sessionmaker(engine, expire_on_commit=False)
    await engine.dispose()


@pytest.mark.asyncio
async def test_scheduler_run_once_commits_in_its_own_session(file_session_factory, seeder_cls):
    async with file_session_factory() as session:
        seed = seeder_cls(session)
        await seed.admin()
        technician = await seed.technician()
        appointment = await seed.appointment(status=AppointmentStatus.IN_PROGRESS)
        await seed.assignment(appointment, technician, seed.at(8), seed.at(9))
        now = seed.at(12)

    scheduler = NotificationScheduler(session_factory=file_session_factory)
    count = await scheduler.run_once("overdue", lambda service: service.check_overdue(now=now))
    assert count == 1

    async with file_session_factory() as session:
        stored = (await session.execute(select(Notification))).scalars().all()
    assert len(stored) == 2


@pytest.mark.asyncio
async def test_scheduler_start_and_stop(file_session_factory):
    scheduler = NotificationScheduler(
        session_factory=file_session_factory,
        reminder_interval=3600,
        overdue_interval=3600,
    )
    async with scheduler:
        assert scheduler.running
        scheduler.start()
    assert not scheduler.running
    await scheduler.stop()
