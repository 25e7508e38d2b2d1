"""FastAPI application entrypoint."""

from contextlib import asynccontextmanager

from fastapi import FastAPI

from src.core.config import settings
from src.core.exceptions import register_exception_handlers
from src.core.logging_config import configure_logging
from src.modules.appointments.router import admin_router as admin_appointments_router
from src.modules.appointments.router import router as appointments_router
from src.modules.catalog.admin_router import router as admin_catalog_router
from src.modules.catalog.router import router as catalog_router
from src.modules.customers.router import router as customers_router
from src.modules.notifications.push import build_push_gateway
from src.modules.notifications.router import router as notifications_router
from src.modules.notifications.scheduler import NotificationScheduler
from src.modules.schedule.router import router as schedule_router
from src.modules.schedule.admin_router import router as admin_schedule_router
from src.modules.technicians.router import router as technicians_router
from src.modules.technicians.admin_router import router as admin_technicians_router
from src.modules.users.router import router as users_router
from src.modules.users.admin_router import router as admin_users_router


@asynccontextmanager
async def lifespan(app: FastAPI):
    scheduler = None
    if settings.notification_checks_enabled:
        scheduler = NotificationScheduler(push=build_push_gateway())
        scheduler.start()
    app.state.notification_scheduler = scheduler
    try:
        yield
    finally:
        if scheduler is not None:
            await scheduler.stop()


def create_app() -> FastAPI:
    configure_logging()
    app = FastAPI(
        title=settings.app_name,
        debug=settings.debug,
        version="0.1.0",
        lifespan=lifespan,
    )
    register_exception_handlers(app)

    @app.get("/health", tags=["system"])
    async def health_check() -> dict[str, str]:
        return {"status": "ok"}

    app.include_router(users_router)
    app.include_router(customers_router)
    app.include_router(technicians_router)
    app.include_router(appointments_router)
    app.include_router(schedule_router)
    app.include_router(catalog_router)
    app.include_router(notifications_router)
    app.include_router(admin_users_router)
    app.include_router(admin_technicians_router)
    app.include_router(admin_catalog_router)
    app.include_router(admin_appointments_router)
    app.include_router(admin_schedule_router)

    return app


app = create_app()
