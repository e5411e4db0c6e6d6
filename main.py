"""FastAPI application entrypoint."""

from fastapi import FastAPI

from washbay.core.config import settings
from washbay.core.exceptions import register_exception_handlers
from washbay.core.logging import setup_logging
from washbay.modules.appointments.router import portal_router as portal_appointments_router
from washbay.modules.appointments.router import router as appointments_router
from washbay.modules.schedule.admin_router import router as admin_settings_router
from washbay.modules.schedule.router import portal_router as portal_schedule_router
from washbay.modules.schedule.router import router as schedule_router


def create_app() -> FastAPI:
    setup_logging()
    app = FastAPI(
        title=settings.app_name,
        debug=settings.debug,
        version="0.1.0",
    )
    register_exception_handlers(app)

    @app.get("/api/health", tags=["system"])
    async def health_check() -> dict[str, str]:
        return {"status": "ok", "timezone": settings.business_timezone}

    # Availability first so its fixed paths are matched before /{appointment_id}.
    app.include_router(schedule_router)
    app.include_router(appointments_router)
    app.include_router(portal_schedule_router)
    app.include_router(portal_appointments_router)
    app.include_router(admin_settings_router)

    return app


app = create_app()
