# app/main.py
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from core.auth import build_identity_resolver
from core.config import Settings, settings
from core.errors import install_error_handlers
from core.logger import logger
from api.v1.auth import router as auth_router
from api.v1.employees import router as employees_router
from api.v1.admin import router as admin_router
from api.v1.locations import router as locations_router
from api.v1.time_clock import router as time_clock_router
from api.v1.timesheets import router as timesheets_router
from api.v1.payroll import router as payroll_router
from api.v1.teams import router as teams_router
from api.v1.organizations import router as organizations_router


def create_app(cfg: Settings = settings) -> FastAPI:
    app = FastAPI(title="RotaClock API", version="1.0")

    # Chosen once per process; never switched per request
    app.state.identity_resolver = build_identity_resolver(cfg)
    if cfg.DEMO_AUTH:
        logger.warning(
            "Demo identity fallback enabled",
            extra={"action": "startup", "meta": {"demo_identity": True}},
        )

    origins = [o.strip() for o in cfg.CORS_ORIGINS.split(",") if o.strip()]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins or ["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    install_error_handlers(app)

    @app.get("/health")
    def health(): return {"success": True, "data": {"status": "ok"}}

    app.include_router(auth_router)
    app.include_router(employees_router)
    app.include_router(admin_router)
    app.include_router(locations_router)
    app.include_router(time_clock_router)
    app.include_router(timesheets_router)
    app.include_router(payroll_router)
    app.include_router(teams_router)
    app.include_router(organizations_router)
    return app


app = create_app()
