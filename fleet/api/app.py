from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from fleet.api.banner_routes import banner_router, ad_banner_router
from fleet.api.admin_routes import admin_router
from fleet.database.db import init_db
from fleet.config.settings import get_settings

settings = get_settings()

VERSION = "0.3.0"


def create_app() -> FastAPI:
    # Disable Swagger/ReDoc in production
    docs_kwargs = {}
    if settings.is_production:
        docs_kwargs = {"docs_url": None, "redoc_url": None}

    app = FastAPI(
        title="Fleet Banner API",
        description="Promotional banner scheduling for the Fleet car marketplace",
        version=VERSION,
        **docs_kwargs,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=False,
        allow_methods=["GET", "POST", "PATCH", "DELETE"],
        allow_headers=["Content-Type", "X-Admin-Key"],
    )

    app.include_router(banner_router, prefix="/api/v1")
    app.include_router(ad_banner_router, prefix="/api/v1")
    app.include_router(admin_router, prefix="/api/v1")

    @app.get("/health", tags=["health"])
    def health_check():
        return {"status": "ok", "version": VERSION}

    @app.on_event("startup")
    def on_startup():
        settings.validate_production()
        if not settings.is_deployed:
            init_db()  # Deployed envs use: alembic upgrade head

    return app


app = create_app()
