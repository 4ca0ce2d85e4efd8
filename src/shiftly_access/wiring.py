from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, Response

from .config import Settings
from .db import create_engine, create_sessionmaker
from .exceptions import StoreUnavailable
from .infrastructure.cache.permission_cache import PermissionCache
from .infrastructure.repositories.permissions_repository import SqlAlchemyPermissionStore
from .logging_config import configure_logging, get_logger
from .metrics import metrics_response
from .schemas.permission import AccessErrorDetail

logger = get_logger(__name__)


def create_app(settings: Settings | None = None) -> FastAPI:
    """Create a FastAPI application with the access-control collaborators on ``app.state``.

    The engine, session factory, permission store and permission cache are built
    here once per app; dependencies read them from ``request.app.state``. Table
    creation and seeding are left to the caller (``setup_db.create_all``,
    ``seed.seed_catalog``).
    """
    if settings is None:
        settings = Settings()
    configure_logging(settings.log_level)

    app = FastAPI(title="Shiftly Access")

    engine = create_engine(settings)
    session_factory = create_sessionmaker(engine)
    app.state.settings = settings
    app.state.engine = engine
    app.state.session_factory = session_factory
    app.state.permission_store = SqlAlchemyPermissionStore(session_factory)
    app.state.permission_cache = PermissionCache(ttl_seconds=settings.permission_cache_ttl_seconds)

    from .routers import permissions

    app.include_router(permissions.router)

    @app.get("/metrics")
    async def _metrics():
        data, content_type = metrics_response()
        return Response(content=data, media_type=content_type)

    @app.exception_handler(StoreUnavailable)
    async def _store_unavailable_handler(request: Request, exc: StoreUnavailable):
        # "cannot determine" must never be reported as a permission refusal
        logger.error(
            "authorization_store_unavailable", operation=exc.operation, path=request.url.path
        )
        return JSONResponse(
            status_code=503,
            content={
                "detail": AccessErrorDetail(
                    error="Service Unavailable", code="PERMISSIONS_UNAVAILABLE"
                ).as_detail()
            },
        )

    logger.info("app_created", permission_cache_ttl=settings.permission_cache_ttl_seconds)
    return app


__all__ = ["create_app"]
