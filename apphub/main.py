"""App Hub — shared app catalog with personalized layouts.

FastAPI entry point with lifespan management, admin seeding, and CORS.
"""

from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy import select

from . import __version__
from .api.router import api_router
from .config import get_config
from .database import close_engine, create_tables, get_session_factory
from .dependencies import get_record_store, get_session_registry
from .middleware.error_handler import register_error_handlers
from .middleware.request_id import RequestIDMiddleware
from .models.user import User
from .utils.logging import get_logger, setup_logging
from .utils.security import hash_password

config = get_config()
setup_logging(
    debug=config.debug,
    log_dir=config.log_dir,
    log_max_bytes=config.log_max_bytes,
    log_backup_count=config.log_backup_count,
)
logger = get_logger("apphub.main")


async def _seed_admin_user(factory) -> None:
    """Create the initial admin account when a seed password is configured (idempotent)."""
    if not config.seed_admin_password:
        return
    try:
        async with factory() as session:
            result = await session.execute(
                select(User).where(User.username == config.seed_admin_username)
            )
            if result.scalar_one_or_none() is not None:
                return
            session.add(User(
                username=config.seed_admin_username,
                password_hash=hash_password(config.seed_admin_password),
                role=config.admin_role_threshold,
            ))
            await session.commit()
        logger.info("admin_user_seeded", username=config.seed_admin_username)
    except Exception as e:
        logger.error("seed_admin_failed", error=str(e))


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan: startup and shutdown."""
    logger.info("apphub_starting", host=config.host, port=config.port)

    if config.secret_key == "CHANGE_ME_IN_PRODUCTION":
        if not config.debug:
            raise RuntimeError(
                "INSECURE_SECRET_KEY — default secret_key detected in production mode. "
                "Set a strong, unique SECRET_KEY in .env before deploying."
            )
        logger.warning("insecure_secret_key", hint="set SECRET_KEY before deploying")

    await create_tables(config)
    await _seed_admin_user(get_session_factory(config))

    # Wire the store before the first request
    get_record_store()

    yield

    # --- Shutdown ---
    await get_session_registry().shutdown()
    await close_engine()
    logger.info("apphub_stopped")


app = FastAPI(
    title="APP HUB",
    description="Shared app catalog with per-user layouts",
    version=__version__,
    lifespan=lifespan,
)

register_error_handlers(app)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[o.strip() for o in config.cors_origins.split(",") if o.strip()],
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["Authorization", "Content-Type", "X-Request-ID"],
)

# Added last so it runs first
app.add_middleware(RequestIDMiddleware)

app.include_router(api_router)


@app.get("/")
async def root():
    return {"name": config.app_name, "version": __version__, "status": "operational"}


@app.get("/health")
async def health():
    """Liveness plus the number of open hub sessions."""
    return {
        "status": "ok",
        "version": __version__,
        "open_sessions": len(get_session_registry()),
    }


def main():
    """Run the App Hub server."""
    uvicorn.run(
        "apphub.main:app",
        host=config.host,
        port=config.port,
        reload=config.debug,
        log_level="debug" if config.debug else "info",
    )


if __name__ == "__main__":
    main()
