import asyncio
import logging
from pathlib import Path

from alembic import command
from alembic.config import Config
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import inspect
from sqlalchemy.exc import OperationalError

from dialcrm.api import analysis, auth, calls, dashboard, dialpad, eod, health, oauth, users, webhooks
from dialcrm.core.config import settings
from dialcrm.core.database import engine
from dialcrm.core.errors import ProviderError, ServiceError
from dialcrm.core.logging import configure_logging

configure_logging()
logger = logging.getLogger(__name__)

app = FastAPI(title=settings.app_name)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["authorization", "x-client-info", "apikey", "content-type"],
)


@app.on_event("startup")
async def on_startup() -> None:
    if settings.auto_migrate:
        await wait_for_database()
        run_migrations()


async def wait_for_database(max_attempts: int = 8, delay_seconds: float = 1.5) -> None:
    attempt = 0
    delay = delay_seconds
    while attempt < max_attempts:
        attempt += 1
        try:
            with engine.connect():
                return
        except OperationalError as exc:
            if attempt >= max_attempts:
                logger.error("Database connection failed after %s attempts.", attempt, exc_info=exc)
                raise
            logger.warning(
                "Database not ready (attempt %s/%s). Retrying in %.1fs.",
                attempt,
                max_attempts,
                delay,
            )
            await asyncio.sleep(delay)
            delay = min(delay * 1.5, 10.0)


def run_migrations() -> None:
    alembic_ini = Path(__file__).resolve().parents[1] / "alembic.ini"
    config = Config(str(alembic_ini))
    config.set_main_option("sqlalchemy.url", settings.database_url)
    config.attributes["configure_logger"] = False
    with engine.connect() as connection:
        tables = inspect(connection).get_table_names()
    if tables and "alembic_version" not in tables:
        logger.warning("Existing tables detected without alembic version; stamping baseline.")
        command.stamp(config, "head")
        return
    command.upgrade(config, "head")


@app.exception_handler(ServiceError)
async def service_error_handler(request: Request, exc: ServiceError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    content = {"error": exc.message, "details": exc.details}
    if isinstance(exc, ProviderError) and exc.provider_status:
        content["status"] = exc.provider_status
    return JSONResponse(status_code=exc.status_code, content=content)


app.include_router(health.router)
app.include_router(auth.router)
app.include_router(users.router)
app.include_router(oauth.router)
app.include_router(dialpad.router)
app.include_router(webhooks.router)
app.include_router(analysis.router)
app.include_router(calls.router)
app.include_router(dashboard.router)
app.include_router(eod.router)
