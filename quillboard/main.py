"""Quillboard admin API: FastAPI app serving the status-change workflow."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from quillboard.api.errors import register_error_handlers
from quillboard.api.routes import admin_users, status_change
from quillboard.config import settings
from quillboard.database import Base, engine
from quillboard.services.email_service import EmailService

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    Base.metadata.create_all(bind=engine)
    logger.info("Schema ready on %s", engine.url.render_as_string(hide_password=True))
    if not EmailService().is_configured():
        # Requests are still filed; each one records the missing config in its notes
        logger.warning("SMTP not configured: super admins will only get in-app notifications")
    yield
    engine.dispose()
    logger.info("Admin API stopped")


app = FastAPI(
    title=settings.api_title,
    description="Admin promotion/demotion requests with super-admin approval",
    version=settings.api_version,
    lifespan=lifespan,
)

register_error_handlers(app)

app.include_router(status_change.router)
app.include_router(admin_users.router)


@app.get("/health")
def health_check() -> dict:
    return {"status": "ok"}


if __name__ == "__main__":
    import uvicorn

    from quillboard.logging import setup_server_logging

    setup_server_logging()
    uvicorn.run(app, host=settings.api_host, port=settings.api_port, log_config=None)
