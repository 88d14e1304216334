"""FastAPI application entrypoint."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.api import announcements, chat, notifications, ops, users
from app.api.errors import install_error_handlers
from app.api.middleware_request_id import RequestIdMiddleware
from app.domain import container
from app.infra import postgres
from app.infra.schema import ensure_schema
from app.obs import init as obs_init
from app.settings import settings

LOGGER = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
	if not settings.uses_memory_store():
		pool = await postgres.init_pool()
		await ensure_schema(pool)
		container.configure_postgres(pool)
	LOGGER.info("startup_complete", extra={"store_backend": settings.store_backend})
	try:
		yield
	finally:
		await container.get_dispatcher().drain()
		await postgres.close_pool()


app = FastAPI(title="Handbook Messaging API", lifespan=lifespan)
install_error_handlers(app)

allow_origins = list(getattr(settings, "cors_allow_origins", []))
if not allow_origins:
	allow_origins = ["http://localhost:3000"] if settings.is_dev() else []

# Starlette disallows wildcard '*' with allow_credentials=True. Replace '*' with explicit origins.
if "*" in allow_origins:
	allow_origins = ["http://localhost:3000", "http://127.0.0.1:3000"] if settings.is_dev() else []

app.add_middleware(
	CORSMiddleware,
	allow_origins=allow_origins,
	allow_credentials=True,
	allow_methods=["*"],
	allow_headers=["*"],
)

obs_init(app)

# Ensure every request carries an X-Request-Id and make it available on request.state
app.add_middleware(RequestIdMiddleware)


app.include_router(chat.router, tags=["chat"])
app.include_router(notifications.router, tags=["notifications"])
app.include_router(users.router, tags=["users"])
app.include_router(announcements.router, tags=["announcements"])
app.include_router(ops.router, tags=["ops"])
