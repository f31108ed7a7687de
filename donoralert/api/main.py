"""FastAPI application factory.

Assembles CORS, the shared SMS gateway and all API routers.
This module is the authoritative app object; donoralert/main.py re-exports it.
"""
from __future__ import annotations

import logging
from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from donoralert.api.routes.alerts import router as alerts_router
from donoralert.api.routes.donors import router as donors_router
from donoralert.api.routes.health import router as health_router
from donoralert.core.logging import setup_logging
from donoralert.core.settings import get_settings
from donoralert.notification.transport import TwilioSmsGateway

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging()
    settings = get_settings()
    client = httpx.Client(timeout=settings.sms_timeout_s)
    app.state.sms_gateway = TwilioSmsGateway(
        settings.twilio_account_sid,
        settings.twilio_auth_token,
        settings.twilio_phone_number,
        client=client,
        base_url=settings.twilio_api_base,
    )
    if not app.state.sms_gateway.configured:
        logger.warning("Twilio credentials missing; alerts will be reported as failed sends")
    try:
        yield
    finally:
        client.close()


settings = get_settings()

app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(health_router)
app.include_router(donors_router)
app.include_router(alerts_router)
