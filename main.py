# -*- coding: utf-8 -*-
"""
Main FastAPI application for the nonprofit membership portal.
"""
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from starlette.middleware.sessions import SessionMiddleware

from nonprofit_portal import models  # noqa: F401  (registers every mapper)
from nonprofit_portal.access_policy import Decision, Identity, evaluate
from nonprofit_portal.bootstrap import create_first_admin
from nonprofit_portal.config import config
from nonprofit_portal.database import Base, SessionLocal, engine
from nonprofit_portal.errors import Forbidden, Unauthorized
from nonprofit_portal.routes import (
    auth_fastapi,
    dashboard_fastapi,
    donations_fastapi,
    events_fastapi,
    manage_events_fastapi,
    milestones_fastapi,
    pages_fastapi,
    participants_fastapi,
    surveys_fastapi,
)
from nonprofit_portal.views import render_login, return_target

logging.basicConfig(
    level=config.LOG_LEVEL,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    filename=config.LOG_FILE,
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Creates the tables and the first admin account
    Base.metadata.create_all(bind=engine)
    db = SessionLocal()
    try:
        create_first_admin(db)
    finally:
        db.close()
    logger.info("Nonprofit portal started (%s)", config.ENVIRONMENT)
    yield


env = config.ENVIRONMENT

app = FastAPI(
    title="Nonprofit Portal",
    description="Membership, events, surveys and donations for a nonprofit",
    version="1.0.0",
    docs_url="/docs" if env != "production" else None,
    redoc_url="/redoc" if env != "production" else None,
    openapi_url="/openapi.json" if env != "production" else None,
    lifespan=lifespan,
)


@app.middleware("http")
async def access_control(request: Request, call_next):
    """Every request is checked here before it reaches a route."""
    identity = Identity.from_session(request.session)
    request.state.identity = identity

    decision = evaluate(request.url.path, identity)
    if decision is Decision.FORBIDDEN:
        logger.warning("Forbidden: %s %s (user %s)", request.method, request.url.path, identity.user_id)
        return render_login(request, error_message=Forbidden.message)
    if decision is Decision.CHALLENGE:
        return render_login(request, next_url=return_target(request))
    return await call_next(request)


# Added after the access middleware so it wraps it and the session is loaded first
app.add_middleware(SessionMiddleware, secret_key=config.SECRET_KEY)


@app.exception_handler(Unauthorized)
async def unauthorized_handler(request: Request, exc: Unauthorized):
    return render_login(request, next_url=return_target(request))


@app.exception_handler(Forbidden)
async def forbidden_handler(request: Request, exc: Forbidden):
    return render_login(request, error_message=exc.message)


# Mounting the routers
app.include_router(pages_fastapi.router)
app.include_router(auth_fastapi.router)
app.include_router(dashboard_fastapi.router)
app.include_router(events_fastapi.router)
app.include_router(donations_fastapi.router)
app.include_router(milestones_fastapi.router)
app.include_router(surveys_fastapi.router)
app.include_router(manage_events_fastapi.router)
app.include_router(milestones_fastapi.admin_router)
app.include_router(participants_fastapi.router)
app.include_router(donations_fastapi.admin_router)
app.include_router(surveys_fastapi.admin_router)
