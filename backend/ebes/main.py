from __future__ import annotations
import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from ebes.api import account_manager, admin, auth, health, recruiter, recruitment_manager, settings as settings_api
from ebes.core.config import settings
from ebes.core.logging import configure_logging
from ebes.db.init_db import init_db
from ebes.services.errors import ServiceError

configure_logging(settings.log_level)
logger = logging.getLogger(__name__)

app = FastAPI(title=settings.app_name)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(ServiceError)
def service_error_handler(request: Request, exc: ServiceError):
    logger.info("%s %s -> %s %s", request.method, request.url.path, exc.status_code, exc.message)
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


@app.on_event("startup")
def on_startup():
    init_db()
    logger.info("%s started env=%s", settings.app_name, settings.env)


app.include_router(health.router, prefix=settings.api_prefix)
app.include_router(auth.router, prefix=settings.api_prefix)
app.include_router(account_manager.router, prefix=settings.api_prefix)
app.include_router(recruiter.router, prefix=settings.api_prefix)
app.include_router(recruitment_manager.router, prefix=settings.api_prefix)
app.include_router(admin.router, prefix=settings.api_prefix)
app.include_router(settings_api.router, prefix=settings.api_prefix)
