"""
FastAPI application entrypoint.

Run locally:  uvicorn carelog.main:app --reload
"""

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from carelog.api.routes import router
from carelog.config import settings
from carelog.models import access, medical, patient  # noqa: F401  (register tables)
from carelog.models.database import Base, engine
from carelog.reports.dag import PipelineError
from carelog.services.errors import FamilyAccessDenied, ValidationFailed

logging.basicConfig(level=settings.LOG_LEVEL, format="%(levelname)s | %(name)s | %(message)s")
logger = logging.getLogger(__name__)

app = FastAPI(
    title="Carelog API",
    description=(
        "Patient-care management: patient registry, bedside care-event logging, "
        "medical records, family portal links, care reports, vital-signs OCR "
        "and an LLM-backed assistant."
    ),
    version="1.0.0",
)

app.include_router(router, prefix="/api/v1")


@app.exception_handler(ValidationFailed)
def validation_failed(request: Request, exc: ValidationFailed):
    return JSONResponse(status_code=422, content={"detail": exc.errors})


@app.exception_handler(FamilyAccessDenied)
def family_access_denied(request: Request, exc: FamilyAccessDenied):
    return JSONResponse(status_code=403, content={"detail": str(exc)})


@app.exception_handler(PipelineError)
def pipeline_failed(request: Request, exc: PipelineError):
    logger.error("Report pipeline failed on %s: %s", request.url.path, exc)
    return JSONResponse(status_code=500, content={"detail": "Report could not be built"})


@app.on_event("startup")
def on_startup():
    Base.metadata.create_all(bind=engine)
