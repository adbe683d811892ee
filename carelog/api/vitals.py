"""Vital-signs OCR routes."""

from __future__ import annotations

import logging
from dataclasses import asdict

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile
from fastapi.concurrency import run_in_threadpool

from carelog.api.deps import get_current_profile
from carelog.models.patient import Profile
from carelog.schemas.api import OCRResultResponse, OCRTextRequest
from carelog.services.vitals_ocr import VitalSignsOCR, parse_vital_signs

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/vitals", tags=["vital signs"])

MAX_IMAGE_BYTES = 10 * 1024 * 1024


def get_ocr() -> VitalSignsOCR:
    return VitalSignsOCR()


@router.post("/parse", response_model=OCRResultResponse)
def parse_text(payload: OCRTextRequest, _: Profile = Depends(get_current_profile)):
    """Parse text already read from a monitor (e.g. OCR done on the device)."""
    return asdict(parse_vital_signs(payload.text, "text"))


@router.post("/ocr", response_model=OCRResultResponse)
async def read_monitor_photo(
    image: UploadFile = File(...),
    ocr: VitalSignsOCR = Depends(get_ocr),
    _: Profile = Depends(get_current_profile),
):
    if image.content_type and not image.content_type.startswith("image/"):
        raise HTTPException(status_code=415, detail="Upload an image of the monitor")
    content = await image.read()
    if not content:
        raise HTTPException(status_code=422, detail="Empty upload")
    if len(content) > MAX_IMAGE_BYTES:
        raise HTTPException(status_code=413, detail="Image larger than 10 MB")

    result = await run_in_threadpool(ocr.process_image, content)
    logger.info("OCR on %s: success=%s source=%s", image.filename, result.success, result.source)
    return asdict(result)
