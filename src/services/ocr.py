import time
from pathlib import Path
from loguru import logger
from PIL import Image, UnidentifiedImageError
import pytesseract
from .bill_types import OcrResult
from ..core.config import settings

# Characters that count as "clean" OCR output when estimating confidence
_PUNCTUATION = set(".,!?;:-()[]{}\"'")


class OcrEngineUnavailableError(RuntimeError):
    """Tesseract itself could not be run (binary missing or not executable)."""


def build_tesseract_config() -> str:
    """
    Build the pytesseract config string from settings.

    --tessdata-dir is only passed when the configured directory exists, so a
    system-wide Tesseract install keeps working with the default ./tessdata.
    """
    parts = [f"--psm {settings.ocr_tesseract_psm}"]
    datapath = Path(settings.ocr_tesseract_datapath)
    if datapath.is_dir():
        parts.insert(0, f'--tessdata-dir "{datapath.resolve()}"')
    return " ".join(parts)


def estimate_confidence(text: str | None) -> float:
    """Share of characters that are letters, digits, whitespace or common punctuation."""
    if not text or not text.strip():
        return 0.0

    valid = sum(
        1 for ch in text
        if ch.isalnum() or ch.isspace() or ch in _PUNCTUATION
    )
    return valid / len(text)


def extract_text_with_confidence(image_path: Path) -> OcrResult:
    """
    Run Tesseract on a JPEG/PNG file.

    Recognition failures (unreadable image, Tesseract error) are logged and
    reported as OcrResult("", 0.0) so the caller still gets an empty bill.

    Raises:
        OcrEngineUnavailableError: the tesseract binary cannot be found
    """
    if settings.tesseract_cmd:
        pytesseract.pytesseract.tesseract_cmd = settings.tesseract_cmd

    start = time.perf_counter()
    try:
        with Image.open(image_path) as image:
            text = pytesseract.image_to_string(
                image,
                lang=settings.ocr_tesseract_language,
                config=build_tesseract_config(),
            )
    except pytesseract.TesseractNotFoundError as e:
        logger.error("Tesseract binary not found", tesseract_cmd=settings.tesseract_cmd)
        raise OcrEngineUnavailableError("Tesseract OCR engine is not available") from e
    except (pytesseract.TesseractError, UnidentifiedImageError, OSError) as e:
        logger.error("OCR failed", error=str(e), image=str(image_path))
        return OcrResult(text="", confidence=0.0)

    confidence = estimate_confidence(text)
    logger.info(
        "OCR completed",
        duration_ms=round((time.perf_counter() - start) * 1000),
        characters=len(text),
        confidence=round(confidence, 3),
    )
    return OcrResult(text=text, confidence=confidence)
