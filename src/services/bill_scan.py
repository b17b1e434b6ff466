"""
Bill scanning workflow: upload bytes -> temp file -> OCR -> parse.

Uploads are never stored. Each scan spills the image to exactly one temp
file for Tesseract and deletes it on every exit path.
"""

import os
import tempfile
from pathlib import Path
from loguru import logger
from pydantic import BaseModel
from .bill_parser import parse_bill
from .bill_types import BillRecord
from .ocr import extract_text_with_confidence
from ..core.config import settings

ALLOWED_CONTENT_TYPES = frozenset({"image/jpeg", "image/png", "image/jpg"})
ALLOWED_EXTENSIONS = (".jpg", ".jpeg", ".png")

_SUFFIX_BY_CONTENT_TYPE = {"image/jpeg": ".jpg", "image/jpg": ".jpg", "image/png": ".png"}


class InvalidBillFileError(ValueError):
    """The uploaded file is not something we are willing to OCR (HTTP 400)."""


class ScanResult(BaseModel):
    record: BillRecord
    raw_text: str = ""


def validate_upload(file_bytes: bytes, filename: str | None, content_type: str | None) -> None:
    """
    Reject empty, oversized, non-JPEG/PNG uploads.

    Raises:
        InvalidBillFileError: with a message suitable for the API client
    """
    if not file_bytes:
        raise InvalidBillFileError("File is empty")

    if content_type not in ALLOWED_CONTENT_TYPES:
        raise InvalidBillFileError("Only JPG/PNG images are supported")

    suffix = Path(filename or "").suffix.lower()
    if suffix and suffix not in ALLOWED_EXTENSIONS:
        raise InvalidBillFileError("Only JPG, JPEG, PNG files are allowed")

    if len(file_bytes) > settings.max_upload_bytes:
        limit_mb = settings.max_upload_bytes / (1024 * 1024)
        raise InvalidBillFileError(f"File size exceeds {limit_mb:g}MB limit")


def _temp_suffix(filename: str | None, content_type: str | None) -> str:
    suffix = Path(filename or "").suffix.lower()
    if suffix in ALLOWED_EXTENSIONS:
        return suffix
    return _SUFFIX_BY_CONTENT_TYPE.get(content_type or "", ".jpg")


def scan_bill(file_bytes: bytes, filename: str | None, content_type: str | None) -> ScanResult:
    """
    Validate an uploaded bill image, OCR it and parse the text.

    Args:
        file_bytes: Raw image bytes from the upload
        filename: Client-side filename (used for the extension only)
        content_type: MIME type declared by the client

    Returns:
        ScanResult with the parsed BillRecord and the OCR text

    Raises:
        InvalidBillFileError: upload rejected before OCR
        OcrEngineUnavailableError: Tesseract cannot be run
        OSError: the temp file could not be written
    """
    logger.info("Starting bill scan", filename=filename, size_bytes=len(file_bytes or b""))
    validate_upload(file_bytes, filename, content_type)

    fd, temp_name = tempfile.mkstemp(
        prefix="bill-scan-",
        suffix=_temp_suffix(filename, content_type),
        dir=settings.scan_temp_dir,
    )
    temp_path = Path(temp_name)
    try:
        with os.fdopen(fd, "wb") as temp_file:
            temp_file.write(file_bytes)
        logger.debug("Created temp file for OCR", path=str(temp_path))

        ocr_result = extract_text_with_confidence(temp_path)
        if not ocr_result.text.strip():
            logger.warning("OCR returned empty text", filename=filename)

        record = parse_bill(ocr_result.text, ocr_result.confidence)
        logger.info(
            "Bill scan completed",
            amount=record.amount,
            recipient=record.recipient_name,
            account=record.account_number,
            bank=record.bank_name,
            status=record.status,
        )
        return ScanResult(record=record, raw_text=ocr_result.text)
    finally:
        temp_path.unlink(missing_ok=True)
        logger.debug("Temp file deleted", path=str(temp_path))
