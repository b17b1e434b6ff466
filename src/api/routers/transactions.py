from fastapi import APIRouter, UploadFile, File, HTTPException
from fastapi.concurrency import run_in_threadpool
from loguru import logger
from ..deps import ScanBillResponse
from ...core.config import settings
from ...services.bill_scan import InvalidBillFileError, scan_bill
from ...services.ocr import OcrEngineUnavailableError

router = APIRouter(prefix="/api/transactions", tags=["transactions"])


@router.post("/scan-bill", response_model=ScanBillResponse)
async def scan_bill_endpoint(file: UploadFile = File(None)):
    """
    Scan a bank-transfer bill image and return the structured transaction.

    Accepts multipart/form-data with a single `file` field (JPG/PNG, max 10MB).

    Returns:
    - amount (VND), recipientName, accountNumber, bankName
    - transactionCode, transferContent, transferFee
    - status ("Thành công" or "Unknown"), confidence, rawText

    Errors:
    - 400: missing, empty, oversized or non-JPG/PNG file
    - 500: OCR engine unavailable or the upload could not be spilled to disk
    """
    if file is None:
        raise HTTPException(status_code=400, detail="File is required")

    logger.info("Received scan-bill request", filename=file.filename, content_type=file.content_type)

    # One byte past the limit is enough to know the upload is too large
    content = await file.read(settings.max_upload_bytes + 1)

    try:
        result = await run_in_threadpool(scan_bill, content, file.filename, file.content_type)
    except InvalidBillFileError as e:
        logger.warning("Invalid bill upload", filename=file.filename, reason=str(e))
        raise HTTPException(status_code=400, detail=str(e))
    except OcrEngineUnavailableError as e:
        logger.error("OCR engine unavailable", error=str(e))
        raise HTTPException(status_code=500, detail=str(e))
    except OSError as e:
        logger.error("Error processing file", error=str(e))
        raise HTTPException(status_code=500, detail=f"Failed to process file: {e}")

    return ScanBillResponse(**result.record.model_dump(), raw_text=result.raw_text)
