from ..services.bill_types import BillRecord

class ScanBillResponse(BillRecord):
    raw_text: str | None = None  # Full OCR text, for clients that want to double-check the parse
