from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

STATUS_SUCCESS = "Thành công"
STATUS_UNKNOWN = "Unknown"

MIN_AMOUNT = 1_000
MAX_AMOUNT = 1_000_000_000


class BillRecord(BaseModel):
    """Structured transaction data parsed from a bank-transfer bill."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    amount: int | None = Field(default=None, ge=MIN_AMOUNT, le=MAX_AMOUNT)  # VND
    recipient_name: str | None = None
    account_number: str | None = Field(default=None, pattern=r"^[0-9]{10,16}$")
    bank_name: str | None = None
    transaction_code: str | None = None
    transfer_content: str | None = None
    transfer_fee: int | None = Field(default=None, ge=0, le=MAX_AMOUNT)  # 0 = "miễn phí"
    status: str = STATUS_UNKNOWN
    confidence: float = Field(default=0.0, ge=0.0, le=1.0)  # OCR confidence, carried through


class OcrResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    text: str = ""
    confidence: float = 0.0
