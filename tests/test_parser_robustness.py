"""
Robustness checks for parse_bill on hostile or noisy OCR text.

Every record must satisfy the field constraints, parsing must be
deterministic, and normalizing the input first must not change the result.
"""

import re
import time
import pytest
from src.services.bill_parser import normalize_text, parse_bill
from src.services.bill_types import MAX_AMOUNT, MIN_AMOUNT, STATUS_SUCCESS, STATUS_UNKNOWN
from src.services.vocabulary import is_known_bank
from src.services.vietnamese_names import is_valid_name

NOISY_TEXTS = [
    "",
    "   \n\t  ",
    "\x00\x01\x02�",
    "@@@ ### $$$ %%%",
    "🏦💸 50.000 VND ✅",
    "9" * 50_000,
    "A " * 5_000,
    "1.000." * 3_000,
    "Giao dịch thành công\n" * 500,
    "STK: " + "1" * 30,
    "Mã GD: " + "X" * 40,
    "Nội dung:" + " " * 200 + "chuyen tien",
    "LEVANNAM " * 100,
    "Phí: 1.000.000.000.000 VND",
    "số tiền 1 000 000 000 000 d",
    "GIAO DICH THANH CONG\nSTK 0123456789\nMB\n1.234.567 VND\nNGUYEN VAN A chuyen tien",
    "Tên người nhận: " + "ABCDEFGHIJ " * 20,
    " ".join(["100"] * 5000),
    "Ref " + ".".join(["1"] + ["000"] * 2000),
    "a\nb\nc\nd\ne\nf\n" + " ".join(["100"] * 4000) + " VND",
    "Giao dịch thành công\r\n\r\n50.000 VND\r\nSTK: 1234567890\r\nVietcombank\r\nMã GD: ABC12345678",
]


def assert_record_invariants(record):
    if record.amount is not None:
        assert MIN_AMOUNT <= record.amount <= MAX_AMOUNT
    if record.account_number is not None:
        assert re.fullmatch(r"[0-9]{10,16}", record.account_number)
    if record.recipient_name is not None:
        assert is_valid_name(record.recipient_name)
        assert record.recipient_name == record.recipient_name.upper()
    if record.bank_name is not None:
        assert is_known_bank(record.bank_name)
    if record.transfer_content is not None:
        assert 5 <= len(record.transfer_content) <= 100
    if record.transfer_fee is not None:
        assert 0 <= record.transfer_fee <= MAX_AMOUNT
    if record.account_number and record.transaction_code:
        assert record.account_number != record.transaction_code
    assert record.status in (STATUS_SUCCESS, STATUS_UNKNOWN)
    assert 0.0 <= record.confidence <= 1.0


@pytest.mark.parametrize("text", NOISY_TEXTS)
def test_invariants_hold(text):
    assert_record_invariants(parse_bill(text, 0.5))


@pytest.mark.parametrize("text", NOISY_TEXTS)
def test_deterministic(text):
    assert parse_bill(text, 0.5) == parse_bill(text, 0.5)


@pytest.mark.parametrize("text", NOISY_TEXTS)
def test_normalized_input_gives_same_record(text):
    assert parse_bill(normalize_text(text), 0.5) == parse_bill(text, 0.5)


@pytest.mark.parametrize("text", NOISY_TEXTS)
def test_normalize_idempotent(text):
    once = normalize_text(text)
    assert normalize_text(once) == once


def test_windows_receipt_matches_unix_receipt():
    unix = "Giao dịch thành công\n50.000 VND\nSTK: 1234567890\nVietcombank\nMã GD: ABC12345678"
    assert parse_bill(unix.replace("\n", "\r\n"), 0.9) == parse_bill(unix, 0.9)


def test_long_thousands_chain_parses_quickly():
    """Digit-group chains past the sixth line must not backtrack quadratically"""
    text = "a\nb\nc\nd\ne\nf\n" + " ".join(["100"] * 4000)

    start = time.perf_counter()
    record = parse_bill(text)
    elapsed = time.perf_counter() - start

    assert record.amount is None
    assert elapsed < 0.5
