"""
Bill parser: raw OCR text of a Vietnamese bank-transfer receipt -> BillRecord.

parse_bill() is a pure function. Every field is extracted independently by
one or more candidate producers (regexes compiled once at import), a named
selection rule picks the winner, and a single repair pass reconciles the
account number / transaction code confusion that OCR tends to produce.
Fields that cannot be extracted are left as None; nothing in here raises
for malformed input.
"""

import math
import re
import unicodedata

from loguru import logger

from .bill_types import BillRecord, MAX_AMOUNT, MIN_AMOUNT, STATUS_SUCCESS, STATUS_UNKNOWN
from .vietnamese_names import fold_to_ascii_upper, is_valid_name, name_segments, split_vietnamese_name
from .vocabulary import BANK_ALTERNATION, NAME_BREAK_TOKENS, NON_NAME_TOKENS, contains_non_name_token

MAX_TEXT_CHARS = 20_000
STANDALONE_AMOUNT_LINES = 5
MAX_CONTENT_CHARS = 100
MIN_CONTENT_CHARS = 5
MAX_LABELED_NAME_CHARS = 50

# Vowels with every Vietnamese tone / shape mark, for diacritic-tolerant patterns.
_A = "aàáảãạâầấẩẫậăằắẳẵặ"
_E = "eèéẻẽẹêềếểễệ"
_I = "iìíỉĩị"
_O = "oòóỏõọôồốổỗộơờớởỡợ"
_U = "uùúủũụưừứửữự"
_D = "dđ"

_GIAO_DICH = rf"giao\s*[{_D}][{_I}]ch"
_THANH_CONG = rf"th[{_A}]nh\s*c[{_O}]ng"
_TAI_KHOAN = rf"t[{_A}]i\s*kho[{_A}]n"
_CHUYEN = rf"chuy[{_E}]n"
_TIEN = rf"ti[{_E}]n"
_NHAN = rf"nh[{_A}]n"
_NGUOI = rf"ng[{_U}][{_O}]i"
_SO = rf"s[{_O}]"
# At most three separator groups: nothing above 1_000_000_000 is an amount,
# and bounded repetition keeps long digit chains linear.
_GROUPED = r"[0-9]{1,3}(?:[., ][0-9]{3}){1,3}"
_MAYBE_GROUPED = r"[0-9]{1,3}(?:[., ][0-9]{3}){0,3}"
MAX_AMOUNT_DIGITS = 10

# -- normalization -----------------------------------------------------------

_HORIZONTAL_WS = re.compile(r"[^\S\n]+")
_NEWLINE_RUN = re.compile(r"\s*\n\s*")

# -- amount ------------------------------------------------------------------

_STANDALONE_AMOUNT = re.compile(r"(" + _MAYBE_GROUPED + r")(?:\s*(?:vnd|đ|dong|d))?", re.IGNORECASE)
_SUCCESS_AMOUNT = re.compile(
    _GIAO_DICH + r"\s*" + _THANH_CONG + r"[^0-9]{0,50}(" + _GROUPED + r")(?![.,]?[0-9])",
    re.IGNORECASE,
)
_CURRENCY_AMOUNT = re.compile(
    r"(?<![0-9])(?<![0-9][.,])(" + _GROUPED + r") ?(?:vnd|đồng|đ|dong)",
    re.IGNORECASE,
)
_FORMATTED_AMOUNT = re.compile(r"\b(?<![0-9][.,])([0-9]{1,3}(?:[.,][0-9]{3}){1,3})\b(?![.,][0-9])")
_RAW_AMOUNT = re.compile(r"\b([0-9]{4,10})\b")
_AMOUNT_SEPARATORS = re.compile(r"[., ]")

# -- account number ----------------------------------------------------------

_ACCOUNT_LABELED = re.compile(
    r"\b(?:"
    + _SO + r"\s*" + _TAI_KHOAN
    + r"|" + _SO + r"\s*tk"
    + r"|stk"
    + r"|" + _TAI_KHOAN + r"(?:\s*(?:" + _NHAN + rf"|th[{_U}]\s*h[{_U}][{_O}]ng))?"
    + r"|account(?:\s*(?:no\.?|number))?"
    + r"|" + _SO
    + r")\s*[:\-]?\s*([0-9]{10,16})(?![0-9])",
    re.IGNORECASE,
)
_ACCOUNT_FALLBACK = re.compile(r"\b([0-9]{10,16})\b")
_ACCOUNT_SEPARATORS = re.compile(r"[\s.\-]")
_DIGITS = re.compile(r"[0-9]+")

# -- recipient name ----------------------------------------------------------

_NAME_LABELED = re.compile(
    r"\b(?:"
    + rf"t[{_E}]n\s*(?:" + _NGUOI + r"\s*)?" + _NHAN
    + r"|" + _NGUOI + r"\s*(?:" + _NHAN + rf"|th[{_U}]\s*h[{_U}][{_O}]ng)"
    + rf"|(?:t[{_E}]n|ch[{_U}])\s*" + _TAI_KHOAN
    + r"|beneficiary(?:\s*name)?"
    + r")\s*[:\-]?\s*([^\W\d_]+(?: [^\W\d_]+)*)",
    re.IGNORECASE,
)
_CAPS_RUN = re.compile(r"\b[A-Z]+(?: [A-Z]+)*\b")
_CONCATENATED_CAPS = re.compile(r"\b[A-Z]{6,20}\b")
_ASCII_WORD = re.compile(r"[A-Z]+")
# Success banners in caps ("GIAO DICH THANH CONG") are blanked before name
# matching so "THANH CONG" is not read as a person.
_SUCCESS_BANNER = re.compile(
    r"(?:" + _GIAO_DICH + r"|\bgd|" + _CHUYEN + r"\s*(?:" + _TIEN + rf"|kho[{_A}]n))\s*" + _THANH_CONG,
    re.IGNORECASE,
)

# -- bank / code / content / status / fee -------------------------------------

_BANK = re.compile(r"\b(" + BANK_ALTERNATION + r")\b", re.IGNORECASE)
_CODE_LABELED = re.compile(
    rf"\bm[{_A}]\s*(?:" + _GIAO_DICH + rf"|gd|tham\s*chi[{_E}]u)\s*[:\-]?\s*([A-Z0-9]{{8,20}})(?![A-Z0-9])",
    re.IGNORECASE,
)
_CODE_FALLBACK = re.compile(r"\b([0-9]{10,20})\b")
_CONTENT_LABELED = re.compile(
    rf"\bn[{_O}]i\s*dung(?:\s*(?:" + _CHUYEN + rf"\s*(?:kho[{_A}]n|" + _TIEN + r")|" + _GIAO_DICH + r"|ck))?"
    + r"\s*[:\-]?\s*(.{5,100})",
    re.IGNORECASE,
)
_CONTENT_FALLBACK = re.compile(
    r"\b((?:[A-Z]+ ){2,6}(?i:" + _CHUYEN + r"(?: " + _TIEN + r")?|" + _TIEN + r")\b[^\n]*)"
)
_STATUS = re.compile(r"(?:" + _GIAO_DICH + r"|\bgd)\s*" + _THANH_CONG, re.IGNORECASE)
# Anchored to a line start so "học phí" inside a memo is not a fee line.
_FEE = re.compile(
    rf"^ph[{_I}](?:\s*(?:" + _GIAO_DICH + r"|" + _CHUYEN + rf"\s*(?:kho[{_A}]n|" + _TIEN + r")|gd))?"
    + rf"\s*[:\-]\s*(?:(mi[{_E}]n\s*ph[{_I}]|free)|(" + _GROUPED + r"|[0-9]{1,10})(?![.,]?[0-9]))",
    re.IGNORECASE | re.MULTILINE,
)


def normalize_text(text: str) -> str:
    """
    Collapse OCR whitespace without touching case or diacritics.

    Runs of spaces/tabs become one space, runs of blank lines become one
    newline, and the result is trimmed. Also composes Unicode (NFC) so
    "thành" typed with combining marks matches the patterns. Idempotent.
    """
    if not text:
        return ""
    text = text.replace("\r\n", "\n").replace("\r", "\n")
    text = unicodedata.normalize("NFC", text)
    text = _HORIZONTAL_WS.sub(" ", text)
    text = _NEWLINE_RUN.sub("\n", text)
    return text.strip()


def _prepare(raw_text) -> str:
    if raw_text is None:
        return ""
    if isinstance(raw_text, bytes):
        raw_text = raw_text.decode("utf-8", errors="replace")
    elif not isinstance(raw_text, str):
        raw_text = str(raw_text)
    # Capped after normalizing so parse(t) == parse(normalize_text(t)).
    return normalize_text(raw_text)[:MAX_TEXT_CHARS].rstrip()


def _clamp_confidence(confidence) -> float:
    try:
        value = float(confidence)
    except (TypeError, ValueError):
        return 0.0
    if math.isnan(value):
        return 0.0
    return min(max(value, 0.0), 1.0)


# ---------------------------------------------------------------------------
# Amount
# ---------------------------------------------------------------------------

def parse_amount(value: str) -> int | None:
    """'2.000.000' / '100,000' / '50 000' -> int; None if nothing numeric is left."""
    digits = _AMOUNT_SEPARATORS.sub("", value)
    if not digits or len(digits) > MAX_AMOUNT_DIGITS or not _DIGITS.fullmatch(digits):
        return None
    return int(digits)


def amount_candidates(text: str) -> list[int]:
    """
    Collect every plausible amount from five independent producers.

    Candidates outside [1000, 1_000_000_000] are dropped.
    """
    raw: list[str] = []

    for line in text.split("\n")[:STANDALONE_AMOUNT_LINES]:
        match = _STANDALONE_AMOUNT.fullmatch(line.strip())
        if match:
            raw.append(match.group(1))

    raw.extend(m.group(1) for m in _SUCCESS_AMOUNT.finditer(text))
    raw.extend(m.group(1) for m in _CURRENCY_AMOUNT.finditer(text))
    raw.extend(m.group(1) for m in _FORMATTED_AMOUNT.finditer(text))
    raw.extend(m.group(1) for m in _RAW_AMOUNT.finditer(text) if int(m.group(1)) % 1000 == 0)

    candidates = []
    for value in raw:
        amount = parse_amount(value)
        if amount is not None and MIN_AMOUNT <= amount <= MAX_AMOUNT:
            candidates.append(amount)
    return candidates


def select_amount(candidates: list[int]) -> int | None:
    """The bill total is the largest currency-looking number on the receipt."""
    return max(candidates) if candidates else None


def extract_amount(text: str) -> int | None:
    return select_amount(amount_candidates(text))


# ---------------------------------------------------------------------------
# Account number
# ---------------------------------------------------------------------------

def account_number_candidates(text: str) -> list[str]:
    candidates = [m.group(1) for m in _ACCOUNT_LABELED.finditer(text)]
    if not candidates:
        candidates = [m.group(1) for m in _ACCOUNT_FALLBACK.finditer(text)]
    return candidates


def select_account_number(candidates: list[str]) -> str | None:
    """First candidate of 10-13 digits, else the first candidate."""
    for candidate in candidates:
        if 10 <= len(candidate) <= 13:
            return candidate
    return candidates[0] if candidates else None


def extract_account_number(text: str) -> str | None:
    return select_account_number(account_number_candidates(text))


# ---------------------------------------------------------------------------
# Recipient name
# ---------------------------------------------------------------------------

def _labeled_name_candidates(text: str) -> list[str]:
    candidates = []
    for match in _NAME_LABELED.finditer(text):
        tokens = []
        for token in fold_to_ascii_upper(match.group(1)).split(" "):
            if not _ASCII_WORD.fullmatch(token) or token in NAME_BREAK_TOKENS:
                break
            tokens.append(token)
        segments = name_segments(tokens)
        if segments:
            name = " ".join(segments[0])
            if 4 <= len(name) <= MAX_LABELED_NAME_CHARS:
                candidates.append(name)
    return candidates


def _spaced_caps_candidates(text: str) -> list[str]:
    candidates = []
    for match in _CAPS_RUN.finditer(text):
        tokens = match.group(0).split(" ")
        # Bank headers and "NGUOI NHAN ..." runs are not names, even in part
        if any(token in NON_NAME_TOKENS for token in tokens):
            continue
        for segment in name_segments(tokens):
            candidates.append(" ".join(segment))
    return candidates


def _concatenated_caps_candidates(text: str) -> list[str]:
    candidates = []
    for match in _CONCATENATED_CAPS.finditer(text):
        word = match.group(0)
        if word in NAME_BREAK_TOKENS or contains_non_name_token(word):
            continue
        name = split_vietnamese_name(word)
        if name:
            candidates.append(name)
    return candidates


def recipient_name_candidates(text: str) -> list[str]:
    """Labeled names first, then spaced caps runs, then segmented concatenations."""
    name_text = _SUCCESS_BANNER.sub("\n", text)
    candidates = (
        _labeled_name_candidates(name_text)
        + _spaced_caps_candidates(name_text)
        + _concatenated_caps_candidates(name_text)
    )
    return [name for name in candidates if is_valid_name(name)]


def select_recipient_name(candidates: list[str]) -> str | None:
    """Most tokens wins; ties go to the longer string, then to the earlier one."""
    if not candidates:
        return None
    return max(candidates, key=lambda name: (len(name.split()), len(name)))


def extract_recipient_name(text: str) -> str | None:
    return select_recipient_name(recipient_name_candidates(text))


# ---------------------------------------------------------------------------
# Bank, transaction code, content, status, fee
# ---------------------------------------------------------------------------

def extract_bank_name(text: str) -> str | None:
    match = _BANK.search(text)
    return match.group(1) if match else None


def select_transaction_code(candidates: list[str]) -> str | None:
    """Longest candidate wins; the earliest one among equals."""
    if not candidates:
        return None
    return max(candidates, key=len)


def extract_transaction_code(text: str) -> str | None:
    match = _CODE_LABELED.search(text)
    if match:
        return match.group(1)
    return select_transaction_code([m.group(1) for m in _CODE_FALLBACK.finditer(text)])


def extract_transfer_content(text: str) -> str | None:
    for match in _CONTENT_LABELED.finditer(text):
        content = match.group(1).strip(" :-")
        if len(content) >= MIN_CONTENT_CHARS:
            return content

    match = _CONTENT_FALLBACK.search(text)
    if match:
        content = match.group(1)[:MAX_CONTENT_CHARS].strip()
        if len(content) >= MIN_CONTENT_CHARS:
            return content
    return None


def extract_status(text: str) -> str:
    return STATUS_SUCCESS if _STATUS.search(text) else STATUS_UNKNOWN


def extract_transfer_fee(text: str) -> int | None:
    """'Phí: 5.000 VND' -> 5000, 'Phí giao dịch: Miễn phí' -> 0."""
    for match in _FEE.finditer(text):
        if match.group(1):
            return 0
        fee = parse_amount(match.group(2) or "")
        if fee is not None and fee <= MAX_AMOUNT:
            return fee
    return None


# ---------------------------------------------------------------------------
# Cross-field repair
# ---------------------------------------------------------------------------

def looks_like_account_number(value: str | None) -> bool:
    """
    10-16 digits once spaces, dots and hyphens are removed, and not a round
    multiple of 1000 (those are far more likely to be amounts).
    """
    if not value:
        return False
    cleaned = _ACCOUNT_SEPARATORS.sub("", value)
    if not _DIGITS.fullmatch(cleaned):
        return False
    if not 10 <= len(cleaned) <= 16:
        return False
    return int(cleaned) % 1000 != 0


def repair_account_and_code(account_number: str | None, transaction_code: str | None) -> tuple[str | None, str | None]:
    """
    Move a transaction code that is really an account number into the
    account field. Applied once; the result is never fed back in.
    """
    if not account_number and transaction_code and looks_like_account_number(transaction_code):
        logger.debug("Transaction code looks like an account number, moving it", transaction_code=transaction_code)
        return _ACCOUNT_SEPARATORS.sub("", transaction_code), None
    return account_number, transaction_code


def drop_duplicate_code(account_number: str | None, transaction_code: str | None) -> tuple[str | None, str | None]:
    """The same digits cannot be both fields; they stay as the account number."""
    if account_number and transaction_code:
        if "".join(account_number.split()) == "".join(transaction_code.split()):
            return account_number, None
    return account_number, transaction_code


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------

def parse_bill(raw_text: str | None, confidence: float = 0.0) -> BillRecord:
    """
    Parse OCR text of a bank-transfer bill into a BillRecord.

    Args:
        raw_text: Text produced by the OCR engine (may be empty or garbage)
        confidence: OCR confidence estimate, clamped to [0, 1]

    Returns:
        BillRecord with every field that could be extracted; the rest are None.
    """
    text = _prepare(raw_text)

    account_number, transaction_code = repair_account_and_code(
        extract_account_number(text), extract_transaction_code(text)
    )
    account_number, transaction_code = drop_duplicate_code(account_number, transaction_code)

    record = BillRecord(
        amount=extract_amount(text),
        recipient_name=extract_recipient_name(text),
        account_number=account_number,
        bank_name=extract_bank_name(text),
        transaction_code=transaction_code,
        transfer_content=extract_transfer_content(text),
        transfer_fee=extract_transfer_fee(text),
        status=extract_status(text),
        confidence=_clamp_confidence(confidence),
    )

    logger.debug(
        "Parsed bill",
        amount=record.amount,
        recipient=record.recipient_name,
        account=record.account_number,
        bank=record.bank_name,
        code=record.transaction_code,
    )
    return record
