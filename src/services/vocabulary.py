"""
Closed vocabularies used by the bill parser.

Built once at import as frozensets / tuples and shared by every parse call.
"""

# Bank names and abbreviations recognized in the "bank" field (lower-case).
BANK_VOCABULARY = frozenset({
    "vietcombank", "vcb", "techcombank", "mbbank", "mb", "acb", "vietinbank",
    "bidv", "agribank", "tpbank", "vpbank", "sacombank", "ocb", "msb", "scb",
    "seabank", "vib", "shb", "hdbank", "lienvietpostbank", "tmcp",
})

# Longest first so the alternation never settles for a prefix ("mb" vs "mbbank").
BANK_ALTERNATION = "|".join(sorted(BANK_VOCABULARY, key=lambda name: (-len(name), name)))

# Upper-case tokens that show up in all-caps runs but are never part of a name.
NAME_STOP_WORDS = frozenset({
    "NGUOI", "NHAN", "TAI", "KHOAN", "NGAN", "HANG", "CHUYEN", "TIEN",
    "GIAO", "DICH", "VND", "DONG",
})

# Bank tokens that get printed in caps next to the beneficiary name.
BANK_NAME_TOKENS = frozenset({
    "VIETCOMBANK", "TECHCOMBANK", "BIDV", "AGRIBANK", "VIETINBANK", "TMCP",
})

NON_NAME_TOKENS = NAME_STOP_WORDS | BANK_NAME_TOKENS

# Field labels printed in caps on receipts. Only checked as whole tokens:
# short ones like "SO" occur inside real names.
RECEIPT_LABEL_TOKENS = frozenset({
    "STK", "SO", "TK", "GD", "NOI", "PHI", "MA",
    "TRANSFER", "TRANSACTION", "SUCCESS", "SUCCESSFUL", "ACCOUNT", "AMOUNT",
    "BANK", "FEE", "CONTENT", "STATUS", "NUMBER", "NAME", "DATE", "TIME",
    "REFERENCE", "BENEFICIARY", "RECIPIENT",
})

NAME_BREAK_TOKENS = NON_NAME_TOKENS | RECEIPT_LABEL_TOKENS

VIETNAMESE_SURNAMES = (
    "LE", "LA", "LY", "LU", "LO", "LAM", "LAI",
    "NGUYEN", "TRAN", "PHAM", "HOANG", "VU", "VO", "DANG",
    "BUI", "DO", "HO", "NGO", "DUONG", "DINH",
)


def is_known_bank(name: str | None) -> bool:
    return bool(name) and name.lower() in BANK_VOCABULARY


def contains_non_name_token(word: str) -> bool:
    """True when a concatenated caps word embeds a stop word or bank token."""
    upper = word.upper()
    return any(token in upper for token in NON_NAME_TOKENS)
