import pytest
from src.services.vietnamese_names import (
    fold_to_ascii_upper,
    is_valid_name,
    name_segments,
    split_vietnamese_name,
)


@pytest.mark.parametrize(
    "concatenated,expected",
    [
        ("LEVANNAM", "LE VAN NAM"),
        ("NGUYENVANNAM", "NGUYEN VAN NAM"),
        ("TRANTHIMAI", "TRAN THI MAI"),
        ("LAMVANHAI", "LAM VAN HAI"),
    ],
)
def test_split_known_surnames(concatenated, expected):
    assert split_vietnamese_name(concatenated) == expected


@pytest.mark.parametrize(
    "concatenated",
    [
        "LEVAN",            # shorter than 6
        "NGUYENAN",         # remainder of 2
        "LEABCDEFGHIJKLM",  # remainder of 13
        "XYZVANNAM",        # no known surname
        "",
        None,
    ],
)
def test_split_rejects(concatenated):
    assert split_vietnamese_name(concatenated) is None


def test_fold_to_ascii_upper():
    assert fold_to_ascii_upper("Nguyễn Văn Đức") == "NGUYEN VAN DUC"
    assert fold_to_ascii_upper("trần thị mai") == "TRAN THI MAI"


class TestNameSegments:
    def test_stop_words_split_runs(self):
        assert name_segments(["NGUOI", "NHAN", "LE", "VAN", "NAM"]) == [["LE", "VAN", "NAM"]]

    def test_bank_token_splits_runs(self):
        tokens = ["TRAN", "VAN", "BINH", "NGAN", "HANG", "PHAM", "MINH", "TUAN"]
        assert name_segments(tokens) == [["TRAN", "VAN", "BINH"], ["PHAM", "MINH", "TUAN"]]

    def test_trailing_initial(self):
        assert name_segments(["NGUYEN", "VAN", "A"]) == [["NGUYEN", "VAN", "A"]]

    def test_leading_initial_dropped(self):
        assert name_segments(["A", "NGUYEN"]) == []

    def test_too_many_tokens(self):
        assert name_segments(["AA", "BB", "CC", "DD", "EE", "FF"]) == []


@pytest.mark.parametrize(
    "name,expected",
    [
        ("LE VAN NAM", True),
        ("NGUYEN VAN A", True),
        ("NGUYEN A", False),
        ("NAM", False),
        ("", False),
        (None, False),
    ],
)
def test_is_valid_name(name, expected):
    assert is_valid_name(name) is expected
