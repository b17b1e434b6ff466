import pytest
import pytesseract
from unittest.mock import patch
from PIL import Image
from src.core.config import settings
from src.services.ocr import (
    OcrEngineUnavailableError,
    build_tesseract_config,
    estimate_confidence,
    extract_text_with_confidence,
)


@pytest.fixture
def bill_image(tmp_path):
    path = tmp_path / "bill.png"
    Image.new("RGB", (32, 16), "white").save(path)
    return path


class TestEstimateConfidence:
    def test_clean_text(self):
        assert estimate_confidence("Giao dịch thành công: 50.000 VND") == 1.0

    def test_noise_lowers_confidence(self):
        assert estimate_confidence("ab##") == 0.5

    @pytest.mark.parametrize("text", ["", "   \n", None])
    def test_blank(self, text):
        assert estimate_confidence(text) == 0.0


class TestTesseractConfig:
    def test_missing_tessdata_dir_is_not_passed(self, tmp_path):
        original = settings.ocr_tesseract_datapath
        try:
            settings.ocr_tesseract_datapath = str(tmp_path / "does-not-exist")
            assert build_tesseract_config() == f"--psm {settings.ocr_tesseract_psm}"
        finally:
            settings.ocr_tesseract_datapath = original

    def test_existing_tessdata_dir(self, tmp_path):
        original = settings.ocr_tesseract_datapath
        try:
            settings.ocr_tesseract_datapath = str(tmp_path)
            config = build_tesseract_config()
            assert config.startswith("--tessdata-dir")
            assert str(tmp_path.resolve()) in config
            assert config.endswith(f"--psm {settings.ocr_tesseract_psm}")
        finally:
            settings.ocr_tesseract_datapath = original


class TestExtractText:
    def test_success(self, bill_image):
        with patch("src.services.ocr.pytesseract.image_to_string", return_value="Giao dịch thành công") as mock_ocr:
            result = extract_text_with_confidence(bill_image)

        assert result.text == "Giao dịch thành công"
        assert result.confidence == 1.0
        kwargs = mock_ocr.call_args.kwargs
        assert kwargs["lang"] == settings.ocr_tesseract_language
        assert f"--psm {settings.ocr_tesseract_psm}" in kwargs["config"]

    def test_unreadable_image(self, tmp_path):
        path = tmp_path / "bill.png"
        path.write_bytes(b"definitely not an image")

        result = extract_text_with_confidence(path)

        assert result.text == ""
        assert result.confidence == 0.0

    def test_tesseract_error(self, bill_image):
        with patch(
            "src.services.ocr.pytesseract.image_to_string",
            side_effect=pytesseract.TesseractError(1, "Failed loading language 'vie'"),
        ):
            result = extract_text_with_confidence(bill_image)

        assert result.text == ""
        assert result.confidence == 0.0

    def test_tesseract_missing(self, bill_image):
        with patch(
            "src.services.ocr.pytesseract.image_to_string",
            side_effect=pytesseract.TesseractNotFoundError(),
        ):
            with pytest.raises(OcrEngineUnavailableError):
                extract_text_with_confidence(bill_image)
