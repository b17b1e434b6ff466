from pydantic import Field
from pydantic_settings import BaseSettings

class Settings(BaseSettings):
    app_name: str = Field("vn-bill-scan", alias="APP_NAME")
    app_env: str = Field("dev", alias="APP_ENV")

    # Logging
    log_level: str = Field("INFO", alias="LOG_LEVEL")
    log_json: bool = Field(False, alias="LOG_JSON")

    # CORS allowed origins (comma-separated list for production deployment)
    cors_origins: str = Field("http://localhost:3000,http://127.0.0.1:3000", alias="CORS_ORIGINS")

    # Tesseract OCR
    ocr_tesseract_datapath: str = Field("./tessdata", alias="OCR_TESSERACT_DATAPATH")
    ocr_tesseract_language: str = Field("vie+eng", alias="OCR_TESSERACT_LANGUAGE")
    ocr_tesseract_psm: int = Field(6, alias="OCR_TESSERACT_PSM")
    tesseract_cmd: str | None = Field(default=None, alias="TESSERACT_CMD")  # Only needed when tesseract is not on PATH

    # Upload intake
    max_upload_bytes: int = Field(10 * 1024 * 1024, alias="MAX_UPLOAD_BYTES")
    scan_temp_dir: str | None = Field(default=None, alias="SCAN_TEMP_DIR")  # None = system temp dir

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}

settings = Settings()
