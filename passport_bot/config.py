from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv


@dataclass
class Config:
    bot_token: str | None
    uploads_dir: Path
    ocr_lang: str = "eng"
    tesseract_config: str = "--oem 3 --psm 3"
    ocr_timeout: float = 60
    pdf_confidence: float = 85
    preprocess_max_width: int = 2000


def _env_number(name: str, default: float, cast=float):
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return cast(raw)
    except ValueError as exc:
        raise RuntimeError(f"{name} must be a number, got {raw!r}") from exc


def load_config() -> Config:
    load_dotenv()
    token = os.getenv("BOT_TOKEN") or os.getenv("TOKEN_BOT")

    base_path = Path(__file__).resolve().parent.parent
    uploads_dir = Path(os.getenv("UPLOADS_DIR") or base_path / "data" / "uploads")
    uploads_dir.mkdir(parents=True, exist_ok=True)

    return Config(
        bot_token=token,
        uploads_dir=uploads_dir,
        ocr_lang=os.getenv("OCR_LANG") or "eng",
        tesseract_config=os.getenv("OCR_TESSERACT_CONFIG") or "--oem 3 --psm 3",
        ocr_timeout=_env_number("OCR_TIMEOUT", 60),
        pdf_confidence=_env_number("PDF_CONFIDENCE", 85),
        preprocess_max_width=_env_number("PREPROCESS_MAX_WIDTH", 2000, int),
    )
