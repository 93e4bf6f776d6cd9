import asyncio
import logging
from functools import partial
from pathlib import Path
from typing import List

from aiogram import F, Router, types
from aiogram.types import PhotoSize

from passport_bot.models import ExtractedRecord
from passport_bot.services.ocr_engine import RecognitionError
from passport_bot.services.pipeline import ExtractionPipeline

logger = logging.getLogger(__name__)

router = Router()

FIELD_LABELS = (
    ("document_type", "Document"),
    ("country_code", "Issuing country"),
    ("passport_number", "Passport No."),
    ("last_name", "Surname"),
    ("first_name", "Given names"),
    ("nationality", "Nationality"),
    ("gender", "Sex"),
    ("date_of_birth", "Date of birth"),
    ("place_of_birth", "Place of birth"),
    ("date_of_issue", "Date of issue"),
    ("place_of_issue", "Place of issue"),
    ("date_of_expiry", "Date of expiry"),
)

LOW_CONFIDENCE = 70
HIGH_CONFIDENCE = 90


@router.message(
    F.document
    & (F.document.mime_type.contains("image") | (F.document.mime_type == "application/pdf"))
)
async def handle_passport_document(message: types.Message, pipeline: ExtractionPipeline) -> None:
    doc = message.document
    file = await message.bot.get_file(doc.file_id)
    ext = Path(doc.file_name or "scan").suffix or ".jpg"
    file_path = pipeline.config.uploads_dir / f"{doc.file_unique_id}{ext}"
    await message.bot.download(file, destination=file_path)
    await _run_ocr_and_reply(message, pipeline, file_path, doc.mime_type)


@router.message(F.photo)
async def handle_passport_photo(message: types.Message, pipeline: ExtractionPipeline) -> None:
    assert message.photo is not None
    photos: List[PhotoSize] = message.photo
    photo = photos[-1]
    file = await message.bot.get_file(photo.file_id)
    file_path = pipeline.config.uploads_dir / f"{photo.file_unique_id}.jpg"
    await message.bot.download(file, destination=file_path)
    await _run_ocr_and_reply(message, pipeline, file_path, "image/jpeg")


async def _run_ocr_and_reply(
    message: types.Message,
    pipeline: ExtractionPipeline,
    file_path: Path,
    media_type: str,
) -> None:
    await message.answer("🔍 Reading passport data…")

    loop = asyncio.get_running_loop()
    try:
        extract = partial(pipeline.extract, file_path, media_type)
        record = await loop.run_in_executor(None, extract)
    except RecognitionError as exc:
        logger.warning("Passport OCR failed: %s", exc)
        file_path.unlink(missing_ok=True)
        await message.answer(
            "😕 Could not read the passport. Make sure the photo is sharp and try again."
        )
        return
    except Exception as exc:
        logger.exception("Unexpected error while processing passport", exc_info=exc)
        file_path.unlink(missing_ok=True)
        await message.answer(
            "⚠️ Something went wrong during recognition. Please try again."
        )
        return

    if record.missing_fields():
        logger.info("Passport OCR returned partial data for %s", file_path)
    else:
        logger.info("Passport OCR succeeded for %s", file_path)

    # MRZ filler characters would break HTML parsing.
    await message.answer(format_record(record), parse_mode=None)


def confidence_band(confidence: float) -> str:
    if confidence >= HIGH_CONFIDENCE:
        return "high"
    if confidence >= LOW_CONFIDENCE:
        return "medium"
    return "low"


def format_record(record: ExtractedRecord, preview_length: int = 700) -> str:
    """Plain-text reply describing an extraction result."""
    lines = ["✅ Passport recognition result:"]

    for name, label in FIELD_LABELS:
        value = getattr(record, name)
        if value is None:
            continue
        if hasattr(value, "strftime"):
            value = value.strftime("%d.%m.%Y")
        lines.append(f"• {label}: {value}")

    if record.mrz_line1 and record.mrz_line2:
        lines.append("\nMRZ:")
        lines.append(record.mrz_line1)
        lines.append(record.mrz_line2)

    if record.confidence is not None:
        band = confidence_band(record.confidence)
        lines.append(f"\nConfidence: {record.confidence:.0f}% ({band})")
        if record.confidence < LOW_CONFIDENCE:
            lines.append(
                "⚠️ Low confidence score. Please verify all extracted information carefully."
            )

    missing = record.missing_fields()
    if missing:
        labels = dict(FIELD_LABELS)
        lines.append(
            "⚠️ Partially recognised. Check manually: "
            + ", ".join(labels[name] for name in missing)
        )

    raw_preview = (record.extracted_text or "").strip()
    if raw_preview:
        lines.append("\n📝 Recognised text:")
        lines.append(raw_preview[:preview_length].strip())

    return "\n".join(lines)
