import logging
from pathlib import Path
from typing import Optional

from passport_bot.config import Config, load_config
from passport_bot.models import IDENTITY_FIELDS, ExtractedRecord
from passport_bot.services.extract_passport_data import extract_fields
from passport_bot.services.ocr_engine import (
    DocumentTextExtractor,
    ImageRecognizer,
    ProgressCallback,
    processed_image,
)

logger = logging.getLogger(__name__)

PDF_MEDIA_TYPE = "application/pdf"


class ExtractionPipeline:
    """Turns an uploaded passport image or PDF into an :class:`ExtractedRecord`.

    PDFs are read through their text layer and get a fixed confidence.
    Images are preprocessed into a temporary copy, recognised with Tesseract,
    and carry the engine's own confidence. Recognition errors propagate as
    :class:`~passport_bot.services.ocr_engine.RecognitionError`.
    """

    def __init__(
        self,
        config: Config,
        recognizer: Optional[ImageRecognizer] = None,
        document_extractor: Optional[DocumentTextExtractor] = None,
    ) -> None:
        self.config = config
        self.recognizer = recognizer or ImageRecognizer(
            lang=config.ocr_lang,
            config=config.tesseract_config,
            timeout=config.ocr_timeout,
        )
        self.document_extractor = document_extractor or DocumentTextExtractor()

    def extract(
        self,
        file_path: Path,
        media_type: str,
        progress: Optional[ProgressCallback] = None,
    ) -> ExtractedRecord:
        file_path = Path(file_path)
        if media_type == PDF_MEDIA_TYPE:
            record = self._extract_pdf(file_path)
        else:
            record = self._extract_image(file_path, progress)

        logger.info(
            "Recovered %d/%d identity fields from %s (confidence %.1f)",
            len(IDENTITY_FIELDS) - len(record.missing_fields()),
            len(IDENTITY_FIELDS),
            file_path.name,
            record.confidence,
        )
        return record

    def _extract_pdf(self, file_path: Path) -> ExtractedRecord:
        document = self.document_extractor.extract(file_path)
        return ExtractedRecord.from_fields(
            extract_fields(document.text),
            extracted_text=document.text,
            confidence=self.config.pdf_confidence,
        )

    def _extract_image(
        self, file_path: Path, progress: Optional[ProgressCallback]
    ) -> ExtractedRecord:
        with processed_image(file_path, self.config.preprocess_max_width) as image_path:
            result = self.recognizer.recognize(
                image_path, lang=self.config.ocr_lang, progress=progress
            )
        return ExtractedRecord.from_fields(
            extract_fields(result.text),
            extracted_text=result.text,
            confidence=result.confidence,
        )


def extract_passport_info(file_path: Path, media_type: str) -> ExtractedRecord:
    return ExtractionPipeline(load_config()).extract(file_path, media_type)


__all__ = ["ExtractionPipeline", "PDF_MEDIA_TYPE", "extract_passport_info"]
