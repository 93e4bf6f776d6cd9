import logging
import os
import tempfile
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Dict, Iterator, List, Optional, Tuple

import cv2
import numpy as np
import pdfplumber
import pytesseract

logger = logging.getLogger(__name__)

TESS_LANG = "eng"
TESS_CONFIG = "--oem 3 --psm 3"
MAX_WIDTH = 2000

ProgressCallback = Callable[[str, float], None]


class RecognitionError(Exception):
    """Raised when the OCR engine or the PDF reader fails on a document."""


class ImagePreprocessingError(Exception):
    """Raised internally when an image cannot be prepared for OCR."""


@dataclass(slots=True)
class RecognitionResult:
    text: str
    confidence: float


@dataclass(slots=True)
class DocumentText:
    text: str
    page_count: int


# ---------- предобработка ----------
def _prepare(img: np.ndarray, max_width: int) -> np.ndarray:
    gray = cv2.cvtColor(img, cv2.COLOR_BGR2GRAY)
    norm = cv2.normalize(gray, None, 0, 255, cv2.NORM_MINMAX)

    kernel = np.array([[0, -1, 0], [-1, 5, -1], [0, -1, 0]])
    sharp = cv2.filter2D(norm, -1, kernel)

    h, w = sharp.shape
    if w > max_width:
        height = max(1, round(h * max_width / w))
        sharp = cv2.resize(sharp, (max_width, height), interpolation=cv2.INTER_AREA)
    return sharp


def preprocess_image(image_path: Path, output_path: Path, max_width: int = MAX_WIDTH) -> Path:
    """Write an OCR-friendly copy of the image to ``output_path``.

    Greyscale, contrast stretch, sharpening, then a downscale to at most
    ``max_width`` pixels wide. Images are never enlarged. If anything goes
    wrong the original ``image_path`` is returned instead.
    """
    try:
        img = cv2.imread(str(image_path))
        if img is None:
            raise ImagePreprocessingError(f"cannot read image {image_path}")
        prepared = _prepare(img, max_width)
        if not cv2.imwrite(str(output_path), prepared):
            raise ImagePreprocessingError(f"cannot write image {output_path}")
    except (ImagePreprocessingError, cv2.error, OSError) as exc:
        logger.warning("Preprocessing skipped for %s: %s", image_path, exc)
        return image_path
    return output_path


@contextmanager
def processed_image(image_path: Path, max_width: int = MAX_WIDTH) -> Iterator[Path]:
    """Yield the image OCR should read; the intermediate copy is always removed."""
    try:
        fd, tmp_name = tempfile.mkstemp(
            prefix=f"{image_path.stem}_processed_", suffix=".jpg", dir=image_path.parent
        )
    except OSError as exc:
        logger.warning("Preprocessing skipped for %s: %s", image_path, exc)
        yield image_path
        return
    os.close(fd)
    tmp_path = Path(tmp_name)
    try:
        yield preprocess_image(image_path, tmp_path, max_width)
    finally:
        tmp_path.unlink(missing_ok=True)


# ---------- распознавание ----------
def _lines_from_data(data: Dict[str, List]) -> Tuple[str, float]:
    lines: Dict[Tuple[int, int, int, int], List[str]] = {}
    scores: List[float] = []
    for idx, word in enumerate(data.get("text", [])):
        word = (word or "").strip()
        if not word:
            continue
        key = (
            data["page_num"][idx],
            data["block_num"][idx],
            data["par_num"][idx],
            data["line_num"][idx],
        )
        lines.setdefault(key, []).append(word)
        conf = float(data["conf"][idx])
        if conf >= 0:
            scores.append(conf)

    text = "\n".join(" ".join(words) for words in lines.values())
    confidence = sum(scores) / len(scores) if scores else 0.0
    return text, confidence


class ImageRecognizer:
    """Tesseract OCR over an image file."""

    def __init__(
        self,
        lang: str = TESS_LANG,
        config: str = TESS_CONFIG,
        timeout: float = 0,
    ) -> None:
        self.lang = lang
        self.config = config
        self.timeout = timeout

    def recognize(
        self,
        image_path: Path,
        lang: Optional[str] = None,
        progress: Optional[ProgressCallback] = None,
    ) -> RecognitionResult:
        if progress:
            progress("recognizing text", 0.0)
        try:
            data = pytesseract.image_to_data(
                str(image_path),
                lang=lang or self.lang,
                config=self.config,
                output_type=pytesseract.Output.DICT,
                timeout=self.timeout,
            )
        except Exception as exc:
            raise RecognitionError(f"Tesseract failed on {image_path.name}") from exc

        text, confidence = _lines_from_data(data)
        if progress:
            progress("recognizing text", 1.0)
        logger.debug("OCR text for %s:\n%s", image_path.name, text)
        return RecognitionResult(text=text, confidence=confidence)


class DocumentTextExtractor:
    """Text layer of a PDF via pdfplumber. Scanned pages yield no text."""

    def extract(self, pdf_path: Path) -> DocumentText:
        try:
            with pdfplumber.open(pdf_path) as pdf:
                pages = [page.extract_text() or "" for page in pdf.pages]
        except Exception as exc:
            raise RecognitionError(f"Cannot read PDF {pdf_path.name}") from exc

        logger.info("Extracted text from %d PDF page(s) of %s", len(pages), pdf_path.name)
        return DocumentText(text="\n\n".join(pages), page_count=len(pages))


__all__ = [
    "DocumentText",
    "DocumentTextExtractor",
    "ImageRecognizer",
    "RecognitionError",
    "RecognitionResult",
    "preprocess_image",
    "processed_image",
]
