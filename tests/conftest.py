"""Shared fixtures: config, synthetic images and a fake OCR engine."""

from pathlib import Path

import cv2
import numpy as np
import pytest

from passport_bot.config import Config
from passport_bot.services.ocr_engine import (
    DocumentText,
    RecognitionError,
    RecognitionResult,
)

MRZ_LINE1 = "P<USADOE<<JOHN<<<<<<<<<<<<<<<<<<<<<<<<<<<<"
MRZ_LINE2 = "L898902C36USA6908061F9512316<<<<<<<<<<<<<<02"


class FakeRecognizer:
    """Stands in for Tesseract; remembers the path it was asked to read."""

    def __init__(self, text="", confidence=0.0, error=None):
        self.text = text
        self.confidence = confidence
        self.error = error
        self.calls = []

    def recognize(self, image_path, lang=None, progress=None):
        self.calls.append({"path": Path(image_path), "lang": lang, "exists": Path(image_path).exists()})
        if self.error is not None:
            raise self.error
        return RecognitionResult(text=self.text, confidence=self.confidence)


class FakeDocumentExtractor:
    def __init__(self, text="", pages=1, error=None):
        self.text = text
        self.pages = pages
        self.error = error

    def extract(self, pdf_path):
        if self.error is not None:
            raise self.error
        return DocumentText(text=self.text, page_count=self.pages)


@pytest.fixture
def config(tmp_path):
    return Config(bot_token=None, uploads_dir=tmp_path)


@pytest.fixture
def make_image(tmp_path):
    """Write a noisy BGR image of the given size and return its path."""

    def _make(width, height, name="scan.png"):
        rng = np.random.default_rng(0)
        img = rng.integers(40, 200, size=(height, width, 3), dtype=np.uint8)
        path = tmp_path / name
        assert cv2.imwrite(str(path), img)
        return path

    return _make


@pytest.fixture
def corrupt_image(tmp_path):
    path = tmp_path / "broken.jpg"
    path.write_bytes(b"this is not a jpeg")
    return path


@pytest.fixture
def recognition_error():
    return RecognitionError("engine crashed")
