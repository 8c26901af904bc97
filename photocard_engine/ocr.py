"""Line acquisition: run a text recognizer and return lines in reading order.

Recognizers report boxes normalized to the unit square with the origin at the
bottom-left of the image, so a larger ``box.y`` is higher on the page.
"""

from __future__ import annotations

import io
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Protocol, Sequence, Union

import numpy as np
from PIL import Image, UnidentifiedImageError

from .job import JobPaths, record_error
from .types import NormalizedRect, OCRLine

logger = logging.getLogger(__name__)

DEFAULT_LANGUAGES: tuple[str, ...] = ("ja", "en")
ACCURACY_ACCURATE = "accurate"
ACCURACY_FAST = "fast"

BitmapSource = Union[Image.Image, bytes, bytearray, str, Path]


class Recognizer(Protocol):
    """Engine wrapper; returned line text is exactly what the engine read.

    ``language_correction`` is an engine setting. EasyOCR and PaddleOCR have
    no such switch, so their wrappers accept it and leave the text alone.
    """

    def recognize(
        self,
        image: Image.Image,
        languages: Sequence[str],
        accuracy: str,
        language_correction: bool,
    ) -> list[OCRLine]: ...


def pixel_poly_to_rect(
    poly: Sequence[Sequence[float]],
    width: int,
    height: int,
) -> NormalizedRect:
    """Convert a pixel polygon (top-left origin) to a bottom-left normalized box."""
    xs = [float(p[0]) for p in poly]
    ys = [float(p[1]) for p in poly]
    x0, y0, x1, y1 = min(xs), min(ys), max(xs), max(ys)
    w = float(max(1, width))
    h = float(max(1, height))
    return NormalizedRect(
        x=x0 / w,
        y=1.0 - y1 / h,
        width=(x1 - x0) / w,
        height=(y1 - y0) / h,
    )


def _to_lines(
    results: list[tuple[Any, str]],
    image_size: tuple[int, int],
) -> list[OCRLine]:
    w, h = image_size
    lines: list[OCRLine] = []
    for poly, text in results:
        lines.append(OCRLine(text=str(text or ""), box=pixel_poly_to_rect(poly, w, h)))
    return lines


@dataclass
class EasyOCRRecognizer:
    gpu: bool = False
    _reader: Any | None = None
    _reader_langs: tuple[str, ...] = ()

    def _get_reader(self, languages: Sequence[str]) -> Any:
        langs = tuple(languages)
        if self._reader is None or self._reader_langs != langs:
            import easyocr

            self._reader = easyocr.Reader(list(langs), gpu=self.gpu)
            self._reader_langs = langs
        return self._reader

    def recognize(
        self,
        image: Image.Image,
        languages: Sequence[str],
        accuracy: str,
        language_correction: bool,
    ) -> list[OCRLine]:
        reader = self._get_reader(languages)
        decoder = "greedy" if accuracy == ACCURACY_FAST else "beamsearch"
        results = reader.readtext(np.array(image.convert("RGB")), decoder=decoder)
        # each item: ([[x1,y1], [x2,y2], [x3,y3], [x4,y4]], text, confidence)
        return _to_lines([(bbox, text) for bbox, text, _conf in results], image.size)


# PaddleOCR names a few languages differently.
_PADDLE_LANGS = {"ja": "japan", "ko": "korean", "zh": "ch"}


@dataclass
class PaddleOCRRecognizer:
    _ocr: Any | None = None
    _lang: str = ""

    def _get_engine(self, languages: Sequence[str]) -> Any:
        first = languages[0] if languages else "en"
        lang = _PADDLE_LANGS.get(first, first)
        if self._ocr is None or self._lang != lang:
            from paddleocr import PaddleOCR

            self._ocr = PaddleOCR(use_angle_cls=True, lang=lang, show_log=False)
            self._lang = lang
        return self._ocr

    def recognize(
        self,
        image: Image.Image,
        languages: Sequence[str],
        accuracy: str,
        language_correction: bool,
    ) -> list[OCRLine]:
        engine = self._get_engine(languages)
        arr = np.array(image.convert("RGB"))
        try:
            result = engine.ocr(arr, cls=accuracy != ACCURACY_FAST)
        except TypeError:
            result = engine.ocr(arr)

        items: list[tuple[Any, str]] = []
        for page in result or []:
            for item in page or []:
                poly, (text, _score) = item
                items.append((poly, text))
        return _to_lines(items, image.size)


def build_recognizer(engine: str) -> Recognizer:
    if engine == "easyocr":
        return EasyOCRRecognizer()
    if engine == "paddleocr":
        return PaddleOCRRecognizer()
    raise ValueError(f"Unknown OCR engine: {engine}")


def decode_bitmap(source: BitmapSource) -> Image.Image | None:
    """Decode an image from a PIL image, raw bytes or a path. None if undecodable."""
    if isinstance(source, Image.Image):
        return source
    try:
        if isinstance(source, (bytes, bytearray)):
            img = Image.open(io.BytesIO(bytes(source)))
        else:
            img = Image.open(source)
        img.load()
        return img
    except (UnidentifiedImageError, OSError, ValueError) as e:
        logger.warning("could not decode bitmap: %s", e)
        return None


def acquire_lines(
    source: BitmapSource,
    recognizer: Recognizer,
    *,
    languages: Sequence[str] = DEFAULT_LANGUAGES,
    accuracy: str = ACCURACY_ACCURATE,
    language_correction: bool = True,
    paths: JobPaths | None = None,
    page_id: str = "page_001",
) -> tuple[Image.Image | None, list[OCRLine]]:
    """Return the decoded image and its recognized lines, top of the page first.

    Always fail-soft: an undecodable bitmap or a recognizer error yields no lines.
    """
    image = decode_bitmap(source)
    if image is None:
        record_error(paths, page_id=page_id, stage="decode", message="undecodable_bitmap")
        return None, []

    try:
        lines = recognizer.recognize(image, languages, accuracy, language_correction)
    except Exception as e:
        logger.warning("recognizer failed on %s: %s", page_id, e)
        record_error(paths, page_id=page_id, stage="ocr", message=str(e))
        return image, []

    # sorted() is stable, so lines sharing a baseline keep engine order.
    return image, sorted(lines, key=lambda line: line.box.y, reverse=True)
