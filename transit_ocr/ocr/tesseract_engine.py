"""Tesseract OCR engine wrapper with scoped character sets.

Runs recognition on a rendered bitmap with a character whitelist and a
page segmentation mode, returns the cleaned text and the mean word
confidence.
"""

from dataclasses import dataclass
from enum import Enum, IntEnum

import pytesseract
from PIL import Image

from transit_ocr.errors import RecognitionFailure
from transit_ocr.utils.config import OCRConfig
from transit_ocr.utils.logger import get_logger

from .rasterizer import PageBitmap
from .text_cleanup import clean_recognized_text

logger = get_logger(__name__)


class CharacterSet(Enum):
    """Character whitelists passed to Tesseract."""

    FULL = (
        "ABCDEFGHIJKLMNÑOPQRSTUVWXYZ"
        "abcdefghijklmnñopqrstuvwxyz"
        "0123456789"
        "ÁÉÍÓÚáéíóú"
        "-_.,:/°º()[]"
    )
    DIGITS = "0123456789"


class SegmentationMode(IntEnum):
    """Tesseract page segmentation modes used by the pipeline."""

    AUTO = 3
    SINGLE_BLOCK = 6


@dataclass
class RecognitionResult:
    """Cleaned OCR output for one bitmap."""

    text: str
    confidence: float


class TesseractEngine:
    """Wrapper around Tesseract OCR for permit card text.

    Args:
        config: OCR settings (executable path, language, spacing).
    """

    def __init__(self, config: OCRConfig | None = None) -> None:
        self.config = config or OCRConfig()
        if self.config.tesseract_cmd:
            pytesseract.pytesseract.tesseract_cmd = self.config.tesseract_cmd

    def build_config(
        self, charset: CharacterSet, mode: SegmentationMode
    ) -> str:
        """Build the Tesseract command-line configuration string.

        Args:
            charset: Character whitelist.
            mode: Page segmentation mode.

        Returns:
            Config string for ``pytesseract``.
        """
        parts = [f"--psm {int(mode)}", f"-c tessedit_char_whitelist={charset.value}"]
        if self.config.preserve_interword_spaces and charset is CharacterSet.FULL:
            parts.append("-c preserve_interword_spaces=1")
        return " ".join(parts)

    def recognize(
        self,
        bitmap: PageBitmap,
        charset: CharacterSet = CharacterSet.FULL,
        mode: SegmentationMode = SegmentationMode.AUTO,
    ) -> RecognitionResult:
        """Recognize the text of a bitmap.

        Args:
            bitmap: Rendered page or crop.
            charset: Character whitelist to restrict recognition to.
            mode: Page segmentation mode.

        Returns:
            Cleaned text and mean word confidence on a 0-100 scale.

        Raises:
            RecognitionFailure: If Tesseract fails or finds no text.
        """
        config = self.build_config(charset, mode)
        pil_image = Image.fromarray(bitmap.pixels)

        try:
            text = pytesseract.image_to_string(
                pil_image, lang=self.config.lang, config=config
            )
            data = pytesseract.image_to_data(
                pil_image,
                lang=self.config.lang,
                config=config,
                output_type=pytesseract.Output.DICT,
            )
        except pytesseract.TesseractError as exc:
            raise RecognitionFailure(
                f"Tesseract failed on page {bitmap.page_number}: {exc}"
            ) from exc
        finally:
            pil_image.close()

        if not text or not text.strip():
            raise RecognitionFailure(f"No text recognized on page {bitmap.page_number}")

        confidences = [
            float(conf)
            for conf, word in zip(data["conf"], data["text"], strict=False)
            if float(conf) > 0 and str(word).strip()
        ]
        confidence = sum(confidences) / len(confidences) if confidences else 0.0

        logger.info(
            "OCR on page %d (%s, psm %d): %d words, confidence %.1f",
            bitmap.page_number,
            charset.name.lower(),
            int(mode),
            len(confidences),
            confidence,
        )
        return RecognitionResult(text=clean_recognized_text(text), confidence=confidence)
