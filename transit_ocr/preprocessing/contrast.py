"""Contrast normalization for rasterized permit card scans.

Faded scans lose stroke contrast around the mid-grey level. A linear
stretch around 128 pushes ink darker and paper lighter before OCR.
"""

import cv2
import numpy as np

from transit_ocr.utils.logger import get_logger

logger = get_logger(__name__)


def to_gray(image: np.ndarray) -> np.ndarray:
    """Convert an image to grayscale if it has color channels.

    Args:
        image: Input image (RGB or grayscale).

    Returns:
        Grayscale image.
    """
    if len(image.shape) == 3:
        return cv2.cvtColor(image, cv2.COLOR_RGB2GRAY)
    return image


def contrast_lut(factor: float) -> np.ndarray:
    """Build the 256-entry lookup table for a linear contrast stretch.

    Each intensity ``v`` maps to ``clip(factor * (v - 128) + 128, 0, 255)``.

    Args:
        factor: Stretch factor; 1.0 is the identity.

    Returns:
        ``uint8`` lookup table of shape ``(256,)``.
    """
    values = np.arange(256, dtype=np.float32)
    stretched = factor * (values - 128.0) + 128.0
    return np.clip(np.rint(stretched), 0, 255).astype(np.uint8)


def stretch_contrast(image: np.ndarray, factor: float = 1.4) -> np.ndarray:
    """Apply a linear contrast stretch to every pixel channel.

    Args:
        image: ``uint8`` image, grayscale or with color channels.
        factor: Stretch factor around mid-grey.

    Returns:
        New image with the same shape and dtype.
    """
    if factor == 1.0:
        return image.copy()
    result = cv2.LUT(image, contrast_lut(factor))
    logger.debug("Applied contrast stretch (factor=%.2f)", factor)
    return result
