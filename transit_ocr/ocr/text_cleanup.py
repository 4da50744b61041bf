"""Normalization of raw Tesseract output.

Repairs the artifacts Tesseract leaves on permit card scans: split digit
runs, number-sign glyph variants, flattened table layouts and a handful
of recurring misreadings in fixed vocabulary. Every rule maps its output
outside its own match set, so ``clean(clean(t)) == clean(t)``.
"""

import re
from collections.abc import Callable

# Vocabulary and glyph fixes, applied in order before spacing rules.
_CORRECTIONS: list[tuple[re.Pattern[str], str | Callable[[re.Match[str]], str]]] = [
    (re.compile(r"[|¡]"), "I"),
    (re.compile(r"l+(?=\d)"), lambda match: "1" * len(match.group())),
    (re.compile(r"(?<=\d)O(?=\d)"), "0"),
    (re.compile(r"C[O0]DIGO[ \t]+UNICO", re.IGNORECASE), "CÓDIGO ÚNICO"),
    (re.compile(r"IDENTIF[IL1]CADOR", re.IGNORECASE), "IDENTIFICADOR"),
    (re.compile(r"R[O0]DAJE", re.IGNORECASE), "RODAJE"),
    (re.compile(r"GTVIS"), "GTMS"),
    (re.compile(r"GTMS-vcic"), "GTMS-vcfc"),
    (re.compile(r"AGP[ \t]+MASIVO"), "AQP MASIVO"),
]

_NUMBER_SIGN = re.compile(r"\bN[ \t]*[*°º#]\.?")
_SPLIT_DIGITS = re.compile(r"(?<=\d)[ \t]+(?=\d)")
_TABLE_GAP = re.compile(r"[ \t]{3,}")
_DOUBLE_SPACE = re.compile(r"[ \t]{2,}")

NUMBER_MARKER = "No."


def apply_corrections(text: str) -> str:
    """Apply the fixed table of misrecognition corrections."""
    for pattern, replacement in _CORRECTIONS:
        text = pattern.sub(replacement, text)
    return text


def clean_recognized_text(text: str) -> str:
    """Normalize recognized text.

    Steps, in order: vocabulary corrections, ``N°``/``Nº``/``N*`` to
    ``No.``, digit runs split by spaces joined (``8 0 3`` to ``803``),
    runs of 3+ spaces turned into a line break, remaining runs of 2+
    spaces collapsed to one.

    Args:
        text: Raw OCR output.

    Returns:
        Cleaned text.
    """
    if not text:
        return ""

    cleaned = apply_corrections(text)
    cleaned = _NUMBER_SIGN.sub(NUMBER_MARKER, cleaned)
    cleaned = _SPLIT_DIGITS.sub("", cleaned)
    cleaned = _TABLE_GAP.sub("\n", cleaned)
    cleaned = _DOUBLE_SPACE.sub(" ", cleaned)
    return cleaned


def normalize_lines(text: str) -> str:
    """Trim every line and the text as a whole."""
    return "\n".join(line.strip() for line in text.split("\n")).strip()
