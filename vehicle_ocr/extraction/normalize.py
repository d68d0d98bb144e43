"""Text normalization helpers for OCR output.

``clean_alphanumeric`` repairs identifier fields where Tesseract confuses
letters with digits; ``fold_diacritics`` strips Vietnamese accents so
keywords match regardless of how well the marks were recognized. Both are
idempotent.
"""

import re
import unicodedata

from .vocabulary import COLOR_DICTIONARY

_O_LIKE = "OÒÓỎÕỌÔỒỐỔỖỘƠỜỚỞỠỢО"  # last one is Cyrillic capital O
_I_LIKE = "IÍÌỈĨỊĬĮİ"
_S_LIKE = "SŚŜŞŠ"
_Z_LIKE = "ZŽŹŻ"

_GLYPH_TO_DIGIT = str.maketrans(
    {
        **{ch: "0" for ch in _O_LIKE},
        **{ch: "1" for ch in _I_LIKE},
        **{ch: "5" for ch in _S_LIKE},
        **{ch: "2" for ch in _Z_LIKE},
    }
)

# Stroke letters have no Unicode decomposition.
_STROKE_LETTERS = str.maketrans({"Đ": "D", "đ": "d", "Ð": "D"})

_NON_ALNUM = re.compile(r"[^A-Z0-9]")
_WHITESPACE = re.compile(r"\s+")
_COLOR_SEPARATORS = re.compile(r"[\s\-_/.,]+")

_PLATE = re.compile(
    r"([0-9]{2}[A-Z][0-9]?)[.\-]*([0-9]{3,5}(?:\.[0-9]{1,2})?)\.?",
    re.IGNORECASE,
)

# Longest keys first so "XAMDEN" wins over "XAM" and "DEN".
_COLOR_KEYS_BY_LENGTH = sorted(COLOR_DICTIONARY, key=len, reverse=True)


def clean_alphanumeric(text: str) -> str:
    """Uppercase, map look-alike glyphs to digits, drop all other characters.

    O-like vowels become ``0``, I-like ``1``, S-like ``5`` and Z-like ``2``.

    Args:
        text: Raw OCR token.

    Returns:
        String containing only ``[A-Z0-9]``.
    """
    text = unicodedata.normalize("NFC", text).upper()
    return _NON_ALNUM.sub("", text.translate(_GLYPH_TO_DIGIT))


def _strip_marks(text: str) -> str:
    decomposed = unicodedata.normalize("NFD", text.translate(_STROKE_LETTERS))
    stripped = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    return unicodedata.normalize("NFC", stripped)


def fold_diacritics(text: str) -> str:
    """Remove accents and uppercase, e.g. ``"Xám đen"`` -> ``"XAM DEN"``.

    Args:
        text: Any text.

    Returns:
        Uppercase text without combining marks; ``đ``/``Đ`` become ``D``.
    """
    return _strip_marks(_strip_marks(text).upper())


def collapse_whitespace(text: str) -> str:
    """Replace every whitespace run with one space and strip the ends."""
    return _WHITESPACE.sub(" ", text).strip()


def normalize_plate(value: str) -> str | None:
    """Canonicalize a license plate to ``<series>-<serial>``.

    Whitespace is removed and the series/serial separator becomes ``-``;
    the dot inside the serial is kept: ``"30A 123.45"`` -> ``"30A-123.45"``.

    Returns:
        Canonical plate, or ``None`` if ``value`` is not plate-shaped.
    """
    compact = _WHITESPACE.sub("", value)
    match = _PLATE.fullmatch(compact)
    if match is None:
        return None
    series, serial = match.groups()
    return f"{series.upper()}-{serial}"


def normalize_date(day: str, month: str, year: str) -> str | None:
    """Format day/month/year as zero-padded ``DD/MM/YYYY``.

    Returns:
        Formatted date, or ``None`` when day or month is out of range.
    """
    d, m = int(day), int(month)
    if not (1 <= d <= 31 and 1 <= m <= 12):
        return None
    return f"{d:02d}/{m:02d}/{year}"


def color_key(text: str) -> str:
    """Fold a color phrase to a separator-free dictionary key."""
    return _COLOR_SEPARATORS.sub("", fold_diacritics(text))


def lookup_color(text: str) -> str | None:
    """Map a color phrase to its display value.

    Any case, accent or separator variant of a dictionary token matches;
    when several tokens occur, the longest one wins.

    Returns:
        Display value such as ``"Xám Đen"``, or ``None`` if nothing matches.
    """
    key = color_key(text)
    if not key:
        return None
    for token in _COLOR_KEYS_BY_LENGTH:
        if token in key:
            return COLOR_DICTIONARY[token]
    return None
