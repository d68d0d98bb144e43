"""Declarative field extraction rules for Vietnamese registration certificates.

Each field maps to an ordered list of :class:`FieldRule`. The extractor
tries them in order and keeps the first non-empty value, so supporting a
new label wording means adding a rule here, not touching the extractor.

Anchored rules need the printed field label right before the value;
fallback rules look for value shapes or keywords anywhere in the text and
mark the field as heuristic-derived.
"""

import re
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass

from .normalize import (
    clean_alphanumeric,
    collapse_whitespace,
    color_key,
    fold_diacritics,
    lookup_color,
    normalize_date,
    normalize_plate,
)
from .vocabulary import (
    AMBIGUOUS_COLOR_KEYS,
    COLOR_DICTIONARY,
    KNOWN_BRANDS,
    LABEL_WORDS,
    LETTERS,
    LOWER_LETTERS,
    UPPER_LETTERS,
)

_I = re.IGNORECASE

FIELD_NAMES: tuple[str, ...] = (
    "vin",
    "engine_number",
    "license_plate",
    "brand",
    "color",
    "owner_name",
    "address",
    "registration_date",
)


@dataclass(frozen=True)
class TextViews:
    """The recognized text in the forms the rules search.

    Attributes:
        raw: Text as recognized, line breaks kept and normalized to LF.
        flat: Whitespace runs collapsed to single spaces.
        folded: ``flat`` without accents, uppercased.
    """

    raw: str
    flat: str
    folded: str

    @classmethod
    def from_text(cls, text: str) -> "TextViews":
        text = text.replace("\r\n", "\n").replace("\r", "\n")
        flat = collapse_whitespace(text)
        return cls(raw=text, flat=flat, folded=fold_diacritics(flat))


@dataclass(frozen=True)
class FieldRule:
    """One pattern-or-heuristic step of a field cascade.

    With a ``pattern``, every match in the chosen text view is passed to
    ``extractor`` until one yields a value. Without a pattern, the
    extractor is a heuristic that receives the whole :class:`TextViews`.

    Attributes:
        name: Short identifier used in logs and the ``/fields`` listing.
        extractor: Turns a match (or the views) into a value or ``None``.
        pattern: Compiled regex, or ``None`` for heuristics.
        view: Which :class:`TextViews` attribute the pattern searches.
        anchored: ``True`` when the rule requires a printed label.
    """

    name: str
    extractor: Callable
    pattern: re.Pattern[str] | None = None
    view: str = "flat"
    anchored: bool = True

    def apply(self, views: TextViews) -> str | None:
        if self.pattern is None:
            return self.extractor(views) or None
        for match in self.pattern.finditer(getattr(views, self.view)):
            value = self.extractor(match)
            if value:
                return value
        return None


# --- shared pattern pieces -------------------------------------------------

_NO = r"N[°ºo0]?\.?"
_PLATE_SHAPE = r"[0-9]{2}[A-Z][0-9]?[\s.\-]*[0-9]{3,5}\.?[0-9]{0,2}"
_COLOR_VALUE = rf"([{LETTERS} \t\-]+?)"
_COLOR_STOP = (
    r"(?=[ \t]*(?:\n|\Z|Hoạt|Hoat|Biển|Biến|Bien|Nhãn|Nhân|Nhan|Số|Loại|Loai"
    r"|Dung|Brand|Model|Chassis|Engine))"
)
_NAME_VALUE = rf"([{LETTERS}][{LETTERS} \t]*)"
_CAPITALIZED_PHRASE = re.compile(
    rf"(?<![{LETTERS}])[{UPPER_LETTERS}][{LOWER_LETTERS}]+"
    rf"(?:[ \t]+[{UPPER_LETTERS}][{LOWER_LETTERS}]+)?(?![{LETTERS}])"
)
_PLATE_ANYWHERE = re.compile(rf"\b{_PLATE_SHAPE}\b", _I)


# --- extractors ------------------------------------------------------------


def _cleaned_group(match: re.Match) -> str | None:
    return clean_alphanumeric(match.group(1)) or None


def _cleaned_whole(match: re.Match) -> str | None:
    return clean_alphanumeric(match.group(0)) or None


def _vin_candidate(match: re.Match) -> str | None:
    candidate = clean_alphanumeric(match.group(1))
    if 15 <= len(candidate) <= 20:
        return candidate
    return None


def _engine_shape(match: re.Match) -> str | None:
    prefix, digits, letter, serial = match.groups()
    return (
        prefix.upper()
        + clean_alphanumeric(digits)
        + letter.upper()
        + clean_alphanumeric(serial)
    )


def _engine_near_keyword(match: re.Match) -> str | None:
    candidate = clean_alphanumeric(match.group(1))
    if (
        8 <= len(candidate) <= 15
        and candidate[0].isalpha()
        and any(ch.isdigit() for ch in candidate)
    ):
        return candidate
    return None


def _plate(match: re.Match) -> str | None:
    return normalize_plate(match.group(1))


def _upper_word(match: re.Match) -> str | None:
    # An empty value lets the pattern reach the next label's first word.
    word = match.group(1).strip().upper()
    if not word or word in LABEL_WORDS:
        return None
    return word


def _labeled_color(match: re.Match) -> str | None:
    raw = collapse_whitespace(match.group(1)).strip(" -")
    if len(raw) < 2:
        return None
    return lookup_color(raw) or raw


def _owner_name(match: re.Match) -> str | None:
    name = collapse_whitespace(match.group(1))
    if 5 <= len(name) <= 49 and not any(ch.isdigit() for ch in name):
        return name
    return None


def _address(match: re.Match) -> str | None:
    address = collapse_whitespace(match.group(1))
    if len(address) > 10 and not re.fullmatch(r"[0-9\s]+", address):
        return address
    return None


def _date(match: re.Match) -> str | None:
    return normalize_date(*match.groups())


def _brand_keywords(brands: Sequence[str]) -> Callable[[TextViews], str | None]:
    # Short names are only accepted as whole words ("KIA" in "KIAN" is not a brand).
    patterns = [
        (
            brand,
            re.compile(rf"\b{re.escape(brand)}\b" if len(brand) <= 4 else re.escape(brand)),
        )
        for brand in brands
    ]

    def find_brand(views: TextViews) -> str | None:
        for brand, pattern in patterns:
            if pattern.search(views.folded):
                return brand
        return None

    return find_brand


def _word_ngrams(folded: str) -> set[str]:
    words = re.findall(r"[A-Z0-9]+", folded)
    return set(words) | {a + b for a, b in zip(words, words[1:])}


def _scan_color_dictionary(views: TextViews) -> str | None:
    ngrams = _word_ngrams(views.folded)
    accented = views.flat.upper()
    for key in sorted(COLOR_DICTIONARY, key=len, reverse=True):
        if key not in ngrams:
            continue
        display = COLOR_DICTIONARY[key]
        if key in AMBIGUOUS_COLOR_KEYS and not re.search(
            rf"(?<!\w){re.escape(display.upper())}(?!\w)", accented
        ):
            continue
        return display
    return None


def _color_between_labels(brands: Sequence[str]) -> Callable[[TextViews], str | None]:
    window_pattern = re.compile(r"khung(.{0,150}?)ho[aạ]t", _I | re.DOTALL)
    brand_set = {b.upper() for b in brands}

    def find_color(views: TextViews) -> str | None:
        window = window_pattern.search(views.flat)
        if window is None:
            return None
        for match in _CAPITALIZED_PHRASE.finditer(window.group(1)):
            candidate = match.group(0).strip()
            folded_words = fold_diacritics(candidate).split()
            if not 2 <= len(candidate) <= 15:
                continue
            if any(word in LABEL_WORDS for word in folded_words):
                continue
            if color_key(candidate) in brand_set or _PLATE_ANYWHERE.fullmatch(candidate):
                continue
            return lookup_color(candidate) or candidate
        return None

    return find_color


# --- rule table -------------------------------------------------------------


def build_rule_table(
    brands: Iterable[str] = KNOWN_BRANDS,
) -> dict[str, list[FieldRule]]:
    """Build the ordered rule cascade for every extractable field.

    Args:
        brands: Manufacturer whitelist for the brand fallback; the color
            heuristic also rejects these names.

    Returns:
        Mapping of field name to rules in priority order.
    """
    brands = tuple(dict.fromkeys(b.upper() for b in brands))

    return {
        "vin": [
            FieldRule(
                "chassis_label_vi",
                _cleaned_group,
                re.compile(rf"Số khung\s*\(Chassis {_NO}\)\s*:\s*([A-Z0-9]{{6,25}})", _I),
            ),
            FieldRule(
                "chassis_label_en",
                _cleaned_group,
                re.compile(rf"Chassis {_NO}\s*:\s*([A-Z0-9]{{6,25}})", _I),
            ),
            FieldRule(
                "chassis_label_ascii",
                _cleaned_group,
                re.compile(r"SO KHUNG[^:]{0,40}:\s*([A-Z0-9]{6,25})"),
                view="folded",
            ),
            FieldRule(
                "vin_known_prefix",
                _cleaned_whole,
                re.compile(r"RLHJK[A-Z0-9]{12,}", _I),
                anchored=False,
            ),
            FieldRule(
                "vin_long_run",
                _vin_candidate,
                re.compile(r"\b([A-Z0-9]{15,20})\b", _I),
                anchored=False,
            ),
        ],
        "engine_number": [
            FieldRule(
                "engine_label_vi",
                _cleaned_group,
                re.compile(rf"Số máy\s*\(Engine {_NO}\)\s*:\s*([A-Z0-9]{{4,20}})", _I),
            ),
            FieldRule(
                "engine_label_en",
                _cleaned_group,
                re.compile(rf"Engine {_NO}\s*:\s*([A-Z0-9]{{4,20}})", _I),
            ),
            FieldRule(
                "engine_label_ascii",
                _cleaned_group,
                re.compile(r"SO MAY[^:]{0,40}:\s*([A-Z0-9]{4,20})"),
                view="folded",
            ),
            FieldRule(
                "engine_shape",
                _engine_shape,
                re.compile(r"\b([A-Z]{1,2})([0-9OI]{2})([A-Z])([0-9OI]{6,})\b", _I),
                anchored=False,
            ),
            FieldRule(
                "engine_near_keyword",
                _engine_near_keyword,
                re.compile(r"(?:MAY|ENGINE|MOTOR).{0,50}?\b([A-Z0-9]{8,15})\b"),
                view="folded",
                anchored=False,
            ),
        ],
        "license_plate": [
            FieldRule(
                "plate_label_vi",
                _plate,
                re.compile(
                    rf"Bi[ểế]n số đăng ký\s*\({_NO} plate\)\s*\(T\)\s*({_PLATE_SHAPE})\b",
                    _I,
                ),
            ),
            FieldRule(
                "plate_label_en",
                _plate,
                re.compile(rf"{_NO} plate.{{0,40}}?\s*({_PLATE_SHAPE})\b", _I),
            ),
            FieldRule(
                "plate_shape",
                _plate,
                re.compile(rf"\b({_PLATE_SHAPE})\b", _I),
                anchored=False,
            ),
        ],
        "brand": [
            FieldRule(
                "brand_label_vi",
                _upper_word,
                re.compile(r"NHAN HIEU\s*\(BRAND\)\s*:\s*([A-Z]+)"),
                view="folded",
            ),
            FieldRule(
                "brand_label_en",
                _upper_word,
                re.compile(r"BRAND\s*\)?\s*:\s*([A-Z]+)"),
                view="folded",
            ),
            FieldRule(
                "brand_label_ascii",
                _upper_word,
                re.compile(r"NHAN HIEU[^:]{0,40}:\s*([A-Z]+)"),
                view="folded",
            ),
            FieldRule("brand_keyword", _brand_keywords(brands), anchored=False),
        ],
        "color": [
            FieldRule(
                "color_label_vi",
                _labeled_color,
                re.compile(rf"Màu sơn\s*\(Color\)\s*:\s*{_COLOR_VALUE}{_COLOR_STOP}", _I),
                view="raw",
            ),
            FieldRule(
                "color_label_en",
                _labeled_color,
                re.compile(rf"Color\s*\)?\s*:\s*{_COLOR_VALUE}{_COLOR_STOP}", _I),
                view="raw",
            ),
            FieldRule(
                "color_label_ascii",
                _labeled_color,
                re.compile(rf"Mau son[^:\n]{{0,40}}:\s*{_COLOR_VALUE}{_COLOR_STOP}", _I),
                view="raw",
            ),
            FieldRule("color_dictionary_scan", _scan_color_dictionary, anchored=False),
            FieldRule(
                "color_between_labels", _color_between_labels(brands), anchored=False
            ),
        ],
        "owner_name": [
            FieldRule(
                "owner_label_vi",
                _owner_name,
                re.compile(
                    rf"Tên chủ xe\s*\(Owner['’]?s? full name\)\s*:\s*{_NAME_VALUE}", _I
                ),
                view="raw",
            ),
            FieldRule(
                "owner_label_en",
                _owner_name,
                re.compile(rf"Owner['’]?s? full name[^:\n]{{0,40}}:\s*{_NAME_VALUE}", _I),
                view="raw",
            ),
            FieldRule(
                "owner_label_ascii",
                _owner_name,
                re.compile(rf"T[eê]n\s+ch[uủ]\s+xe[^:\n]{{0,40}}:\s*{_NAME_VALUE}", _I),
                view="raw",
            ),
        ],
        "address": [
            FieldRule(
                "address_label_vi",
                _address,
                re.compile(r"Địa chỉ\s*\(Address\)\s*:\s*([^\n]+)", _I),
                view="raw",
            ),
            FieldRule(
                "address_label_en",
                _address,
                re.compile(r"Address\s*\)?\s*:\s*([^\n]+)", _I),
                view="raw",
            ),
            FieldRule(
                "address_label_ascii",
                _address,
                re.compile(r"[ĐD][iị]a\s+ch[iỉ][^:\n]{0,40}:\s*([^\n]+)", _I),
                view="raw",
            ),
        ],
        "registration_date": [
            FieldRule(
                "date_place_prefixed",
                _date,
                re.compile(
                    r"[A-Z]+\s*[,;]\s*NGAY\s*(\d{1,2})\s*THANG\s*(\d{1,2})\s*NAM\s*(\d{4})"
                ),
                view="folded",
            ),
            FieldRule(
                "date_words",
                _date,
                re.compile(r"NGAY\s*(\d{1,2})\s*THANG\s*(\d{1,2})\s*NAM\s*(\d{4})"),
                view="folded",
                anchored=False,
            ),
            FieldRule(
                "date_numeric",
                _date,
                re.compile(r"(?<!\d)(\d{1,2})[/.\-](\d{1,2})[/.\-](\d{4})(?!\d)"),
                anchored=False,
            ),
        ],
    }


DEFAULT_RULES = build_rule_table()
