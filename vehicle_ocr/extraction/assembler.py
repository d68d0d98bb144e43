"""Assembles extracted fields, raw text and confidence into one result."""

from dataclasses import dataclass, field

from .field_extractor import ExtractedField

_CAMEL_CASE_KEYS = {
    "vin": "vin",
    "engine_number": "engineNumber",
    "license_plate": "licensePlate",
    "brand": "brand",
    "color": "color",
    "owner_name": "ownerName",
    "address": "address",
    "registration_date": "registrationDate",
}


@dataclass
class OCRResult:
    """Structured data read from one registration certificate photo.

    Every field is optional; ``None`` means it could not be extracted.
    ``raw_text`` and ``confidence`` are always set so the user can fall
    back to manual entry.
    """

    raw_text: str
    confidence: float
    vin: str | None = None
    engine_number: str | None = None
    license_plate: str | None = None
    brand: str | None = None
    color: str | None = None
    owner_name: str | None = None
    address: str | None = None
    registration_date: str | None = None
    heuristic_fields: list[str] = field(default_factory=list)

    @property
    def extracted_fields(self) -> dict[str, str]:
        """Field name -> value for the fields that were found."""
        return {
            name: value
            for name in _CAMEL_CASE_KEYS
            if (value := getattr(self, name)) is not None
        }

    def to_dict(self) -> dict[str, object]:
        """Serialize with camelCase keys, leaving out fields not extracted."""
        data: dict[str, object] = {
            _CAMEL_CASE_KEYS[name]: value
            for name, value in self.extracted_fields.items()
        }
        data["rawText"] = self.raw_text
        data["confidence"] = self.confidence
        data["heuristicFields"] = [_CAMEL_CASE_KEYS[n] for n in self.heuristic_fields]
        return data


def assemble_result(
    fields: dict[str, ExtractedField], raw_text: str, confidence: float
) -> OCRResult:
    """Merge extracted fields with the recognition output.

    No validation happens here; the registration form decides which
    fields are required.

    Args:
        fields: Output of :meth:`FieldExtractor.extract`.
        raw_text: Text returned by the recognition engine.
        confidence: Engine confidence, clamped to 0-100.

    Returns:
        A new :class:`OCRResult`.
    """
    values = {
        name: extracted.value
        for name, extracted in fields.items()
        if name in _CAMEL_CASE_KEYS
    }
    heuristic = [
        name
        for name in _CAMEL_CASE_KEYS
        if name in fields and not fields[name].anchored
    ]
    return OCRResult(
        raw_text=raw_text or "",
        confidence=min(100.0, max(0.0, float(confidence))),
        heuristic_fields=heuristic,
        **values,
    )
