"""Rule-table driven field extraction for registration certificate text."""

from collections.abc import Iterable
from dataclasses import dataclass

from vehicle_ocr.utils.logger import get_logger

from .rules import DEFAULT_RULES, FIELD_NAMES, FieldRule, TextViews, build_rule_table
from .vocabulary import KNOWN_BRANDS

logger = get_logger(__name__)


@dataclass
class ExtractedField:
    """A field value and the rule that produced it."""

    field_name: str
    value: str
    rule_name: str
    anchored: bool


class FieldExtractor:
    """Runs each field's rule cascade over recognized text.

    Rules are tried in priority order and the first non-empty value wins.
    A field with no matching rule is absent from the output; nothing is
    ever filled in with a placeholder.

    Args:
        rules: Field name -> ordered rules. Defaults to the built-in table.
        extra_brands: Manufacturer names appended to the brand whitelist.
            Ignored when ``rules`` is given.
    """

    def __init__(
        self,
        rules: dict[str, list[FieldRule]] | None = None,
        extra_brands: Iterable[str] = (),
    ) -> None:
        if rules is not None:
            self.rules = rules
        else:
            extra = tuple(extra_brands)
            self.rules = (
                build_rule_table((*KNOWN_BRANDS, *extra)) if extra else DEFAULT_RULES
            )

    def extract(
        self, text: str, fields: Iterable[str] | None = None
    ) -> dict[str, ExtractedField]:
        """Extract certificate fields from OCR text.

        Args:
            text: Recognized text, line breaks kept.
            fields: Field names to extract. If ``None``, extracts all.

        Returns:
            Mapping of field name to extracted field, only for fields found.
        """
        views = TextViews.from_text(text)
        field_names = tuple(fields) if fields is not None else FIELD_NAMES
        results: dict[str, ExtractedField] = {}

        for field_name in field_names:
            for rule in self.rules.get(field_name, []):
                value = rule.apply(views)
                if value:
                    results[field_name] = ExtractedField(
                        field_name=field_name,
                        value=value,
                        rule_name=rule.name,
                        anchored=rule.anchored,
                    )
                    logger.debug("Field %s matched rule %s", field_name, rule.name)
                    break

        logger.info(
            "Field extraction found %d/%d fields", len(results), len(field_names)
        )
        return results

    def describe(self) -> dict[str, list[dict[str, object]]]:
        """List every field's rules in priority order."""
        return {
            field_name: [
                {"name": rule.name, "anchored": rule.anchored} for rule in rules
            ]
            for field_name, rules in self.rules.items()
        }
