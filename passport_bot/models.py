"""Data models used across the bot package."""

from __future__ import annotations

from dataclasses import dataclass, fields
from datetime import date
from typing import Any, Dict, List, Mapping

IDENTITY_FIELDS = (
    "passport_number",
    "first_name",
    "last_name",
    "date_of_birth",
    "nationality",
    "gender",
    "date_of_issue",
    "date_of_expiry",
)


def _camel(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(part.capitalize() for part in rest)


@dataclass(slots=True)
class ExtractedRecord:
    """Passport fields recovered from a single document.

    Every attribute is optional: ``None`` means the value was not recovered.
    Dates are always :class:`datetime.date` instances, never raw strings.
    """

    passport_number: str | None = None
    first_name: str | None = None
    last_name: str | None = None
    date_of_birth: date | None = None
    place_of_birth: str | None = None
    nationality: str | None = None
    gender: str | None = None
    date_of_issue: date | None = None
    date_of_expiry: date | None = None
    place_of_issue: str | None = None
    document_type: str | None = None
    country_code: str | None = None
    mrz_line1: str | None = None
    mrz_line2: str | None = None
    extracted_text: str | None = None
    confidence: float | None = None

    @classmethod
    def from_fields(
        cls,
        values: Mapping[str, Any],
        *,
        extracted_text: str,
        confidence: float,
    ) -> "ExtractedRecord":
        known = {f.name for f in fields(cls)}
        kwargs = {key: value for key, value in values.items() if key in known}
        kwargs["extracted_text"] = extracted_text
        kwargs["confidence"] = max(0.0, min(100.0, float(confidence)))
        return cls(**kwargs)

    def to_dict(self) -> Dict[str, Any]:
        """camelCase mapping of the recovered fields, unset ones omitted."""
        return {
            _camel(f.name): getattr(self, f.name)
            for f in fields(self)
            if getattr(self, f.name) is not None
        }

    def missing_fields(self) -> List[str]:
        return [name for name in IDENTITY_FIELDS if getattr(self, name) is None]


__all__ = ["ExtractedRecord", "IDENTITY_FIELDS"]
