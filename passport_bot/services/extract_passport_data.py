import re
from dataclasses import dataclass
from typing import Callable, Dict, Optional

from passport_bot.services.mrz import find_mrz_lines, has_mrz_signature, parse_mrz
from passport_bot.utils.dates import parse_date

# --- Regex building blocks ---
# Label phrases that open another field; a value run stops in front of them.
LABEL_PHRASES = (
    r"surname|last\s*name|family\s*name|given\s*names?|first\s*names?|forenames?"
    r"|date\s*of|birth\s*date|born|place\s*of|birthplace|nationality|citizenship|citizen"
    r"|sex|gender|issued|issuing|expiry\s*date|expires|valid\s*until|authority"
    r"|passport\s*(?:no|number|#)|type|country\s*code"
)
_LABEL_STOP = rf"(?i:{LABEL_PHRASES})(?![A-Za-z])"
_SEPARATORS = r"[\s:.#]*"

DATE_VALUE = r"(?P<value>\d{1,2}[\s\-/](?:[A-Za-z]{3,}|\d{1,2})[\s\-/]\d{2,4})(?!\d)"
PASSPORT_NUMBER_VALUE = r"(?<![A-Za-z0-9])(?P<value>[A-Za-z]{1,2}\d{6,9})(?![A-Za-z0-9])"
GENDER_VALUE = r"(?P<value>(?i:male|female|m|f))(?![A-Za-z])"
COUNTRY_CODE_VALUE = r"(?P<value>[A-Za-z]{3})(?![A-Za-z])"


def _words(sep: str = r"\s") -> str:
    """Run of words that stops before the next field label.

    The first word is taken as is, so values such as ``BORN`` or
    ``PASSPORT OFFICE`` survive.
    """
    token = r"[A-Za-z][A-Za-z'\-]*"
    return rf"(?P<value>{token}(?:{sep}(?!{_LABEL_STOP}){token})*)"


# --- Normalisers ---
def _clean(value: str) -> Optional[str]:
    return value.strip(" ,'-") or None


def _gender(value: str) -> str:
    return value[0].upper()


def _upper(value: str) -> str:
    return value.upper()


@dataclass(frozen=True)
class FieldRule:
    """One label-anchored pattern for a single record field."""

    name: str
    label: str
    value: str
    normalize: Callable[[str], object] = _clean
    label_optional: bool = False

    def match(self, text: str) -> object:
        found = re.search(rf"\b(?i:{self.label}){_SEPARATORS}{self.value}", text)
        if found is None and self.label_optional:
            found = re.search(self.value, text)
        if found is None:
            return None
        return self.normalize(found.group("value"))


FIELD_RULES = (
    FieldRule(
        "passport_number",
        r"passport\s*(?:no|number|#)?",
        PASSPORT_NUMBER_VALUE,
        _upper,
        label_optional=True,
    ),
    FieldRule("last_name", r"surname|last\s*name|family\s*name", _words()),
    FieldRule("first_name", r"given\s*names?|first\s*names?|forenames?", _words()),
    FieldRule(
        "date_of_birth", r"date\s*of\s*birth|birth\s*date|born", DATE_VALUE, parse_date
    ),
    FieldRule("date_of_issue", r"date\s*of\s*issue|issued", DATE_VALUE, parse_date),
    FieldRule(
        "date_of_expiry",
        r"date\s*of\s*expiry|expiry\s*date|expires|valid\s*until",
        DATE_VALUE,
        parse_date,
    ),
    FieldRule("nationality", r"nationality|citizenship|citizen", _words()),
    FieldRule("gender", r"sex|gender", GENDER_VALUE, _gender),
    FieldRule("place_of_birth", r"place\s*of\s*birth|birthplace", _words(r",?\s")),
    FieldRule(
        "place_of_issue",
        r"place\s*of\s*issue|issuing\s*authority|authority",
        _words(r",?\s"),
    ),
    FieldRule(
        "country_code",
        r"country\s*code|issuing\s*(?:state|country)",
        COUNTRY_CODE_VALUE,
        _upper,
    ),
)


def normalize_text(text: str) -> str:
    return re.sub(r"\s+", " ", text).strip()


def extract_fields(text: str) -> Dict[str, object]:
    """Recover passport fields from free OCR text. Missing fields are omitted."""
    cleaned = normalize_text(text)

    fields: Dict[str, object] = {}
    for rule in FIELD_RULES:
        value = rule.match(cleaned)
        if value is not None:
            fields[rule.name] = value

    if has_mrz_signature(cleaned):
        # MRZ lines are looked up in the original text, where line breaks survive.
        mrz_lines = find_mrz_lines(text)
        if len(mrz_lines) >= 2:
            merged = parse_mrz(mrz_lines)
            merged["mrz_line1"], merged["mrz_line2"] = mrz_lines[0], mrz_lines[1]
            # Precedence: label matches are applied over the MRZ values, so the
            # MRZ only fills fields the labelled text did not provide.
            merged.update(fields)
            fields = merged

    return fields


__all__ = ["FIELD_RULES", "FieldRule", "extract_fields", "normalize_text"]
