import logging
import re
from typing import Dict, List, Sequence

from passport_bot.utils.dates import parse_mrz_date

logger = logging.getLogger(__name__)

FILLER = "<"
TD3_LINE_LENGTH = 44

MRZ_LINE_RE = re.compile(r"[A-Z0-9<]{44}")
MRZ_SIGNATURE_RE = re.compile(r"P<[A-Z<]{3}[A-Z<]*<<[A-Z<]+")

CHECK_WEIGHTS = (7, 3, 1)


def has_mrz_signature(text: str) -> bool:
    return MRZ_SIGNATURE_RE.search(text) is not None


def is_mrz_candidate(line: str) -> bool:
    return "P<" in line or MRZ_LINE_RE.fullmatch(line.strip()) is not None


def find_mrz_lines(text: str) -> List[str]:
    """Return MRZ candidate lines in document order, stripped."""
    return [line.strip() for line in text.split("\n") if is_mrz_candidate(line)]


def _strip_filler(value: str) -> str:
    return value.replace(FILLER, "")


def _name_part(value: str) -> str:
    return value.replace(FILLER, " ").strip()


def check_digit(value: str) -> int:
    """ICAO 9303 check digit: 7-3-1 weighted sum modulo 10."""
    total = 0
    for idx, char in enumerate(value):
        if char.isdigit():
            char_value = int(char)
        elif "A" <= char <= "Z":
            char_value = ord(char) - ord("A") + 10
        else:
            char_value = 0
        total += char_value * CHECK_WEIGHTS[idx % 3]
    return total % 10


def verify_check_digits(line2: str) -> Dict[str, bool]:
    """Compare the TD3 data-line check digits with the values they guard."""
    line2 = re.sub(r"\s", "", line2)
    if len(line2) < TD3_LINE_LENGTH:
        return {}

    spans = {
        "passport_number": (0, 9),
        "date_of_birth": (13, 19),
        "date_of_expiry": (21, 27),
    }
    result: Dict[str, bool] = {}
    for field, (start, end) in spans.items():
        expected = line2[end]
        result[field] = expected.isdigit() and int(expected) == check_digit(line2[start:end])
    return result


def parse_mrz(lines: Sequence[str]) -> Dict[str, object]:
    """Decode a TD3 line pair. Fields that cannot be read are left out."""
    data: Dict[str, object] = {}
    if len(lines) < 2:
        return data

    line1 = re.sub(r"\s", "", lines[0])
    line2 = re.sub(r"\s", "", lines[1])

    if line1.startswith("P"):
        data["document_type"] = "Passport"
        country = _strip_filler(line1[2:5])
        if country:
            data["country_code"] = country

        surname, sep, given = line1[5:].partition("<<")
        if sep:
            data["last_name"] = _name_part(surname)
            data["first_name"] = _name_part(given)

    if len(line2) >= TD3_LINE_LENGTH:
        number = _strip_filler(line2[0:9])
        nationality = _strip_filler(line2[10:13])
        gender = line2[20:21]
        if number:
            data["passport_number"] = number
        if nationality:
            data["nationality"] = nationality
        if gender and gender != FILLER:
            data["gender"] = gender

        birth = parse_mrz_date(line2[13:19])
        expiry = parse_mrz_date(line2[21:27])
        if birth:
            data["date_of_birth"] = birth
        if expiry:
            data["date_of_expiry"] = expiry

        failed = [field for field, ok in verify_check_digits(line2).items() if not ok]
        if failed:
            logger.warning("MRZ check digit mismatch for: %s", ", ".join(failed))

    return {key: value for key, value in data.items() if value not in ("", None)}


__all__ = [
    "check_digit",
    "find_mrz_lines",
    "has_mrz_signature",
    "is_mrz_candidate",
    "parse_mrz",
    "verify_check_digits",
]
