"""MRZ detection, TD3 decoding and check digits."""

import logging
from datetime import date

from passport_bot.services.mrz import (
    check_digit,
    find_mrz_lines,
    has_mrz_signature,
    is_mrz_candidate,
    parse_mrz,
    verify_check_digits,
)

from conftest import MRZ_LINE1, MRZ_LINE2


def _td3_pair(country, surname, given, number, nationality, birth, gender, expiry):
    """Build a TD3 line pair the way a passport printer would."""
    names = f"{surname.replace(' ', '<')}<<{given.replace(' ', '<')}"
    line1 = f"P<{country:<<3}{names}".ljust(44, "<")
    number = number.ljust(9, "<")
    line2 = (
        f"{number}{check_digit(number)}{nationality:<<3}"
        f"{birth}{check_digit(birth)}{gender}{expiry}{check_digit(expiry)}"
    ).ljust(44, "<")
    return line1, line2


class TestDetection:
    def test_candidate_rules(self):
        assert is_mrz_candidate("P<UTOERIKSSON<<ANNA")
        assert is_mrz_candidate("  " + MRZ_LINE2 + "  ")
        assert not is_mrz_candidate(MRZ_LINE2[:-1])
        assert not is_mrz_candidate("Surname DOE")

    def test_find_lines_in_document_order(self):
        text = f"PASSPORT\nSurname DOE\n{MRZ_LINE1}\n {MRZ_LINE2} \n"
        assert find_mrz_lines(text) == [MRZ_LINE1, MRZ_LINE2]

    def test_signature(self):
        assert has_mrz_signature(MRZ_LINE1)
        assert has_mrz_signature("P<D<<MUSTERMANN<<ERIKA<<<")
        assert not has_mrz_signature("Passport P< nothing here")


class TestParseMrz:
    def test_reference_pair(self):
        data = parse_mrz([MRZ_LINE1, MRZ_LINE2])
        assert data == {
            "document_type": "Passport",
            "country_code": "USA",
            "last_name": "DOE",
            "first_name": "JOHN",
            "passport_number": "L898902C3",
            "nationality": "USA",
            "date_of_birth": date(1969, 8, 6),
            "gender": "F",
            "date_of_expiry": date(1995, 12, 31),
        }

    def test_needs_two_lines(self):
        assert parse_mrz([MRZ_LINE1]) == {}
        assert parse_mrz([]) == {}

    def test_inner_whitespace_is_ignored(self):
        data = parse_mrz(["P<USA DOE<<JOHN", MRZ_LINE2[:20] + " " + MRZ_LINE2[20:]])
        assert data["last_name"] == "DOE"
        assert data["gender"] == "F"

    def test_non_passport_first_line(self):
        data = parse_mrz(["I<USADOE<<JOHN<<<<<<", MRZ_LINE2])
        assert "document_type" not in data
        assert "last_name" not in data
        assert data["passport_number"] == "L898902C3"

    def test_no_name_separator_leaves_names_unset(self):
        data = parse_mrz(["P<USADOE<JOHN", MRZ_LINE2])
        assert "last_name" not in data
        assert "first_name" not in data
        assert data["country_code"] == "USA"

    def test_short_second_line_is_skipped(self):
        data = parse_mrz([MRZ_LINE1, MRZ_LINE2[:30]])
        assert "passport_number" not in data
        assert data["last_name"] == "DOE"

    def test_multiple_given_names(self):
        data = parse_mrz(["P<UTOERIKSSON<<ANNA<MARIA<<<<<<<<<<<<<<<<<<<", MRZ_LINE2])
        assert data["last_name"] == "ERIKSSON"
        assert data["first_name"] == "ANNA MARIA"
        assert data["country_code"] == "UTO"

    def test_decoded_fields_rebuild_the_pair(self):
        line1, line2 = _td3_pair("GBR", "SMITH JONES", "MARY ANN", "123456789", "GBR", "850214", "F", "300101")
        data = parse_mrz([line1, line2])
        assert data["last_name"] == "SMITH JONES"
        assert data["first_name"] == "MARY ANN"
        rebuilt = _td3_pair(
            data["country_code"],
            data["last_name"],
            data["first_name"],
            data["passport_number"],
            data["nationality"],
            data["date_of_birth"].strftime("%y%m%d"),
            data["gender"],
            data["date_of_expiry"].strftime("%y%m%d"),
        )
        assert rebuilt == (line1, line2)


class TestCheckDigits:
    def test_known_values(self):
        assert check_digit("L898902C3") == 6
        assert check_digit("690806") == 1
        assert check_digit("<<<<") == 0

    def test_verify(self):
        result = verify_check_digits(MRZ_LINE2)
        assert result["passport_number"] is True
        assert result["date_of_birth"] is True

    def test_mismatch_is_logged_but_fields_kept(self, caplog):
        broken = "L898902C35" + MRZ_LINE2[10:]
        with caplog.at_level(logging.WARNING):
            data = parse_mrz([MRZ_LINE1, broken])
        assert data["passport_number"] == "L898902C3"
        assert "passport_number" in caplog.text

    def test_short_line(self):
        assert verify_check_digits("L898902C3") == {}
