"""
Tests for schedule rendering and input parsing helpers
"""

import json
from datetime import date
from decimal import Decimal

import pytest

from emi_calc.data_models import Installment, LoanTerms, Periodicity
from emi_calc.engine import generate_schedule, summarize_schedule
from emi_calc.formatter import (
    installment_to_dict,
    print_schedule,
    print_summary,
    schedule_to_dicts,
    summary_to_dict,
)
from emi_calc.utils import add_months, advance, decimal_from_str, parse_amount, parse_iso_date, round2


TERMS = LoanTerms(Decimal("50000"), Decimal("24"), 12, Periodicity.MONTHLY, date(2024, 1, 1))


class TestJsonEncoding:
    """Test the wire encoding of schedules"""

    def test_installment_fields(self):
        installment = Installment(
            sequence_number=3,
            due_date=date(2024, 4, 1),
            principal_component=Decimal("3878.59"),
            interest_component=Decimal("849.39"),
            total_due=Decimal("4727.98"),
            outstanding_principal_after=Decimal("38590.89"),
        )

        assert installment_to_dict(installment) == {
            "sequenceNumber": 3,
            "dueDate": "2024-04-01",
            "principalComponent": 3878.59,
            "interestComponent": 849.39,
            "totalDue": 4727.98,
            "outstandingPrincipalAfter": 38590.89,
        }

    def test_amounts_rounded_to_cents(self):
        installment = Installment(1, date(2024, 2, 1), Decimal("10.005"), Decimal("0"),
                                  Decimal("10.005"), Decimal("0"))
        encoded = installment_to_dict(installment)
        assert encoded["principalComponent"] == 10.01
        assert encoded["outstandingPrincipalAfter"] == 0.0

    def test_schedule_is_json_serialisable(self):
        schedule = generate_schedule(TERMS)
        encoded = json.loads(json.dumps(schedule_to_dicts(schedule)))

        assert len(encoded) == 12
        assert [row["sequenceNumber"] for row in encoded] == list(range(1, 13))
        assert encoded[-1]["outstandingPrincipalAfter"] == 0

    def test_summary_fields(self):
        schedule = generate_schedule(TERMS)
        encoded = summary_to_dict(summarize_schedule(TERMS, schedule))

        assert encoded["emi"] == 4727.98
        assert encoded["principal"] == 50000.0
        assert encoded["tenureCount"] == 12
        assert encoded["periodicity"] == "MONTHLY"
        assert encoded["firstDueDate"] == "2024-02-01"
        assert encoded["lastDueDate"] == "2025-01-01"


class TestTextOutput:
    """Test terminal rendering"""

    def test_print_schedule(self, capsys):
        print_schedule(generate_schedule(TERMS))
        lines = capsys.readouterr().out.splitlines()

        assert lines[0].split("\t") == ["No", "DueDate", "Principal", "Interest", "TotalDue", "Outstanding"]
        assert len(lines) == 13
        assert lines[1].split("\t") == ["1", "2024-02-01", "3727.98", "1000.00", "4727.98", "46272.02"]

    def test_print_summary(self, capsys):
        schedule = generate_schedule(TERMS)
        print_summary(summarize_schedule(TERMS, schedule))
        out = capsys.readouterr().out

        assert "EMI                : 4727.98" in out
        assert "Installments       : 12 (monthly)" in out


class TestUtils:
    """Test parsing and date helpers"""

    def test_round2_half_up(self):
        assert round2(Decimal("0.005")) == Decimal("0.01")
        assert round2(Decimal("2.344999")) == Decimal("2.34")

    def test_add_months_clamps_day(self):
        assert add_months(date(2023, 1, 31), 1) == date(2023, 2, 28)
        assert add_months(date(2024, 11, 30), 2) == date(2025, 1, 30)

    def test_advance(self):
        assert advance(date(2024, 12, 28), Periodicity.WEEKLY) == date(2025, 1, 4)
        assert advance(date(2024, 12, 28), Periodicity.MONTHLY) == date(2025, 1, 28)

    def test_parse_iso_date(self):
        assert parse_iso_date(" 2025-03-20 ") == date(2025, 3, 20)
        with pytest.raises(ValueError):
            parse_iso_date("2025-02-30")
        with pytest.raises(ValueError):
            parse_iso_date("03/20/2025")

    def test_parse_amount(self):
        assert parse_amount("50,000") == Decimal("50000")
        assert parse_amount("15k") == Decimal("15000")
        assert parse_amount("1.5m") == Decimal("1500000.0")
        with pytest.raises(ValueError):
            parse_amount("lots")

    def test_parse_amount_out_of_range(self):
        with pytest.raises(ValueError, match="out of range"):
            parse_amount("9e999999k")

    def test_decimal_from_str(self):
        assert decimal_from_str("1,234.50") == Decimal("1234.50")
        with pytest.raises(ValueError):
            decimal_from_str("12a")
