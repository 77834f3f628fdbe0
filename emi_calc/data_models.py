"""Data models for the EMI calculator.

This module defines the values exchanged with the calculation engine: the
loan terms a schedule is generated from, the installments it produces and a
summary of the resulting schedule. All of them are frozen dataclasses, so a
generated schedule can be handed to storage or rendering code without any
risk of it being changed in place.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Tuple, Union

from .errors import InvalidTermsError


class Periodicity(Enum):
    """How often installments fall due."""

    MONTHLY = "MONTHLY"
    WEEKLY = "WEEKLY"

    @classmethod
    def parse(cls, value: Union["Periodicity", str]) -> "Periodicity":
        """Return the member matching ``value`` (case-insensitive name)."""
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            try:
                return cls[value.strip().upper()]
            except KeyError:
                pass
        raise InvalidTermsError("periodicity", f"unsupported periodicity {value!r}")


@dataclass(frozen=True)
class LoanTerms:
    """Parameters of a loan, as supplied by the origination process.

    Attributes
    ----------
    principal: Decimal
        The amount financed. Must be positive.
    annual_rate_percent: Decimal
        Nominal annual interest rate in percent (``24`` means 24 %). Zero is
        an interest-free loan.
    tenure_count: int
        Number of installments.
    periodicity: Periodicity
        Installment frequency. Determines both the rate divisor and the step
        between due dates.
    start_date: date
        Disbursement date. The first installment falls due one period later.
    """

    principal: Decimal
    annual_rate_percent: Decimal
    tenure_count: int
    periodicity: Periodicity
    start_date: date


@dataclass(frozen=True)
class Installment:
    """A single row of an amortization schedule."""

    sequence_number: int
    due_date: date
    principal_component: Decimal
    interest_component: Decimal
    total_due: Decimal
    outstanding_principal_after: Decimal


# Ordered by sequence number, one entry per tenure position.
Schedule = Tuple[Installment, ...]


@dataclass(frozen=True)
class ScheduleSummary:
    """Aggregate figures for a generated schedule.

    ``emi`` is the regular installment amount quoted to the borrower; the last
    installment may differ from it by the accumulated rounding residual.
    """

    principal: Decimal
    emi: Decimal
    total_interest: Decimal
    total_payable: Decimal
    tenure_count: int
    periodicity: Periodicity
    first_due_date: date
    last_due_date: date
