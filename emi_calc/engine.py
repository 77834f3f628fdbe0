"""Core calculation engine for the EMI calculator.

This module implements the fixed-installment (annuity) reducing-balance
method used for microfinance loans. A schedule is generated in one call from
a ``LoanTerms`` value: the periodic payment is computed once, then the tenure
is walked period by period, charging interest on the balance outstanding at
the start of each period and applying the rest of the payment to principal.
The last installment absorbs the accumulated rounding residual so the loan
always amortizes to exactly zero.

Every function here is pure. Inputs are validated before any installment is
computed, so a caller either gets a complete schedule or an
``InvalidTermsError``.
"""

from __future__ import annotations

from dataclasses import replace
from datetime import date, datetime
from decimal import (
    ROUND_HALF_EVEN,
    Context,
    Decimal,
    DecimalException,
    DivisionByZero,
    InvalidOperation,
    Overflow,
    localcontext,
)
from typing import List

from .data_models import Installment, LoanTerms, Periodicity, Schedule, ScheduleSummary
from .errors import InvalidTermsError, NumericDomainError
from .utils import advance, round2

ZERO = Decimal("0")

# Fixed context for every calculation; the caller's thread context is ignored.
_CONTEXT = Context(
    prec=28,
    rounding=ROUND_HALF_EVEN,
    Emin=-999999,
    Emax=999999,
    traps=[DivisionByZero, Overflow, InvalidOperation],
    flags=[],
)

_PERIODS_PER_YEAR = {
    Periodicity.MONTHLY: 12,
    Periodicity.WEEKLY: 52,
}


def periods_per_year(periodicity: Periodicity) -> int:
    return _PERIODS_PER_YEAR[Periodicity.parse(periodicity)]


def periodic_rate(annual_rate_percent: Decimal, periodicity: Periodicity) -> Decimal:
    """Convert a nominal annual rate in percent into a per-period fraction."""
    return Decimal(annual_rate_percent) / Decimal(100) / Decimal(periods_per_year(periodicity))


def _annuity_payment(principal: Decimal, rate: Decimal, tenure: int) -> Decimal:
    """Return the unrounded fixed payment for a loan.

    The formula is:

        payment = P * r * (1 + r)^n / ((1 + r)^n - 1)

    where ``P`` is the principal, ``r`` the periodic rate and ``n`` the
    number of installments. When the rate is zero (or too small to register
    at the working precision) the payment simplifies to ``P / n``.
    """
    if rate == 0:
        return principal / Decimal(tenure)
    try:
        factor = (1 + rate) ** tenure
        if factor == 1:
            return principal / Decimal(tenure)
        return principal * rate * factor / (factor - 1)
    except DecimalException as exc:
        raise NumericDomainError(
            "annual_rate_percent", f"(1 + r)^n overflows for {tenure} periods"
        ) from exc


def _fixed_payment(terms: LoanTerms, rate: Decimal) -> Decimal:
    payment = _annuity_payment(terms.principal, rate, terms.tenure_count)
    try:
        return round2(payment)
    except DecimalException as exc:
        raise NumericDomainError("principal", "too large to express in whole cents") from exc


def _to_decimal(field: str, value: object) -> Decimal:
    if isinstance(value, bool):
        raise InvalidTermsError(field, "must be a number")
    if isinstance(value, Decimal):
        number = value
    else:
        try:
            number = Decimal(str(value))
        except InvalidOperation as exc:
            raise InvalidTermsError(field, "must be a number") from exc
    if not number.is_finite():
        raise InvalidTermsError(field, "must be a finite number")
    return number


def validate_terms(terms: LoanTerms) -> LoanTerms:
    """Check every constraint on ``terms`` and return a normalized copy.

    Amounts become ``Decimal``, the periodicity a ``Periodicity`` member and
    the start date a plain ``date``.

    Raises
    ------
    InvalidTermsError
        Naming the first field that violates its constraint.
    """
    principal = _to_decimal("principal", terms.principal)
    if principal <= 0:
        raise InvalidTermsError("principal", "must be positive")
    with localcontext(_CONTEXT):
        try:
            in_cents = round2(principal)
        except DecimalException as exc:
            raise NumericDomainError(
                "principal", "too large to express in whole cents"
            ) from exc
    if in_cents != principal:
        raise InvalidTermsError("principal", "must be a whole number of cents")

    rate = _to_decimal("annual_rate_percent", terms.annual_rate_percent)
    if rate < 0:
        raise InvalidTermsError("annual_rate_percent", "must not be negative")

    tenure = terms.tenure_count
    if isinstance(tenure, bool) or not isinstance(tenure, int):
        raise InvalidTermsError("tenure_count", "must be an integer")
    if tenure < 1:
        raise InvalidTermsError("tenure_count", "must be at least 1")

    periodicity = Periodicity.parse(terms.periodicity)

    start = terms.start_date
    if isinstance(start, datetime):
        start = start.date()
    elif not isinstance(start, date):
        raise InvalidTermsError("start_date", "must be a calendar date")

    return replace(
        terms,
        principal=principal,
        annual_rate_percent=rate,
        periodicity=periodicity,
        start_date=start,
    )


def _due_dates(start: date, periodicity: Periodicity, tenure: int) -> List[date]:
    dates: List[date] = []
    current = start
    try:
        for _ in range(tenure):
            current = advance(current, periodicity)
            dates.append(current)
    except (OverflowError, ValueError) as exc:
        raise NumericDomainError(
            "tenure_count", "due dates run past the last representable calendar date"
        ) from exc
    return dates


def calculate_emi(
    principal: Decimal,
    annual_rate_percent: Decimal,
    tenure_count: int,
    periodicity: Periodicity = Periodicity.MONTHLY,
) -> Decimal:
    """Return the fixed periodic payment, rounded to whole cents."""
    terms = validate_terms(
        LoanTerms(principal, annual_rate_percent, tenure_count, periodicity, date.min)
    )
    with localcontext(_CONTEXT):
        rate = periodic_rate(terms.annual_rate_percent, terms.periodicity)
        return _fixed_payment(terms, rate)


def generate_schedule(terms: LoanTerms) -> Schedule:
    """Compute the amortization schedule for a loan.

    Parameters
    ----------
    terms: LoanTerms
        Principal, rate, tenure, periodicity and disbursement date.

    Returns
    -------
    Schedule
        A tuple of exactly ``terms.tenure_count`` installments ordered by
        sequence number. The principal components sum to the principal and
        the last installment leaves an outstanding balance of zero.

    Raises
    ------
    InvalidTermsError
        If any input constraint is violated. Nothing is computed in that case.
    """
    terms = validate_terms(terms)
    tenure = terms.tenure_count
    due_dates = _due_dates(terms.start_date, terms.periodicity, tenure)

    with localcontext(_CONTEXT):
        rate = periodic_rate(terms.annual_rate_percent, terms.periodicity)
        payment = _fixed_payment(terms, rate)

        installments: List[Installment] = []
        balance = terms.principal
        for number, due_date in enumerate(due_dates, start=1):
            # Interest accrues on the balance before this period's repayment.
            interest = round2(balance * rate)
            principal_part = max(ZERO, payment - interest)
            if number == tenure or principal_part > balance:
                principal_part = balance
            balance = max(ZERO, balance - principal_part)
            installments.append(
                Installment(
                    sequence_number=number,
                    due_date=due_date,
                    principal_component=principal_part,
                    interest_component=interest,
                    total_due=principal_part + interest,
                    outstanding_principal_after=balance,
                )
            )
    return tuple(installments)


def summarize_schedule(terms: LoanTerms, schedule: Schedule) -> ScheduleSummary:
    """Return totals for a schedule generated from ``terms``.

    Raises
    ------
    ValueError
        If ``schedule`` is empty.
    """
    if not schedule:
        raise ValueError("Cannot summarize an empty schedule")
    terms = validate_terms(terms)
    total_interest = sum((i.interest_component for i in schedule), ZERO)
    total_payable = sum((i.total_due for i in schedule), ZERO)
    return ScheduleSummary(
        principal=terms.principal,
        emi=schedule[0].total_due,
        total_interest=total_interest,
        total_payable=total_payable,
        tenure_count=len(schedule),
        periodicity=terms.periodicity,
        first_due_date=schedule[0].due_date,
        last_due_date=schedule[-1].due_date,
    )
