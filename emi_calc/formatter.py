"""Output helpers for the EMI calculator.

This module renders schedules and summaries either as plain text tables for
the terminal or as JSON-serialisable dictionaries. The dictionary form is the
wire encoding shared by the CLI exports and the web service: camelCase field
names, amounts as numbers with two decimal places and dates as ISO-8601
calendar dates.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any, Dict, Iterable, List

from .data_models import Installment, ScheduleSummary
from .utils import round2


def _amount(value: Decimal) -> float:
    return float(round2(value))


def installment_to_dict(installment: Installment) -> Dict[str, Any]:
    return {
        "sequenceNumber": installment.sequence_number,
        "dueDate": installment.due_date.isoformat(),
        "principalComponent": _amount(installment.principal_component),
        "interestComponent": _amount(installment.interest_component),
        "totalDue": _amount(installment.total_due),
        "outstandingPrincipalAfter": _amount(installment.outstanding_principal_after),
    }


def schedule_to_dicts(schedule: Iterable[Installment]) -> List[Dict[str, Any]]:
    """Convert schedule entries into JSON-serialisable dictionaries."""
    return [installment_to_dict(entry) for entry in schedule]


def summary_to_dict(summary: ScheduleSummary) -> Dict[str, Any]:
    return {
        "principal": _amount(summary.principal),
        "emi": _amount(summary.emi),
        "totalInterest": _amount(summary.total_interest),
        "totalPayable": _amount(summary.total_payable),
        "tenureCount": summary.tenure_count,
        "periodicity": summary.periodicity.value,
        "firstDueDate": summary.first_due_date.isoformat(),
        "lastDueDate": summary.last_due_date.isoformat(),
    }


def print_summary(summary: ScheduleSummary) -> None:
    """Print a summary of loan metrics in a human-readable format."""
    print("Summary")
    print("-" * 72)
    print(f"Principal          : {summary.principal:.2f}")
    print(f"EMI                : {summary.emi:.2f}")
    print(f"Total interest     : {summary.total_interest:.2f}")
    print(f"Total payable      : {summary.total_payable:.2f}")
    print(f"Installments       : {summary.tenure_count} ({summary.periodicity.value.lower()})")
    print(f"First due date     : {summary.first_due_date.isoformat()}")
    print(f"Last due date      : {summary.last_due_date.isoformat()}")
    print("-" * 72)


def print_schedule(schedule: Iterable[Installment]) -> None:
    """Print the amortization schedule as a simple table."""
    headers = [
        "No",
        "DueDate",
        "Principal",
        "Interest",
        "TotalDue",
        "Outstanding",
    ]
    print("\t".join(headers))
    for entry in schedule:
        row = [
            str(entry.sequence_number),
            entry.due_date.isoformat(),
            f"{entry.principal_component:.2f}",
            f"{entry.interest_component:.2f}",
            f"{entry.total_due:.2f}",
            f"{entry.outstanding_principal_after:.2f}",
        ]
        print("\t".join(row))
