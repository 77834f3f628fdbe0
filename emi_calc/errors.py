"""Exceptions raised by the EMI calculator.

Every failure of the calculation core is an input problem, so there is a
single error family rooted at ``InvalidTermsError``. The exception carries the
name of the offending ``LoanTerms`` field and a short reason so that callers
(the CLI, the web service) can build their own user-facing messages.
"""

from __future__ import annotations


class InvalidTermsError(ValueError):
    """Loan terms that cannot produce a schedule.

    Attributes
    ----------
    field: str
        Name of the ``LoanTerms`` attribute that failed validation.
    reason: str
        Short description of the violated constraint.
    """

    def __init__(self, field: str, reason: str) -> None:
        super().__init__(f"{field}: {reason}")
        self.field = field
        self.reason = reason


class NumericDomainError(InvalidTermsError):
    """Terms that are individually valid but overflow the decimal arithmetic."""
