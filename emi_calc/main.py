"""Command-line interface for the EMI calculator.

This module uses the ``click`` library to implement a multi-command
interface. Users can compute a full repayment schedule for one loan, view
only its summary, or generate schedules for a whole file of disbursed loans.
Results can be printed to the terminal, exported to JSON or, for batches,
written to the schedule database.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Tuple

import click

from .data_models import LoanTerms, Periodicity, Schedule, ScheduleSummary
from .engine import generate_schedule, summarize_schedule
from .errors import InvalidTermsError
from .formatter import print_schedule, print_summary, schedule_to_dicts, summary_to_dict
from .logging_config import get_logger, setup_logging
from .schedule_store import MAX_LOAN_ID_LENGTH, create_store_from_env
from .utils import decimal_from_str, parse_amount, parse_iso_date

logger = get_logger(__name__)

MAX_PRINTED_ROWS = 120


def _parse_tenure(value: Any) -> int:
    if isinstance(value, bool):
        raise ValueError(f"Invalid tenure: {value}")
    if isinstance(value, int):
        return value
    if isinstance(value, str) and value.strip().lstrip("-").isdigit():
        return int(value.strip())
    raise ValueError(f"Invalid tenure: {value}")


# Wire field name, LoanTerms attribute, parser.
_TERM_FIELDS = (
    ("principal", "principal", lambda v: parse_amount(str(v))),
    ("annualRatePercent", "annual_rate_percent", lambda v: decimal_from_str(str(v))),
    ("tenureCount", "tenure_count", _parse_tenure),
    ("periodicity", "periodicity", Periodicity.parse),
    ("startDate", "start_date", lambda v: parse_iso_date(str(v))),
)


def terms_from_mapping(data: Mapping[str, Any]) -> LoanTerms:
    """Build ``LoanTerms`` from a JSON-style mapping.

    Keys follow the wire encoding (``principal``, ``annualRatePercent``,
    ``tenureCount``, ``periodicity``, ``startDate``). ``periodicity`` defaults
    to monthly. Malformed or missing values raise ``InvalidTermsError`` naming
    the ``LoanTerms`` attribute; range checks are left to the engine.
    """
    values: Dict[str, Any] = {}
    for key, attr, parser in _TERM_FIELDS:
        raw = data.get(key)
        if raw is None or raw == "":
            if attr == "periodicity":
                values[attr] = Periodicity.MONTHLY
                continue
            raise InvalidTermsError(attr, "is required")
        try:
            values[attr] = parser(raw)
        except InvalidTermsError:
            raise
        except ValueError as exc:
            raise InvalidTermsError(attr, str(exc)) from exc
    return LoanTerms(**values)


def build_terms_from_options(
    principal: str,
    rate: str,
    tenure: int,
    periodicity: str,
    start_date: str,
) -> LoanTerms:
    return _bad_parameter_on_invalid(
        terms_from_mapping,
        {
            "principal": principal,
            "annualRatePercent": rate,
            "tenureCount": tenure,
            "periodicity": periodicity,
            "startDate": start_date,
        },
    )


def _bad_parameter_on_invalid(func, *args):
    try:
        return func(*args)
    except InvalidTermsError as exc:
        logger.warning("Rejected loan terms: %s", exc.reason, extra={"field": exc.field})
        raise click.BadParameter(exc.reason, param_hint=exc.field) from exc


def compute(terms: LoanTerms) -> Tuple[Schedule, ScheduleSummary]:
    """Generate the schedule for ``terms`` together with its summary."""
    schedule = generate_schedule(terms)
    return schedule, summarize_schedule(terms, schedule)


def export_to_json(path: Path, payload: Dict[str, Any]) -> None:
    with path.open("w", encoding="utf-8") as f:
        json.dump(payload, f, indent=2)


def schedule_payload(schedule: Schedule, summary: ScheduleSummary) -> Dict[str, Any]:
    return {"summary": summary_to_dict(summary), "schedule": schedule_to_dicts(schedule)}


def _json_output_path(output: str) -> Path:
    path = Path(output)
    if path.suffix.lower() != ".json":
        raise click.BadParameter("Unsupported output format; use .json", param_hint="--output")
    return path


def loan_options(func):
    """Attach the loan term options shared by ``schedule`` and ``summary``."""
    options = [
        click.option("--principal", "-p", "principal", required=True, help="Amount financed (accepts k/m suffixes)"),
        click.option("--rate", "-r", "rate", required=True, help="Nominal annual interest rate (percent)"),
        click.option("--tenure", "-t", "tenure", required=True, type=int, help="Number of installments"),
        click.option(
            "--periodicity",
            "periodicity",
            type=click.Choice(["monthly", "weekly"], case_sensitive=False),
            default="monthly",
            help="Installment frequency",
        ),
        click.option("--start-date", "-s", "start_date", required=True, help="Disbursement date (YYYY-MM-DD)"),
        click.option("--output", "output", type=str, help="Output file path (.json)"),
    ]
    for option in reversed(options):
        func = option(func)
    return func


@click.group()
def cli() -> None:
    """Generate EMI repayment schedules for reducing-balance loans."""
    setup_logging()


@cli.command()
@loan_options
def schedule(
    principal: str,
    rate: str,
    tenure: int,
    periodicity: str,
    start_date: str,
    output: Optional[str],
) -> None:
    """Compute and print the full repayment schedule."""
    terms = build_terms_from_options(principal, rate, tenure, periodicity, start_date)
    schedule_entries, summary_data = _bad_parameter_on_invalid(compute, terms)
    logger.info("Generated schedule", extra={"installments": len(schedule_entries)})
    if output:
        path = _json_output_path(output)
        export_to_json(path, schedule_payload(schedule_entries, summary_data))
        click.echo(f"Schedule exported to {path}")
        return
    print_summary(summary_data)
    # Limit schedule length printed to avoid flooding the terminal
    if len(schedule_entries) > MAX_PRINTED_ROWS:
        click.echo(
            f"Schedule has {len(schedule_entries)} rows; showing first {MAX_PRINTED_ROWS} rows."
        )
        print_schedule(schedule_entries[:MAX_PRINTED_ROWS])
    else:
        print_schedule(schedule_entries)


@cli.command()
@loan_options
def summary(
    principal: str,
    rate: str,
    tenure: int,
    periodicity: str,
    start_date: str,
    output: Optional[str],
) -> None:
    """Compute and print only the summary figures for a loan."""
    terms = build_terms_from_options(principal, rate, tenure, periodicity, start_date)
    _, summary_data = _bad_parameter_on_invalid(compute, terms)
    if output:
        path = _json_output_path(output)
        export_to_json(path, {"summary": summary_to_dict(summary_data)})
        click.echo(f"Summary exported to {path}")
    else:
        print_summary(summary_data)


@cli.command()
@click.argument("loans_file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--output", "output", type=str, help="Write all schedules to this .json file")
@click.option(
    "--database-url",
    "database_url",
    envvar="SCHEDULE_DATABASE_URL",
    help="Store schedules in this database (replacing existing ones)",
)
def batch(loans_file: Path, output: Optional[str], database_url: Optional[str]) -> None:
    """Generate schedules for every loan in a JSON file.

    The file holds a list of objects with ``loanId``, ``principal``,
    ``annualRatePercent``, ``tenureCount``, ``periodicity`` and
    ``startDate``. Each loan is handled on its own: a loan with invalid terms
    is reported and skipped without affecting the others.
    """
    path = _json_output_path(output) if output else None
    try:
        with loans_file.open("r", encoding="utf-8") as f:
            records = json.load(f)
    except json.JSONDecodeError as exc:
        raise click.BadParameter(f"Not valid JSON: {exc}", param_hint="LOANS_FILE") from exc
    if not isinstance(records, list):
        raise click.BadParameter("Expected a JSON array of loans", param_hint="LOANS_FILE")

    store = create_store_from_env(database_url) if database_url else None
    results: Dict[str, Any] = {}
    failed: List[str] = []
    for index, record in enumerate(records, start=1):
        loan_id = str(record.get("loanId") or "") if isinstance(record, dict) else ""
        label = loan_id or f"record {index}"
        try:
            if not loan_id:
                raise InvalidTermsError("loanId", "is required")
            if len(loan_id) > MAX_LOAN_ID_LENGTH:
                raise InvalidTermsError(
                    "loanId", f"must be at most {MAX_LOAN_ID_LENGTH} characters"
                )
            terms = terms_from_mapping(record)
            schedule_entries, summary_data = compute(terms)
        except InvalidTermsError as exc:
            failed.append(label)
            logger.warning("Skipped loan: %s", exc, extra={"loan_id": label, "field": exc.field})
            click.echo(f"{label}: {exc}", err=True)
            continue
        if store is not None:
            store.replace_schedule(loan_id, schedule_entries)
        results[loan_id] = schedule_payload(schedule_entries, summary_data)
        if path is None and store is None:
            click.echo(
                f"{loan_id}\t{summary_data.emi:.2f} x {summary_data.tenure_count}"
                f"\t{summary_data.first_due_date.isoformat()}"
            )

    if path is not None:
        export_to_json(path, results)
        click.echo(f"Schedules exported to {path}")
    click.echo(f"Generated {len(results)} schedules")
    if failed:
        raise click.ClickException(f"{len(failed)} of {len(records)} loans failed: {', '.join(failed)}")


if __name__ == "__main__":
    cli()
