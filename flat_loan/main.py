"""Command-line interface for the flat loan schedule engine.

This module uses the ``click`` library to implement a multi-command interface.
Users can compute full flat-rate repayment schedules or view only the totals.
Results can be printed to the terminal or exported to JSON/CSV files, in
either the rich or the slim output shape.
"""

from __future__ import annotations

import csv
import json
import logging
from decimal import Decimal
from pathlib import Path
from typing import Optional, Tuple

import click

from .assembler import SHAPES, ScheduleAssembler
from .currencies import lookup_currency, monetary_currency
from .data_models import CurrencyMetadata, LoanTerms, PeriodFrequencyType, Schedule
from .engine import AmortizationEngine, FlatLoanScheduleGenerator
from .exceptions import FlatLoanError
from .formatter import print_schedule, print_summary
from .frequency import DueDateSequencer, PeriodsPerYearCalculator
from .money import Money
from .utils import decimal_from_str, parse_date

FREQUENCY_CHOICES = [f.value for f in PeriodFrequencyType]


def parse_amount(value: str) -> Decimal:
    """Parse a numeric string with optional suffixes.

    Accepts plain numbers ("12000.00") and shorthand with ``k``/``m`` suffixes
    (e.g., "12k" meaning 12_000). Returns a Decimal.
    """
    value = value.strip().lower()
    value = value.replace(",", "")
    factor = Decimal(1)
    if value.endswith("k"):
        factor = Decimal(1_000)
        value = value[:-1]
    elif value.endswith("m"):
        factor = Decimal(1_000_000)
        value = value[:-1]
    try:
        amount = decimal_from_str(value)
        return amount if factor == 1 else amount * factor
    except ValueError:
        raise click.BadParameter(f"Invalid amount: {value}")


def build_terms_from_options(
    principal: str,
    rate: str,
    repayments: int,
    every: int,
    frequency: str,
    disbursement_date: str,
    loan_term: Optional[int] = None,
    loan_term_type: Optional[str] = None,
    first_repayment_date: Optional[str] = None,
    currency: str = "USD",
    digits: Optional[int] = None,
) -> Tuple[LoanTerms, CurrencyMetadata]:
    """Turn raw option values into ``LoanTerms`` plus the currency metadata.

    The loan term defaults to ``repayments * every`` units of the repayment
    frequency, which is the usual case of a loan that ends on its last
    installment.
    """
    try:
        metadata = lookup_currency(currency)
    except ValueError as exc:
        raise click.BadParameter(str(exc))
    try:
        repayment_type = PeriodFrequencyType.parse(frequency)
        term_type = PeriodFrequencyType.parse(loan_term_type) if loan_term_type else repayment_type
        disbursed_on = parse_date(disbursement_date)
        first_on = parse_date(first_repayment_date) if first_repayment_date else None
        rate_value = decimal_from_str(rate)
        principal_value = Money.of(monetary_currency(metadata, digits), parse_amount(principal))
    except ValueError as exc:
        raise click.BadParameter(str(exc))

    terms = LoanTerms(
        principal=principal_value,
        annual_nominal_interest_rate=rate_value,
        number_of_repayments=repayments,
        repayment_every=every,
        repayment_frequency_type=repayment_type,
        loan_term_frequency=loan_term if loan_term is not None else repayments * every,
        loan_term_frequency_type=term_type,
        disbursement_date=disbursed_on,
        first_repayment_date=first_on,
    )
    return terms, metadata


def build_generator(rate_precision: int = 8) -> FlatLoanScheduleGenerator:
    return FlatLoanScheduleGenerator(
        date_sequencer=DueDateSequencer(),
        periods_calculator=PeriodsPerYearCalculator(),
        engine=AmortizationEngine(rate_precision=rate_precision),
    )


def compute(terms: LoanTerms) -> Schedule:
    try:
        return build_generator().generate(terms)
    except FlatLoanError as exc:
        raise click.ClickException(str(exc))


def export_to_json(path: Path, schedule: Schedule, metadata: CurrencyMetadata, shape: str) -> None:
    """Export the assembled schedule to a JSON file."""
    data = ScheduleAssembler().assemble(schedule, metadata, shape).as_dict()
    with path.open("w", encoding="utf-8") as f:
        json.dump(data, f, indent=2)


def export_to_csv(path: Path, schedule: Schedule) -> None:
    """Export schedule periods to a CSV file."""
    header = [
        "Period",
        "From_Date",
        "Due_Date",
        "Principal_Disbursed",
        "Principal_Due",
        "Interest_Due",
        "Total_Due",
        "Principal_Outstanding",
    ]
    with path.open("w", newline="", encoding="utf-8") as f:
        writer = csv.writer(f)
        writer.writerow(header)
        for p in schedule.periods:
            writer.writerow(
                [
                    p.period_number,
                    p.from_date.isoformat() if p.from_date else "",
                    p.due_date.isoformat(),
                    str(p.principal_disbursed),
                    str(p.principal_due),
                    str(p.interest_due),
                    str(p.total_due),
                    str(p.principal_outstanding),
                ]
            )


def loan_options(func):
    """Options shared by every command that computes a schedule."""
    options = [
        click.option("--principal", "-p", "principal", required=True, help="Disbursed amount"),
        click.option("--rate", "-r", "rate", required=True, help="Annual nominal interest rate (percent)"),
        click.option("--repayments", "-n", "repayments", required=True, type=int, help="Number of installments"),
        click.option("--every", "every", type=int, default=1, show_default=True, help="Repay every N frequency units"),
        click.option(
            "--frequency",
            "frequency",
            type=click.Choice(FREQUENCY_CHOICES, case_sensitive=False),
            default="months",
            show_default=True,
            help="Repayment frequency unit",
        ),
        click.option("--loan-term", "loan_term", type=int, help="Loan term length (default: repayments x every)"),
        click.option(
            "--loan-term-type",
            "loan_term_type",
            type=click.Choice(FREQUENCY_CHOICES, case_sensitive=False),
            help="Loan term unit (default: repayment frequency)",
        ),
        click.option("--disbursement-date", "-d", "disbursement_date", required=True, help="Disbursement date (YYYY-MM-DD)"),
        click.option("--first-repayment-date", "first_repayment_date", help="First due date (YYYY-MM-DD)"),
        click.option("--currency", "currency", default="USD", show_default=True, help="Currency code"),
        click.option("--digits", "digits", type=int, help="Override the currency's decimal places"),
    ]
    for option in reversed(options):
        func = option(func)
    return func


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Log calculation details")
def cli(verbose: bool) -> None:
    """Flat-rate loan repayment schedules."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


@cli.command()
@loan_options
@click.option("--shape", "shape", type=click.Choice(SHAPES), default="rich", show_default=True, help="JSON output shape")
@click.option("--output", "output", type=str, help="Output file path (.json or .csv)")
def schedule(
    principal: str,
    rate: str,
    repayments: int,
    every: int,
    frequency: str,
    loan_term: Optional[int],
    loan_term_type: Optional[str],
    disbursement_date: str,
    first_repayment_date: Optional[str],
    currency: str,
    digits: Optional[int],
    shape: str,
    output: Optional[str],
) -> None:
    """Compute and print the full repayment schedule."""
    terms, metadata = build_terms_from_options(
        principal,
        rate,
        repayments,
        every,
        frequency,
        disbursement_date,
        loan_term,
        loan_term_type,
        first_repayment_date,
        currency,
        digits,
    )
    loan_schedule = compute(terms)
    if output:
        path = Path(output)
        if path.suffix.lower() == ".json":
            export_to_json(path, loan_schedule, metadata, shape)
            click.echo(f"Schedule exported to {path}")
        elif path.suffix.lower() == ".csv":
            export_to_csv(path, loan_schedule)
            click.echo(f"Schedule exported to {path}")
        else:
            raise click.BadParameter("Unsupported output format; use .json or .csv")
    else:
        print_summary(loan_schedule, metadata.display_symbol)
        print_schedule(loan_schedule.periods)


@cli.command()
@loan_options
@click.option("--output", "output", type=str, help="Output file path (.json)")
def summary(
    principal: str,
    rate: str,
    repayments: int,
    every: int,
    frequency: str,
    loan_term: Optional[int],
    loan_term_type: Optional[str],
    disbursement_date: str,
    first_repayment_date: Optional[str],
    currency: str,
    digits: Optional[int],
    output: Optional[str],
) -> None:
    """Compute and print only the schedule totals."""
    terms, metadata = build_terms_from_options(
        principal,
        rate,
        repayments,
        every,
        frequency,
        disbursement_date,
        loan_term,
        loan_term_type,
        first_repayment_date,
        currency,
        digits,
    )
    loan_schedule = compute(terms)
    if output:
        path = Path(output)
        if path.suffix.lower() != ".json":
            raise click.BadParameter("Summary export must use .json extension")
        data = ScheduleAssembler().rich(loan_schedule, metadata).as_dict()
        data.pop("periods")
        with path.open("w", encoding="utf-8") as f:
            json.dump({"summary": data}, f, indent=2)
        click.echo(f"Summary exported to {path}")
    else:
        print_summary(loan_schedule, metadata.display_symbol)


if __name__ == "__main__":
    cli()
