"""Output helpers for the flat loan schedule engine.

This module provides simple functions to render schedules and their totals in
a tabular text format. We rely only on built-in printing and string
formatting. Amounts are printed exactly as stored, at the currency scale.
"""

from __future__ import annotations

from typing import Iterable

from .data_models import Installment, Schedule


def print_summary(schedule: Schedule, currency_symbol: str = "") -> None:
    """Print the schedule totals in a human-readable format."""
    code = schedule.currency.code
    print("Summary")
    print("-" * 72)
    print(f"Currency              : {code} {currency_symbol}".rstrip())
    print(f"Principal disbursed   : {schedule.cumulative_principal_disbursed}")
    print(f"Total interest        : {schedule.cumulative_interest_expected}")
    print(f"Total repayment       : {schedule.total_expected_repayment}")
    print(f"Principal outstanding : {schedule.cumulative_principal_outstanding}")
    # charges are applied outside this engine; only show them when present
    if schedule.cumulative_charges_to_date:
        print(f"Charges               : {schedule.cumulative_charges_to_date}")
    print(f"Installments          : {len(schedule.repayment_periods)}")
    print(f"Loan term (days)      : {schedule.loan_term_in_days}")
    print("-" * 72)


def print_schedule(periods: Iterable[Installment]) -> None:
    """Print the schedule as a simple table.

    The disbursement period is shown as period 0 with the disbursed amount in
    the ``Disbursed`` column and nothing due.
    """
    headers = [
        "Period",
        "From",
        "Due",
        "Disbursed",
        "Principal",
        "Interest",
        "Total",
        "Balance",
    ]
    print("\t".join(headers))
    for entry in periods:
        row = [
            str(entry.period_number),
            entry.from_date.isoformat() if entry.from_date else "",
            entry.due_date.isoformat(),
            str(entry.principal_disbursed) if entry.is_disbursement else "",
            str(entry.principal_due),
            str(entry.interest_due),
            str(entry.total_due),
            str(entry.principal_outstanding),
        ]
        print("\t".join(row))
