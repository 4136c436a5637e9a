"""Data models for the flat loan schedule engine.

This module defines the dataclasses passed between the collaborators: the loan
terms snapshot the schedule is computed from, the individual installments and
the schedule with its running totals. Installments and schedules are frozen;
a schedule is computed once and never patched afterwards.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Optional, Tuple

from .money import MonetaryCurrency, Money


class PeriodFrequencyType(Enum):
    DAYS = "days"
    WEEKS = "weeks"
    MONTHS = "months"
    YEARS = "years"

    @classmethod
    def parse(cls, value: str) -> "PeriodFrequencyType":
        """Return the member named by ``value`` (case-insensitive)."""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError as exc:
            raise ValueError(f"Invalid frequency: {value}") from exc


@dataclass(frozen=True)
class LoanTerms:
    """Commercial terms of a loan.

    Attributes
    ----------
    principal: Money
        The disbursed amount. Its currency fixes the scale of every amount in
        the generated schedule.
    annual_nominal_interest_rate: Decimal
        Annual rate in percent (``Decimal("12")`` means 12 %).
    number_of_repayments: int
        How many installments repay the loan.
    repayment_every: int
        Spacing between due dates, counted in ``repayment_frequency_type``
        units (``2`` with ``WEEKS`` means fortnightly).
    loan_term_frequency: int
        Length of the loan measured in ``loan_term_frequency_type`` units. The
        flat interest for the whole term is derived from it.
    first_repayment_date: date, optional
        Overrides the first due date; later dates follow from it.
    interest_calculated_from: date, optional
        Accepted for interface compatibility; the flat method ignores it.
    """

    principal: Money
    annual_nominal_interest_rate: Decimal
    number_of_repayments: int
    repayment_every: int
    repayment_frequency_type: PeriodFrequencyType
    loan_term_frequency: int
    loan_term_frequency_type: PeriodFrequencyType
    disbursement_date: date
    first_repayment_date: Optional[date] = None
    interest_calculated_from: Optional[date] = None

    @property
    def currency(self) -> MonetaryCurrency:
        return self.principal.currency


@dataclass(frozen=True)
class Installment:
    """One row of a repayment schedule.

    Period number 0 is the disbursement pseudo-period: it has no ``from_date``,
    carries the principal in ``principal_disbursed`` and has nothing due.
    """

    period_number: int
    from_date: Optional[date]
    due_date: date
    principal_disbursed: Decimal
    principal_due: Decimal
    interest_due: Decimal
    total_due: Decimal
    principal_outstanding: Decimal

    @property
    def is_disbursement(self) -> bool:
        return self.period_number == 0

    @classmethod
    def disbursement(cls, disbursement_date: date, principal: Decimal) -> "Installment":
        zero = principal - principal
        return cls(
            period_number=0,
            from_date=None,
            due_date=disbursement_date,
            principal_disbursed=principal,
            principal_due=zero,
            interest_due=zero,
            total_due=zero,
            principal_outstanding=principal,
        )


@dataclass(frozen=True)
class Schedule:
    """A computed repayment schedule with its aggregate totals."""

    currency: MonetaryCurrency
    periods: Tuple[Installment, ...]
    total_interest_for_term: Decimal
    loan_term_in_days: int
    cumulative_principal_disbursed: Decimal
    cumulative_principal_due: Decimal
    cumulative_principal_outstanding: Decimal
    cumulative_interest_expected: Decimal
    cumulative_charges_to_date: Decimal
    total_expected_repayment: Decimal

    @property
    def repayment_periods(self) -> Tuple[Installment, ...]:
        return tuple(p for p in self.periods if not p.is_disbursement)


@dataclass(frozen=True)
class CurrencyMetadata:
    """Display information about a currency."""

    code: str
    name: str
    decimal_places: int
    display_symbol: str
    name_code: str
