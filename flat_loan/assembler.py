"""Output shapes built from a computed schedule.

Two shapes exist: a rich one carrying currency display metadata, every period
(including the disbursement) and the schedule totals, and a slim one listing
the repayment installments as currency-tagged amounts. Both are read off the
same ``Schedule`` instance; nothing here does arithmetic.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Any, Dict, List, Optional, Tuple

from .data_models import CurrencyMetadata, Installment, Schedule
from .exceptions import CurrencyMismatchError

SHAPES = ("rich", "slim")


def _iso(value: Optional[date]) -> Optional[str]:
    return value.isoformat() if value is not None else None


@dataclass(frozen=True)
class CurrencyData:
    code: str
    name: str
    decimal_places: int
    display_symbol: str
    name_code: str

    def as_dict(self) -> Dict[str, Any]:
        return {
            "code": self.code,
            "name": self.name,
            "decimalPlaces": self.decimal_places,
            "displaySymbol": self.display_symbol,
            "nameCode": self.name_code,
        }


@dataclass(frozen=True)
class MoneyData:
    currency_code: str
    amount: Decimal

    def as_dict(self) -> Dict[str, Any]:
        return {"currencyCode": self.currency_code, "amount": str(self.amount)}


@dataclass(frozen=True)
class LoanScheduleData:
    """Rich schedule: currency metadata, all periods and the totals."""

    currency: CurrencyData
    periods: Tuple[Installment, ...]
    loan_term_in_days: int
    cumulative_principal_disbursed: Decimal
    cumulative_principal_due: Decimal
    cumulative_principal_outstanding: Decimal
    cumulative_interest_expected: Decimal
    cumulative_charges_to_date: Decimal
    total_expected_repayment: Decimal

    def as_dict(self) -> Dict[str, Any]:
        periods: List[Dict[str, Any]] = []
        for p in self.periods:
            periods.append(
                {
                    "period": p.period_number,
                    "fromDate": _iso(p.from_date),
                    "dueDate": _iso(p.due_date),
                    "principalDisbursed": str(p.principal_disbursed),
                    "principalDue": str(p.principal_due),
                    "interestDue": str(p.interest_due),
                    "totalDue": str(p.total_due),
                    "principalLoanBalanceOutstanding": str(p.principal_outstanding),
                }
            )
        return {
            "currency": self.currency.as_dict(),
            "periods": periods,
            "loanTermInDays": self.loan_term_in_days,
            "cumulativePrincipalDisbursed": str(self.cumulative_principal_disbursed),
            "cumulativePrincipalDue": str(self.cumulative_principal_due),
            "cumulativePrincipalOutstanding": str(self.cumulative_principal_outstanding),
            "cumulativeInterestExpected": str(self.cumulative_interest_expected),
            "cumulativeChargesToDate": str(self.cumulative_charges_to_date),
            "totalExpectedRepayment": str(self.total_expected_repayment),
        }


@dataclass(frozen=True)
class ScheduledInstallment:
    installment_number: int
    period_start: date
    due_date: date
    principal_due: MoneyData
    interest_due: MoneyData
    total_installment_due: MoneyData
    principal_outstanding: MoneyData

    def as_dict(self) -> Dict[str, Any]:
        return {
            "installmentNumber": self.installment_number,
            "periodStart": _iso(self.period_start),
            "periodEnd": _iso(self.due_date),
            "principalDue": self.principal_due.as_dict(),
            "interestDue": self.interest_due.as_dict(),
            "totalInstallmentDue": self.total_installment_due.as_dict(),
            "outstandingBalance": self.principal_outstanding.as_dict(),
        }


@dataclass(frozen=True)
class SlimLoanSchedule:
    """Slim schedule: the repayment installments only."""

    installments: Tuple[ScheduledInstallment, ...]

    def as_dict(self) -> Dict[str, Any]:
        return {"scheduledLoanInstallments": [i.as_dict() for i in self.installments]}


class ScheduleAssembler:
    def assemble(self, schedule: Schedule, currency_metadata: CurrencyMetadata, shape: str = "rich"):
        if shape == "rich":
            return self.rich(schedule, currency_metadata)
        if shape == "slim":
            return self.slim(schedule, currency_metadata)
        raise ValueError(f"Unknown schedule shape {shape!r}; expected one of {', '.join(SHAPES)}")

    @staticmethod
    def _check_currency(schedule: Schedule, currency_metadata: CurrencyMetadata) -> None:
        if currency_metadata.code != schedule.currency.code:
            raise CurrencyMismatchError(
                f"Currency metadata {currency_metadata.code} does not match schedule currency {schedule.currency.code}"
            )

    def rich(self, schedule: Schedule, currency_metadata: CurrencyMetadata) -> LoanScheduleData:
        self._check_currency(schedule, currency_metadata)
        # the scale comes from the amounts themselves, not the display metadata
        currency = CurrencyData(
            code=currency_metadata.code,
            name=currency_metadata.name,
            decimal_places=schedule.currency.decimal_places,
            display_symbol=currency_metadata.display_symbol,
            name_code=currency_metadata.name_code,
        )
        return LoanScheduleData(
            currency=currency,
            periods=schedule.periods,
            loan_term_in_days=schedule.loan_term_in_days,
            cumulative_principal_disbursed=schedule.cumulative_principal_disbursed,
            cumulative_principal_due=schedule.cumulative_principal_due,
            cumulative_principal_outstanding=schedule.cumulative_principal_outstanding,
            cumulative_interest_expected=schedule.cumulative_interest_expected,
            cumulative_charges_to_date=schedule.cumulative_charges_to_date,
            total_expected_repayment=schedule.total_expected_repayment,
        )

    def slim(self, schedule: Schedule, currency_metadata: CurrencyMetadata) -> SlimLoanSchedule:
        self._check_currency(schedule, currency_metadata)
        code = currency_metadata.code
        installments = tuple(
            ScheduledInstallment(
                installment_number=p.period_number,
                period_start=p.from_date,
                due_date=p.due_date,
                principal_due=MoneyData(code, p.principal_due),
                interest_due=MoneyData(code, p.interest_due),
                total_installment_due=MoneyData(code, p.total_due),
                principal_outstanding=MoneyData(code, p.principal_outstanding),
            )
            for p in schedule.repayment_periods
        )
        return SlimLoanSchedule(installments=installments)
