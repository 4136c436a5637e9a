"""Default collaborators of the amortization engine.

``PeriodsPerYearCalculator`` converts a frequency unit into the number of such
periods in one year and ``DueDateSequencer`` lays out the due dates of the
installments. The engine never creates these itself; callers hand them to
``FlatLoanScheduleGenerator`` (or replace them with their own).
"""

from __future__ import annotations

import logging
from datetime import date, timedelta
from decimal import Decimal
from typing import Dict, List

from .data_models import LoanTerms, PeriodFrequencyType
from .exceptions import SchedulePreconditionError, UnsupportedFrequencyError
from .utils import add_months

logger = logging.getLogger(__name__)

_PERIODS_PER_YEAR: Dict[PeriodFrequencyType, Decimal] = {
    PeriodFrequencyType.DAYS: Decimal(365),
    PeriodFrequencyType.WEEKS: Decimal(52),
    PeriodFrequencyType.MONTHS: Decimal(12),
    PeriodFrequencyType.YEARS: Decimal(1),
}


class PeriodsPerYearCalculator:
    def periods_per_year(self, unit: PeriodFrequencyType) -> Decimal:
        try:
            return _PERIODS_PER_YEAR[unit]
        except KeyError:
            raise UnsupportedFrequencyError(f"No periods-per-year mapping for {unit!r}") from None


def advance(start: date, every: int, unit: PeriodFrequencyType) -> date:
    """Return ``start`` moved forward by ``every`` units of ``unit``."""
    if unit is PeriodFrequencyType.DAYS:
        return start + timedelta(days=every)
    if unit is PeriodFrequencyType.WEEKS:
        return start + timedelta(weeks=every)
    if unit is PeriodFrequencyType.MONTHS:
        return add_months(start, every)
    if unit is PeriodFrequencyType.YEARS:
        return add_months(start, 12 * every)
    raise UnsupportedFrequencyError(f"Cannot step dates by {unit!r}")


class DueDateSequencer:
    """Generates one due date per repayment.

    The first due date is the explicit first repayment date when the terms
    carry one, otherwise one repayment interval after disbursement. Every
    date is counted from that anchor rather than from the previous due date,
    so month-end clamping does not accumulate: a loan disbursed on Jan 31
    falls due on Feb 29, Mar 31, Apr 30.
    """

    def generate(self, terms: LoanTerms) -> List[date]:
        if terms.number_of_repayments < 1:
            raise SchedulePreconditionError(
                f"number_of_repayments must be at least 1; got {terms.number_of_repayments}"
            )
        if terms.repayment_every < 1:
            raise SchedulePreconditionError(
                f"repayment_every must be at least 1; got {terms.repayment_every}"
            )
        unit = terms.repayment_frequency_type
        first = terms.first_repayment_date
        if first is None:
            anchor, offset = terms.disbursement_date, 1
        elif first < terms.disbursement_date:
            raise SchedulePreconditionError(
                f"First repayment date {first} is before disbursement date {terms.disbursement_date}"
            )
        else:
            anchor, offset = first, 0

        try:
            dates = [
                advance(anchor, terms.repayment_every * (i + offset), unit)
                for i in range(terms.number_of_repayments)
            ]
        except (OverflowError, ValueError) as exc:
            raise SchedulePreconditionError(f"Due dates run past the supported calendar: {exc}") from exc
        logger.debug("Generated %d due dates from %s to %s", len(dates), dates[0], dates[-1])
        return dates
