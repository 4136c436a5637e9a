"""Core calculation engine for flat-rate (add-on interest) loans.

The total interest for the whole loan term is computed once from the original
principal and split evenly over the installments, as is the principal. Both
splits are rounded to the currency scale, so the last installment absorbs the
rounding drift: the installment principal always sums to the disbursed
principal and the installment interest to the total interest, exactly.
"""

from __future__ import annotations

import logging
from datetime import date
from decimal import Context, Decimal, ROUND_HALF_EVEN
from typing import List, Sequence

from .data_models import Installment, LoanTerms, Schedule
from .exceptions import SchedulePreconditionError
from .money import Money
from .utils import days_between

logger = logging.getLogger(__name__)


def _precondition(condition: bool, message: str) -> None:
    if not condition:
        logger.debug("Rejected loan terms: %s", message)
        raise SchedulePreconditionError(message)


class AmortizationEngine:
    """Builds flat-method schedules.

    Parameters
    ----------
    rate_precision: int
        Significant digits kept when deriving the interest rate for the term.
    rounding: str
        ``decimal`` rounding mode used for the rate and every currency-scale
        rounding. Defaults to round-half-even.
    """

    def __init__(self, rate_precision: int = 8, rounding: str = ROUND_HALF_EVEN) -> None:
        if rate_precision < 1:
            raise ValueError(f"rate_precision must be positive; got {rate_precision}")
        self.rate_precision = rate_precision
        self.rounding = rounding

    def interest_rate_for_term(
        self, annual_rate: Decimal, periods_per_year: Decimal, loan_term_frequency: int
    ) -> Decimal:
        """Return the unitless interest rate for the whole loan term.

        ``(annual_rate / periods_per_year) / 100 * loan_term_frequency``, with
        both divisions carried out at ``rate_precision`` significant digits.
        """
        ctx = Context(prec=self.rate_precision, rounding=self.rounding)
        per_period = ctx.divide(ctx.divide(annual_rate, periods_per_year), Decimal(100))
        term_count = Decimal(loan_term_frequency)
        # the product of a p-digit and a q-digit coefficient has at most p + q digits
        exact = Context(prec=self.rate_precision + len(term_count.as_tuple().digits), rounding=self.rounding)
        return exact.multiply(per_period, term_count)

    def _check(self, terms: LoanTerms, due_dates: Sequence[date], periods_per_year: Decimal) -> None:
        n = terms.number_of_repayments
        _precondition(n >= 1, f"number_of_repayments must be at least 1; got {n}")
        _precondition(
            len(due_dates) == n,
            f"Expected {n} due dates; got {len(due_dates)}",
        )
        _precondition(periods_per_year > 0, f"periods_per_year must be positive; got {periods_per_year}")
        _precondition(
            terms.loan_term_frequency >= 1,
            f"loan_term_frequency must be at least 1; got {terms.loan_term_frequency}",
        )
        _precondition(not terms.principal.is_less_than_zero(), f"Principal must not be negative; got {terms.principal}")
        _precondition(
            terms.annual_nominal_interest_rate >= 0,
            f"Interest rate must not be negative; got {terms.annual_nominal_interest_rate}",
        )
        previous = terms.disbursement_date
        for due in due_dates:
            _precondition(due >= previous, f"Due date {due} is before {previous}")
            previous = due

    def compute(self, terms: LoanTerms, due_dates: Sequence[date], periods_per_year: Decimal) -> Schedule:
        """Compute the schedule for ``terms``.

        Parameters
        ----------
        terms: LoanTerms
            The loan terms snapshot.
        due_dates: Sequence[date]
            One due date per repayment, in order.
        periods_per_year: Decimal
            Periods per year of the loan-term frequency unit.

        Raises
        ------
        SchedulePreconditionError
            If the inputs cannot describe a valid flat schedule.
        """
        periods_per_year = Decimal(periods_per_year)
        self._check(terms, due_dates, periods_per_year)

        principal = terms.principal
        currency = principal.currency
        n = terms.number_of_repayments

        rate_for_term = self.interest_rate_for_term(
            terms.annual_nominal_interest_rate, periods_per_year, terms.loan_term_frequency
        )
        total_interest_for_term = principal.multiply_retain_scale(rate_for_term, self.rounding)
        interest_per_installment = total_interest_for_term.divided_by(n, self.rounding)
        principal_per_installment = principal.divided_by(n, self.rounding)
        logger.debug(
            "Flat schedule: rate for term %s, total interest %s, %s principal + %s interest per installment",
            rate_for_term,
            total_interest_for_term,
            principal_per_installment,
            interest_per_installment,
        )

        periods: List[Installment] = [Installment.disbursement(terms.disbursement_date, principal.amount)]

        outstanding = principal
        total_principal = Money.zero(currency)
        total_interest = Money.zero(currency)
        total_repayment = Money.zero(currency)
        loan_term_in_days = 0

        start_date = terms.disbursement_date
        for period_number, due_date in enumerate(due_dates, start=1):
            principal_due = principal_per_installment
            interest_due = interest_per_installment

            if period_number == n:
                # whatever the even split over- or under-collected comes off the last installment
                principal_difference = total_principal.plus(principal_due).minus(principal)
                interest_difference = total_interest.plus(interest_due).minus(total_interest_for_term)
                principal_due = principal_due.minus(principal_difference)
                interest_due = interest_due.minus(interest_difference)
                if not (principal_difference.is_zero() and interest_difference.is_zero()):
                    logger.debug(
                        "Last installment adjusted by %s principal, %s interest",
                        principal_difference.negated(),
                        interest_difference.negated(),
                    )
                # only the principal share is bounded: the balance must never go below zero
                _precondition(
                    not principal_due.is_less_than_zero(),
                    f"Principal {principal} is too small to split over {n} installments",
                )

            total_due = principal_due.plus(interest_due)
            outstanding = outstanding.minus(principal_due)
            periods.append(
                Installment(
                    period_number=period_number,
                    from_date=start_date,
                    due_date=due_date,
                    principal_disbursed=Money.zero(currency).amount,
                    principal_due=principal_due.amount,
                    interest_due=interest_due.amount,
                    total_due=total_due.amount,
                    principal_outstanding=outstanding.amount,
                )
            )

            loan_term_in_days += days_between(start_date, due_date)
            total_principal = total_principal.plus(principal_due)
            total_interest = total_interest.plus(interest_due)
            total_repayment = total_repayment.plus(total_due)
            start_date = due_date

        return Schedule(
            currency=currency,
            periods=tuple(periods),
            total_interest_for_term=total_interest_for_term.amount,
            loan_term_in_days=loan_term_in_days,
            cumulative_principal_disbursed=principal.amount,
            cumulative_principal_due=total_principal.amount,
            cumulative_principal_outstanding=principal.minus(total_principal).amount,
            cumulative_interest_expected=total_interest.amount,
            cumulative_charges_to_date=Money.zero(currency).amount,
            total_expected_repayment=total_repayment.amount,
        )


class FlatLoanScheduleGenerator:
    """Runs the date sequencer, the periods calculator and the engine together.

    All three collaborators are required so that tests (and callers with
    their own calendars) can substitute any of them.
    """

    def __init__(self, date_sequencer, periods_calculator, engine: AmortizationEngine) -> None:
        self.date_sequencer = date_sequencer
        self.periods_calculator = periods_calculator
        self.engine = engine

    def generate(self, terms: LoanTerms) -> Schedule:
        due_dates = list(self.date_sequencer.generate(terms))
        periods_per_year = self.periods_calculator.periods_per_year(terms.loan_term_frequency_type)
        schedule = self.engine.compute(terms, due_dates, periods_per_year)
        logger.debug(
            "Generated %d installments for %s over %d days",
            len(due_dates),
            terms.principal,
            schedule.loan_term_in_days,
        )
        return schedule
