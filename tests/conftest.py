from datetime import date
from decimal import Decimal

import pytest

from flat_loan.data_models import LoanTerms, PeriodFrequencyType
from flat_loan.engine import AmortizationEngine, FlatLoanScheduleGenerator
from flat_loan.frequency import DueDateSequencer, PeriodsPerYearCalculator
from flat_loan.money import MonetaryCurrency, Money

USD = MonetaryCurrency("USD", 2)


def make_terms(
    principal="12000.00",
    rate="12",
    repayments=12,
    every=1,
    frequency=PeriodFrequencyType.MONTHS,
    loan_term=None,
    loan_term_type=None,
    disbursed=date(2024, 1, 1),
    first_repayment=None,
    currency=USD,
):
    return LoanTerms(
        principal=Money.of(currency, principal),
        annual_nominal_interest_rate=Decimal(rate),
        number_of_repayments=repayments,
        repayment_every=every,
        repayment_frequency_type=frequency,
        loan_term_frequency=loan_term if loan_term is not None else repayments * every,
        loan_term_frequency_type=loan_term_type or frequency,
        disbursement_date=disbursed,
        first_repayment_date=first_repayment,
    )


@pytest.fixture
def engine():
    return AmortizationEngine()


@pytest.fixture
def generator(engine):
    return FlatLoanScheduleGenerator(DueDateSequencer(), PeriodsPerYearCalculator(), engine)
