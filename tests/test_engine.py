"""Tests for the flat-method amortization engine.

The reconciliation properties matter most: whatever rounding does to the
even split, principal and interest must add up to their totals exactly.
"""

from dataclasses import replace
from datetime import date
from decimal import Decimal, ROUND_HALF_UP, localcontext

import pytest

from conftest import USD, make_terms
from flat_loan.data_models import PeriodFrequencyType
from flat_loan.engine import AmortizationEngine, FlatLoanScheduleGenerator
from flat_loan.exceptions import SchedulePreconditionError
from flat_loan.money import MonetaryCurrency

MONTHLY_2024 = [date(2024, m, 1) for m in range(2, 13)] + [date(2025, 1, 1)]


class TestControlScenario:
    def test_rate_for_term(self, engine):
        assert engine.interest_rate_for_term(Decimal("12"), Decimal(12), 1) == Decimal("0.01")

    def test_no_drift(self, engine):
        terms = make_terms(loan_term=1)
        schedule = engine.compute(terms, MONTHLY_2024, Decimal(12))

        assert schedule.total_interest_for_term == Decimal("120.00")
        for p in schedule.repayment_periods:
            assert p.principal_due == Decimal("1000.00")
            assert p.interest_due == Decimal("10.00")
            assert p.total_due == Decimal("1010.00")
        assert schedule.repayment_periods[-1].principal_outstanding == Decimal("0.00")

    def test_totals(self, engine):
        schedule = engine.compute(make_terms(loan_term=1), MONTHLY_2024, Decimal(12))

        assert schedule.loan_term_in_days == 366
        assert schedule.cumulative_principal_disbursed == Decimal("12000.00")
        assert schedule.cumulative_principal_due == Decimal("12000.00")
        assert schedule.cumulative_principal_outstanding == Decimal("0.00")
        assert schedule.cumulative_interest_expected == Decimal("120.00")
        assert schedule.cumulative_charges_to_date == Decimal("0.00")
        assert schedule.total_expected_repayment == Decimal("12120.00")

    def test_full_year_term(self, engine):
        schedule = engine.compute(make_terms(loan_term=12), MONTHLY_2024, Decimal(12))

        assert schedule.total_interest_for_term == Decimal("1440.00")
        assert {p.interest_due for p in schedule.repayment_periods} == {Decimal("120.00")}


class TestDriftCorrection:
    def quarterly_terms(self):
        return make_terms(
            principal="1000.00",
            rate="10.001",
            repayments=3,
            every=3,
            loan_term=1,
            loan_term_type=PeriodFrequencyType.YEARS,
        )

    def test_last_installment_absorbs_interest_drift(self, engine):
        dates = [date(2024, 4, 1), date(2024, 7, 1), date(2024, 10, 1)]
        schedule = engine.compute(self.quarterly_terms(), dates, Decimal(1))
        interest = [p.interest_due for p in schedule.repayment_periods]

        assert schedule.total_interest_for_term == Decimal("100.01")
        assert interest == [Decimal("33.34"), Decimal("33.34"), Decimal("33.33")]
        assert sum(interest) == Decimal("100.01")

    def test_last_installment_absorbs_principal_drift(self, engine):
        dates = [date(2024, 4, 1), date(2024, 7, 1), date(2024, 10, 1)]
        schedule = engine.compute(self.quarterly_terms(), dates, Decimal(1))

        principal = [p.principal_due for p in schedule.repayment_periods]
        balances = [p.principal_outstanding for p in schedule.repayment_periods]
        assert principal == [Decimal("333.33"), Decimal("333.33"), Decimal("333.34")]
        assert balances == [Decimal("666.67"), Decimal("333.34"), Decimal("0.00")]

    def test_weekly_loan(self, generator):
        terms = make_terms(
            principal="1000.00",
            rate="10",
            repayments=7,
            frequency=PeriodFrequencyType.WEEKS,
        )
        schedule = generator.generate(terms)
        periods = schedule.repayment_periods

        assert schedule.total_interest_for_term == Decimal("13.46")
        assert [p.interest_due for p in periods[:-1]] == [Decimal("1.92")] * 6
        assert periods[-1].interest_due == Decimal("1.94")
        assert [p.principal_due for p in periods[:-1]] == [Decimal("142.86")] * 6
        assert periods[-1].principal_due == Decimal("142.84")
        assert schedule.loan_term_in_days == 49

    def test_zero_decimal_currency(self, generator):
        yen = MonetaryCurrency("JPY", 0)
        terms = make_terms(principal="100000", rate="15", repayments=7, currency=yen)
        schedule = generator.generate(terms)
        periods = schedule.repayment_periods

        assert schedule.total_interest_for_term == Decimal("8750")
        assert all(p.interest_due == Decimal("1250") for p in periods)
        assert periods[0].principal_due == Decimal("14286")
        assert periods[-1].principal_due == Decimal("14284")


class TestLowRateLoans:
    """The even interest split can round up and over-collect at low rates.

    The last installment then carries a negative interest share, which keeps
    the interest total exact while the principal share stays positive.
    """

    def test_weekly_loan(self, generator):
        terms = make_terms(principal="500.00", rate="1", repayments=52, frequency=PeriodFrequencyType.WEEKS)
        schedule = generator.generate(terms)
        periods = schedule.repayment_periods

        assert schedule.total_interest_for_term == Decimal("5.00")
        assert periods[0].interest_due == Decimal("0.10")
        assert periods[0].principal_due == Decimal("9.62")
        assert periods[-1].interest_due == Decimal("-0.10")
        assert periods[-1].principal_due == Decimal("9.38")
        assert periods[-1].total_due == Decimal("9.28")
        assert sum(p.interest_due for p in periods) == Decimal("5.00")
        assert sum(p.principal_due for p in periods) == Decimal("500.00")
        assert periods[-1].principal_outstanding == 0

    def test_daily_loan(self, generator):
        terms = make_terms(principal="1000.00", rate="1", repayments=30, frequency=PeriodFrequencyType.DAYS)
        schedule = generator.generate(terms)
        periods = schedule.repayment_periods

        assert schedule.total_interest_for_term == Decimal("0.82")
        assert periods[0].interest_due == Decimal("0.03")
        assert periods[-1].interest_due == Decimal("-0.05")
        assert periods[-1].principal_due == Decimal("33.43")
        assert sum(p.interest_due for p in periods) == Decimal("0.82")
        assert sum(p.principal_due for p in periods) == Decimal("1000.00")
        assert schedule.total_expected_repayment == Decimal("1000.82")


def test_result_ignores_callers_decimal_context(generator):
    expected = generator.generate(make_terms(loan_term=12))

    with localcontext() as ctx:
        ctx.prec = 4
        schedule = generator.generate(make_terms(loan_term=12))

    assert schedule == expected
    assert schedule.total_interest_for_term == Decimal("1440.00")
    assert schedule.total_expected_repayment == Decimal("13440.00")
    assert {p.principal_due for p in schedule.repayment_periods} == {Decimal("1000.00")}


def test_rate_for_long_term_is_exact(engine):
    # 0.00019230769 per week over 123457 weeks
    assert engine.interest_rate_for_term(Decimal("1"), Decimal(52), 123457) == Decimal("23.74173048433")


def test_single_installment_pays_everything(engine):
    terms = make_terms(principal="500.00", rate="7.5", repayments=1)
    schedule = engine.compute(terms, [date(2024, 2, 1)], Decimal(12))

    (only,) = schedule.repayment_periods
    # 500.00 * 0.00625 = 3.125, rounded half to even
    assert schedule.total_interest_for_term == Decimal("3.12")
    assert only.principal_due == Decimal("500.00")
    assert only.interest_due == Decimal("3.12")
    assert only.total_due == Decimal("503.12")
    assert only.principal_outstanding == Decimal("0.00")


def test_rounding_mode_is_configurable():
    terms = make_terms(principal="500.00", rate="7.5", repayments=1)
    schedule = AmortizationEngine(rounding=ROUND_HALF_UP).compute(terms, [date(2024, 2, 1)], Decimal(12))

    assert schedule.total_interest_for_term == Decimal("3.13")


def test_zero_interest(engine):
    schedule = engine.compute(make_terms(rate="0"), MONTHLY_2024, Decimal(12))

    assert schedule.cumulative_interest_expected == Decimal("0.00")
    assert all(p.interest_due == Decimal("0.00") for p in schedule.repayment_periods)
    assert schedule.total_expected_repayment == Decimal("12000.00")


def test_disbursement_period_comes_first(engine):
    schedule = engine.compute(make_terms(), MONTHLY_2024, Decimal(12))
    first = schedule.periods[0]

    assert first.is_disbursement
    assert first.from_date is None
    assert first.due_date == date(2024, 1, 1)
    assert first.principal_disbursed == Decimal("12000.00")
    assert first.principal_outstanding == Decimal("12000.00")
    assert first.total_due == Decimal("0.00")
    assert [p.period_number for p in schedule.periods] == list(range(13))
    assert schedule.periods[1].from_date == date(2024, 1, 1)
    assert schedule.periods[2].from_date == date(2024, 2, 1)


def test_interest_calculated_from_is_ignored(engine):
    plain = make_terms()
    with_date = replace(plain, interest_calculated_from=date(2024, 1, 15))

    assert (
        engine.compute(plain, MONTHLY_2024, Decimal(12)).periods
        == engine.compute(with_date, MONTHLY_2024, Decimal(12)).periods
    )


@pytest.mark.parametrize(
    "principal,rate,repayments,frequency",
    [
        ("1000.00", "13.7", 3, PeriodFrequencyType.MONTHS),
        ("999.99", "21", 7, PeriodFrequencyType.MONTHS),
        ("25000.00", "9.99", 36, PeriodFrequencyType.MONTHS),
        ("12345.67", "18.25", 52, PeriodFrequencyType.WEEKS),
        ("100.01", "5", 11, PeriodFrequencyType.DAYS),
        ("750000.00", "4.35", 5, PeriodFrequencyType.YEARS),
    ],
)
def test_reconciliation_properties(generator, principal, rate, repayments, frequency):
    terms = make_terms(principal=principal, rate=rate, repayments=repayments, frequency=frequency)
    schedule = generator.generate(terms)
    periods = schedule.repayment_periods

    assert len(periods) == repayments
    assert sum(p.principal_due for p in periods) == terms.principal.amount
    assert sum(p.interest_due for p in periods) == schedule.total_interest_for_term
    assert periods[-1].principal_outstanding == 0

    previous = terms.principal.amount
    for p in periods:
        assert p.total_due == p.principal_due + p.interest_due
        assert 0 <= p.principal_outstanding <= previous
        previous = p.principal_outstanding


class TestPreconditions:
    def test_zero_repayments(self, engine):
        with pytest.raises(SchedulePreconditionError):
            engine.compute(make_terms(repayments=0, loan_term=1), [], Decimal(12))

    def test_due_date_count_mismatch(self, engine):
        with pytest.raises(SchedulePreconditionError, match="Expected 12 due dates"):
            engine.compute(make_terms(), MONTHLY_2024[:-1], Decimal(12))

    def test_periods_per_year_must_be_positive(self, engine):
        with pytest.raises(SchedulePreconditionError):
            engine.compute(make_terms(), MONTHLY_2024, Decimal(0))

    def test_negative_rate(self, engine):
        with pytest.raises(SchedulePreconditionError):
            engine.compute(make_terms(rate="-1"), MONTHLY_2024, Decimal(12))

    def test_negative_principal(self, engine):
        with pytest.raises(SchedulePreconditionError):
            engine.compute(make_terms(principal="-100.00"), MONTHLY_2024, Decimal(12))

    def test_due_date_before_disbursement(self, engine):
        dates = [date(2023, 12, 1)] + MONTHLY_2024[1:]
        with pytest.raises(SchedulePreconditionError):
            engine.compute(make_terms(), dates, Decimal(12))

    def test_due_dates_out_of_order(self, engine):
        dates = list(reversed(MONTHLY_2024))
        with pytest.raises(SchedulePreconditionError):
            engine.compute(make_terms(), dates, Decimal(12))

    def test_principal_too_small_to_split(self, engine):
        terms = make_terms(principal="0.15", repayments=10)
        dates = [date(2024, m, 1) for m in range(2, 12)]
        with pytest.raises(SchedulePreconditionError, match="Principal USD 0.15 is too small"):
            engine.compute(terms, dates, Decimal(12))

    def test_precondition_error_is_value_error(self, engine):
        with pytest.raises(ValueError):
            engine.compute(make_terms(), [], Decimal(12))


def test_generator_uses_injected_collaborators(engine):
    calls = []

    class FixedDates:
        def generate(self, terms):
            calls.append("dates")
            return [date(2024, 3, 15), date(2024, 6, 15)]

    class QuarterCalculator:
        def periods_per_year(self, unit):
            calls.append(unit)
            return Decimal(4)

    terms = make_terms(principal="800.00", rate="8", repayments=2, loan_term=2,
                       loan_term_type=PeriodFrequencyType.YEARS)
    schedule = FlatLoanScheduleGenerator(FixedDates(), QuarterCalculator(), engine).generate(terms)

    assert calls == ["dates", PeriodFrequencyType.YEARS]
    # (8 / 4) / 100 * 2 = 0.04
    assert schedule.total_interest_for_term == Decimal("32.00")
    assert [p.due_date for p in schedule.repayment_periods] == [date(2024, 3, 15), date(2024, 6, 15)]
    assert schedule.loan_term_in_days == 166
    assert schedule.currency == USD
