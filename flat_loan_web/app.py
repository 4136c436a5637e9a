import logging
import os

from flask import Flask, jsonify, request

from flat_loan.assembler import SHAPES, ScheduleAssembler
from flat_loan.currencies import CURRENCY_OPTIONS, lookup_currency, monetary_currency
from flat_loan.data_models import LoanTerms, PeriodFrequencyType
from flat_loan.engine import AmortizationEngine, FlatLoanScheduleGenerator
from flat_loan.exceptions import FlatLoanError
from flat_loan.frequency import DueDateSequencer, PeriodsPerYearCalculator
from flat_loan.money import Money
from flat_loan.utils import decimal_from_str, parse_date

logger = logging.getLogger(__name__)


def _int_field(payload: dict, name: str, default=None) -> int:
    value = payload.get(name, default)
    if value is None:
        raise ValueError(f"Missing required field {name}")
    try:
        return int(value)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"Invalid integer for {name}: {value}") from exc


def _required(payload: dict, name: str) -> str:
    value = payload.get(name)
    if value is None or str(value).strip() == "":
        raise ValueError(f"Missing required field {name}")
    return str(value)


def _payload_to_terms(payload: dict, default_currency: str, max_repayments: int):
    metadata = lookup_currency(str(payload.get("currency") or default_currency))
    digits = payload.get("digits")
    currency = monetary_currency(metadata, _int_field(payload, "digits") if digits is not None else None)

    repayments = _int_field(payload, "numberOfRepayments")
    if repayments > max_repayments:
        raise ValueError(f"numberOfRepayments must not exceed {max_repayments}; got {repayments}")
    every = _int_field(payload, "repaymentEvery", 1)
    repayment_type = PeriodFrequencyType.parse(payload.get("repaymentFrequencyType", "months"))
    term_type_value = payload.get("loanTermFrequencyType")
    first_repayment = payload.get("firstRepaymentDate")
    interest_from = payload.get("interestCalculatedFrom")

    terms = LoanTerms(
        principal=Money.of(currency, decimal_from_str(_required(payload, "principal"))),
        annual_nominal_interest_rate=decimal_from_str(_required(payload, "annualInterestRate")),
        number_of_repayments=repayments,
        repayment_every=every,
        repayment_frequency_type=repayment_type,
        loan_term_frequency=_int_field(payload, "loanTermFrequency", repayments * every),
        loan_term_frequency_type=PeriodFrequencyType.parse(term_type_value) if term_type_value else repayment_type,
        disbursement_date=parse_date(_required(payload, "disbursementDate")),
        first_repayment_date=parse_date(first_repayment) if first_repayment else None,
        interest_calculated_from=parse_date(interest_from) if interest_from else None,
    )
    return terms, metadata


def create_app(config=None) -> Flask:
    """Build the web app. Settings come from the environment unless ``config`` overrides them."""
    app = Flask(__name__)
    app.config["DEFAULT_CURRENCY"] = os.environ.get("FLAT_LOAN_DEFAULT_CURRENCY", "USD")
    app.config["RATE_PRECISION"] = int(os.environ.get("FLAT_LOAN_RATE_PRECISION", "8"))
    app.config["MAX_REPAYMENTS"] = int(os.environ.get("FLAT_LOAN_MAX_REPAYMENTS", "1200"))
    if config:
        app.config.update(config)

    generator = FlatLoanScheduleGenerator(
        date_sequencer=DueDateSequencer(),
        periods_calculator=PeriodsPerYearCalculator(),
        engine=AmortizationEngine(rate_precision=app.config["RATE_PRECISION"]),
    )
    assembler = ScheduleAssembler()

    @app.post("/schedule")
    def schedule():
        shape = request.args.get("shape", "rich")
        if shape not in SHAPES:
            return jsonify({"error": f"Unknown shape {shape}"}), 400
        payload = request.get_json(silent=True)
        if not isinstance(payload, dict):
            return jsonify({"error": "Request body must be a JSON object"}), 400
        try:
            terms, metadata = _payload_to_terms(
                payload, app.config["DEFAULT_CURRENCY"], app.config["MAX_REPAYMENTS"]
            )
            loan_schedule = generator.generate(terms)
        except (FlatLoanError, ValueError) as exc:
            logger.info("Rejected schedule request: %s", exc)
            return jsonify({"error": str(exc)}), 400
        return jsonify(assembler.assemble(loan_schedule, metadata, shape).as_dict())

    @app.get("/currencies")
    def currencies():
        return jsonify(
            [
                {
                    "code": c.code,
                    "name": c.name,
                    "decimalPlaces": c.decimal_places,
                    "displaySymbol": c.display_symbol,
                }
                for c in CURRENCY_OPTIONS.values()
            ]
        )

    return app


app = create_app()


if __name__ == "__main__":
    print("Starting flat loan schedule web app...")
    app.run(host="0.0.0.0", port=8710, debug=True)
