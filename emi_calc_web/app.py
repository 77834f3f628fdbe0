import os

from flask import Flask, jsonify, request

from emi_calc.errors import InvalidTermsError
from emi_calc.formatter import schedule_to_dicts
from emi_calc.logging_config import get_logger, setup_logging
from emi_calc.main import compute, schedule_payload, terms_from_mapping
from emi_calc.schedule_store import ScheduleStore, create_store_from_env

logger = get_logger("emi_calc.web")


def _invalid_terms_response(exc: InvalidTermsError):
    logger.warning("Rejected loan terms: %s", exc.reason, extra={"field": exc.field})
    body = {"error": "invalid_terms", "field": exc.field, "reason": exc.reason}
    return jsonify(body), 400


def _request_terms():
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise InvalidTermsError("body", "expected a JSON object")
    return terms_from_mapping(data)


def create_app(store: ScheduleStore = None) -> Flask:
    """Build the Flask application.

    ``store`` defaults to the database named by ``SCHEDULE_DATABASE_URL``.
    """
    app = Flask(__name__)
    app.config["SCHEDULE_STORE"] = store or create_store_from_env(os.environ.get("SCHEDULE_DATABASE_URL"))

    app.register_error_handler(InvalidTermsError, _invalid_terms_response)

    def schedule_store() -> ScheduleStore:
        return app.config["SCHEDULE_STORE"]

    @app.post("/api/schedule")
    def preview_schedule():
        schedule, summary = compute(_request_terms())
        return jsonify(schedule_payload(schedule, summary))

    @app.put("/api/loans/<loan_id>/schedule")
    def regenerate_schedule(loan_id):
        schedule, summary = compute(_request_terms())
        try:
            schedule_store().replace_schedule(loan_id, schedule)
        except ValueError as exc:
            logger.warning("Rejected loan id: %s", exc)
            return jsonify({"error": "invalid_loan_id", "reason": str(exc)}), 400
        payload = schedule_payload(schedule, summary)
        payload["loanId"] = loan_id
        return jsonify(payload), 201

    @app.get("/api/loans/<loan_id>/schedule")
    def get_schedule(loan_id):
        schedule = schedule_store().get_schedule(loan_id)
        if not schedule:
            return jsonify({"error": "not_found", "loanId": loan_id}), 404
        return jsonify({"loanId": loan_id, "schedule": schedule_to_dicts(schedule)})

    @app.delete("/api/loans/<loan_id>/schedule")
    def delete_schedule(loan_id):
        if not schedule_store().delete_schedule(loan_id):
            return jsonify({"error": "not_found", "loanId": loan_id}), 404
        return "", 204

    @app.get("/api/loans")
    def list_loans():
        return jsonify({"loanIds": schedule_store().list_loan_ids()})

    return app


if __name__ == "__main__":
    setup_logging()
    print("Starting EMI schedule service...")
    create_app().run(host="0.0.0.0", port=int(os.environ.get("PORT", "8710")), debug=True)
