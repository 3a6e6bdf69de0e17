import logging
import os
from dataclasses import replace
from io import BytesIO
from typing import Optional, Tuple
from uuid import uuid4

from flask import (
    Flask,
    abort,
    current_app,
    jsonify,
    redirect,
    render_template,
    request,
    send_file,
    session,
    url_for,
)

from emi_plan.commands import (
    AddExpense,
    AddRevenue,
    RemoveExpenseAt,
    RemoveRevenueAt,
    SetBankPercent,
    SetCustomLoanType,
    SetGstPercentage,
    SetInterestPerAnnum,
    SetLoanAmount,
    SetLoanTenure,
    SetLoanType,
    SetOwnFundsInterestRate,
    SetOwnPercent,
    SetOwnTenure,
    apply_edit,
    apply_edits,
)
from emi_plan.data_models import LOAN_TYPE_OPTIONS, MANUAL_ENTRY, PERIODS, LoanPlan, default_plan
from emi_plan.engine import simulate_plan
from emi_plan.exporters import (
    DEFAULT_BRAND,
    build_amortization_pdf,
    build_complete_pdf,
    build_latex_report,
    build_pl_pdf,
)
from emi_plan.projector import project_report
from emi_plan.serialization import plan_from_dict, plan_to_dict, result_to_dict
from emi_plan.utils import (
    format_amount,
    format_currency,
    format_percentage,
    format_plain,
    parse_amount,
    parse_int,
    parse_optional_amount,
)
from emi_plan.validator import validate_plan
from emi_plan_web import auth
from emi_plan_web.plan_store import create_store_from_env

SAVED_NOTICE = "Plan saved successfully!"
PREVIEW_ROWS = 120

EXPORTS = {
    "pl": (build_pl_pdf, "application/pdf", "PLOverview.pdf"),
    "amortization": (build_amortization_pdf, "application/pdf", "AmortizationSchedule.pdf"),
    "complete": (build_complete_pdf, "application/pdf", "EMIBreakdown.pdf"),
    "latex": (build_latex_report, "application/x-tex", "EMIBreakdown.tex"),
}


def _settings_from_env() -> dict:
    return {
        "SECRET_KEY": os.environ.get("FLASK_SECRET_KEY", "dev-secret-key"),
        "ASSET_VERSION": os.environ.get("ASSET_VERSION", "1"),
        "DATABASE_URL": os.environ.get("EMI_PLAN_DATABASE_URL"),
        "ACCESS_CODE": os.environ.get("EMI_PLAN_ACCESS_CODE"),
        "BRAND": os.environ.get("EMI_PLAN_BRAND", DEFAULT_BRAND),
        "LOG_LEVEL": os.environ.get("EMI_PLAN_LOG_LEVEL", "INFO"),
    }


def _ensure_user_token() -> str:
    token = session.get("user_token")
    if not token:
        token = uuid4().hex
        session["user_token"] = token
        session.modified = True
    return token


def _plan_store():
    return current_app.extensions["plan_store"]


def _current_plan() -> LoanPlan:
    data = session.get("plan")
    if not data:
        return default_plan()
    try:
        return plan_from_dict(data)
    except ValueError:
        current_app.logger.warning("Discarding unreadable plan in session")
        return default_plan()


def _remember_plan(plan: LoanPlan) -> None:
    session["plan"] = plan_to_dict(plan)
    session.modified = True


def _line_item_commands(form, prefix: str, command_cls) -> list:
    names = form.getlist(f"{prefix}_name")
    amounts = form.getlist(f"{prefix}_amount")
    periods = form.getlist(f"{prefix}_period")
    commands = []
    for index, name in enumerate(names):
        amount = amounts[index] if index < len(amounts) else ""
        period = periods[index] if index < len(periods) else "monthly"
        if period not in PERIODS:
            raise ValueError(f"Unknown period: {period}")
        commands.append(command_cls(name=name.strip(), amount=parse_amount(amount), period=period))
    return commands


def _form_to_commands(form) -> list:
    """Translate the submitted form into edit commands for an empty plan."""
    commands = [
        SetLoanType(form.get("loan_type", "").strip()),
        SetCustomLoanType(form.get("custom_loan_type", "")),
        SetLoanAmount(parse_amount(form.get("loan_amount", ""))),
        SetBankPercent(parse_amount(form.get("bank_percent", ""))),
        SetOwnPercent(parse_amount(form.get("own_percent", ""))),
        SetInterestPerAnnum(parse_amount(form.get("interest_per_annum", ""))),
        SetOwnFundsInterestRate(parse_amount(form.get("own_funds_interest_rate", ""))),
        SetLoanTenure(parse_int(form.get("loan_tenure", ""))),
        SetOwnTenure(parse_int(form.get("own_tenure", ""))),
        SetGstPercentage(parse_optional_amount(form.get("gst_percentage"))),
    ]
    commands += _line_item_commands(form, "revenue", AddRevenue)
    commands += _line_item_commands(form, "expense", AddExpense)
    return commands


def _action_command(action: str):
    """Map a button value such as ``remove_expense:2`` to an edit command."""
    name, _, index = action.partition(":")
    if name == "add_revenue":
        return AddRevenue()
    if name == "add_expense":
        return AddExpense()
    if name in ("remove_revenue", "remove_expense"):
        try:
            position = int(index)
        except ValueError:
            raise ValueError(f"Invalid action: {action}")
        return RemoveRevenueAt(position) if name == "remove_revenue" else RemoveExpenseAt(position)
    return None


def _plan_from_form(form) -> LoanPlan:
    empty = replace(default_plan(), revenues=(), expenses=())
    return apply_edits(empty, _form_to_commands(form))


def _schedule_for_view(result, show_full_schedule: bool) -> Tuple[list, int]:
    if show_full_schedule:
        return result.amortization, 0
    preview = result.amortization[:PREVIEW_ROWS]
    return preview, len(result.amortization) - len(preview)


def _analyse(plan: LoanPlan, show_full_schedule: bool):
    error = validate_plan(plan)
    if error:
        return error, None, None, [], 0
    result = simulate_plan(plan)
    schedule, truncated = _schedule_for_view(result, show_full_schedule)
    return None, result, project_report(result), schedule, truncated


def index():
    user_token = _ensure_user_token()
    plan = _current_plan()
    notice: Optional[str] = None
    form_error: Optional[str] = None
    show_full_schedule = False

    if request.method == "POST":
        action = request.form.get("action", "run")
        # the hidden field carries the current state; the toggle buttons override it
        show_full_schedule = (
            "1" in request.form.getlist("show_full_schedule")
            and "collapse_schedule" not in request.form
        )
        try:
            plan = _plan_from_form(request.form)
            command = _action_command(action)
            if command is not None:
                plan = apply_edit(plan, command)
        except (ValueError, IndexError) as exc:
            form_error = str(exc)
        else:
            _remember_plan(plan)
            if action == "save":
                error = validate_plan(plan)
                if error is None:
                    _plan_store().save_plan(user_token, plan)
                    notice = SAVED_NOTICE

    error, result, projection, schedule, truncated = _analyse(plan, show_full_schedule)
    if form_error:
        # the last valid results are not shown for input that could not be read
        error, result, projection, schedule, truncated = form_error, None, None, [], 0

    return render_template(
        "index.html",
        plan=plan,
        error=error,
        notice=notice,
        result=result,
        projection=projection,
        schedule=schedule,
        truncated=truncated,
        show_full_schedule=show_full_schedule,
        preview_rows=PREVIEW_ROWS,
        saved_plans=_plan_store().list_plans(user_token),
        loan_type_options=LOAN_TYPE_OPTIONS,
        manual_entry=MANUAL_ENTRY,
        periods=PERIODS,
        asset_version=current_app.config["ASSET_VERSION"],
        gate_enabled=auth.gate_enabled(),
    )


def load_plan():
    plan_id = request.form.get("plan_id", "")
    saved = _plan_store().get_plan(_ensure_user_token(), plan_id)
    if saved is None:
        current_app.logger.info("Saved plan %s not found", plan_id)
    else:
        _remember_plan(saved.loan_plan)
    return redirect(url_for("index"))


def remove_plan():
    _plan_store().remove_plan(session.get("user_token"), request.form.get("plan_id", ""))
    return redirect(url_for("index"))


def clear_plans():
    _plan_store().clear_plans(session.get("user_token"))
    return redirect(url_for("index"))


def new_plan():
    session.pop("plan", None)
    return redirect(url_for("index"))


def export_report(kind: str):
    if kind not in EXPORTS:
        abort(404)
    plan = _current_plan()
    error = validate_plan(plan)
    if error:
        return error, 400
    builder, mimetype, filename = EXPORTS[kind]
    content = builder(plan, simulate_plan(plan), brand=current_app.config["BRAND"])
    if isinstance(content, str):
        content = content.encode("utf-8")
    current_app.logger.info("Exporting %s report for %s", kind, plan.plan_name)
    return send_file(BytesIO(content), mimetype=mimetype, as_attachment=True, download_name=filename)


def api_simulate():
    plan = _current_plan()
    error = validate_plan(plan)
    if error:
        return jsonify({"error": error, "loanPlan": plan_to_dict(plan)}), 400
    return jsonify({"loanPlan": plan_to_dict(plan), "result": result_to_dict(simulate_plan(plan))})


def create_app(config: Optional[dict] = None) -> Flask:
    app = Flask(__name__)
    app.config.update(_settings_from_env())
    if config:
        app.config.update(config)
    app.secret_key = app.config["SECRET_KEY"]
    app.logger.setLevel(getattr(logging, str(app.config["LOG_LEVEL"]).upper(), logging.INFO))
    app.extensions["plan_store"] = create_store_from_env(app.config.get("DATABASE_URL"))

    app.jinja_env.filters["amount"] = format_amount
    app.jinja_env.filters["currency"] = format_currency
    app.jinja_env.filters["percent"] = format_percentage
    app.jinja_env.filters["plain"] = format_plain

    app.register_blueprint(auth.bp)
    app.before_request(auth.require_login)

    app.add_url_rule("/", "index", index, methods=["GET", "POST"])
    app.add_url_rule("/plans/new", "new_plan", new_plan, methods=["POST"])
    app.add_url_rule("/plans/load", "load_plan", load_plan, methods=["POST"])
    app.add_url_rule("/plans/remove", "remove_plan", remove_plan, methods=["POST"])
    app.add_url_rule("/plans/clear", "clear_plans", clear_plans, methods=["POST"])
    app.add_url_rule("/export/<kind>", "export_report", export_report)
    app.add_url_rule("/api/simulate", "api_simulate", api_simulate)
    return app


if __name__ == "__main__":
    print("Starting EMI Plan Calculator web app...")
    create_app().run(host="0.0.0.0", port=8710, debug=True)
