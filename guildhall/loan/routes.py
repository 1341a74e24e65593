"""Routes for the loan blueprint."""

from __future__ import annotations

from typing import Any

from firebase_admin import firestore
from flask import jsonify, request, session

from guildhall.auth.decorators import login_required
from guildhall.errors import ValidationError
from guildhall.guild.services import get_discord_name
from guildhall.utils import api_response, require_valid

from . import bp
from .forms import LoanRequestForm
from .models import Borrower, LoanSource, LoanStatus
from .services import LoanService


def _status_arg() -> str | None:
    status = request.args.get("status")
    if status and status not in {s.value for s in LoanStatus}:
        raise ValidationError(f"Unknown loan status: {status}")
    return status or None


@bp.route("/", methods=["POST"])
@login_required
def request_loan() -> Any:
    """Ask the guild or a merchant for a loan."""
    form = LoanRequestForm()
    require_valid(form)
    uid = session["user_id"]
    name = get_discord_name(firestore.client(), uid, fallback=uid)

    source: LoanSource = {"type": form.source_type.data}
    if form.source_type.data == "merchant":
        source["merchantId"] = form.merchant_id.data
        if form.trade_id.data:
            source["tradeId"] = form.trade_id.data
    borrower: Borrower = {"uid": uid, "discordId": name, "name": name}

    loan = LoanService.create_loan(
        form.amount.data, source, borrower, due_date=form.due_date.data
    )
    return api_response("Loan requested.", data=dict(loan), status=201)


@bp.route("/mine", methods=["GET"])
@login_required
def my_loans() -> Any:
    """List the caller's own loans."""
    return jsonify(LoanService.list_borrower_loans(session["user_id"], _status_arg()))


@bp.route("/merchant", methods=["GET"])
@login_required
def merchant_loans() -> Any:
    """List loans requested from the caller's store."""
    return jsonify(LoanService.list_merchant_loans(session["user_id"], _status_arg()))


@bp.route("/guild", methods=["GET"])
@login_required
def guild_loans() -> Any:
    """List loans drawn from the guild."""
    return jsonify(LoanService.list_guild_loans(_status_arg()))


@bp.route("/<string:loan_id>", methods=["GET"])
@login_required
def view_loan(loan_id: str) -> Any:
    """Show a single loan."""
    return jsonify(LoanService.get_loan(loan_id))


@bp.route("/<string:loan_id>/<string:action>", methods=["POST"])
@login_required
def update_loan(loan_id: str, action: str) -> Any:
    """Move a loan through its lifecycle."""
    uid = session["user_id"]
    if action == "approve":
        loan = LoanService.approve_loan(loan_id, uid)
    elif action == "reject":
        loan = LoanService.reject_loan(loan_id, uid)
    elif action == "return":
        loan = LoanService.mark_returned(loan_id, uid)
    elif action == "complete":
        loan = LoanService.complete_loan(loan_id, uid)
    elif action == "reopen":
        loan = LoanService.reopen_loan(loan_id, uid)
    else:
        raise ValidationError(f"Unknown loan action: {action}")
    return api_response(f"Loan is now {loan.get('status')}.", data=dict(loan))
