"""Routes for the donation blueprint."""

from __future__ import annotations

from typing import Any

from flask import jsonify, request, session

from guildhall.auth.decorators import login_required
from guildhall.errors import ValidationError
from guildhall.utils import api_response, require_valid

from . import bp
from .forms import DonationForm
from .services import COLLECTIONS, DonationService


def _check_kind(kind: str) -> None:
    if kind not in COLLECTIONS:
        raise ValidationError(f"Unknown donation kind: {kind}")


def _characters_from_request() -> list[dict[str, str]]:
    payload = request.get_json(silent=True) or {}
    characters = payload.get("characters") or []
    if not isinstance(characters, list):
        raise ValidationError("characters must be a list.")
    return [
        {k: str(v) for k, v in c.items() if k in ("id", "name", "class")}
        for c in characters
        if isinstance(c, dict)
    ]


@bp.route("/<string:kind>", methods=["POST"])
@login_required
def donate(kind: str) -> Any:
    """Donate gold or cash to the guild."""
    _check_kind(kind)
    form = DonationForm()
    require_valid(form)
    if kind == "gold":
        donation = DonationService.create_gold_donation(
            session["user_id"], form.amount.data, _characters_from_request()
        )
    else:
        donation = DonationService.create_cash_donation(
            session["user_id"],
            form.amount.data,
            payment_method=form.payment_method.data or "promptpay",
        )
    return api_response(
        "Donation sent. A guild leader will confirm it.", data=dict(donation), status=201
    )


@bp.route("/<string:kind>/pending", methods=["GET"])
@login_required(leader_required=True)
def pending(kind: str) -> Any:
    """List donations waiting for review."""
    _check_kind(kind)
    return jsonify(DonationService.list_pending(kind))


@bp.route("/<string:kind>/<string:donation_id>/<string:decision>", methods=["POST"])
@login_required(leader_required=True)
def review(kind: str, donation_id: str, decision: str) -> Any:
    """Approve or reject a donation."""
    _check_kind(kind)
    if decision not in ("approve", "reject"):
        raise ValidationError(f"Unknown decision: {decision}")
    donation = DonationService.review_donation(
        kind, donation_id, decision == "approve", session["user_id"]
    )
    return api_response(f"Donation {donation.get('status')}.", data=dict(donation))


@bp.route("/history", methods=["GET"])
@login_required
def history() -> Any:
    """List the caller's donations."""
    return jsonify(DonationService.user_history(session["user_id"]))


@bp.route("/totals", methods=["GET"])
@login_required
def totals() -> Any:
    """Show approved gold donated by each member."""
    return jsonify(DonationService.donation_totals())
