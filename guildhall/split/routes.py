"""Routes for the split blueprint."""

from __future__ import annotations

from typing import Any

from flask import current_app, jsonify, request, session

from guildhall.auth.decorators import login_required
from guildhall.errors import ValidationError
from guildhall.utils import api_response, require_valid

from . import bp
from .forms import (
    CreateBillForm,
    CustomParticipantForm,
    ItemNameForm,
    PaidForm,
    ParticipantForm,
    StampForm,
)
from .services import SplitBillService
from .utils import gold_from_stamps


def _with_summary(bill: dict[str, Any]) -> dict[str, Any]:
    return {**bill, "summary": SplitBillService.bill_summary(bill)}  # type: ignore[arg-type]


@bp.route("/", methods=["GET"])
@login_required
def list_bills() -> Any:
    """List the caller's bills with their per-person share."""
    bills = SplitBillService.list_bills(session["user_id"])
    return jsonify([_with_summary(bill) for bill in bills])


@bp.route("/", methods=["POST"])
@login_required
def create_bill() -> Any:
    """Create a bill."""
    form = CreateBillForm()
    require_valid(form)
    payload = request.get_json(silent=True) or {}
    items = payload.get("items") or request.form.getlist("items")
    if not isinstance(items, list):
        raise ValidationError("items must be a list of names.")
    bill = SplitBillService.create_bill(
        session["user_id"],
        form.title.data,
        form.character_id.data,
        [str(name) for name in items],
        ttl_days=current_app.config["SPLIT_BILL_TTL_DAYS"],
    )
    return api_response("Bill created.", data=dict(bill), status=201)


@bp.route("/<string:bill_id>", methods=["GET"])
@login_required
def view_bill(bill_id: str) -> Any:
    """Show a bill with its summary."""
    return jsonify(_with_summary(dict(SplitBillService.get_bill(bill_id))))


@bp.route("/<string:bill_id>", methods=["DELETE"])
@login_required
def delete_bill(bill_id: str) -> Any:
    """Delete a bill."""
    SplitBillService.delete_bill(bill_id, session["user_id"])
    return api_response("Bill deleted.")


@bp.route("/<string:bill_id>/prices", methods=["POST"])
@login_required
def update_prices(bill_id: str) -> Any:
    """Save item prices and the service fee."""
    payload = request.get_json(silent=True) or {}
    prices = payload.get("prices") or {}
    if not isinstance(prices, dict):
        raise ValidationError("prices must map item ids to prices.")
    try:
        prices = {str(k): int(v) for k, v in prices.items()}
        fee = payload.get("serviceFee")
        fee = int(fee) if fee is not None else None
    except (TypeError, ValueError):
        raise ValidationError("Prices must be whole numbers.") from None
    bill = SplitBillService.update_prices(bill_id, session["user_id"], prices, fee)
    return api_response("Prices saved.", data=_with_summary(dict(bill)))


@bp.route("/<string:bill_id>/items", methods=["POST"])
@login_required
def add_item(bill_id: str) -> Any:
    """Add an item."""
    form = ItemNameForm()
    require_valid(form)
    item_id = SplitBillService.add_item(bill_id, session["user_id"], form.name.data)
    return api_response("Item added.", data={"itemId": item_id}, status=201)


@bp.route("/<string:bill_id>/items/<string:item_id>", methods=["POST"])
@login_required
def rename_item(bill_id: str, item_id: str) -> Any:
    """Rename an item."""
    form = ItemNameForm()
    require_valid(form)
    SplitBillService.rename_item(bill_id, session["user_id"], item_id, form.name.data)
    return api_response("Item renamed.")


@bp.route("/<string:bill_id>/participants", methods=["POST"])
@login_required
def add_participant(bill_id: str) -> Any:
    """Add a member's character."""
    form = ParticipantForm()
    require_valid(form)
    participant = SplitBillService.add_participant(
        bill_id, session["user_id"], form.character_id.data
    )
    return api_response("Participant added.", data=dict(participant), status=201)


@bp.route("/<string:bill_id>/participants/custom", methods=["POST"])
@login_required
def add_custom_participant(bill_id: str) -> Any:
    """Add a participant by name only."""
    form = CustomParticipantForm()
    require_valid(form)
    participant = SplitBillService.add_custom_participant(
        bill_id, session["user_id"], form.name.data
    )
    return api_response("Participant added.", data=dict(participant), status=201)


@bp.route("/<string:bill_id>/participants/<string:character_id>", methods=["DELETE"])
@login_required
def remove_participant(bill_id: str, character_id: str) -> Any:
    """Remove a participant."""
    SplitBillService.remove_participant(bill_id, session["user_id"], character_id)
    return api_response("Participant removed.")


@bp.route(
    "/<string:bill_id>/participants/<string:character_id>/paid", methods=["POST"]
)
@login_required
def set_paid(bill_id: str, character_id: str) -> Any:
    """Mark a participant paid or unpaid."""
    form = PaidForm()
    require_valid(form)
    SplitBillService.set_paid(
        bill_id, session["user_id"], character_id, bool(form.paid.data)
    )
    return api_response("Payment updated.")


@bp.route("/characters", methods=["GET"])
@login_required
def search_characters() -> Any:
    """Search member characters by name."""
    return jsonify(SplitBillService.search_characters(request.args.get("q", "")))


@bp.route("/stamps", methods=["POST"])
@login_required
def stamp_calculator() -> Any:
    """Convert stamps to gold at a baht rate."""
    form = StampForm()
    require_valid(form)
    return jsonify(gold_from_stamps(float(form.stamps.data), float(form.gold_rate.data)))
