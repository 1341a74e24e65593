"""Routes for the trade blueprint."""

from __future__ import annotations

from typing import Any

from flask import jsonify, request, session

from guildhall.auth.decorators import login_required
from guildhall.errors import NotFoundError
from guildhall.utils import api_response, require_valid

from . import bp
from .forms import GoldTradeForm, ItemForm, ItemStatusForm, MerchantForm, PurchaseForm
from .services import MerchantService, TradeService


@bp.route("/merchants", methods=["GET"])
@login_required
def list_merchants() -> Any:
    """List every store."""
    return jsonify(MerchantService.list_merchants())


@bp.route("/merchants/<string:uid>", methods=["GET"])
@login_required
def view_merchant(uid: str) -> Any:
    """Show one store with its open trades and items."""
    merchant = MerchantService.get_merchant(uid)
    if merchant is None:
        raise NotFoundError("Merchant not found.")
    trades = [t for t in TradeService.list_open_trades() if t.get("merchantId") == uid]
    return jsonify(
        {
            "merchant": merchant,
            "trades": trades,
            "items": TradeService.list_items(seller_uid=uid),
        }
    )


@bp.route("/merchants", methods=["POST"])
@login_required
def register_merchant() -> Any:
    """Open a store for the caller."""
    form = MerchantForm()
    require_valid(form)
    merchant = MerchantService.register_merchant(
        session["user_id"], form.name.data, form.description.data or ""
    )
    return api_response("Store opened.", data=dict(merchant), status=201)


@bp.route("/merchants/me", methods=["PATCH"])
@login_required
def update_merchant() -> Any:
    """Edit the caller's store."""
    merchant = MerchantService.update_merchant(
        session["user_id"], request.get_json(silent=True) or {}
    )
    return api_response("Store updated.", data=dict(merchant))


@bp.route("/gold", methods=["GET"])
@login_required
def list_trades() -> Any:
    """List open gold trades."""
    return jsonify(TradeService.list_open_trades())


@bp.route("/gold", methods=["POST"])
@login_required
def create_trade() -> Any:
    """Offer gold for sale."""
    form = GoldTradeForm()
    require_valid(form)
    trade = TradeService.create_gold_trade(
        session["user_id"], form.amount.data, float(form.price_per_100.data)
    )
    return api_response("Trade opened.", data=dict(trade), status=201)


@bp.route("/gold/<string:trade_id>", methods=["PATCH"])
@login_required
def update_trade(trade_id: str) -> Any:
    """Edit the caller's trade."""
    trade = TradeService.update_gold_trade(
        trade_id, session["user_id"], request.get_json(silent=True) or {}
    )
    return api_response("Trade updated.", data=dict(trade))


@bp.route("/gold/<string:trade_id>/purchase", methods=["POST"])
@login_required
def request_purchase(trade_id: str) -> Any:
    """Reserve gold from a trade."""
    form = PurchaseForm()
    require_valid(form)
    confirm = TradeService.request_purchase(
        trade_id, session["user_id"], form.amount.data
    )
    return api_response("Purchase requested.", data=dict(confirm), status=201)


@bp.route("/gold/<string:trade_id>/purchase/<string:confirm_id>", methods=["POST"])
@login_required
def confirm_purchase(trade_id: str, confirm_id: str) -> Any:
    """Merchant confirms a delivered purchase."""
    confirm = TradeService.confirm_purchase(trade_id, session["user_id"], confirm_id)
    return api_response("Purchase confirmed.", data=dict(confirm))


@bp.route("/gold/<string:trade_id>/purchase/<string:confirm_id>", methods=["DELETE"])
@login_required
def cancel_purchase(trade_id: str, confirm_id: str) -> Any:
    """Merchant cancels a purchase."""
    confirm = TradeService.cancel_purchase(trade_id, session["user_id"], confirm_id)
    return api_response("Purchase cancelled.", data=dict(confirm))


@bp.route("/items", methods=["GET"])
@login_required
def list_items() -> Any:
    """List available items."""
    return jsonify(TradeService.list_items(seller_uid=request.args.get("seller")))


@bp.route("/items", methods=["POST"])
@login_required
def create_item() -> Any:
    """List an item for sale."""
    form = ItemForm()
    require_valid(form)
    item = TradeService.create_item(
        session["user_id"],
        form.name.data,
        float(form.price.data),
        description=form.description.data or "",
    )
    return api_response("Item listed.", data=dict(item), status=201)


@bp.route("/items/<string:item_id>/status", methods=["POST"])
@login_required
def set_item_status(item_id: str) -> Any:
    """Mark an item sold or available."""
    form = ItemStatusForm()
    require_valid(form)
    item = TradeService.set_item_status(item_id, session["user_id"], form.status.data)
    return api_response("Item updated.", data=dict(item))
