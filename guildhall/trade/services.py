"""Service layer for merchants, gold trades and listed items."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, cast

from firebase_admin import firestore

from guildhall.core.constants import (
    MERCHANTS_COLLECTION,
    TRADE_COLLECTION,
    TRADE_ITEMS_COLLECTION,
)
from guildhall.errors import (
    DuplicateResourceError,
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
)
from guildhall.feed.services import FeedService
from guildhall.guild.services import get_discord_name
from guildhall.utils import now_ms, snapshot_to_dict, stream_documents, unique_key

from .models import ITEM_STATUSES, GoldTrade, Merchant, TradeConfirm, TradeItem

if TYPE_CHECKING:
    from google.cloud.firestore_v1.client import Client

logger = logging.getLogger(__name__)

MERCHANT_EDITABLE_FIELDS = ("name", "description", "goldAvailable")


class MerchantService:
    """Handles the tradeMerchants records."""

    @staticmethod
    def get_merchant(uid: str, db: Client | None = None) -> Merchant | None:
        """Fetch a merchant record by user id."""
        if db is None:
            db = firestore.client()
        data = snapshot_to_dict(db.collection(MERCHANTS_COLLECTION).document(uid).get())
        return cast(Merchant, data) if data else None

    @staticmethod
    def register_merchant(
        uid: str, name: str, description: str = "", db: Client | None = None
    ) -> Merchant:
        """Open a store for a member."""
        if db is None:
            db = firestore.client()
        if MerchantService.get_merchant(uid, db=db) is not None:
            raise DuplicateResourceError("You already have a store.")
        if not name:
            raise ValidationError("A store name is required.")

        merchant: Merchant = {
            "uid": uid,
            "discordName": get_discord_name(db, uid, fallback=name),
            "name": name,
            "description": description,
            "goldAvailable": 0,
            "createdAt": now_ms(),
        }
        db.collection(MERCHANTS_COLLECTION).document(uid).set(dict(merchant))
        logger.info(f"Merchant registered: {uid}")
        return merchant

    @staticmethod
    def update_merchant(
        uid: str, updates: dict[str, Any], db: Client | None = None
    ) -> Merchant:
        """Change a merchant's name, description or available gold."""
        if db is None:
            db = firestore.client()
        merchant = MerchantService.get_merchant(uid, db=db)
        if merchant is None:
            raise NotFoundError("Merchant not found.")
        allowed = {k: v for k, v in updates.items() if k in MERCHANT_EDITABLE_FIELDS}
        if allowed.get("goldAvailable", 0) < 0:
            raise ValidationError("Gold available cannot be negative.")
        if allowed:
            allowed["updatedAt"] = now_ms()
            db.collection(MERCHANTS_COLLECTION).document(uid).update(allowed)
        return cast(Merchant, {**merchant, **allowed})

    @staticmethod
    def list_merchants(db: Client | None = None) -> list[dict[str, Any]]:
        """List all merchants by store name."""
        if db is None:
            db = firestore.client()
        merchants = stream_documents(db.collection(MERCHANTS_COLLECTION))
        merchants.sort(key=lambda m: str(m.get("name", "")).lower())
        return merchants


class TradeService:
    """Gold trades with buyer reservations, and listed items."""

    @staticmethod
    def _require_merchant(uid: str, db: Client) -> Merchant:
        merchant = MerchantService.get_merchant(uid, db=db)
        if merchant is None:
            raise PermissionDeniedError("Register a store before trading.")
        return merchant

    @staticmethod
    def get_gold_trade(trade_id: str, db: Client | None = None) -> GoldTrade:
        """Fetch a gold trade."""
        if db is None:
            db = firestore.client()
        data = snapshot_to_dict(db.collection(TRADE_COLLECTION).document(trade_id).get())
        if data is None:
            raise NotFoundError("Trade not found.")
        return cast(GoldTrade, data)

    @staticmethod
    def create_gold_trade(
        merchant_uid: str, amount: int, price_per_100: float, db: Client | None = None
    ) -> GoldTrade:
        """Offer gold for sale. A merchant may only have one open trade."""
        if db is None:
            db = firestore.client()
        merchant = TradeService._require_merchant(merchant_uid, db)
        if amount <= 0:
            raise ValidationError("Amount must be positive.")
        if price_per_100 <= 0:
            raise ValidationError("Price must be positive.")
        for trade in stream_documents(db.collection(TRADE_COLLECTION)):
            if trade.get("merchantId") == merchant_uid and trade.get("status") == "open":
                raise DuplicateResourceError("You already have an open trade.")

        ref = db.collection(TRADE_COLLECTION).document()
        trade_data: GoldTrade = {
            "tradeId": ref.id,
            "merchantId": merchant_uid,
            "merchantName": merchant.get("discordName", ""),
            "amount": amount,
            "amountLeft": amount,
            "pricePer100": price_per_100,
            "status": "open",
            "confirms": {},
            "createdAt": now_ms(),
        }
        ref.set(dict(trade_data))
        logger.info(f"Gold trade {ref.id} opened by {merchant_uid} for {amount}G")
        return trade_data

    @staticmethod
    def update_gold_trade(
        trade_id: str, merchant_uid: str, updates: dict[str, Any], db: Client | None = None
    ) -> GoldTrade:
        """Change the amount, price or status of a merchant's own trade."""
        if db is None:
            db = firestore.client()
        trade = TradeService.get_gold_trade(trade_id, db=db)
        if trade.get("merchantId") != merchant_uid:
            raise PermissionDeniedError("This is not your trade.")

        changes: dict[str, Any] = {}
        if "amount" in updates:
            amount = int(updates["amount"])
            # Gold already reserved by buyers stays reserved
            reserved = trade.get("amount", 0) - trade.get("amountLeft", 0)
            if amount < reserved:
                raise ValidationError(f"{reserved}G is already reserved by buyers.")
            changes["amount"] = amount
            changes["amountLeft"] = amount - reserved
            changes["status"] = "open" if amount > reserved else "closed"
        if "pricePer100" in updates:
            if float(updates["pricePer100"]) <= 0:
                raise ValidationError("Price must be positive.")
            changes["pricePer100"] = float(updates["pricePer100"])
        if "status" in updates:
            if updates["status"] not in ("open", "closed"):
                raise ValidationError(f"Unknown trade status: {updates['status']}")
            changes["status"] = updates["status"]

        if changes:
            changes["updatedAt"] = now_ms()
            db.collection(TRADE_COLLECTION).document(trade_id).update(changes)
        return cast(GoldTrade, {**trade, **changes})

    @staticmethod
    def request_purchase(
        trade_id: str, buyer_uid: str, amount: int, db: Client | None = None
    ) -> TradeConfirm:
        """Reserve gold from an open trade for a buyer.

        Each reservation is stored under its own confirm id, so earlier
        purchases by the same buyer are kept.
        """
        if db is None:
            db = firestore.client()
        trade = TradeService.get_gold_trade(trade_id, db=db)
        if trade.get("status") != "open":
            raise ValidationError("This trade is closed.")
        if trade.get("merchantId") == buyer_uid:
            raise ValidationError("You cannot buy from your own store.")
        if amount <= 0:
            raise ValidationError("Amount must be positive.")
        amount_left = trade.get("amountLeft", 0)
        if amount > amount_left:
            raise ValidationError(f"Only {amount_left}G is left in this trade.")

        confirms = dict(trade.get("confirms") or {})
        if any(
            c.get("buyerUid") == buyer_uid and c.get("status") == "waiting"
            for c in confirms.values()
        ):
            raise DuplicateResourceError("You already have a pending purchase here.")

        buyer_name = get_discord_name(db, buyer_uid, fallback=buyer_uid)
        confirm_id = unique_key("confirm", confirms)
        confirm: TradeConfirm = {
            "confirmId": confirm_id,
            "buyerUid": buyer_uid,
            "buyerName": buyer_name,
            "amount": amount,
            "status": "waiting",
            "confirmedAt": now_ms(),
        }
        confirms[confirm_id] = confirm
        amount_left -= amount
        db.collection(TRADE_COLLECTION).document(trade_id).update(
            {
                "confirms": confirms,
                "amountLeft": amount_left,
                "status": "closed" if amount_left == 0 else "open",
                "updatedAt": now_ms(),
            }
        )
        FeedService.add_trade_feed(
            trade.get("merchantId", ""),
            trade_id,
            buyer_name,
            amount,
            trade.get("merchantName", ""),
            db=db,
        )
        return confirm

    @staticmethod
    def _settle_purchase(
        trade_id: str, merchant_uid: str, confirm_id: str, status: str, db: Client
    ) -> tuple[GoldTrade, TradeConfirm]:
        trade = TradeService.get_gold_trade(trade_id, db=db)
        if trade.get("merchantId") != merchant_uid:
            raise PermissionDeniedError("This is not your trade.")
        confirms = dict(trade.get("confirms") or {})
        confirm = confirms.get(confirm_id)
        if confirm is None:
            raise NotFoundError("Purchase not found.")
        if confirm.get("status") != "waiting":
            raise ValidationError(f"This purchase is already {confirm.get('status')}.")

        confirm = cast(TradeConfirm, {**confirm, "status": status, "updatedAt": now_ms()})
        confirms[confirm_id] = confirm
        changes: dict[str, Any] = {"confirms": confirms, "updatedAt": now_ms()}
        if status == "cancelled":
            changes["amountLeft"] = trade.get("amountLeft", 0) + confirm.get("amount", 0)
            changes["status"] = "open"
        db.collection(TRADE_COLLECTION).document(trade_id).update(changes)
        return cast(GoldTrade, {**trade, **changes}), confirm

    @staticmethod
    def confirm_purchase(
        trade_id: str, merchant_uid: str, confirm_id: str, db: Client | None = None
    ) -> TradeConfirm:
        """Merchant marks a reservation as delivered."""
        if db is None:
            db = firestore.client()
        trade, confirm = TradeService._settle_purchase(
            trade_id, merchant_uid, confirm_id, "done", db
        )
        FeedService.add_trade_complete_feed(
            merchant_uid,
            trade_id,
            confirm.get("buyerName", ""),
            confirm.get("amount", 0),
            trade.get("merchantName", ""),
            db=db,
        )
        return confirm

    @staticmethod
    def cancel_purchase(
        trade_id: str, merchant_uid: str, confirm_id: str, db: Client | None = None
    ) -> TradeConfirm:
        """Merchant cancels a reservation and returns the gold to the trade."""
        if db is None:
            db = firestore.client()
        _, confirm = TradeService._settle_purchase(
            trade_id, merchant_uid, confirm_id, "cancelled", db
        )
        logger.info(f"Purchase {confirm_id} on trade {trade_id} cancelled")
        return confirm

    @staticmethod
    def list_open_trades(db: Client | None = None) -> list[dict[str, Any]]:
        """List open trades, cheapest first."""
        if db is None:
            db = firestore.client()
        trades = [
            t
            for t in stream_documents(db.collection(TRADE_COLLECTION))
            if t.get("status") == "open" and t.get("amountLeft", 0) > 0
        ]
        trades.sort(key=lambda t: (t.get("pricePer100", 0), -t.get("createdAt", 0)))
        return trades

    @staticmethod
    def create_item(
        seller_uid: str,
        name: str,
        price: float,
        description: str = "",
        db: Client | None = None,
    ) -> TradeItem:
        """List an item for sale."""
        if db is None:
            db = firestore.client()
        merchant = TradeService._require_merchant(seller_uid, db)
        if not name:
            raise ValidationError("An item name is required.")
        if price < 0:
            raise ValidationError("Price cannot be negative.")

        ref = db.collection(TRADE_ITEMS_COLLECTION).document()
        item: TradeItem = {
            "itemId": ref.id,
            "sellerId": seller_uid,
            "sellerName": merchant.get("discordName", ""),
            "name": name,
            "description": description,
            "price": price,
            "status": "available",
            "createdAt": now_ms(),
        }
        ref.set(dict(item))
        return item

    @staticmethod
    def set_item_status(
        item_id: str, seller_uid: str, status: str, db: Client | None = None
    ) -> TradeItem:
        """Mark an item sold or available again."""
        if db is None:
            db = firestore.client()
        if status not in ITEM_STATUSES:
            raise ValidationError(f"Unknown item status: {status}")
        ref = db.collection(TRADE_ITEMS_COLLECTION).document(item_id)
        data = snapshot_to_dict(ref.get())
        if data is None:
            raise NotFoundError("Item not found.")
        item = cast(TradeItem, data)
        if item.get("sellerId") != seller_uid:
            raise PermissionDeniedError("This is not your item.")

        previous = item.get("status")
        ref.update({"status": status, "updatedAt": now_ms()})
        item = cast(TradeItem, {**item, "status": status})
        if status == "sold" and previous != "sold":
            FeedService.add_item_sold_feed(
                seller_uid, item_id, item.get("name", ""), item.get("sellerName", ""), db=db
            )
        return item

    @staticmethod
    def list_items(
        seller_uid: str | None = None,
        status: str | None = "available",
        db: Client | None = None,
    ) -> list[dict[str, Any]]:
        """List items, optionally for one seller and one status."""
        if db is None:
            db = firestore.client()
        items = [
            i
            for i in stream_documents(db.collection(TRADE_ITEMS_COLLECTION))
            if (seller_uid is None or i.get("sellerId") == seller_uid)
            and (status is None or i.get("status") == status)
        ]
        items.sort(key=lambda i: i.get("createdAt", 0), reverse=True)
        return items
