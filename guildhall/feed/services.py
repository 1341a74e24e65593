"""Service layer for the guild activity feed."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, cast

from firebase_admin import firestore

from guildhall.core.constants import (
    DEFAULT_FEED_PAGE_SIZE,
    DEFAULT_GUILD_NAME,
    FEED_COLLECTION,
    MERCHANT_FEED_COLLECTION,
    MERCHANTS_COLLECTION,
)
from guildhall.utils import now_ms, stream_documents

from .models import Feed, FeedFilters

if TYPE_CHECKING:
    from google.cloud.firestore_v1.client import Client

logger = logging.getLogger(__name__)

# Loan actions and the feed subType they are published under
LOAN_FEED_SUBTYPES = {
    "create": "create",
    "approve": "active",
    "reject": "rejected",
    "return": "return",
    "complete": "complete",
    "reopen": "active",
}


class FeedService:
    """Writes and reads feed records, including the per-merchant fan-out."""

    @staticmethod
    def add_feed(feed: dict[str, Any], db: Client | None = None) -> dict[str, Any]:
        """Append a feed record and fan it out to the merchant's own feed."""
        if db is None:
            db = firestore.client()
        record = {**feed, "timestamp": feed.get("timestamp") or now_ms()}
        db.collection(FEED_COLLECTION).add(record)

        merchant_id = record.get("to")
        if merchant_id:
            if record.get("type") in ("gold", "item"):
                kind = "trade"
            elif record.get("type") == "loan":
                kind = "loan"
            else:
                kind = None
            if kind:
                (
                    db.collection(MERCHANT_FEED_COLLECTION)
                    .document(merchant_id)
                    .collection(kind)
                    .add(record)
                )
        return record

    @staticmethod
    def matches_filters(feed: Feed, filters: FeedFilters | None) -> bool:
        """Check a feed record against type and date-range filters."""
        if not filters:
            return True
        if filters.get("type") and feed.get("type") != filters["type"]:
            return False
        timestamp = feed.get("timestamp", 0)
        if filters.get("start_date") and timestamp < filters["start_date"]:
            return False
        if filters.get("end_date") and timestamp > filters["end_date"]:
            return False
        return True

    @staticmethod
    def get_feeds(
        filters: FeedFilters | None = None,
        limit: int = DEFAULT_FEED_PAGE_SIZE,
        db: Client | None = None,
    ) -> list[dict[str, Any]]:
        """Return the newest feed records first."""
        if db is None:
            db = firestore.client()
        query: Any = db.collection(FEED_COLLECTION)
        if filters and filters.get("type"):
            query = query.where(
                filter=firestore.FieldFilter("type", "==", filters["type"])
            )
        feeds = [
            f
            for f in stream_documents(query)
            if FeedService.matches_filters(cast(Feed, f), filters)
        ]
        feeds.sort(key=lambda f: f.get("timestamp", 0), reverse=True)
        return feeds[:limit]

    @staticmethod
    def get_merchant_feeds(
        merchant_id: str,
        kind: str = "trade",
        limit: int = DEFAULT_FEED_PAGE_SIZE,
        db: Client | None = None,
    ) -> list[dict[str, Any]]:
        """Return a merchant's trade or loan feed, newest first."""
        if db is None:
            db = firestore.client()
        collection = (
            db.collection(MERCHANT_FEED_COLLECTION).document(merchant_id).collection(kind)
        )
        feeds = stream_documents(collection)
        feeds.sort(key=lambda f: f.get("timestamp", 0), reverse=True)
        return feeds[:limit]

    @staticmethod
    def _merchant_display_name(db: Client, merchant_id: str | None) -> str:
        if not merchant_id:
            return ""
        try:
            doc = cast(Any, db.collection(MERCHANTS_COLLECTION).document(merchant_id).get())
            if doc.exists:
                return (doc.to_dict() or {}).get("discordName", "")
        except Exception as e:
            logger.error(f"Error resolving merchant {merchant_id} for feed: {e}")
        return ""

    @staticmethod
    def loan_feed_text(loan: dict[str, Any], action: str, actor: str) -> str:
        """Build the human readable line for a loan event."""
        borrower = (loan.get("borrower") or {}).get("name", "")
        amount = loan.get("amount", 0)
        guild_name = (loan.get("source") or {}).get("guild")

        if action == "create":
            if guild_name:
                return f"@{borrower} asked to borrow {amount}G from guild {guild_name}"
            return f"@{borrower} requested a {amount}G loan from @{actor}"
        if action == "approve":
            if guild_name:
                return f"@{actor} (guild leader) approved the request from @{borrower} ✅"
            return f"@{actor} approved a loan for @{borrower} ✅"
        if action == "reject":
            if guild_name:
                return f"@{actor} (guild leader) rejected the request from @{borrower}"
            return f"@{actor} rejected the loan for @{borrower}"
        if action == "return":
            return f"@{borrower} reported returning {amount}G"
        if action == "complete":
            return f"@{actor} confirmed the repayment from @{borrower} ✅"
        if action == "reopen":
            return f"@{actor} has not received the repayment from @{borrower} yet"
        raise ValueError(f"Unknown loan feed action: {action}")

    @staticmethod
    def add_loan_feed(
        loan: dict[str, Any], action: str, actor: str, db: Client | None = None
    ) -> dict[str, Any]:
        """Publish a loan lifecycle event."""
        if db is None:
            db = firestore.client()
        source = loan.get("source") or {}
        merchant_id = source.get("merchantId")
        merchant_name = FeedService._merchant_display_name(db, merchant_id)

        feed = {
            "type": "loan",
            "subType": LOAN_FEED_SUBTYPES[action],
            "text": FeedService.loan_feed_text(loan, action, actor),
            "from": (loan.get("borrower") or {}).get("discordId", ""),
            "to": merchant_id or "",
            "relatedId": loan.get("loanId", ""),
            "merchantName": merchant_name,
            "merchantDiscord": merchant_name,
            "source": source,
            "borrower": loan.get("borrower"),
            "amount": loan.get("amount"),
            "status": loan.get("status"),
            "createdAt": loan.get("createdAt"),
            "updatedAt": loan.get("updatedAt"),
        }
        return FeedService.add_feed(feed, db=db)

    @staticmethod
    def add_trade_feed(
        merchant_id: str,
        trade_id: str,
        buyer_name: str,
        amount: int,
        merchant_name: str,
        db: Client | None = None,
    ) -> dict[str, Any]:
        """Publish that a buyer reserved gold from a merchant."""
        text = f"@{buyer_name} confirmed buying {amount}G from @{merchant_name}"
        return FeedService.add_feed(
            {
                "type": "gold",
                "subType": "confirm",
                "text": text,
                "from": buyer_name,
                "to": merchant_id,
                "relatedId": trade_id,
                "merchantName": merchant_name,
                "merchantDiscord": merchant_name,
                "amount": amount,
            },
            db=db,
        )

    @staticmethod
    def add_trade_complete_feed(
        merchant_id: str,
        trade_id: str,
        buyer_name: str,
        amount: int,
        merchant_name: str,
        db: Client | None = None,
    ) -> dict[str, Any]:
        """Publish that a merchant delivered reserved gold."""
        text = (
            f"@{merchant_name} confirmed the {amount}G trade with @{buyer_name} ✅"
        )
        return FeedService.add_feed(
            {
                "type": "gold",
                "subType": "complete",
                "text": text,
                "from": merchant_name,
                "to": merchant_id,
                "relatedId": trade_id,
                "merchantName": merchant_name,
                "merchantDiscord": merchant_name,
                "amount": amount,
            },
            db=db,
        )

    @staticmethod
    def add_item_sold_feed(
        merchant_id: str,
        item_id: str,
        item_name: str,
        merchant_name: str,
        db: Client | None = None,
    ) -> dict[str, Any]:
        """Publish that a merchant sold an item."""
        return FeedService.add_feed(
            {
                "type": "item",
                "subType": "complete",
                "text": f"@{merchant_name} sold {item_name}",
                "from": merchant_name,
                "to": merchant_id,
                "relatedId": item_id,
                "merchantName": merchant_name,
                "merchantDiscord": merchant_name,
            },
            db=db,
        )

    @staticmethod
    def add_donation_feed(
        donation: dict[str, Any],
        kind: str,
        status: str,
        guild_name: str = DEFAULT_GUILD_NAME,
        db: Client | None = None,
    ) -> dict[str, Any]:
        """Publish a donation request or its review outcome."""
        name = donation.get("discordName", "")
        amount = donation.get("amount", 0)
        what = f"{amount}G" if kind == "gold" else f"{amount} baht in cash"
        if status == "waiting":
            text = f"@{name} wants to donate {what} to guild {guild_name} 💖"
        elif status == "active":
            text = f"@{name} donated {what} to guild {guild_name} ✅"
        else:
            text = f"@{name}'s donation of {what} to guild {guild_name} was cancelled ❌"

        feed = {
            "type": "donate",
            "subType": status,
            "text": text,
            "from": donation.get("userId", ""),
            "to": "",
            "relatedId": donation.get("id", ""),
            "discordName": name,
            "amount": amount,
            "status": status,
        }
        if kind == "gold":
            feed["characters"] = donation.get("characters", [])
        return FeedService.add_feed(feed, db=db)
