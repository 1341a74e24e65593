"""Service layer for gold and cash donations to the guild."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, cast

from firebase_admin import firestore

from guildhall.core.constants import (
    CASH_DONATIONS_COLLECTION,
    DEFAULT_GUILD_NAME,
    GOLD_DONATIONS_COLLECTION,
)
from guildhall.errors import (
    InvalidTransitionError,
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
)
from guildhall.feed.services import FeedService
from guildhall.guild.services import GuildService, get_discord_name
from guildhall.utils import now_ms, snapshot_to_dict, stream_documents

from .models import Donation

if TYPE_CHECKING:
    from google.cloud.firestore_v1.client import Client

logger = logging.getLogger(__name__)

COLLECTIONS = {"gold": GOLD_DONATIONS_COLLECTION, "cash": CASH_DONATIONS_COLLECTION}


def _collection_for(kind: str) -> str:
    try:
        return COLLECTIONS[kind]
    except KeyError:
        raise ValidationError(f"Unknown donation kind: {kind}") from None


def _guild_name(db: Client) -> str:
    return (GuildService.get_guild(db) or {}).get("name", DEFAULT_GUILD_NAME)


class DonationService:
    """Records donations and lets guild leaders review them."""

    @staticmethod
    def create_gold_donation(
        uid: str,
        amount: int,
        characters: list[dict[str, str]],
        db: Client | None = None,
    ) -> Donation:
        """Offer gold from one or more characters."""
        if db is None:
            db = firestore.client()
        if amount <= 0:
            raise ValidationError("Donation amount must be positive.")
        if not characters:
            raise ValidationError("Choose at least one character.")

        donation: Donation = {
            "userId": uid,
            "discordName": get_discord_name(db, uid, fallback=uid),
            "amount": amount,
            "status": "waiting",
            "type": "gold",
            "characters": characters,
            "createdAt": now_ms(),
        }
        _, ref = db.collection(GOLD_DONATIONS_COLLECTION).add(dict(donation))
        donation["id"] = ref.id
        FeedService.add_donation_feed(
            dict(donation), "gold", "waiting", guild_name=_guild_name(db), db=db
        )
        logger.info(f"Gold donation {ref.id} of {amount}G from {uid}")
        return donation

    @staticmethod
    def create_cash_donation(
        uid: str, amount: int, payment_method: str = "promptpay", db: Client | None = None
    ) -> Donation:
        """Record a cash transfer waiting for a leader to confirm it."""
        if db is None:
            db = firestore.client()
        if amount <= 0:
            raise ValidationError("Donation amount must be positive.")

        donation: Donation = {
            "userId": uid,
            "discordName": get_discord_name(db, uid, fallback=uid),
            "amount": amount,
            "status": "waiting",
            "type": "cash",
            "paymentMethod": payment_method,
            "createdAt": now_ms(),
        }
        _, ref = db.collection(CASH_DONATIONS_COLLECTION).add(dict(donation))
        donation["id"] = ref.id
        logger.info(f"Cash donation {ref.id} of {amount} baht from {uid}")
        return donation

    @staticmethod
    def review_donation(
        kind: str,
        donation_id: str,
        approve: bool,
        reviewer_uid: str,
        db: Client | None = None,
    ) -> Donation:
        """Approve or reject a waiting donation (leaders only)."""
        if db is None:
            db = firestore.client()
        if not GuildService.is_guild_leader(reviewer_uid, db=db):
            raise PermissionDeniedError("Only guild leaders can review donations.")
        ref = db.collection(_collection_for(kind)).document(donation_id)
        data = snapshot_to_dict(ref.get())
        if data is None:
            raise NotFoundError("Donation not found.")

        status = "active" if approve else "rejected"
        if data.get("status") != "waiting":
            raise InvalidTransitionError(data.get("status"), status)

        updates = {"status": status, "approvedAt": now_ms(), "approvedBy": reviewer_uid}
        ref.update(updates)
        donation = cast(Donation, {**data, **updates})
        # Names may have changed since the donation was made
        donation["discordName"] = get_discord_name(
            db, donation.get("userId", ""), fallback=donation.get("discordName", "")
        )
        FeedService.add_donation_feed(
            dict(donation), kind, status, guild_name=_guild_name(db), db=db
        )
        return donation

    @staticmethod
    def list_pending(kind: str, db: Client | None = None) -> list[dict[str, Any]]:
        """List donations of one kind still waiting for review, oldest first."""
        if db is None:
            db = firestore.client()
        donations = [
            d
            for d in stream_documents(db.collection(_collection_for(kind)))
            if d.get("status") == "waiting"
        ]
        donations.sort(key=lambda d: d.get("createdAt", 0))
        return donations

    @staticmethod
    def user_history(uid: str, db: Client | None = None) -> list[dict[str, Any]]:
        """List a member's gold and cash donations, newest first."""
        if db is None:
            db = firestore.client()
        history = []
        for kind, collection in COLLECTIONS.items():
            for donation in stream_documents(db.collection(collection)):
                if donation.get("userId") == uid:
                    history.append({**donation, "type": kind})
        history.sort(key=lambda d: d.get("createdAt", 0), reverse=True)
        return history

    @staticmethod
    def donation_totals(db: Client | None = None) -> dict[str, int]:
        """Sum approved gold donations per member."""
        if db is None:
            db = firestore.client()
        totals: dict[str, int] = {}
        for donation in stream_documents(db.collection(GOLD_DONATIONS_COLLECTION)):
            if donation.get("status") != "active":
                continue
            uid = donation.get("userId", "")
            totals[uid] = totals.get(uid, 0) + int(donation.get("amount", 0))
        return totals
