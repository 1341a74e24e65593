"""Service layer for split bills."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, cast

from firebase_admin import firestore

from guildhall.core.constants import (
    DEFAULT_SPLIT_BILL_TTL_DAYS,
    MS_PER_DAY,
    SPLIT_BILLS_COLLECTION,
    USERS_COLLECTION,
)
from guildhall.errors import NotFoundError, PermissionDeniedError, ValidationError
from guildhall.guild.services import get_user_characters
from guildhall.utils import now_ms, snapshot_to_dict, stream_documents, unique_key

from .models import Bill, BillItem, BillParticipant
from .utils import calculate_split, get_time_remaining, is_expired, is_expiring_soon

if TYPE_CHECKING:
    from google.cloud.firestore_v1.client import Client

logger = logging.getLogger(__name__)


def _participant_from_character(
    character_id: str, character: dict[str, Any], discord_name: str = ""
) -> BillParticipant:
    participant: dict[str, Any] = {
        "characterId": character_id,
        "name": character.get("name", ""),
        "level": character.get("level", 0),
        "class": character.get("class", ""),
        "discordName": discord_name,
    }
    return cast(BillParticipant, participant)


class SplitBillService:
    """Creates, edits and lists split bills."""

    @staticmethod
    def search_characters(query: str, db: Client | None = None) -> list[dict[str, Any]]:
        """Find characters of any member whose name contains the query."""
        if db is None:
            db = firestore.client()
        needle = query.strip().lower()
        if not needle:
            return []
        results = []
        for user in db.collection(USERS_COLLECTION).stream():
            data = user.to_dict() or {}
            discord_name = (data.get("meta") or {}).get("discord", "")
            for character_id, character in (data.get("characters") or {}).items():
                if needle in str(character.get("name", "")).lower():
                    results.append(
                        {
                            **_participant_from_character(
                                character_id, character, discord_name
                            ),
                            "ownerUid": user.id,
                        }
                    )
        return results

    @staticmethod
    def _find_character(character_id: str, db: Client) -> BillParticipant:
        for user in db.collection(USERS_COLLECTION).stream():
            data = user.to_dict() or {}
            character = (data.get("characters") or {}).get(character_id)
            if character:
                discord_name = (data.get("meta") or {}).get("discord", "")
                return _participant_from_character(character_id, character, discord_name)
        raise NotFoundError("Character not found.")

    @staticmethod
    def create_bill(
        owner_uid: str,
        title: str,
        character_id: str,
        item_names: list[str],
        ttl_days: int = DEFAULT_SPLIT_BILL_TTL_DAYS,
        db: Client | None = None,
    ) -> Bill:
        """Create a bill with the owner's character as the first participant."""
        if db is None:
            db = firestore.client()
        if not title or not title.strip():
            raise ValidationError("A bill title is required.")
        names = [name.strip() for name in item_names if name and name.strip()]
        if not names:
            raise ValidationError("Add at least one item.")

        characters = get_user_characters(db, owner_uid)
        character = characters.get(character_id)
        if not character:
            raise ValidationError("Choose one of your own characters.")

        now = now_ms()
        bill: Bill = {
            "title": title.strip(),
            "serviceFee": 0,
            "ownerUid": owner_uid,
            "ownerCharacterId": character_id,
            "createdAt": now,
            "expiresAt": now + ttl_days * MS_PER_DAY,
            "participants": {
                character_id: _participant_from_character(character_id, character)
            },
            "items": {
                f"item{index}": {"name": name, "price": 0}
                for index, name in enumerate(names)
            },
        }
        _, ref = db.collection(SPLIT_BILLS_COLLECTION).add(dict(bill))
        bill["id"] = ref.id
        logger.info(f"Split bill {ref.id} created by {owner_uid}")
        return bill

    @staticmethod
    def list_bills(
        uid: str, db: Client | None = None, now: int | None = None
    ) -> list[dict[str, Any]]:
        """List bills the user owns or takes part in, newest first.

        Expired bills owned by the user are deleted on the way.
        """
        if db is None:
            db = firestore.client()
        if now is None:
            now = now_ms()
        character_ids = set(get_user_characters(db, uid))
        bills_ref = db.collection(SPLIT_BILLS_COLLECTION)

        bills = []
        owned = bills_ref.where(filter=firestore.FieldFilter("ownerUid", "==", uid))
        for doc in owned.stream():
            bill = snapshot_to_dict(doc)
            if bill is None:
                continue
            if is_expired(bill.get("expiresAt", 0), now):
                doc.reference.delete()
                logger.info(f"Deleted expired split bill {doc.id}")
                continue
            bills.append(bill)

        # Participants are keyed by character id, which Firestore cannot match
        live = bills_ref.where(filter=firestore.FieldFilter("expiresAt", ">", now))
        for bill in stream_documents(live):
            if bill.get("ownerUid") == uid:
                continue
            if character_ids & set(bill.get("participants") or {}):
                bills.append(bill)
        bills.sort(key=lambda b: b.get("createdAt", 0), reverse=True)
        return bills

    @staticmethod
    def get_bill(bill_id: str, db: Client | None = None) -> Bill:
        """Fetch a bill."""
        if db is None:
            db = firestore.client()
        data = snapshot_to_dict(
            db.collection(SPLIT_BILLS_COLLECTION).document(bill_id).get()
        )
        if data is None:
            raise NotFoundError("Bill not found.")
        return cast(Bill, data)

    @staticmethod
    def _owned_bill(bill_id: str, uid: str, db: Client) -> Bill:
        bill = SplitBillService.get_bill(bill_id, db=db)
        if bill.get("ownerUid") != uid:
            raise PermissionDeniedError("Only the bill owner can change it.")
        return bill

    @staticmethod
    def _save(bill_id: str, updates: dict[str, Any], db: Client) -> None:
        db.collection(SPLIT_BILLS_COLLECTION).document(bill_id).update(updates)

    @staticmethod
    def update_prices(
        bill_id: str,
        uid: str,
        prices: dict[str, int],
        service_fee: int | None = None,
        db: Client | None = None,
    ) -> Bill:
        """Set the sold price of items and the service fee."""
        if db is None:
            db = firestore.client()
        bill = SplitBillService._owned_bill(bill_id, uid, db)
        items = {k: dict(v) for k, v in (bill.get("items") or {}).items()}
        for item_id, price in prices.items():
            if item_id not in items:
                raise NotFoundError(f"Item {item_id} not found.")
            if price < 0:
                raise ValidationError("Prices cannot be negative.")
            items[item_id]["price"] = int(price)

        updates: dict[str, Any] = {"items": items}
        if service_fee is not None:
            if service_fee < 0:
                raise ValidationError("The service fee cannot be negative.")
            updates["serviceFee"] = int(service_fee)
        SplitBillService._save(bill_id, updates, db)
        return cast(Bill, {**bill, **updates})

    @staticmethod
    def add_item(bill_id: str, uid: str, name: str, db: Client | None = None) -> str:
        """Add an unpriced item and return its id."""
        if db is None:
            db = firestore.client()
        if not name or not name.strip():
            raise ValidationError("An item name is required.")
        bill = SplitBillService._owned_bill(bill_id, uid, db)
        items = dict(bill.get("items") or {})
        item_id = unique_key("item", items)
        items[item_id] = cast(BillItem, {"name": name.strip(), "price": 0})
        SplitBillService._save(bill_id, {"items": items}, db)
        return item_id

    @staticmethod
    def rename_item(
        bill_id: str, uid: str, item_id: str, name: str, db: Client | None = None
    ) -> None:
        """Rename an item, keeping its price."""
        if db is None:
            db = firestore.client()
        if not name or not name.strip():
            raise ValidationError("An item name is required.")
        bill = SplitBillService._owned_bill(bill_id, uid, db)
        items = {k: dict(v) for k, v in (bill.get("items") or {}).items()}
        if item_id not in items:
            raise NotFoundError("Item not found.")
        items[item_id]["name"] = name.strip()
        SplitBillService._save(bill_id, {"items": items}, db)

    @staticmethod
    def add_participant(
        bill_id: str, uid: str, character_id: str, db: Client | None = None
    ) -> BillParticipant:
        """Add a member's character to the bill."""
        if db is None:
            db = firestore.client()
        bill = SplitBillService._owned_bill(bill_id, uid, db)
        participants = dict(bill.get("participants") or {})
        if character_id in participants:
            raise ValidationError("This character is already on the bill.")
        participant = SplitBillService._find_character(character_id, db)
        participants[character_id] = participant
        SplitBillService._save(bill_id, {"participants": participants}, db)
        return participant

    @staticmethod
    def add_custom_participant(
        bill_id: str, uid: str, name: str, db: Client | None = None
    ) -> BillParticipant:
        """Add someone without a registered character."""
        if db is None:
            db = firestore.client()
        if not name or not name.strip():
            raise ValidationError("A name is required.")
        bill = SplitBillService._owned_bill(bill_id, uid, db)
        participants = dict(bill.get("participants") or {})
        custom_id = unique_key("custom", participants)
        participant = _participant_from_character(custom_id, {"name": name.strip()})
        participants[custom_id] = participant
        SplitBillService._save(bill_id, {"participants": participants}, db)
        return participant

    @staticmethod
    def remove_participant(
        bill_id: str, uid: str, character_id: str, db: Client | None = None
    ) -> None:
        """Take a participant off the bill."""
        if db is None:
            db = firestore.client()
        bill = SplitBillService._owned_bill(bill_id, uid, db)
        participants = dict(bill.get("participants") or {})
        if character_id not in participants:
            raise NotFoundError("Participant not found.")
        del participants[character_id]
        SplitBillService._save(bill_id, {"participants": participants}, db)

    @staticmethod
    def set_paid(
        bill_id: str, uid: str, character_id: str, paid: bool, db: Client | None = None
    ) -> None:
        """Record whether a participant has received their share."""
        if db is None:
            db = firestore.client()
        bill = SplitBillService._owned_bill(bill_id, uid, db)
        participants = {k: dict(v) for k, v in (bill.get("participants") or {}).items()}
        if character_id not in participants:
            raise NotFoundError("Participant not found.")
        participants[character_id]["paid"] = bool(paid)
        SplitBillService._save(bill_id, {"participants": participants}, db)

    @staticmethod
    def delete_bill(bill_id: str, uid: str, db: Client | None = None) -> None:
        """Delete a bill."""
        if db is None:
            db = firestore.client()
        SplitBillService._owned_bill(bill_id, uid, db)
        db.collection(SPLIT_BILLS_COLLECTION).document(bill_id).delete()
        logger.info(f"Split bill {bill_id} deleted by {uid}")

    @staticmethod
    def bill_summary(bill: Bill, now: int | None = None) -> dict[str, Any]:
        """Totals, per-person share and expiry for a bill."""
        items = list((bill.get("items") or {}).values())
        participants = bill.get("participants") or {}
        fee = bill.get("serviceFee", 0) or 0
        total = sum(item.get("price") or 0 for item in items)
        count = len(participants)
        share = calculate_split(items, fee, count)
        net = max(total - fee, 0)
        expires_at = bill.get("expiresAt", 0)
        return {
            "total": total,
            "serviceFee": fee,
            "net": net,
            "participantCount": count,
            "share": share,
            "remainder": net - share * count,
            "paidCount": sum(1 for p in participants.values() if p.get("paid")),
            "timeRemaining": get_time_remaining(expires_at, now),
            "expiringSoon": is_expiring_soon(expires_at, now),
        }
