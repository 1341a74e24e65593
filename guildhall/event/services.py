"""Service layer for guild events."""

from __future__ import annotations

import datetime
import logging
from typing import TYPE_CHECKING, Any, cast

from firebase_admin import firestore

from guildhall.core.constants import EVENT_PARTICIPANTS_COLLECTION, EVENTS_COLLECTION
from guildhall.errors import (
    DuplicateResourceError,
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
)
from guildhall.guild.services import GuildService, get_discord_name
from guildhall.utils import now_ms, snapshot_to_dict, stream_documents

from .models import EventParticipant, GuildEvent

if TYPE_CHECKING:
    from google.cloud.firestore_v1.client import Client
    from google.cloud.firestore_v1.document import DocumentReference

logger = logging.getLogger(__name__)

EDITABLE_FIELDS = (
    "name",
    "description",
    "startAt",
    "endAt",
    "rewardInfo",
    "notifyMessage",
    "color",
)


class EventService:
    """Handles events and their participants subcollection."""

    @staticmethod
    def _load(event_id: str, db: Client) -> tuple[DocumentReference, GuildEvent]:
        ref = db.collection(EVENTS_COLLECTION).document(event_id)
        data = snapshot_to_dict(ref.get())
        if data is None:
            raise NotFoundError("Event not found.")
        return ref, cast(GuildEvent, data)

    @staticmethod
    def _require_manager(event: GuildEvent, uid: str, db: Client) -> None:
        if event.get("ownerUid") == uid:
            return
        if not GuildService.is_guild_leader(uid, db=db):
            raise PermissionDeniedError("Only the organizer or a guild leader can do that.")

    @staticmethod
    def get_event(event_id: str, db: Client | None = None) -> GuildEvent:
        """Fetch an event."""
        if db is None:
            db = firestore.client()
        return EventService._load(event_id, db)[1]

    @staticmethod
    def create_event(
        owner_uid: str, data: dict[str, Any], db: Client | None = None
    ) -> str:
        """Create an event and return its ID."""
        if db is None:
            db = firestore.client()
        if not data.get("name"):
            raise ValidationError("An event name is required.")
        start_at, end_at = data.get("startAt"), data.get("endAt")
        if not start_at or not end_at:
            raise ValidationError("Start and end times are required.")
        if end_at <= start_at:
            raise ValidationError("An event must end after it starts.")

        payload = {k: data[k] for k in EDITABLE_FIELDS if k in data}
        payload.update(
            {
                "ownerUid": owner_uid,
                "isEnded": False,
                "createdAt": now_ms(),
            }
        )
        _, ref = db.collection(EVENTS_COLLECTION).add(payload)
        logger.info(f"Event {ref.id} created by {owner_uid}")
        return str(ref.id)

    @staticmethod
    def update_event(
        event_id: str, uid: str, updates: dict[str, Any], db: Client | None = None
    ) -> GuildEvent:
        """Edit an event that has not ended."""
        if db is None:
            db = firestore.client()
        ref, event = EventService._load(event_id, db)
        EventService._require_manager(event, uid, db)
        if event.get("isEnded"):
            raise ValidationError("This event has already ended.")

        changes = {k: v for k, v in updates.items() if k in EDITABLE_FIELDS}
        start_at = changes.get("startAt", event.get("startAt"))
        end_at = changes.get("endAt", event.get("endAt"))
        if start_at and end_at and end_at <= start_at:
            raise ValidationError("An event must end after it starts.")
        if changes:
            changes["updatedAt"] = now_ms()
            ref.update(changes)
        return cast(GuildEvent, {**event, **changes})

    @staticmethod
    def delete_event(event_id: str, uid: str, db: Client | None = None) -> None:
        """Delete an event and its participant records."""
        if db is None:
            db = firestore.client()
        ref, event = EventService._load(event_id, db)
        EventService._require_manager(event, uid, db)
        for participant in ref.collection(EVENT_PARTICIPANTS_COLLECTION).stream():
            participant.reference.delete()
        ref.delete()
        logger.info(f"Event {event_id} deleted by {uid}")

    @staticmethod
    def end_event(event_id: str, uid: str, db: Client | None = None) -> None:
        """Mark an event as finished."""
        if db is None:
            db = firestore.client()
        ref, event = EventService._load(event_id, db)
        EventService._require_manager(event, uid, db)
        if event.get("isEnded"):
            raise ValidationError("This event has already ended.")
        ref.update({"isEnded": True, "endedAt": now_ms()})

    @staticmethod
    def join_event(event_id: str, uid: str, db: Client | None = None) -> EventParticipant:
        """Sign up for an event."""
        if db is None:
            db = firestore.client()
        ref, event = EventService._load(event_id, db)
        if event.get("isEnded"):
            raise ValidationError("This event has already ended.")
        part_ref = ref.collection(EVENT_PARTICIPANTS_COLLECTION).document(uid)
        if snapshot_to_dict(part_ref.get()) is not None:
            raise DuplicateResourceError("You have already joined this event.")

        participant: EventParticipant = {
            "uid": uid,
            "discordName": get_discord_name(db, uid, fallback=uid),
            "joinedAt": now_ms(),
            "rewardGiven": False,
        }
        part_ref.set(dict(participant))
        return participant

    @staticmethod
    def leave_event(event_id: str, uid: str, db: Client | None = None) -> None:
        """Withdraw from an event."""
        if db is None:
            db = firestore.client()
        ref, event = EventService._load(event_id, db)
        if event.get("isEnded"):
            raise ValidationError("This event has already ended.")
        part_ref = ref.collection(EVENT_PARTICIPANTS_COLLECTION).document(uid)
        if snapshot_to_dict(part_ref.get()) is None:
            raise NotFoundError("You have not joined this event.")
        part_ref.delete()

    @staticmethod
    def list_participants(event_id: str, db: Client | None = None) -> list[dict[str, Any]]:
        """List participants, rewarded members last."""
        if db is None:
            db = firestore.client()
        ref, _ = EventService._load(event_id, db)
        participants = stream_documents(ref.collection(EVENT_PARTICIPANTS_COLLECTION))
        participants.sort(
            key=lambda p: (bool(p.get("rewardGiven")), p.get("joinedAt", 0))
        )
        return participants

    @staticmethod
    def give_reward(
        event_id: str,
        participant_uid: str,
        reward: str,
        uid: str,
        db: Client | None = None,
    ) -> None:
        """Record the reward a participant received."""
        if db is None:
            db = firestore.client()
        if not reward or not reward.strip():
            raise ValidationError("Describe the reward.")
        ref, event = EventService._load(event_id, db)
        EventService._require_manager(event, uid, db)
        part_ref = ref.collection(EVENT_PARTICIPANTS_COLLECTION).document(participant_uid)
        if snapshot_to_dict(part_ref.get()) is None:
            raise NotFoundError("Participant not found.")
        part_ref.update({"rewardGiven": True, "rewardNote": reward.strip()})

    @staticmethod
    def save_announcement(
        event_id: str, message: str, uid: str, db: Client | None = None
    ) -> None:
        """Store the Discord announcement for an event."""
        if db is None:
            db = firestore.client()
        ref, event = EventService._load(event_id, db)
        EventService._require_manager(event, uid, db)
        ref.update({"discordAnnounceMessage": message})

    @staticmethod
    def list_events(
        include_ended: bool = False, db: Client | None = None
    ) -> list[dict[str, Any]]:
        """List events by start time. Ended events are hidden by default."""
        if db is None:
            db = firestore.client()
        events = [
            e
            for e in stream_documents(db.collection(EVENTS_COLLECTION))
            if include_ended or not e.get("isEnded")
        ]
        events.sort(key=lambda e: e.get("startAt", 0))
        return events

    @staticmethod
    def announcement_text(event: dict[str, Any], link: str = "") -> str:
        """Build the message posted to Discord for an event."""
        start_at = event.get("startAt")
        if start_at:
            start = datetime.datetime.fromtimestamp(
                start_at / 1000, tz=datetime.timezone.utc
            ).strftime("%d %B %Y %H:%M UTC")
        else:
            start = "-"

        lines = []
        message = event.get("discordAnnounceMessage")
        if message:
            lines += [f"📢 {message}", ""]
        lines += [
            f"🎉 {event.get('name', '')}",
            f"📝 {event.get('description', '')}",
            f"🗓️ Starts: {start}",
            f"🎁 Reward: {event.get('rewardInfo', '')}",
        ]
        if link:
            lines += ["", f"🔗 Sign up at {link}"]
        return "\n".join(lines)
