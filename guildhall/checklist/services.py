"""Service layer for character checklists."""

from __future__ import annotations

import datetime
import logging
from typing import TYPE_CHECKING, Any, cast

from firebase_admin import firestore

from guildhall.core.constants import USERS_COLLECTION
from guildhall.errors import NotFoundError, ValidationError

from .models import (
    CHECKLIST_KINDS,
    DEFAULT_DAILY_CHECKLIST,
    LAST_RESET_KEYS,
    WEEKLY_MAX_VALUES,
    CharacterChecklist,
    default_checklist,
)
from .utils import iso_timestamp, should_reset_daily, should_reset_weekly

if TYPE_CHECKING:
    from google.cloud.firestore_v1.client import Client
    from google.cloud.firestore_v1.document import DocumentReference

logger = logging.getLogger(__name__)


def _clean_daily(values: Any) -> dict[str, bool]:
    if not isinstance(values, dict):
        raise ValidationError("The daily checklist must be an object.")
    unknown = set(values) - set(DEFAULT_DAILY_CHECKLIST)
    if unknown:
        raise ValidationError(f"Unknown daily task: {sorted(unknown)[0]}")
    daily = dict(DEFAULT_DAILY_CHECKLIST)
    for key, done in values.items():
        if not isinstance(done, bool):
            raise ValidationError(f"{key} must be true or false.")
        daily[key] = done
    return daily


def _clean_weekly(values: Any) -> dict[str, int]:
    if not isinstance(values, dict):
        raise ValidationError("The weekly checklist must be an object.")
    weekly = {key: 0 for key in WEEKLY_MAX_VALUES}
    for key, count in values.items():
        if key not in WEEKLY_MAX_VALUES:
            raise ValidationError(f"Unknown weekly task: {key}")
        if isinstance(count, bool) or not isinstance(count, int):
            raise ValidationError(f"{key} must be a whole number.")
        if not 0 <= count <= WEEKLY_MAX_VALUES[key]:
            raise ValidationError(
                f"{key} must be between 0 and {WEEKLY_MAX_VALUES[key]}."
            )
        weekly[key] = count
    return weekly


class ChecklistService:
    """Tracks daily and weekly tasks on each of a user's characters."""

    @staticmethod
    def _load_user(uid: str, db: Client) -> tuple[DocumentReference, dict[str, Any]]:
        ref = db.collection(USERS_COLLECTION).document(uid)
        doc = cast(Any, ref.get())
        if not doc.exists:
            raise NotFoundError("User not found.")
        return ref, doc.to_dict() or {}

    @staticmethod
    def reset_checklist(
        uid: str,
        kind: str,
        db: Client | None = None,
        now: datetime.datetime | None = None,
    ) -> None:
        """Clear one half of every character's checklist and stamp the reset time."""
        if db is None:
            db = firestore.client()
        if kind not in CHECKLIST_KINDS:
            raise ValidationError(f"Unknown checklist: {kind}")
        ref, user = ChecklistService._load_user(uid, db)

        fresh = default_checklist()
        characters = {}
        for character_id, character in (user.get("characters") or {}).items():
            checklist = dict(character.get("checklist") or default_checklist())
            checklist[kind] = fresh[kind]  # type: ignore[literal-required]
            characters[character_id] = {**character, "checklist": checklist}
        meta = {**(user.get("meta") or {}), LAST_RESET_KEYS[kind]: iso_timestamp(now)}
        ref.update({"characters": characters, "meta": meta})
        logger.info(f"Reset {kind} checklist for {uid}")

    @staticmethod
    def check_and_reset(
        uid: str, db: Client | None = None, now: datetime.datetime | None = None
    ) -> list[str]:
        """Run whichever resets are due and return their kinds."""
        if db is None:
            db = firestore.client()
        _, user = ChecklistService._load_user(uid, db)
        meta = user.get("meta") or {}

        due = []
        if should_reset_daily(meta.get(LAST_RESET_KEYS["daily"]), now):
            due.append("daily")
        if should_reset_weekly(meta.get(LAST_RESET_KEYS["weekly"]), now):
            due.append("weekly")
        for kind in due:
            ChecklistService.reset_checklist(uid, kind, db=db, now=now)
        return due

    @staticmethod
    def get_checklists(
        uid: str, db: Client | None = None, now: datetime.datetime | None = None
    ) -> dict[str, Any]:
        """Return each character's checklist after applying due resets."""
        if db is None:
            db = firestore.client()
        reset = ChecklistService.check_and_reset(uid, db=db, now=now)
        _, user = ChecklistService._load_user(uid, db)
        characters = {
            character_id: {
                "name": character.get("name", ""),
                "class": character.get("class", ""),
                "checklist": character.get("checklist") or default_checklist(),
            }
            for character_id, character in (user.get("characters") or {}).items()
        }
        return {"reset": reset, "characters": characters}

    @staticmethod
    def update_checklist(
        uid: str,
        character_id: str,
        checklist: dict[str, Any],
        db: Client | None = None,
    ) -> CharacterChecklist:
        """Replace a character's checklist; both halves are required."""
        if db is None:
            db = firestore.client()
        if "daily" not in checklist or "weekly" not in checklist:
            raise ValidationError("Both the daily and weekly checklists are required.")
        cleaned: CharacterChecklist = {
            "daily": _clean_daily(checklist["daily"]),  # type: ignore[typeddict-item]
            "weekly": _clean_weekly(checklist["weekly"]),
        }

        ref, user = ChecklistService._load_user(uid, db)
        characters = dict(user.get("characters") or {})
        if character_id not in characters:
            raise NotFoundError("Character not found.")
        characters[character_id] = {**characters[character_id], "checklist": cleaned}
        ref.update({"characters": characters})
        return cleaned
