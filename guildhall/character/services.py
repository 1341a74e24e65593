"""Service layer for the characters stored on each user document."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, cast

from firebase_admin import firestore

from guildhall.checklist.models import default_checklist
from guildhall.core.constants import USERS_COLLECTION
from guildhall.errors import NotFoundError, ValidationError
from guildhall.party.services import PartyService
from guildhall.utils import now_ms, unique_key

from .models import (
    CHARACTER_CLASSES,
    CLASS_TO_MAIN_CLASS,
    MAX_LEVEL,
    STAT_FIELDS,
    Character,
)

if TYPE_CHECKING:
    from google.cloud.firestore_v1.client import Client
    from google.cloud.firestore_v1.document import DocumentReference

logger = logging.getLogger(__name__)


def _to_number(name: str, value: Any) -> float:
    """Read a stat value; blanks count as zero."""
    if value is None or value == "":
        return 0
    if isinstance(value, bool):
        raise ValidationError(f"{name} must be a number.")
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{name} must be a number.") from None
    if number < 0:
        raise ValidationError(f"{name} cannot be negative.")
    return int(number) if number.is_integer() else number


def build_stats(values: dict[str, Any] | None = None) -> dict[str, float]:
    """Full stat block with every stat present."""
    values = values or {}
    unknown = set(values) - set(STAT_FIELDS)
    if unknown:
        raise ValidationError(f"Unknown stat: {sorted(unknown)[0]}")
    return {name: _to_number(name, values.get(name)) for name in STAT_FIELDS}


def _check_class(character_class: str) -> str:
    if character_class not in CLASS_TO_MAIN_CLASS:
        raise ValidationError(f"Unknown class: {character_class}")
    return CLASS_TO_MAIN_CLASS[character_class]


def _check_level(level: Any) -> int:
    if isinstance(level, bool) or not isinstance(level, int):
        raise ValidationError("Level must be a whole number.")
    if not 1 <= level <= MAX_LEVEL:
        raise ValidationError(f"Level must be between 1 and {MAX_LEVEL}.")
    return level


class CharacterService:
    """Creates, edits and removes a user's characters."""

    @staticmethod
    def _load(uid: str, db: Client) -> tuple[DocumentReference, dict[str, Any]]:
        ref = db.collection(USERS_COLLECTION).document(uid)
        doc = cast(Any, ref.get())
        if not doc.exists:
            raise NotFoundError("User not found.")
        return ref, dict((doc.to_dict() or {}).get("characters") or {})

    @staticmethod
    def class_list() -> list[dict[str, str]]:
        """Every playable class with the main class it belongs to."""
        return [
            {"class": name, "mainClass": CLASS_TO_MAIN_CLASS[name]}
            for name in CHARACTER_CLASSES
        ]

    @staticmethod
    def list_characters(uid: str, db: Client | None = None) -> list[dict[str, Any]]:
        """List a user's characters, oldest first."""
        if db is None:
            db = firestore.client()
        _, characters = CharacterService._load(uid, db)
        result = [{**c, "id": cid} for cid, c in characters.items()]
        result.sort(key=lambda c: (c.get("createdAt", 0), c["id"]))
        return result

    @staticmethod
    def get_character(
        uid: str, character_id: str, db: Client | None = None
    ) -> Character:
        """Fetch one of a user's characters."""
        if db is None:
            db = firestore.client()
        _, characters = CharacterService._load(uid, db)
        if character_id not in characters:
            raise NotFoundError("Character not found.")
        return cast(Character, {**characters[character_id], "id": character_id})

    @staticmethod
    def create_character(
        uid: str,
        name: str,
        character_class: str,
        level: int = 1,
        stats: dict[str, Any] | None = None,
        db: Client | None = None,
    ) -> Character:
        """Add a character with a blank checklist and return it."""
        if db is None:
            db = firestore.client()
        name = (name or "").strip()
        if not name:
            raise ValidationError("A character name is required.")
        main_class = _check_class(character_class)
        ref, characters = CharacterService._load(uid, db)

        character_id = unique_key("char", characters)
        character = cast(
            Character,
            {
                "id": character_id,
                "name": name,
                "level": _check_level(level),
                "class": character_class,
                "mainClass": main_class,
                "stats": build_stats(stats),
                "checklist": default_checklist(),
                "userId": uid,
                "createdAt": now_ms(),
            },
        )
        characters[character_id] = character
        ref.update({"characters": characters})
        logger.info(f"Character {character_id} created for {uid}")
        return character

    @staticmethod
    def update_character(
        uid: str, character_id: str, updates: dict[str, Any], db: Client | None = None
    ) -> Character:
        """Change a character's name, class or level."""
        if db is None:
            db = firestore.client()
        ref, characters = CharacterService._load(uid, db)
        if character_id not in characters:
            raise NotFoundError("Character not found.")

        changes: dict[str, Any] = {}
        if "name" in updates:
            name = (updates["name"] or "").strip()
            if not name:
                raise ValidationError("A character name is required.")
            changes["name"] = name
        if "class" in updates:
            changes["mainClass"] = _check_class(updates["class"])
            changes["class"] = updates["class"]
        if "level" in updates:
            changes["level"] = _check_level(updates["level"])
        if changes:
            changes["updatedAt"] = now_ms()
            characters[character_id] = {**characters[character_id], **changes}
            ref.update({"characters": characters})
        return cast(Character, {**characters[character_id], "id": character_id})

    @staticmethod
    def update_stats(
        uid: str, character_id: str, stats: dict[str, Any], db: Client | None = None
    ) -> dict[str, float]:
        """Overwrite the given stats and keep the rest."""
        if db is None:
            db = firestore.client()
        ref, characters = CharacterService._load(uid, db)
        if character_id not in characters:
            raise NotFoundError("Character not found.")
        character = characters[character_id]

        current = {**build_stats(), **(character.get("stats") or {})}
        unknown = set(stats) - set(STAT_FIELDS)
        if unknown:
            raise ValidationError(f"Unknown stat: {sorted(unknown)[0]}")
        merged = {
            **current,
            **{name: _to_number(name, value) for name, value in stats.items()},
        }
        characters[character_id] = {**character, "stats": merged, "updatedAt": now_ms()}
        ref.update({"characters": characters})
        return merged

    @staticmethod
    def delete_character(uid: str, character_id: str, db: Client | None = None) -> None:
        """Remove a character and take it out of every party."""
        if db is None:
            db = firestore.client()
        ref, characters = CharacterService._load(uid, db)
        if character_id not in characters:
            raise NotFoundError("Character not found.")
        del characters[character_id]
        ref.update({"characters": characters})
        left = PartyService.remove_character(uid, character_id, db=db)
        logger.info(f"Character {character_id} of {uid} deleted, left {left} parties")
