"""Service layer for guild membership and leadership."""

from __future__ import annotations

import datetime
import logging
from typing import TYPE_CHECKING, Any, cast

from firebase_admin import firestore

from guildhall.core.constants import (
    DEFAULT_GUILD_NAME,
    GUILD_COLLECTION,
    GUILD_SETTINGS_DOC,
    MERCHANTS_COLLECTION,
    USERS_COLLECTION,
)
from guildhall.errors import (
    DuplicateResourceError,
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
)

from .models import GuildMember, GuildSettings

if TYPE_CHECKING:
    from google.cloud.firestore_v1.client import Client
    from google.cloud.firestore_v1.document import DocumentReference

logger = logging.getLogger(__name__)


class GuildService:
    """Handles the guild settings document and membership records."""

    @staticmethod
    def _settings_ref(db: Client) -> DocumentReference:
        return db.collection(GUILD_COLLECTION).document(GUILD_SETTINGS_DOC)

    @staticmethod
    def get_guild(db: Client | None = None) -> GuildSettings | None:
        """Fetch the guild settings, or None before the guild is initialized."""
        if db is None:
            db = firestore.client()
        doc = cast(Any, GuildService._settings_ref(db).get())
        if not doc.exists:
            return None
        return cast(GuildSettings, doc.to_dict() or {})

    @staticmethod
    def _require_guild(db: Client) -> GuildSettings:
        guild = GuildService.get_guild(db)
        if guild is None:
            raise NotFoundError("Guild has not been initialized.")
        return guild

    @staticmethod
    def initialize_guild(
        secret_key: str,
        first_leader_uid: str,
        name: str = DEFAULT_GUILD_NAME,
        db: Client | None = None,
    ) -> GuildSettings:
        """Create the guild with its first leader. Fails if a guild exists."""
        if db is None:
            db = firestore.client()
        if GuildService.get_guild(db) is not None:
            raise DuplicateResourceError("Guild already exists.")
        if not secret_key:
            raise ValidationError("A secret key is required.")

        guild_data: GuildSettings = {
            "name": name,
            "secretKey": secret_key,
            "leaders": {first_leader_uid: True},
            "members": {
                first_leader_uid: {
                    "discordName": "Leader",
                    "joinedAt": _iso_now(),
                }
            },
        }
        GuildService._settings_ref(db).set(dict(guild_data))
        logger.info(f"Guild {name} initialized by {first_leader_uid}")
        return guild_data

    @staticmethod
    def verify_secret_key(secret_key: str, db: Client | None = None) -> bool:
        """Check a join secret against the guild settings."""
        guild = GuildService.get_guild(db)
        return bool(guild) and guild.get("secretKey") == secret_key

    @staticmethod
    def update_guild_settings(
        updates: dict[str, Any], requester_uid: str, db: Client | None = None
    ) -> None:
        """Update the guild name or other top-level settings (leaders only)."""
        if db is None:
            db = firestore.client()
        GuildService._require_guild(db)
        if not GuildService.is_guild_leader(requester_uid, db=db):
            raise PermissionDeniedError("Only guild leaders can change settings.")
        # Membership and keys have dedicated operations
        allowed = {k: v for k, v in updates.items() if k == "name"}
        if allowed:
            GuildService._settings_ref(db).update(allowed)

    @staticmethod
    def join_guild(
        uid: str, discord_name: str, secret_key: str, db: Client | None = None
    ) -> GuildMember:
        """Join the guild using its secret key."""
        if db is None:
            db = firestore.client()
        if not GuildService.verify_secret_key(secret_key, db=db):
            raise PermissionDeniedError("Invalid guild secret key.")
        return GuildService.add_member(uid, discord_name, db=db)

    @staticmethod
    def add_member(uid: str, discord_name: str, db: Client | None = None) -> GuildMember:
        """Add a member and mirror their Discord name onto the user document."""
        if db is None:
            db = firestore.client()
        guild = GuildService._require_guild(db)
        member: GuildMember = {"discordName": discord_name, "joinedAt": _iso_now()}
        members = dict(guild.get("members") or {})
        members[uid] = member
        GuildService._settings_ref(db).update({"members": members})

        db.collection(USERS_COLLECTION).document(uid).set(
            {"meta": {"discord": discord_name}}, merge=True
        )
        return member

    @staticmethod
    def remove_member(uid: str, db: Client | None = None) -> None:
        """Remove a member along with their user and merchant records."""
        if db is None:
            db = firestore.client()
        guild = GuildService._require_guild(db)

        members = dict(guild.get("members") or {})
        leaders = dict(guild.get("leaders") or {})
        if uid in members or uid in leaders:
            members.pop(uid, None)
            leaders.pop(uid, None)
            GuildService._settings_ref(db).update(
                {"members": members, "leaders": leaders}
            )

        for collection in (USERS_COLLECTION, MERCHANTS_COLLECTION):
            ref = db.collection(collection).document(uid)
            if cast(Any, ref.get()).exists:
                ref.delete()
        logger.info(f"Removed guild member {uid}")

    @staticmethod
    def list_members(db: Client | None = None) -> list[dict[str, Any]]:
        """List members with their leader flag, sorted by Discord name."""
        guild = GuildService.get_guild(db) or {}
        leaders = guild.get("leaders") or {}
        members = [
            {"uid": uid, **data, "isLeader": bool(leaders.get(uid))}
            for uid, data in (guild.get("members") or {}).items()
        ]
        members.sort(key=lambda m: str(m.get("discordName", "")).lower())
        return members

    @staticmethod
    def is_guild_leader(uid: str, db: Client | None = None) -> bool:
        """Return True if the user is flagged as a leader."""
        try:
            guild = GuildService.get_guild(db)
        except Exception as e:
            logger.error(f"Error checking guild leader: {e}")
            return False
        if not guild:
            return False
        return (guild.get("leaders") or {}).get(uid) is True

    @staticmethod
    def add_leader(uid: str, requester_uid: str, db: Client | None = None) -> None:
        """Promote a member to leader (leaders only)."""
        if db is None:
            db = firestore.client()
        guild = GuildService._require_guild(db)
        if not GuildService.is_guild_leader(requester_uid, db=db):
            raise PermissionDeniedError("Only guild leaders can promote members.")
        if uid not in (guild.get("members") or {}):
            raise NotFoundError("Member not found.")
        leaders = dict(guild.get("leaders") or {})
        leaders[uid] = True
        GuildService._settings_ref(db).update({"leaders": leaders})

    @staticmethod
    def remove_leader(uid: str, requester_uid: str, db: Client | None = None) -> None:
        """Demote a leader. The last leader cannot be removed."""
        if db is None:
            db = firestore.client()
        guild = GuildService._require_guild(db)
        if not GuildService.is_guild_leader(requester_uid, db=db):
            raise PermissionDeniedError("Only guild leaders can demote leaders.")
        leaders = {k: v for k, v in (guild.get("leaders") or {}).items() if v}
        if uid not in leaders:
            raise NotFoundError("Leader not found.")
        if len(leaders) == 1:
            raise ValidationError("The guild needs at least one leader.")
        leaders.pop(uid)
        GuildService._settings_ref(db).update({"leaders": leaders})

    @staticmethod
    def change_secret_key(
        new_secret_key: str, requester_uid: str, db: Client | None = None
    ) -> None:
        """Replace the join secret (leaders only)."""
        if db is None:
            db = firestore.client()
        GuildService._require_guild(db)
        if not GuildService.is_guild_leader(requester_uid, db=db):
            raise PermissionDeniedError("Only guild leaders can change the secret key.")
        if not new_secret_key:
            raise ValidationError("A secret key is required.")
        GuildService._settings_ref(db).update({"secretKey": new_secret_key})


def _iso_now() -> str:
    return datetime.datetime.now(datetime.timezone.utc).isoformat()


def get_discord_name(db: Client, uid: str, fallback: str = "") -> str:
    """Resolve a user's Discord name from users/{uid}.meta.discord."""
    doc = cast(Any, db.collection(USERS_COLLECTION).document(uid).get())
    if not doc.exists:
        return fallback
    meta = (doc.to_dict() or {}).get("meta") or {}
    return meta.get("discord") or fallback


def get_user_characters(db: Client, uid: str) -> dict[str, Any]:
    """Return the characters map stored on users/{uid}."""
    doc = cast(Any, db.collection(USERS_COLLECTION).document(uid).get())
    if not doc.exists:
        return {}
    return (doc.to_dict() or {}).get("characters") or {}
