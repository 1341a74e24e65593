"""Shared setup for route tests."""

from __future__ import annotations

import unittest
from unittest.mock import patch

from mockfirestore import MockFirestore

from guildhall import create_app
from tests.mock_utils import MockFirestoreBuilder, patch_mockfirestore

patch_mockfirestore()

# Every module that falls back to firestore.client() when no db is passed
FIRESTORE_MODULES = (
    "guildhall",
    "guildhall.auth.routes",
    "guildhall.guild.services",
    "guildhall.feed.services",
    "guildhall.loan.routes",
    "guildhall.loan.services",
    "guildhall.trade.services",
    "guildhall.donation.services",
    "guildhall.split.services",
    "guildhall.tournament.services",
    "guildhall.event.services",
    "guildhall.character.services",
    "guildhall.party.services",
    "guildhall.checklist.services",
)

LEADER_ID = "leader1"
MEMBER_ID = "member1"


class FirebaseTestCase(unittest.TestCase):
    """Runs the app against a MockFirestore with a logged-in member."""

    def setUp(self) -> None:
        """Set up a test client and a comprehensive mock environment."""
        self.mock_db = MockFirestore()
        self.mock_firestore_module = MockFirestoreBuilder.mock_firestore_module(
            self.mock_db
        )

        patchers = [patch("firebase_admin.initialize_app")] + [
            patch(f"{module}.firestore", new=self.mock_firestore_module)
            for module in FIRESTORE_MODULES
        ]
        for p in patchers:
            p.start()
            self.addCleanup(p.stop)

        self.app = create_app(
            {"TESTING": True, "WTF_CSRF_ENABLED": False, "SERVER_NAME": "localhost"}
        )
        self.client = self.app.test_client()
        self.app_context = self.app.app_context()
        self.app_context.push()
        self.addCleanup(self.app_context.pop)

        self.mock_db.collection("guild").document("settings").set(
            {
                "name": "GalaxyCat",
                "secretKey": "meow",
                "leaders": {LEADER_ID: True},
                "members": {
                    LEADER_ID: {"discordName": "Boss", "joinedAt": "2024-01-01"},
                    MEMBER_ID: {"discordName": "Kitty", "joinedAt": "2024-01-02"},
                },
            }
        )
        self.create_user(LEADER_ID, "Boss")
        self.create_user(
            MEMBER_ID,
            "Kitty",
            characters={
                "char1": {"name": "Whiskers", "class": "Mage", "level": 60},
                "char2": {"name": "Mittens", "class": "Archer", "level": 42},
            },
        )

    def create_user(self, uid, discord_name, characters=None) -> None:
        """Store a user document with a Discord name and characters."""
        self.mock_db.collection("users").document(uid).set(
            {"meta": {"discord": discord_name}, "characters": characters or {}}
        )

    def login(self, uid: str = MEMBER_ID) -> None:
        """Put a user id into the session cookie."""
        with self.client.session_transaction() as sess:
            sess["user_id"] = uid
