"""Tests for EventService."""

from __future__ import annotations

import unittest

from mockfirestore import MockFirestore

from guildhall.core.constants import MS_PER_HOUR
from guildhall.errors import (
    DuplicateResourceError,
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
)
from guildhall.event.services import EventService

LEADER = "leader1"
OWNER = "owner1"
START = 1_704_067_200_000  # 2024-01-01 00:00 UTC


def event_data(**overrides):
    data = {
        "name": "Boss Raid",
        "description": "Bring potions",
        "startAt": START,
        "endAt": START + 2 * MS_PER_HOUR,
        "rewardInfo": "500G",
    }
    data.update(overrides)
    return data


class EventServiceTestCase(unittest.TestCase):
    def setUp(self) -> None:
        self.db = MockFirestore()
        self.db.collection("guild").document("settings").set(
            {"name": "GalaxyCat", "leaders": {LEADER: True}, "members": {}}
        )
        self.db.collection("users").document("u1").set({"meta": {"discord": "Kitty"}})
        self.event_id = EventService.create_event(OWNER, event_data(), db=self.db)

    def test_create_validation(self) -> None:
        with self.assertRaises(ValidationError):
            EventService.create_event(OWNER, event_data(name=""), db=self.db)
        with self.assertRaises(ValidationError):
            EventService.create_event(OWNER, event_data(endAt=START), db=self.db)
        with self.assertRaises(ValidationError):
            EventService.create_event(OWNER, event_data(startAt=None), db=self.db)

    def test_update_by_owner_or_leader(self) -> None:
        event = EventService.update_event(
            self.event_id, OWNER, {"name": "Mega Raid", "ownerUid": "x"}, db=self.db
        )
        self.assertEqual(event["name"], "Mega Raid")
        self.assertEqual(event["ownerUid"], OWNER)

        EventService.update_event(self.event_id, LEADER, {"color": "red"}, db=self.db)
        with self.assertRaises(PermissionDeniedError):
            EventService.update_event(self.event_id, "u1", {"name": "Mine"}, db=self.db)
        with self.assertRaises(ValidationError):
            EventService.update_event(
                self.event_id, OWNER, {"endAt": START - 1}, db=self.db
            )

    def test_participants(self) -> None:
        participant = EventService.join_event(self.event_id, "u1", db=self.db)
        self.assertEqual(participant["discordName"], "Kitty")
        EventService.join_event(self.event_id, "u2", db=self.db)
        with self.assertRaises(DuplicateResourceError):
            EventService.join_event(self.event_id, "u1", db=self.db)

        EventService.give_reward(self.event_id, "u1", " 500G ", OWNER, db=self.db)
        participants = EventService.list_participants(self.event_id, db=self.db)
        self.assertEqual([p["uid"] for p in participants], ["u2", "u1"])
        self.assertEqual(participants[1]["rewardNote"], "500G")

        with self.assertRaises(NotFoundError):
            EventService.give_reward(self.event_id, "ghost", "1G", OWNER, db=self.db)
        with self.assertRaises(ValidationError):
            EventService.give_reward(self.event_id, "u2", "  ", OWNER, db=self.db)

        EventService.leave_event(self.event_id, "u2", db=self.db)
        with self.assertRaises(NotFoundError):
            EventService.leave_event(self.event_id, "u2", db=self.db)

    def test_ended_event_is_frozen(self) -> None:
        EventService.end_event(self.event_id, LEADER, db=self.db)
        with self.assertRaises(ValidationError):
            EventService.join_event(self.event_id, "u1", db=self.db)
        with self.assertRaises(ValidationError):
            EventService.end_event(self.event_id, LEADER, db=self.db)

        self.assertEqual(EventService.list_events(db=self.db), [])
        self.assertEqual(
            [e["id"] for e in EventService.list_events(include_ended=True, db=self.db)],
            [self.event_id],
        )

    def test_list_events_by_start(self) -> None:
        earlier = EventService.create_event(
            OWNER,
            event_data(startAt=START - MS_PER_HOUR, endAt=START),
            db=self.db,
        )
        self.assertEqual(
            [e["id"] for e in EventService.list_events(db=self.db)],
            [earlier, self.event_id],
        )

    def test_delete_event(self) -> None:
        EventService.join_event(self.event_id, "u1", db=self.db)
        with self.assertRaises(PermissionDeniedError):
            EventService.delete_event(self.event_id, "u1", db=self.db)
        EventService.delete_event(self.event_id, OWNER, db=self.db)
        with self.assertRaises(NotFoundError):
            EventService.get_event(self.event_id, db=self.db)

    def test_announcement(self) -> None:
        EventService.save_announcement(self.event_id, "Tonight!", OWNER, db=self.db)
        event = EventService.get_event(self.event_id, db=self.db)
        text = EventService.announcement_text(dict(event), "https://guild/e/1")
        self.assertEqual(
            text.split("\n"),
            [
                "📢 Tonight!",
                "",
                "🎉 Boss Raid",
                "📝 Bring potions",
                "🗓️ Starts: 01 January 2024 00:00 UTC",
                "🎁 Reward: 500G",
                "",
                "🔗 Sign up at https://guild/e/1",
            ],
        )


if __name__ == "__main__":
    unittest.main()
