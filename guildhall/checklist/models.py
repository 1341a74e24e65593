"""Data models for the checklist blueprint."""

from __future__ import annotations

import copy
from typing import Literal, TypedDict

ChecklistKind = Literal["daily", "weekly"]

CHECKLIST_KINDS = ("daily", "weekly")

# Clears allowed per week for each nest
WEEKLY_MAX_VALUES = {
    "minotaur": 7,
    "cerberus": 5,
    "cerberusHell": 2,
    "cerberusChallenge": 1,
    "manticore": 3,
    "manticoreHell": 1,
    "apocalypse": 3,
    "apocalypseHell": 1,
    "seaDragon": 2,
    "chaosRiftKamala": 3,
    "chaosRiftBairra": 3,
    "banquetHall": 1,
    "jealousAlbeuteur": 1,
    "themePark": 1,
}

DEFAULT_DAILY_CHECKLIST = {"dailyQuest": False, "ftg": False}
DEFAULT_WEEKLY_CHECKLIST = {key: 0 for key in WEEKLY_MAX_VALUES}

# users/{uid}/meta keys holding the last reset time
LAST_RESET_KEYS = {"daily": "lastResetDaily", "weekly": "lastResetWeekly"}


class DailyChecklist(TypedDict):
    """Daily tasks, each done or not."""

    dailyQuest: bool
    ftg: bool


class CharacterChecklist(TypedDict):
    """A character's daily flags and weekly clear counts."""

    daily: DailyChecklist
    weekly: dict[str, int]


def default_checklist() -> CharacterChecklist:
    """A fresh checklist with nothing done."""
    return {
        "daily": copy.deepcopy(DEFAULT_DAILY_CHECKLIST),  # type: ignore[typeddict-item]
        "weekly": dict(DEFAULT_WEEKLY_CHECKLIST),
    }
