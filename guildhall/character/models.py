"""Data models for the character blueprint."""

from __future__ import annotations

from typing import TypedDict

from guildhall.checklist.models import CharacterChecklist

CLASS_TO_MAIN_CLASS = {
    "Swordsman": "Warrior",
    "Mercenary": "Warrior",
    "Bowmaster": "Archer",
    "Acrobat": "Archer",
    "Force User": "Sorceress",
    "Elemental Lord": "Sorceress",
    "Paladin": "Cleric",
    "Saint": "Cleric",
    "Engineer": "Academic",
    "Alchemist": "Academic",
}
CHARACTER_CLASSES = tuple(CLASS_TO_MAIN_CLASS)

BASE_STATS = ("str", "agi", "int", "vit", "spr", "points")
COMBAT_STATS = ("atk", "hp", "fd", "cri", "ele", "pdef", "mdef")
STAT_FIELDS = BASE_STATS + COMBAT_STATS

MAX_LEVEL = 100


# "class" is a keyword, hence the functional form
Character = TypedDict(
    "Character",
    {
        "id": str,
        "name": str,
        "level": int,
        "class": str,
        "mainClass": str,
        "stats": dict[str, float],
        "checklist": CharacterChecklist,
        "userId": str,
        "createdAt": int,
        "updatedAt": int,
    },
    total=False,
)
