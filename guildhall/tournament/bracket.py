"""Bracket generation and advancement for elimination tournaments.

Brackets are flat lists of match dicts so they can be stored on the
tournament document as-is. Every function here is pure: it returns new
lists and never touches the database.
"""

from __future__ import annotations

import copy
import math
from typing import Literal, Optional, TypedDict

from guildhall.errors import NotFoundError, ValidationError

PENDING = "pending"
IN_PROGRESS = "in_progress"
COMPLETED = "completed"

# "class" is a keyword, hence the functional form
Participant = TypedDict(
    "Participant",
    {"uid": str, "characterId": str, "characterName": str, "class": str},
)


class Match(TypedDict, total=False):
    """One match of a bracket."""

    id: str
    round: int
    matchNumber: int
    player1: Optional[Participant]
    player2: Optional[Participant]
    winner: Optional[Participant]
    status: Literal["pending", "in_progress", "completed"]
    bracket: Literal["A", "B", "final"]
    # Matches whose result fills player1 / player2
    fromMatchA: str
    fromMatchB: str


class TournamentState(TypedDict):
    """Progress derived from a match list."""

    status: Literal["pending", "active", "completed"]
    champion: Optional[Participant]
    currentRound: Optional[int]


def _seed_with_byes(participants: list[Participant]) -> list[Participant | None]:
    """Pad the seed list with byes up to the next power of two.

    An odd field gives its leading bye to the first seed; the other byes
    go to the end of the list.
    """
    n = len(participants)
    if n < 2:
        raise ValidationError("A bracket needs at least two participants.")
    bracket_size = 2 ** math.ceil(math.log2(n))
    num_byes = bracket_size - n
    if n % 2 == 1:
        return [None, *participants] + [None] * (num_byes - 1)
    return [*participants] + [None] * num_byes


def _winner_bracket(
    slots: list[Participant | None], id_prefix: str, bracket: str | None
) -> list[Match]:
    matches: list[Match] = []
    for i in range(0, len(slots), 2):
        p1, p2 = slots[i], slots[i + 1]
        match: Match = {
            "id": f"{id_prefix}-1-{i // 2 + 1}",
            "round": 1,
            "matchNumber": i // 2 + 1,
            "player1": p1,
            "player2": p2,
            "winner": None,
            "status": IN_PROGRESS if (p1 or p2) else PENDING,
        }
        if bracket:
            match["bracket"] = bracket  # type: ignore[typeddict-item]
        matches.append(match)

    previous = len(slots) // 2
    round_number = 2
    while previous > 1:
        for i in range(previous // 2):
            match = {
                "id": f"{id_prefix}-{round_number}-{i + 1}",
                "round": round_number,
                "matchNumber": i + 1,
                "player1": None,
                "player2": None,
                "winner": None,
                "status": PENDING,
            }
            if bracket:
                match["bracket"] = bracket  # type: ignore[typeddict-item]
            matches.append(match)
        previous //= 2
        round_number += 1
    return matches


def build_single_elimination(participants: list[Participant]) -> list[Match]:
    """Build every match of a single-elimination bracket.

    Round one pairs consecutive seeds; later rounds are empty placeholders
    filled in by advance_winner. A bracket of size S has S - 1 matches.
    """
    return _winner_bracket(_seed_with_byes(participants), "match", None)


def loser_round_sizes(bracket_size: int) -> list[int]:
    """Match count of each loser-bracket round for a winner bracket size."""
    winner_rounds = int(math.log2(bracket_size))
    return [
        max(1, bracket_size // 2 ** ((r + 1) // 2 + 1))
        for r in range(1, 2 * winner_rounds - 1)
    ]


def build_double_elimination(participants: list[Participant]) -> list[Match]:
    """Build a double-elimination bracket: winners (A), losers (B) and a final.

    Loser-bracket matches carry ``fromMatchA``/``fromMatchB`` naming the
    matches that fill their ``player1``/``player2`` slots:

    * B round 1 match i takes the losers of A round 1 matches 2i-1 and 2i.
    * B round 2k match i takes the winner of B round 2k-1 match i and the
      loser of A round k+1 match i.
    * B round 2k+1 match i takes the winners of B round 2k matches 2i-1
      and 2i.

    The final takes the winner of the A final and the winner of the last B
    match, or the loser of the A final when there is no loser bracket.
    """
    slots = _seed_with_byes(participants)
    bracket_size = len(slots)
    matches = _winner_bracket(slots, "A", "A")
    winner_rounds = int(math.log2(bracket_size))

    loser_matches: list[Match] = []
    for r, count in enumerate(loser_round_sizes(bracket_size), start=1):
        for i in range(1, count + 1):
            if r == 1:
                feed_a, feed_b = f"A-1-{2 * i - 1}", f"A-1-{2 * i}"
            elif r % 2 == 0:
                feed_a, feed_b = f"B-{r - 1}-{i}", f"A-{r // 2 + 1}-{i}"
            else:
                feed_a, feed_b = f"B-{r - 1}-{2 * i - 1}", f"B-{r - 1}-{2 * i}"
            loser_matches.append(
                {
                    "id": f"B-{r}-{i}",
                    "round": r,
                    "matchNumber": i,
                    "player1": None,
                    "player2": None,
                    "winner": None,
                    "status": PENDING,
                    "bracket": "B",
                    "fromMatchA": feed_a,
                    "fromMatchB": feed_b,
                }
            )
    matches.extend(loser_matches)

    winner_final = f"A-{winner_rounds}-1"
    matches.append(
        {
            "id": "final-1",
            "round": 1,
            "matchNumber": 1,
            "player1": None,
            "player2": None,
            "winner": None,
            "status": PENDING,
            "bracket": "final",
            "fromMatchA": winner_final,
            "fromMatchB": loser_matches[-1]["id"] if loser_matches else winner_final,
        }
    )
    return matches


def same_participant(a: Participant | None, b: Participant | None) -> bool:
    """Compare two participants by identity rather than dict equality."""
    if a is None or b is None:
        return False
    return (
        a.get("uid") == b.get("uid")
        and a.get("characterId") == b.get("characterId")
        and a.get("characterName") == b.get("characterName")
    )


def _takes_loser(source: Match, target: Match, slot: str) -> bool:
    if source.get("bracket") != "A":
        return False
    return target.get("bracket") == "B" or (
        target.get("bracket") == "final" and slot == "player2"
    )


def _place(target: Match, slot: str, player: Participant | None) -> None:
    target[slot] = player  # type: ignore[literal-required]
    if player is not None and target.get("status") != COMPLETED:
        target["status"] = IN_PROGRESS


def _route(matches: list[Match], source: Match) -> None:
    """Send the result of a completed match to the matches it feeds."""
    winner = source.get("winner")
    loser = None
    for slot in ("player1", "player2"):
        player = source.get(slot)  # type: ignore[misc]
        if player is not None and not same_participant(player, winner):
            loser = player

    for target in matches:
        for slot, key in (("player1", "fromMatchA"), ("player2", "fromMatchB")):
            if target.get(key) == source["id"]:
                result = loser if _takes_loser(source, target, slot) else winner
                _place(target, slot, result)

    if source.get("bracket") in (None, "A"):
        number = source["matchNumber"]
        for target in matches:
            if (
                target.get("bracket") == source.get("bracket")
                and target["round"] == source["round"] + 1
                and target["matchNumber"] == math.ceil(number / 2)
            ):
                _place(target, "player1" if number % 2 == 1 else "player2", winner)
                break


def _feeders(by_id: dict[str, Match], match: Match) -> list[Match]:
    if match.get("bracket") in (None, "A"):
        if match["round"] == 1:
            return []
        n = match["matchNumber"]
        return [
            m
            for m in by_id.values()
            if m.get("bracket") == match.get("bracket")
            and m["round"] == match["round"] - 1
            and m["matchNumber"] in (2 * n - 1, 2 * n)
        ]
    return [
        by_id[key]
        for key in (match.get("fromMatchA"), match.get("fromMatchB"))
        if key in by_id
    ]


def _is_settled(by_id: dict[str, Match], match: Match) -> bool:
    """True once a match can no longer send anyone onward.

    That is a completed match, or an empty one whose feeders are all
    settled (a branch made only of byes).
    """
    if match.get("status") == COMPLETED:
        return True
    if match.get("player1") is not None or match.get("player2") is not None:
        return False
    return all(_is_settled(by_id, m) for m in _feeders(by_id, match))


def _resolve_walkovers(matches: list[Match]) -> None:
    """Complete loser-bracket matches that can only ever hold one player."""
    by_id = {m["id"]: m for m in matches}
    changed = True
    while changed:
        changed = False
        for match in matches:
            if match.get("bracket") != "B" or match.get("status") == COMPLETED:
                continue
            players = [p for p in (match.get("player1"), match.get("player2")) if p]
            if len(players) == 2:
                continue
            if not all(_is_settled(by_id, f) for f in _feeders(by_id, match)):
                continue
            match["winner"] = players[0] if players else None
            match["status"] = COMPLETED
            _route(matches, match)
            changed = True


def advance_winner(
    matches: list[Match], match_id: str, winner: Participant
) -> list[Match]:
    """Record the winner of a match and move players to their next matches.

    The winner takes the ``player1`` slot of the next-round match when the
    match number is odd and ``player2`` when it is even. In a
    double-elimination bracket the loser drops into the loser bracket,
    and loser-bracket matches left with a single possible player are
    settled as walkovers. A match with an empty slot can only be decided
    once every match feeding it is settled. Returns a new list; the input
    is not modified.
    """
    updated = copy.deepcopy(matches)
    match = next((m for m in updated if m["id"] == match_id), None)
    if match is None:
        raise NotFoundError(f"Match {match_id} not found.")
    if match.get("status") == COMPLETED:
        raise ValidationError("This match already has a winner.")

    declared = next(
        (
            p
            for p in (match.get("player1"), match.get("player2"))
            if same_participant(p, winner)
        ),
        None,
    )
    if declared is None:
        raise ValidationError("The winner must be one of the match's players.")
    by_id = {m["id"]: m for m in updated}
    if match.get("player1") is None or match.get("player2") is None:
        if not all(_is_settled(by_id, f) for f in _feeders(by_id, match)):
            raise ValidationError("This match is still waiting for an opponent.")

    match["winner"] = declared
    match["status"] = COMPLETED
    _route(updated, match)
    if any(m.get("bracket") == "B" for m in updated):
        _resolve_walkovers(updated)
    return updated


def tournament_status(matches: list[Match]) -> TournamentState:
    """Derive whether a bracket is pending, active or completed.

    The deciding match is the ``final`` match of a double-elimination
    bracket, or the last-round match otherwise. The current round is the
    lowest main-bracket round still being played.
    """
    if not matches:
        return {"status": "pending", "champion": None, "currentRound": None}

    main = [m for m in matches if m.get("bracket") in (None, "A")]
    finals = [m for m in matches if m.get("bracket") == "final"]
    deciding = finals[0] if finals else max(main, key=lambda m: m["round"])
    last_round = max(m["round"] for m in main)

    if deciding.get("status") == COMPLETED:
        return {
            "status": "completed",
            "champion": deciding.get("winner"),
            "currentRound": last_round,
        }

    playing = [m["round"] for m in main if m.get("status") == IN_PROGRESS]
    return {
        "status": "active",
        "champion": None,
        "currentRound": min(playing) if playing else last_round,
    }
