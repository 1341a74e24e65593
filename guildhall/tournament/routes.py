"""Routes for the tournament blueprint."""

from __future__ import annotations

from typing import Any

from flask import current_app, jsonify, request, session

from guildhall.auth.decorators import login_required
from guildhall.guild.services import GuildService
from guildhall.utils import api_response, require_valid

from . import bp
from .bracket import tournament_status
from .forms import BracketForm, JoinTournamentForm, TournamentForm, WinnerForm
from .services import TournamentService


@bp.route("/", methods=["GET"])
@login_required
def list_tournaments() -> Any:
    """List tournaments, filtered by ``?status=`` when given."""
    return jsonify(TournamentService.list_tournaments(request.args.get("status")))


@bp.route("/", methods=["POST"])
@login_required(leader_required=True)
def create_tournament() -> Any:
    """Create a tournament."""
    form = TournamentForm()
    require_valid(form)
    tournament_id = TournamentService.create_tournament(
        form.name.data,
        session["user_id"],
        description=form.description.data or "",
        max_participants=form.max_participants.data
        or current_app.config["TOURNAMENT_MAX_PARTICIPANTS"],
    )
    return api_response(
        "Tournament created.", data={"id": tournament_id}, status=201
    )


@bp.route("/<string:tournament_id>", methods=["GET"])
@login_required
def view_tournament(tournament_id: str) -> Any:
    """Show a tournament with its bracket progress."""
    tournament = TournamentService.get_tournament(tournament_id)
    return jsonify(
        {
            **tournament,
            "progress": tournament_status(tournament.get("matches") or []),
            "isGuildLeader": GuildService.is_guild_leader(session["user_id"]),
        }
    )


@bp.route("/<string:tournament_id>", methods=["DELETE"])
@login_required(leader_required=True)
def delete_tournament(tournament_id: str) -> Any:
    """Delete a tournament."""
    TournamentService.delete_tournament(tournament_id, session["user_id"])
    return api_response("Tournament deleted.")


@bp.route("/<string:tournament_id>/join", methods=["POST"])
@login_required
def join_tournament(tournament_id: str) -> Any:
    """Enter one of the caller's characters."""
    form = JoinTournamentForm()
    require_valid(form)
    participant = TournamentService.join_tournament(
        tournament_id, session["user_id"], form.character_id.data
    )
    return api_response("Joined the tournament.", data=dict(participant), status=201)


@bp.route("/<string:tournament_id>/leave", methods=["POST"])
@login_required
def leave_tournament(tournament_id: str) -> Any:
    """Withdraw from a tournament."""
    TournamentService.leave_tournament(tournament_id, session["user_id"])
    return api_response("Left the tournament.")


@bp.route("/<string:tournament_id>/bracket", methods=["POST"])
@login_required(leader_required=True)
def generate_bracket(tournament_id: str) -> Any:
    """Draw the bracket."""
    form = BracketForm()
    require_valid(form)
    tournament = TournamentService.generate_bracket(
        tournament_id, form.bracket_type.data, session["user_id"]
    )
    return api_response("Bracket drawn.", data={"matches": tournament["matches"]})


@bp.route("/<string:tournament_id>/bracket", methods=["DELETE"])
@login_required(leader_required=True)
def reset_bracket(tournament_id: str) -> Any:
    """Reset the tournament to sign-ups."""
    TournamentService.reset_bracket(tournament_id, session["user_id"])
    return api_response("Tournament reset.")


@bp.route("/<string:tournament_id>/winner", methods=["POST"])
@login_required(leader_required=True)
def record_winner(tournament_id: str) -> Any:
    """Declare the winner of a match."""
    form = WinnerForm()
    require_valid(form)
    tournament = TournamentService.record_winner(
        tournament_id, form.match_id.data, form.winner.data, session["user_id"]
    )
    return api_response(
        "Winner recorded.",
        data={
            "status": tournament.get("status"),
            "champion": tournament.get("champion"),
            "matches": tournament.get("matches"),
        },
    )
