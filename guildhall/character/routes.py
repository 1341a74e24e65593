"""Routes for the character blueprint."""

from __future__ import annotations

from typing import Any

from flask import jsonify, request, session

from guildhall.auth.decorators import login_required
from guildhall.utils import api_response, require_valid

from . import bp
from .forms import CharacterForm
from .services import CharacterService


@bp.route("/", methods=["GET"])
@login_required
def list_characters() -> Any:
    """List the caller's characters."""
    return jsonify(CharacterService.list_characters(session["user_id"]))


@bp.route("/classes", methods=["GET"])
@login_required
def list_classes() -> Any:
    """Playable classes and their main classes."""
    return jsonify(CharacterService.class_list())


@bp.route("/", methods=["POST"])
@login_required
def create_character() -> Any:
    """Add a character."""
    form = CharacterForm()
    require_valid(form)
    stats = (request.get_json(silent=True) or {}).get("stats")
    character = CharacterService.create_character(
        session["user_id"],
        form.name.data,
        form.character_class.data,
        level=form.level.data or 1,
        stats=stats if isinstance(stats, dict) else None,
    )
    return api_response("Character created.", data=dict(character), status=201)


@bp.route("/<string:character_id>", methods=["GET"])
@login_required
def view_character(character_id: str) -> Any:
    """Show one of the caller's characters."""
    return jsonify(CharacterService.get_character(session["user_id"], character_id))


@bp.route("/<string:character_id>", methods=["PUT"])
@login_required
def update_character(character_id: str) -> Any:
    """Edit a character's name, class and level."""
    form = CharacterForm()
    require_valid(form)
    updates: dict[str, Any] = {
        "name": form.name.data,
        "class": form.character_class.data,
    }
    if form.level.data is not None:
        updates["level"] = form.level.data
    character = CharacterService.update_character(
        session["user_id"], character_id, updates
    )
    return api_response("Character updated.", data=dict(character))


@bp.route("/<string:character_id>/stats", methods=["PUT"])
@login_required
def update_stats(character_id: str) -> Any:
    """Save a character's stats."""
    stats = CharacterService.update_stats(
        session["user_id"], character_id, request.get_json(silent=True) or {}
    )
    return api_response("Stats saved.", data=stats)


@bp.route("/<string:character_id>", methods=["DELETE"])
@login_required
def delete_character(character_id: str) -> Any:
    """Delete a character and remove it from its parties."""
    CharacterService.delete_character(session["user_id"], character_id)
    return api_response("Character deleted.")
