"""Routes for the checklist blueprint."""

from __future__ import annotations

from typing import Any

from flask import jsonify, request, session

from guildhall.auth.decorators import login_required
from guildhall.utils import api_response

from . import bp
from .models import WEEKLY_MAX_VALUES
from .services import ChecklistService


@bp.route("/", methods=["GET"])
@login_required
def view_checklists() -> Any:
    """Show the caller's checklists, resetting them first when due."""
    return jsonify(ChecklistService.get_checklists(session["user_id"]))


@bp.route("/limits", methods=["GET"])
@login_required
def weekly_limits() -> Any:
    """Weekly clear limit of each nest."""
    return jsonify(WEEKLY_MAX_VALUES)


@bp.route("/<string:character_id>", methods=["PUT"])
@login_required
def update_checklist(character_id: str) -> Any:
    """Save a character's checklist."""
    checklist = ChecklistService.update_checklist(
        session["user_id"], character_id, request.get_json(silent=True) or {}
    )
    return api_response("Checklist saved.", data=dict(checklist))


@bp.route("/reset/<string:kind>", methods=["POST"])
@login_required
def reset_checklist(kind: str) -> Any:
    """Clear the caller's daily or weekly checklist now."""
    ChecklistService.reset_checklist(session["user_id"], kind)
    return api_response(f"The {kind} checklist was reset.")
