"""Routes for the party blueprint."""

from __future__ import annotations

from typing import Any

from flask import jsonify, request, session, url_for

from guildhall.auth.decorators import login_required
from guildhall.utils import api_response, require_valid

from . import bp
from .forms import CharacterChoiceForm, CreatePartyForm, InviteForm, RenamePartyForm
from .models import NESTS, max_members_for_nest
from .services import PartyService


@bp.route("/", methods=["GET"])
@login_required
def list_parties() -> Any:
    """List parties, filtered by ``?nest=`` when given."""
    return jsonify(PartyService.list_parties(request.args.get("nest")))


@bp.route("/nests", methods=["GET"])
@login_required
def list_nests() -> Any:
    """Nests a party can be opened for, with their party size."""
    return jsonify([{"nest": n, "maxMember": max_members_for_nest(n)} for n in NESTS])


@bp.route("/", methods=["POST"])
@login_required
def create_party() -> Any:
    """Open a party."""
    form = CreatePartyForm()
    require_valid(form)
    party = PartyService.create_party(
        session["user_id"], form.character_id.data, form.nest.data, name=form.name.data
    )
    return api_response("Party created.", data=dict(party), status=201)


@bp.route("/<string:party_id>", methods=["GET"])
@login_required
def view_party(party_id: str) -> Any:
    """Show a party with its members, average stats and invite text."""
    party = PartyService.get_party(party_id)
    members = PartyService.member_details(party)
    link = url_for("party.view_party", party_id=party_id, _external=True)
    return jsonify(
        {
            **party,
            "memberDetails": members,
            "averageStats": PartyService.average_stats(members),
            "invite": PartyService.invite_text(dict(party), members, link=link),
        }
    )


@bp.route("/<string:party_id>", methods=["PATCH"])
@login_required
def rename_party(party_id: str) -> Any:
    """Rename a party."""
    form = RenamePartyForm()
    require_valid(form)
    party = PartyService.rename_party(party_id, session["user_id"], form.name.data)
    return api_response("Party renamed.", data=dict(party))


@bp.route("/<string:party_id>", methods=["DELETE"])
@login_required
def delete_party(party_id: str) -> Any:
    """Disband a party."""
    PartyService.delete_party(party_id, session["user_id"])
    return api_response("Party disbanded.")


@bp.route("/<string:party_id>/join", methods=["POST"])
@login_required
def join_party(party_id: str) -> Any:
    """Join a party with one of the caller's characters."""
    form = CharacterChoiceForm()
    require_valid(form)
    party = PartyService.join_party(party_id, session["user_id"], form.character_id.data)
    return api_response("Joined the party.", data=dict(party))


@bp.route("/<string:party_id>/leave", methods=["POST"])
@login_required
def leave_party(party_id: str) -> Any:
    """Take the caller's character out of a party."""
    form = CharacterChoiceForm()
    require_valid(form)
    party = PartyService.leave_party(
        party_id, session["user_id"], form.character_id.data
    )
    if party is None:
        return api_response("Left the party. It was empty and has been closed.")
    return api_response("Left the party.", data=dict(party))


@bp.route("/<string:party_id>/members/<string:character_id>", methods=["DELETE"])
@login_required
def kick_member(party_id: str, character_id: str) -> Any:
    """Leader removes a member."""
    PartyService.kick_member(party_id, session["user_id"], character_id)
    return api_response("Member removed.")


@bp.route("/<string:party_id>/goals", methods=["PUT"])
@login_required
def update_goals(party_id: str) -> Any:
    """Set the party's stat targets."""
    goals = PartyService.update_goals(
        party_id, session["user_id"], request.get_json(silent=True) or {}
    )
    return api_response("Goals saved.", data=goals)


@bp.route("/<string:party_id>/invite", methods=["POST"])
@login_required
def invite_text(party_id: str) -> Any:
    """Build the Discord invite with an optional message."""
    form = InviteForm()
    require_valid(form)
    party = PartyService.get_party(party_id)
    members = PartyService.member_details(party)
    link = url_for("party.view_party", party_id=party_id, _external=True)
    text = PartyService.invite_text(dict(party), members, form.message.data or "", link)
    return api_response("Invite ready.", data={"text": text})
