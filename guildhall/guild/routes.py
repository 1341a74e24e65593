"""Routes for the guild blueprint."""

from __future__ import annotations

from typing import Any

from flask import current_app, jsonify, session

from guildhall.auth.decorators import login_required
from guildhall.errors import NotFoundError
from guildhall.utils import api_response, require_valid

from . import bp
from .forms import InitializeGuildForm, JoinGuildForm, MemberForm, SecretKeyForm
from .services import GuildService


@bp.route("/", methods=["GET"])
@login_required
def view_guild() -> Any:
    """Show the guild name, members and whether the caller leads it."""
    guild = GuildService.get_guild()
    if guild is None:
        raise NotFoundError("Guild has not been initialized.")
    return jsonify(
        {
            "name": guild.get("name") or current_app.config["GUILD_NAME"],
            "members": GuildService.list_members(),
            "isLeader": GuildService.is_guild_leader(session["user_id"]),
        }
    )


@bp.route("/initialize", methods=["POST"])
@login_required
def initialize_guild() -> Any:
    """Create the guild with the caller as its first leader."""
    form = InitializeGuildForm()
    require_valid(form)
    GuildService.initialize_guild(
        form.secret_key.data, session["user_id"], name=form.name.data
    )
    current_app.logger.info(f"Guild initialized by {session['user_id']}")
    return api_response("Guild created.", status=201)


@bp.route("/join", methods=["POST"])
@login_required
def join_guild() -> Any:
    """Join the guild with its secret key."""
    form = JoinGuildForm()
    require_valid(form)
    member = GuildService.join_guild(
        session["user_id"], form.discord_name.data, form.secret_key.data
    )
    return api_response("Welcome to the guild!", data=dict(member))


@bp.route("/secret", methods=["POST"])
@login_required(leader_required=True)
def change_secret_key() -> Any:
    """Replace the guild join secret."""
    form = SecretKeyForm()
    require_valid(form)
    GuildService.change_secret_key(form.secret_key.data, session["user_id"])
    return api_response("Secret key updated.")


@bp.route("/leaders", methods=["POST"])
@login_required(leader_required=True)
def add_leader() -> Any:
    """Promote a member to guild leader."""
    form = MemberForm()
    require_valid(form)
    GuildService.add_leader(form.uid.data, session["user_id"])
    return api_response("Leader added.")


@bp.route("/leaders/<string:uid>", methods=["DELETE"])
@login_required(leader_required=True)
def remove_leader(uid: str) -> Any:
    """Demote a guild leader."""
    GuildService.remove_leader(uid, session["user_id"])
    return api_response("Leader removed.")


@bp.route("/members/<string:uid>", methods=["DELETE"])
@login_required(leader_required=True)
def remove_member(uid: str) -> Any:
    """Remove a member and their records."""
    GuildService.remove_member(uid)
    current_app.logger.info(f"Member {uid} removed by {session['user_id']}")
    return api_response("Member removed.")
