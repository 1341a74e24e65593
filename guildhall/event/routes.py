"""Routes for the event blueprint."""

from __future__ import annotations

from typing import Any

from flask import jsonify, request, session, url_for

from guildhall.auth.decorators import login_required
from guildhall.utils import api_response, require_valid

from . import bp
from .forms import AnnouncementForm, EventForm, RewardForm
from .services import EventService


@bp.route("/", methods=["GET"])
@login_required
def list_events() -> Any:
    """List upcoming events; ?history=1 includes ended ones."""
    include_ended = request.args.get("history") in ("1", "true")
    return jsonify(EventService.list_events(include_ended=include_ended))


@bp.route("/", methods=["POST"])
@login_required
def create_event() -> Any:
    """Create an event."""
    form = EventForm()
    require_valid(form)
    event_id = EventService.create_event(session["user_id"], form.to_event_data())
    return api_response("Event created.", data={"id": event_id}, status=201)


@bp.route("/<string:event_id>", methods=["GET"])
@login_required
def view_event(event_id: str) -> Any:
    """Show an event with its participants."""
    event = EventService.get_event(event_id)
    return jsonify(
        {
            **event,
            "participants": EventService.list_participants(event_id),
            "announcement": EventService.announcement_text(
                dict(event), url_for("event.view_event", event_id=event_id, _external=True)
            ),
        }
    )


@bp.route("/<string:event_id>", methods=["PUT"])
@login_required
def update_event(event_id: str) -> Any:
    """Edit an event."""
    form = EventForm()
    require_valid(form)
    event = EventService.update_event(event_id, session["user_id"], form.to_event_data())
    return api_response("Event updated.", data=dict(event))


@bp.route("/<string:event_id>", methods=["DELETE"])
@login_required
def delete_event(event_id: str) -> Any:
    """Delete an event."""
    EventService.delete_event(event_id, session["user_id"])
    return api_response("Event deleted.")


@bp.route("/<string:event_id>/end", methods=["POST"])
@login_required
def end_event(event_id: str) -> Any:
    """Close an event."""
    EventService.end_event(event_id, session["user_id"])
    return api_response("Event ended.")


@bp.route("/<string:event_id>/participants", methods=["POST"])
@login_required
def join_event(event_id: str) -> Any:
    """Sign up for an event."""
    participant = EventService.join_event(event_id, session["user_id"])
    return api_response("Joined the event.", data=dict(participant), status=201)


@bp.route("/<string:event_id>/participants", methods=["DELETE"])
@login_required
def leave_event(event_id: str) -> Any:
    """Withdraw from an event."""
    EventService.leave_event(event_id, session["user_id"])
    return api_response("Left the event.")


@bp.route("/<string:event_id>/participants/<string:uid>/reward", methods=["POST"])
@login_required
def give_reward(event_id: str, uid: str) -> Any:
    """Record a participant's reward."""
    form = RewardForm()
    require_valid(form)
    EventService.give_reward(event_id, uid, form.reward.data, session["user_id"])
    return api_response("Reward recorded.")


@bp.route("/<string:event_id>/announcement", methods=["POST"])
@login_required
def save_announcement(event_id: str) -> Any:
    """Save the Discord announcement and return the full text."""
    form = AnnouncementForm()
    require_valid(form)
    EventService.save_announcement(event_id, form.message.data or "", session["user_id"])
    event = EventService.get_event(event_id)
    link = url_for("event.view_event", event_id=event_id, _external=True)
    return api_response(
        "Announcement saved.",
        data={"text": EventService.announcement_text(dict(event), link)},
    )
