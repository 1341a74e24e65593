"""Routes for the feed blueprint."""

from __future__ import annotations

from typing import Any

from flask import current_app, jsonify, request

from guildhall.auth.decorators import login_required
from guildhall.errors import ValidationError

from . import bp
from .models import FEED_TYPES, FeedFilters
from .services import FeedService


def _int_arg(name: str) -> int | None:
    raw = request.args.get(name)
    if raw is None or raw == "":
        return None
    try:
        return int(raw)
    except ValueError:
        raise ValidationError(f"{name} must be an integer.") from None


@bp.route("/", methods=["GET"])
@login_required
def list_feed() -> Any:
    """List the guild feed, newest first."""
    filters: FeedFilters = {}
    feed_type = request.args.get("type")
    if feed_type:
        if feed_type not in FEED_TYPES:
            raise ValidationError(f"Unknown feed type: {feed_type}")
        filters["type"] = feed_type  # type: ignore[typeddict-item]
    start_date = _int_arg("start_date")
    if start_date is not None:
        filters["start_date"] = start_date
    end_date = _int_arg("end_date")
    if end_date is not None:
        filters["end_date"] = end_date

    limit = _int_arg("limit") or current_app.config["FEED_PAGE_SIZE"]
    return jsonify(FeedService.get_feeds(filters, limit=limit))


@bp.route("/merchant/<string:merchant_id>/<string:kind>", methods=["GET"])
@login_required
def merchant_feed(merchant_id: str, kind: str) -> Any:
    """List one merchant's trade or loan feed."""
    if kind not in ("trade", "loan"):
        raise ValidationError("Feed kind must be 'trade' or 'loan'.")
    limit = _int_arg("limit") or current_app.config["FEED_PAGE_SIZE"]
    return jsonify(FeedService.get_merchant_feeds(merchant_id, kind, limit=limit))
