"""Utility functions for the application."""

from __future__ import annotations

import time
from typing import TYPE_CHECKING, Any

from flask import jsonify

from .core.types import APIResponse
from .errors import ValidationError

if TYPE_CHECKING:
    from flask_wtf import FlaskForm


def now_ms() -> int:
    """Return the current time as epoch milliseconds."""
    return int(time.time() * 1000)


def snapshot_to_dict(snapshot: Any) -> dict[str, Any] | None:
    """Convert a document snapshot into a dict carrying its id."""
    if snapshot is None or not snapshot.exists:
        return None
    data = snapshot.to_dict()
    if not data:
        return None
    data["id"] = snapshot.id
    return data


def stream_documents(query: Any) -> list[dict[str, Any]]:
    """Stream a query or collection and keep only documents that exist."""
    results = []
    for doc in query.stream():
        data = snapshot_to_dict(doc)
        if data is not None:
            results.append(data)
    return results


def unique_key(prefix: str, existing: dict[str, Any]) -> str:
    """Build a timestamped key that is not already in ``existing``."""
    key = f"{prefix}_{now_ms()}"
    suffix = 1
    while key in existing:
        key = f"{prefix}_{now_ms()}_{suffix}"
        suffix += 1
    return key


def api_response(message: str, data: dict[str, Any] | None = None, status: int = 200):
    """Build a JSON success response."""
    body: APIResponse = {"status": "success", "message": message, "data": data}
    return jsonify(body), status


def require_valid(form: FlaskForm) -> None:
    """Raise a ValidationError carrying every field error when the form is invalid.

    The message names the first failing field; ``errors`` holds them all.
    """
    if form.validate_on_submit():
        return
    errors = {name: messages for name, messages in form.errors.items() if messages}
    if not errors:
        raise ValidationError()
    field_name, messages = next(iter(errors.items()))
    raise ValidationError(f"{field_name}: {messages[0]}", errors=errors)
