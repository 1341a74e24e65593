"""Donation blueprint."""

from flask import Blueprint

bp = Blueprint("donation", __name__, url_prefix="/donations")

from . import routes  # noqa: E402, F401
from .services import DonationService  # noqa: E402

__all__ = ["DonationService", "routes"]
