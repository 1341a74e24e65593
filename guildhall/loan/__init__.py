"""Loan blueprint."""

from flask import Blueprint

bp = Blueprint("loan", __name__, url_prefix="/loans")

from . import routes  # noqa: E402, F401
from .services import LoanService  # noqa: E402

__all__ = ["LoanService", "routes"]
