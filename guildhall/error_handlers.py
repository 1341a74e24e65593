from flask import Blueprint, current_app, jsonify
from flask_wtf.csrf import CSRFError

from .errors import (
    AppError,
    DuplicateResourceError,
    InvalidTransitionError,
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
)

error_handlers_bp = Blueprint("error_handlers", __name__)


def _error_response(message, status_code, **extra):
    return jsonify({"status": "error", "message": message, **extra}), status_code


@error_handlers_bp.app_errorhandler(ValidationError)
def handle_validation_error(error):
    """Handles validation errors."""
    current_app.logger.warning(f"Validation Error: {error.message}")
    if error.errors:
        return _error_response(error.message, error.status_code, errors=error.errors)
    return _error_response(error.message, error.status_code)


@error_handlers_bp.app_errorhandler(PermissionDeniedError)
def handle_permission_denied_error(error):
    """Handles authorization failures."""
    current_app.logger.warning(f"Permission Denied: {error.message}")
    return _error_response(error.message, error.status_code)


@error_handlers_bp.app_errorhandler(DuplicateResourceError)
def handle_duplicate_resource_error(error):
    """Handles duplicate resource errors."""
    current_app.logger.warning(f"Duplicate Resource Error: {error.message}")
    return _error_response(error.message, error.status_code)


@error_handlers_bp.app_errorhandler(InvalidTransitionError)
def handle_invalid_transition_error(error):
    """Handles status changes that the record's lifecycle does not allow."""
    current_app.logger.warning(f"Invalid Transition: {error.message}")
    return _error_response(error.message, error.status_code)


@error_handlers_bp.app_errorhandler(NotFoundError)
def handle_not_found_error(error):
    """Handles not found errors."""
    current_app.logger.warning(f"Not Found Error: {error.message}")
    return _error_response(error.message, error.status_code)


@error_handlers_bp.app_errorhandler(AppError)
def handle_app_error(error):
    """Handles generic application errors."""
    current_app.logger.error(f"Application Error: {error.message}")
    return _error_response(error.message, error.status_code)


@error_handlers_bp.app_errorhandler(404)
def handle_404(e):
    """Handles generic 404 errors for routes that don't exist."""
    return _error_response("Page Not Found", 404)


@error_handlers_bp.app_errorhandler(500)
def handle_500(e):
    """Handles unexpected server errors."""
    current_app.logger.error(f"Internal Server Error: {e}")
    return _error_response("An unexpected error occurred. Please try again later.", 500)


@error_handlers_bp.app_errorhandler(CSRFError)
def handle_csrf_error(e):
    """
    Handles CSRF errors, which usually indicate a session timeout or invalid form submission.
    """
    current_app.logger.warning(f"CSRF Error: {e.description}")
    return _error_response(
        "Your session may have expired. Please try your action again.", 400
    )
