"""Initialize the Flask app and its extensions."""

import json
import os

import firebase_admin
from firebase_admin import credentials, firestore
from flask import Flask, current_app, g, session
from werkzeug.middleware.proxy_fix import ProxyFix

from .core.constants import (
    DEFAULT_FEED_PAGE_SIZE,
    DEFAULT_GUILD_NAME,
    DEFAULT_SPLIT_BILL_TTL_DAYS,
    DEFAULT_TOURNAMENT_MAX_PARTICIPANTS,
    USERS_COLLECTION,
)
from .extensions import csrf


def _init_firebase(app):
    """Initialize the Firebase Admin SDK from env, local file or ADC."""
    cred = None
    project_id = None

    # First, try to load from environment variable (for production)
    cred_json = os.environ.get("FIREBASE_CREDENTIALS_JSON")
    if cred_json:
        try:
            cred_info = json.loads(cred_json)
            project_id = cred_info.get("project_id")
            cred = credentials.Certificate(cred_info)
        except (json.JSONDecodeError, ValueError) as e:
            app.logger.error(f"Error parsing FIREBASE_CREDENTIALS_JSON: {e}")

    # If env var fails or is not present, try loading from file (for local dev)
    if not cred:
        cred_path = os.path.join(
            os.path.dirname(os.path.dirname(__file__)), "firebase_credentials.json"
        )
        if os.path.exists(cred_path):
            try:
                with open(cred_path, "r") as f:
                    cred_info = json.load(f)
                project_id = cred_info.get("project_id")
                cred = credentials.Certificate(cred_path)
            except (json.JSONDecodeError, ValueError) as e:
                app.logger.error(f"Error loading credentials from file: {e}")

    # If both methods fail, fallback to default credentials
    if not cred:
        try:
            cred = credentials.ApplicationDefault()
            project_id = os.environ.get("FIREBASE_PROJECT_ID")
        except Exception as e:
            app.logger.error(
                f"Could not find any valid credentials (env, file, or default): {e}"
            )

    if cred and not firebase_admin._apps:
        try:
            options = {"projectId": project_id} if project_id else None
            firebase_admin.initialize_app(cred, options)
        except ValueError:
            # This can happen if the app is already initialized, which is fine.
            app.logger.info("Firebase app already initialized.")


def create_app(test_config=None):
    """Create and configure an instance of the Flask application."""
    app = Flask(__name__, instance_relative_config=True)

    app.config.from_mapping(
        SECRET_KEY=os.environ.get("SECRET_KEY") or "dev",
        GUILD_NAME=os.environ.get("GUILD_NAME") or DEFAULT_GUILD_NAME,
        SPLIT_BILL_TTL_DAYS=int(
            os.environ.get("SPLIT_BILL_TTL_DAYS") or DEFAULT_SPLIT_BILL_TTL_DAYS
        ),
        TOURNAMENT_MAX_PARTICIPANTS=int(
            os.environ.get("TOURNAMENT_MAX_PARTICIPANTS")
            or DEFAULT_TOURNAMENT_MAX_PARTICIPANTS
        ),
        FEED_PAGE_SIZE=int(os.environ.get("FEED_PAGE_SIZE") or DEFAULT_FEED_PAGE_SIZE),
    )

    if test_config:
        app.config.update(test_config)

    # Initialize Firebase Admin SDK only if not in testing mode
    if not app.config.get("TESTING"):
        _init_firebase(app)

    csrf.init_app(app)

    # Register blueprints
    from . import auth as auth_bp

    app.register_blueprint(auth_bp.bp)

    from . import guild as guild_bp

    app.register_blueprint(guild_bp.bp)

    from . import feed as feed_bp

    app.register_blueprint(feed_bp.bp)

    from . import loan as loan_bp

    app.register_blueprint(loan_bp.bp)

    from . import trade as trade_bp

    app.register_blueprint(trade_bp.bp)

    from . import donation as donation_bp

    app.register_blueprint(donation_bp.bp)

    from . import split as split_bp

    app.register_blueprint(split_bp.bp)

    from . import tournament as tournament_bp

    app.register_blueprint(tournament_bp.bp)

    from . import event as event_bp

    app.register_blueprint(event_bp.bp)

    from . import character as character_bp

    app.register_blueprint(character_bp.bp)

    from . import party as party_bp

    app.register_blueprint(party_bp.bp)

    from . import checklist as checklist_bp

    app.register_blueprint(checklist_bp.bp)

    from . import error_handlers

    app.register_blueprint(error_handlers.error_handlers_bp)

    @app.before_request
    def load_logged_in_user():
        """If a user_id is in the session, load the user data from Firestore into g."""
        user_id = session.get("user_id")
        g.user = None
        if user_id is None:
            return

        try:
            db = firestore.client()
            user_doc = db.collection(USERS_COLLECTION).document(user_id).get()
            if user_doc.exists:
                g.user = user_doc.to_dict()
                g.user["uid"] = user_id  # Ensure uid is in the user object
            else:
                # User ID in session but no user in DB. Clear the session.
                session.clear()
                current_app.logger.warning(
                    f"User {user_id} in session but not found in Firestore."
                )
        except Exception as e:
            current_app.logger.error(f"Error loading user from session: {e}")
            session.clear()  # Clear session on error to be safe

    app.wsgi_app = ProxyFix(app.wsgi_app, x_for=1, x_proto=1, x_host=1, x_prefix=1)

    return app
