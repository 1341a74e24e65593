from firebase_admin import auth, firestore
from flask import current_app, g, jsonify, request, session

from guildhall.core.constants import USERS_COLLECTION
from guildhall.extensions import csrf

from . import bp
from .decorators import login_required


@bp.route("/session_login", methods=["POST"])
@csrf.exempt
def session_login():
    """
    This endpoint is called from the client-side after a successful Firebase login.
    It receives the ID token, verifies it, and creates a server-side session.
    """
    payload = request.get_json(silent=True) or {}
    id_token = payload.get("idToken")
    if not id_token:
        return jsonify({"status": "error", "message": "Missing idToken."}), 400
    try:
        decoded_token = auth.verify_id_token(id_token)
        uid = decoded_token["uid"]
        db = firestore.client()
        user_doc = db.collection(USERS_COLLECTION).document(uid).get()
        if user_doc.exists:
            session["user_id"] = uid
            return jsonify({"status": "success"})
        else:
            return (
                jsonify({"status": "error", "message": "User not found in Firestore."}),
                404,
            )
    except Exception as e:
        current_app.logger.error(f"Error during session login: {e}")
        return (
            jsonify({"status": "error", "message": "Invalid token or server error."}),
            401,
        )


@bp.route("/logout", methods=["POST"])
def logout():
    """
    The actual logout is handled by the Firebase client-side SDK.
    This route is for clearing any server-side session info.
    """
    session.clear()
    return jsonify({"status": "success"})


@bp.route("/me", methods=["GET"])
@login_required
def me():
    """Return the logged-in user's profile document."""
    user = g.user or {}
    meta = user.get("meta") or {}
    return jsonify(
        {
            "uid": session["user_id"],
            "discordName": meta.get("discord"),
            "characters": user.get("characters", {}),
        }
    )
