"""Decorators for the auth blueprint."""

from functools import wraps

from flask import jsonify, session


def login_required(f=None, leader_required=False):
    """Reject the request with 401 if the user is not logged in.

    Usage:
    @login_required
    def protected_view():
        ...

    @login_required(leader_required=True)
    def leader_view():
        ...
    """

    def decorator(func):
        @wraps(func)
        def decorated_function(*args, **kwargs):
            user_id = session.get("user_id")
            if user_id is None:
                return (
                    jsonify({"status": "error", "message": "Login required."}),
                    401,
                )
            if leader_required:
                from guildhall.guild.services import GuildService

                if not GuildService.is_guild_leader(user_id):
                    return (
                        jsonify(
                            {
                                "status": "error",
                                "message": "Only guild leaders can do this.",
                            }
                        ),
                        403,
                    )
            return func(*args, **kwargs)

        return decorated_function

    if f:
        return decorator(f)
    return decorator
