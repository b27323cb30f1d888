# Overview: Request and role decorators for API routes.

from datetime import timedelta
from functools import wraps

from flask import current_app, g, jsonify, request

from .core import get_core
from .services import session_service


def _is_authenticated() -> bool:
    return hasattr(g, 'current_user') and hasattr(g, 'session_context')


def require_auth(f):
    """
    Require a valid bearer session.

    Sets the following Flask g attributes:
    - g.current_user: the authenticated User record
    - g.session_context: the full SessionContext
    - g.cart: the CartBuilder owned by this session

    Returns 401 if the header is missing or the token is invalid, revoked,
    idle too long, or belongs to a user that no longer exists. A session
    revoked here loses its cart.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        auth_header = request.headers.get("Authorization")

        if not auth_header or not auth_header.startswith("Bearer "):
            return jsonify({"error": "Authentication required"}), 401

        token = auth_header.split(" ", 1)[1]
        core = get_core()
        idle = timedelta(minutes=current_app.config["SESSION_IDLE_MINUTES"])

        context = session_service.validate_session(
            core.store,
            token,
            idle_timeout=idle,
            on_revoke=lambda session: core.carts.discard(session.id),
        )

        if not context:
            return jsonify({"error": "Invalid or expired token"}), 401

        g.current_user = context.user
        g.session_context = context
        g.cart = core.carts.get(context.session.id)

        return f(*args, **kwargs)

    return decorated_function


def require_role(*roles: str):
    """Require the authenticated user to hold one of the given roles."""
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            if not _is_authenticated():
                return jsonify({"error": "Authentication required"}), 401

            if g.current_user.role not in roles:
                current_app.logger.warning(
                    "Role denied: user=%s role=%s path=%s",
                    g.current_user.username, g.current_user.role, request.path,
                )
                return jsonify({
                    "error": "Permission denied",
                    "required_role": list(roles),
                }), 403

            return f(*args, **kwargs)

        return decorated_function

    return decorator
