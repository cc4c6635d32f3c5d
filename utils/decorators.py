from __future__ import annotations
from functools import wraps
from flask import request, g, abort, current_app
from models import storage
from models.user import User
from utils.exceptions import AuthenticationError


def get_token_service():
    """The TokenService built by create_app()."""
    return current_app.extensions["token_service"]


def jwt_required():
    """
    Validate the bearer access token and attach:
    - g.token_claims: AccessClaims
    - g.current_user: the matching User, or None if it no longer exists
    """
    def decorator(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            auth = request.headers.get("Authorization", "")
            if not auth.startswith("Bearer "):
                abort(401, description="Missing or invalid Authorization header")
            token = auth.split(" ", 1)[1].strip()
            try:
                claims = get_token_service().verify_access_token(token)
            except AuthenticationError as e:
                abort(401, description=e.message)

            session = storage.get_session()
            g.token_claims = claims
            g.current_user = session.query(User).filter(User.email == claims.subject).first()
            return fn(*args, **kwargs)

        return wrapper

    return decorator

def roles_required(required_roles: list[str]):
    """
    Allow access if the token's role is one of required_roles, else 403.
    """
    req = set(required_roles or [])
    def decorator(fn):
        @wraps(fn)
        @jwt_required()
        def wrapper(*args, **kwargs):
            if g.token_claims.role.value not in req:
                abort(403, description="Insufficient role")
            return fn(*args, **kwargs)

        return wrapper

    return decorator
