"""
Authentication blueprint:
- POST /auth/register
- POST /auth/login
- POST /auth/refresh
- POST /auth/logout

The implementation:
- Uses argon2 for password hashing (via utils.security)
- Issues 1 hour HS256 access tokens and 7 day opaque refresh tokens (via utils.token_service)
- Stores only an HMAC of the refresh token on the user row; every refresh rotates it
"""
from __future__ import annotations

from flask import Blueprint, request, jsonify, g

from models import storage
from models.user import User, Role
from models.schemas.user import UserCreateSchema, UserLoginSchema, RefreshRequestSchema

from utils.decorators import jwt_required, get_token_service
from utils.exceptions import ConflictError
from utils.security import hash_password

bp = Blueprint("auth", __name__)

user_create_schema = UserCreateSchema()
user_login_schema = UserLoginSchema()
refresh_request_schema = RefreshRequestSchema()


@bp.post("/register")
def register():
    """
    Register a new user and sign them in.
    ---
    tags:
      - Auth
    consumes:
      - application/json
    parameters:
      - in: body
        name: body
        schema:
          type: object
          required: [email, password]
          properties:
            email: { type: string }
            password: { type: string }
    responses:
      200:
        description: OK (returns access_token and refresh_token)
      400:
        description: Validation error
      409:
        description: Email already registered
    """
    payload = request.get_json(silent=True) or {}
    data = user_create_schema.load(payload)

    session = storage.get_session()
    if session.query(User).filter(User.email == data["email"]).first():
        raise ConflictError("Email already registered")

    user = User(
        email=data["email"],
        password_hash=hash_password(data["password"]),
        role=Role.USER,
    )
    storage.new(user)
    storage.save()

    tokens = get_token_service().issue_tokens(user)
    return jsonify(tokens.to_dict()), 200


@bp.post("/login")
def login():
    """
    Login: return access_token and refresh_token
    ---
    tags:
      - Auth
    consumes:
      - application/json
    parameters:
      -  in: body
         name: body
         schema:
           type: object
           required: [email, password]
           properties:
             email: { type: string }
             password: { type: string }
    responses:
      200:
        description: OK (returns tokens)
      400:
        description: Validation error
      401:
        description: Unauthorized
    """
    payload = request.get_json(silent=True) or {}
    data = user_login_schema.load(payload)

    service = get_token_service()
    user = service.validate_credentials(data["email"], data["password"])
    tokens = service.issue_tokens(user)
    return jsonify(tokens.to_dict()), 200


@bp.post("/refresh")
def refresh():
    """
    Exchange an (expired) access token and its refresh token for a new pair.
    The presented refresh token stops working once this succeeds.
    ---
    tags:
      - Auth
    consumes:
      - application/json
    parameters:
      -  in: body
         name: body
         schema:
           type: object
           required: [token, refresh_token]
           properties:
             token: { type: string, description: "Access token, may be expired" }
             refresh_token: { type: string }
    responses:
      200:
        description: OK (returns new tokens)
      400:
        description: Validation error
      401:
        description: Invalid token or refresh token
    """
    payload = request.get_json(silent=True) or {}
    data = refresh_request_schema.load(payload)

    tokens = get_token_service().refresh_tokens(data["token"], data["refresh_token"])
    return jsonify(tokens.to_dict()), 200


@bp.post("/logout")
@jwt_required()
def logout():
    """
    Logout: invalidates the stored refresh token
    ---
    tags:
      - Auth
    security:
      - Bearer: []
    responses:
      204:
        description: ""
      401:
        description: Unauthorized
    """
    if g.current_user is not None:
        get_token_service().revoke_refresh_token(g.current_user)
    return ("", 204)
