from __future__ import annotations

from flask import Blueprint, request, jsonify, g, abort

from models import storage
from models.user import User, Role
from models.schemas.user import UserOutSchema, UserListOutSchema, RoleUpdateSchema
from utils.decorators import jwt_required, roles_required
from utils.exceptions import NotFoundError
from api.pagination import parse_pagination, parse_sort

bp = Blueprint("users", __name__)

user_out_schema = UserOutSchema()
user_list_out_schema = UserListOutSchema(many=True)
role_update_schema = RoleUpdateSchema()


@bp.get("/user")
@jwt_required()
def current_user():
    """
    Get the signed-in user.
    ---
    tags:
      - Users
    security:
      - Bearer: []
    responses:
      200:
        description: OK
        schema:
          type: object
          properties:
            email: { type: string }
            role: { type: string }
      401:
        description: Unauthorized
      404:
        description: User no longer exists
    """
    user = g.current_user
    if user is None:
        raise NotFoundError("User not found")
    return jsonify(user_out_schema.dump(user)), 200


@bp.get("/users")
@roles_required(["admin"])
def list_users():
    """
    List all users - admin
    ---
    tags:
      - Users
    security:
      - Bearer: []
    parameters:
      - in: query
        name: page
        type: integer
        default: 1
      - in: query
        name: limit
        type: integer
        default: 20
      - in: query
        name: sort
        type: string
        default: email
        description: "Allowed: email or -email"
    responses:
      200: { description: OK }
      403: { description: Forbidden }
    """
    session = storage.get_session()
    page, limit = parse_pagination()
    order_by = parse_sort(User.email, name="email", default="email")

    query = session.query(User)
    total = query.count()
    rows = query.order_by(*order_by).offset((page - 1) * limit).limit(limit).all()
    return jsonify(
        {
            "data": user_list_out_schema.dump(rows),
            "meta": {"page": page, "limit": limit, "total": total}
        }
    )


@bp.put("/users/<int:user_id>/role")
@roles_required(["admin"])
def set_role(user_id: int):
    """
    Admin-only: set a user's role.
    ---
    tags:
      - Users
    security:
      - Bearer: []
    consumes:
      - application/json
    parameters:
      -  in: path
         name: user_id
         type: integer
         required: true
      -  in: body
         name: body
         schema:
           type: object
           properties:
             role: { type: string, enum: [user, admin] }
    responses:
      200: { description: OK }
      400: { description: Validation error }
      404: { description: Not found }
    """
    data = role_update_schema.load(request.get_json(silent=True) or {})
    user = storage.get(User, user_id)
    if not user:
        abort(404)
    user.role = Role(data["role"])
    storage.new(user)
    storage.save()
    return jsonify({"data": user_list_out_schema.dump([user])[0]}), 200
