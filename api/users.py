from __future__ import annotations

from typing import Tuple

from flask import Blueprint, request, jsonify, g, abort, current_app

from models.schemas.user import RegisterSchema, UserOutSchema
from utils.decorators import jwt_required

bp = Blueprint("users", __name__)

user_create_schema = RegisterSchema()
user_out_schema = UserOutSchema()
user_list_out_schema = UserOutSchema(many=True)


def _user_service():
    return current_app.extensions["user_service"]


def parse_pagination() -> Tuple[int, int]:
    try:
        page = int(request.args.get("page", "1"))
        page_size = int(request.args.get("page_size", "10"))
    except ValueError:
        abort(400, description="page and page_size must be integers")
    return page, page_size


@bp.get("/users/", strict_slashes=False)
@jwt_required()
def list_users():
    """
    List users, oldest first.
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
        name: page_size
        type: integer
        default: 10
        description: Capped at 100
    responses:
      200: { description: OK }
      400: { description: page or page_size is not an integer }
      401: { description: Unauthorized }
    """
    page, page_size = parse_pagination()
    result = _user_service().list_users(page, page_size)
    return jsonify(
        {
            "success": True,
            "data": {
                "items": user_list_out_schema.dump(result.items),
                "total_count": result.total_count,
                "page": result.page,
                "page_size": result.page_size,
                "total_pages": result.total_pages,
            },
        }
    ), 200


@bp.post("/users/", strict_slashes=False)
@jwt_required()
def create_user():
    """
    Create a user account (no tokens, no verification mail).
    ---
    tags:
      - Users
    security:
      - Bearer: []
    consumes:
      - application/json
    parameters:
      - in: body
        name: body
        required: true
        schema:
          type: object
          required: [email, password]
          properties:
            email: { type: string, example: carol@example.com }
            password: { type: string, example: Secur3Pass! }
            first_name: { type: string }
            last_name: { type: string }
            phone_number: { type: string }
    responses:
      201: { description: Created }
      401: { description: Unauthorized }
      409: { description: Email already exists }
      422: { description: Validation error }
    """
    data = user_create_schema.load(request.get_json(silent=True) or {})
    user = _user_service().create_user(data)
    return jsonify(
        {
            "success": True,
            "data": user_out_schema.dump(user)
        }
    ), 201


@bp.get("/users/me")
@jwt_required()
def me():
    """
    Get current user info.
    ---
    tags:
      - Users
    security:
      - Bearer: []
    responses:
      200:
        description: OK
      401:
        description: Unauthorized
    """
    return jsonify(
        {
            "success": True,
            "data": user_out_schema.dump(g.current_user)
        }
    ), 200
