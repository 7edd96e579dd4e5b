"""
Authentication blueprint:
- POST /auth/register
- POST /auth/login
- POST /auth/refresh-token
- POST /auth/logout            (Bearer)
- POST /auth/verify-email      (Bearer)
- POST /auth/send-verify-email (Bearer)

Handlers only validate payload shape and render results; every rule lives in
services.auth_service.AuthService (app.extensions["auth_service"]). Domain
errors propagate to the handlers registered in api.errors.
"""
from __future__ import annotations

from dataclasses import asdict

from flask import Blueprint, request, jsonify, g, current_app

from models.schemas.user import RegisterSchema, LoginSchema
from models.schemas.auth import RefreshTokenSchema, VerifyEmailSchema, TokenPairSchema
from utils.decorators import jwt_required

bp = Blueprint("auth", __name__)

register_schema = RegisterSchema()
login_schema = LoginSchema()
refresh_token_schema = RefreshTokenSchema()
token_pair_schema = TokenPairSchema()


def _auth_service():
    return current_app.extensions["auth_service"]


def _token_response(tokens, status):
    return jsonify(
        {
            "success": True,
            "data": token_pair_schema.dump(asdict(tokens)),
        }
    ), status


@bp.post("/register")
def register():
    """
    Register a new user and return tokens.
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
            email: { type: string, example: user@example.com }
            password: { type: string, example: secureP@ssw0rd }
            first_name: { type: string }
            last_name: { type: string }
            phone_number: { type: string }
    responses:
      201:
        description: Created (returns tokens)
      409:
        description: Email already registered
      422:
        description: Validation error
    """
    payload = request.get_json(silent=True) or {}
    data = register_schema.load(payload)
    tokens = _auth_service().register(data)
    return _token_response(tokens, 201)


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
      401:
        description: Invalid credentials or inactive user
    """
    payload = request.get_json(silent=True) or {}
    data = login_schema.load(payload)
    tokens = _auth_service().login(data["email"], data["password"])
    return _token_response(tokens, 200)


@bp.post("/refresh-token")
def refresh_token():
    """
    Exchange a refresh token for a new token pair (rotation).
    The presented refresh token is consumed whatever the outcome.
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
           required: [refresh_token]
           properties:
             refresh_token: { type: string }
    responses:
      201:
        description: Created (returns a new token pair)
      401:
        description: Invalid, expired or already used refresh token
    """
    payload = request.get_json(silent=True) or {}
    data = refresh_token_schema.load(payload)
    tokens = _auth_service().refresh_token(data["refresh_token"])
    return _token_response(tokens, 201)


@bp.post("/logout")
@jwt_required()
def logout():
    """
    Logout: delete every refresh token of the current user.
    Access tokens already issued stay valid until they expire.
    ---
    tags:
      - Auth
    security:
      - Bearer: []
    responses:
      200:
        description: OK
      401:
        description: Unauthorized
    """
    _auth_service().logout(g.current_user.id)
    return jsonify({"success": True}), 200


@bp.post("/verify-email")
@jwt_required()
def verify_email():
    """
    Verify the current user's email with the mailed code.
    ---
    tags:
      - Auth
    security:
      - Bearer: []
    consumes:
      - application/json
    parameters:
      -  in: body
         name: body
         schema:
           type: object
           required: [code]
           properties:
             code: { type: string, example: a1B2c3 }
    responses:
      200:
        description: OK
      400:
        description: Invalid verification code
      401:
        description: Unauthorized
    """
    payload = request.get_json(silent=True) or {}
    schema = VerifyEmailSchema(code_length=_auth_service().settings.verify_code_length)
    data = schema.load(payload)
    _auth_service().verify_email(g.current_user.id, data["code"])
    return jsonify({"success": True}), 200


@bp.post("/send-verify-email")
@jwt_required()
def send_verify_email():
    """
    Issue a new verification code and mail it (replaces any earlier code).
    ---
    tags:
      - Auth
    security:
      - Bearer: []
    responses:
      200:
        description: OK
      401:
        description: Unauthorized
      502:
        description: Mail delivery failed (the new code is still stored)
    """
    _auth_service().send_verify_email_code(g.current_user.id)
    return jsonify({"success": True}), 200
