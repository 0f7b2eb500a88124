from flask import Blueprint, request, jsonify
from flask_jwt_extended import jwt_required, get_jwt_identity

from boxbox.services.auth_service import AuthService
from boxbox.utils.decorators import json_error

auth_bp = Blueprint("auth", __name__)


@auth_bp.post("/register", endpoint="auth_register")
def register():
    data = request.get_json(silent=True) or {}

    name = (data.get("name") or "").strip()
    email = (data.get("email") or "").strip().lower()
    password = (data.get("password") or "").strip()
    phone = (data.get("phone") or "").strip() or None

    if not name or not email or not password:
        return json_error("name/email/password are required", 400)

    try:
        user = AuthService.register(
            name=name,
            email=email,
            password=password,
            phone=phone,
            role="user",  # role is never taken from the client
        )
        return jsonify({"success": True, "data": user.to_dict()}), 201
    except ValueError as e:
        return json_error(str(e), 400)


@auth_bp.post("/login", endpoint="auth_login")
def login():
    data = request.get_json(silent=True) or {}
    try:
        token, user = AuthService.login(
            (data.get("email") or "").strip().lower(),
            (data.get("password") or "").strip(),
        )
        return jsonify({
            "success": True,
            "access_token": token,
            "user": user.to_dict(),
        })
    except ValueError as e:
        return json_error(str(e), 401)


@auth_bp.get("/me", endpoint="auth_me")
@jwt_required()
def me():
    try:
        user = AuthService.get_user(int(get_jwt_identity()))
        return jsonify({"success": True, "data": user.to_dict()})
    except ValueError as e:
        return json_error(str(e), 404)


@auth_bp.put("/me", endpoint="auth_update_me")
@jwt_required()
def update_me():
    data = request.get_json(silent=True) or {}
    try:
        user = AuthService.update_profile(int(get_jwt_identity()), data)
        return jsonify({"success": True, "data": user.to_dict()})
    except ValueError as e:
        return json_error(str(e), 400)


@auth_bp.post("/me/password", endpoint="auth_change_password")
@jwt_required()
def change_password():
    data = request.get_json(silent=True) or {}
    try:
        AuthService.change_password(
            int(get_jwt_identity()),
            data.get("old_password") or "",
            (data.get("new_password") or "").strip(),
        )
        return jsonify({"success": True})
    except ValueError as e:
        return json_error(str(e), 400)


@auth_bp.delete("/me", endpoint="auth_delete_me")
@jwt_required()
def delete_me():
    try:
        AuthService.delete_account(int(get_jwt_identity()))
        return jsonify({"success": True})
    except ValueError as e:
        return json_error(str(e), 404)
