from flask import Blueprint, request, jsonify
from flask_jwt_extended import jwt_required

from boxbox.exceptions import NotFound
from boxbox.models.borrow import RECORD_STATUSES
from boxbox.repositories.borrow_repo import RecordRepo
from boxbox.services.auth_service import AuthService
from boxbox.services.borrow_service import BorrowService
from boxbox.utils.decorators import role_required, current_user, json_error

admin_bp = Blueprint("admin", __name__)


def _int_list(values):
    return [int(x) for x in values or []]


# -----------------------------
# Records
# -----------------------------
@admin_bp.get("/records")
@jwt_required()
@role_required("admin")
def all_records():
    status = request.args.get("status")
    if status and status not in RECORD_STATUSES:
        return json_error(f"status must be one of {', '.join(RECORD_STATUSES)}", 400)
    records = RecordRepo.list_all()
    if status:
        records = [r for r in records if r.status == status]
    return jsonify({"success": True, "data": [r.to_dict() for r in records]})


@admin_bp.post("/records/<int:record_id>/decision")
@jwt_required()
@role_required("admin")
def decide_return(record_id: int):
    data = request.get_json(silent=True) or {}
    if "approved" not in data:
        return json_error("approved is required", 400)
    try:
        r = BorrowService.admin_decide_return(
            record_id,
            bool(data["approved"]),
            note=data.get("note"),
            admin=current_user(),
        )
        return jsonify({"success": True, "data": r.to_dict()})
    except NotFound as e:
        return json_error(str(e), 404)
    except ValueError as e:
        return json_error(str(e), 400)


@admin_bp.post("/records/status")
@jwt_required()
@role_required("admin")
def batch_update_status():
    data = request.get_json(silent=True) or {}
    try:
        records = BorrowService.admin_batch_update_status(
            _int_list(data.get("record_ids")),
            data.get("status"),
            admin=current_user(),
        )
        return jsonify({"success": True, "data": [r.to_dict() for r in records]})
    except (TypeError, ValueError) as e:
        return json_error(str(e), 400)


@admin_bp.delete("/records")
@jwt_required()
@role_required("admin")
def delete_records():
    data = request.get_json(silent=True) or {}
    try:
        count = BorrowService.admin_delete_records(_int_list(data.get("record_ids")))
        return jsonify({"success": True, "deleted": count})
    except (TypeError, ValueError) as e:
        return json_error(str(e), 400)


# -----------------------------
# Users
# -----------------------------
@admin_bp.get("/users")
@jwt_required()
@role_required("admin")
def list_users():
    return jsonify({"success": True, "data": [u.to_dict() for u in AuthService.list_users()]})


@admin_bp.post("/users/admins")
@jwt_required()
@role_required("admin")
def create_admin():
    data = request.get_json(silent=True) or {}
    name = (data.get("name") or "").strip()
    email = (data.get("email") or "").strip().lower()
    password = (data.get("password") or "").strip()
    if not name or not email or not password:
        return json_error("name/email/password are required", 400)
    try:
        user = AuthService.admin_create_admin(
            current_user(), name=name, email=email, password=password,
            phone=(data.get("phone") or "").strip() or None,
        )
        return jsonify({"success": True, "data": user.to_dict()}), 201
    except PermissionError as e:
        return json_error(str(e), 403)
    except ValueError as e:
        return json_error(str(e), 400)


@admin_bp.delete("/users/<int:user_id>")
@jwt_required()
@role_required("admin")
def delete_user(user_id: int):
    try:
        AuthService.admin_delete_user(current_user(), user_id)
        return jsonify({"success": True})
    except PermissionError as e:
        return json_error(str(e), 403)
    except NotFound as e:
        return json_error(str(e), 404)


@admin_bp.post("/users/<int:user_id>/message")
@jwt_required()
@role_required("admin")
def message_user(user_id: int):
    data = request.get_json(silent=True) or {}
    try:
        ok = AuthService.admin_send_message(
            user_id,
            (data.get("subject") or "").strip(),
            (data.get("message") or "").strip(),
        )
        return jsonify({"success": True, "sent": ok})
    except NotFound as e:
        return json_error(str(e), 404)
    except ValueError as e:
        return json_error(str(e), 400)
