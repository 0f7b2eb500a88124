import os
import uuid

from flask import Blueprint, current_app, request, jsonify, send_from_directory, url_for
from flask_jwt_extended import jwt_required, get_jwt_identity
from werkzeug.utils import secure_filename

from boxbox.exceptions import NotFound
from boxbox.repositories.borrow_repo import RecordRepo
from boxbox.services.borrow_service import BorrowService
from boxbox.utils.decorators import current_user, json_error

borrow_bp = Blueprint("borrow", __name__)


def _allowed_file(filename: str) -> bool:
    return "." in filename and filename.rsplit(".", 1)[1].lower() in current_app.config["ALLOWED_EXTENSIONS"]


def _unique_filename(filename: str) -> str:
    ext = filename.rsplit(".", 1)[1].lower()
    return f"{uuid.uuid4().hex}.{ext}"


@borrow_bp.post("/")
@jwt_required()
def borrow_box():
    data = request.get_json(silent=True) or {}
    user = current_user()
    if not user:
        return json_error("Unauthorized", 401)
    try:
        box_id = int(data["box_id"])
        days = int(data.get("days", 7))
        records = BorrowService.borrow_box(user, box_id, days, proof_url=data.get("proof_url"))
        if not records:
            return json_error("No items are available in this box", 409)
        return jsonify({
            "success": True,
            "count": len(records),
            "data": [r.to_dict() for r in records],
        }), 201
    except KeyError:
        return json_error("box_id is required", 400)
    except NotFound as e:
        return json_error(str(e), 404)
    except (TypeError, ValueError) as e:
        return json_error(str(e), 400)


@borrow_bp.get("/my")
@jwt_required()
def my_records():
    user_id = int(get_jwt_identity())
    records = RecordRepo.list_by_user(user_id)
    return jsonify({"success": True, "data": [r.to_dict() for r in records]})


@borrow_bp.post("/return/<int:record_id>")
@jwt_required()
def request_return(record_id: int):
    data = request.get_json(silent=True) or {}
    user = current_user()
    if not user:
        return json_error("Unauthorized", 401)
    try:
        r = BorrowService.request_return(record_id, data.get("proof_url"), user)
        return jsonify({"success": True, "data": r.to_dict()})
    except PermissionError as e:
        return json_error(str(e), 403)
    except NotFound as e:
        return json_error(str(e), 404)
    except ValueError as e:
        return json_error(str(e), 400)


@borrow_bp.post("/return-batch")
@jwt_required()
def request_return_batch():
    data = request.get_json(silent=True) or {}
    user = current_user()
    if not user:
        return json_error("Unauthorized", 401)
    try:
        record_ids = [int(x) for x in data.get("record_ids") or []]
        records = BorrowService.request_return_batch(record_ids, data.get("proof_url"), user)
        return jsonify({"success": True, "data": [r.to_dict() for r in records]})
    except PermissionError as e:
        return json_error(str(e), 403)
    except NotFound as e:
        return json_error(str(e), 404)
    except (TypeError, ValueError) as e:
        return json_error(str(e), 400)


@borrow_bp.post("/proof")
@jwt_required()
def upload_proof():
    file = request.files.get("file")
    if not file or not file.filename:
        return json_error("file is required", 400)

    filename = secure_filename(file.filename)
    if not _allowed_file(filename):
        return json_error("Unsupported file type", 400)

    folder = current_app.config["UPLOAD_FOLDER"]
    os.makedirs(folder, exist_ok=True)
    stored = _unique_filename(filename)
    file.save(os.path.join(folder, stored))

    return jsonify({
        "success": True,
        "proof_url": url_for("borrow.proof_file", filename=stored, _external=False),
    }), 201


@borrow_bp.get("/proof/<path:filename>")
@jwt_required()
def proof_file(filename):
    return send_from_directory(current_app.config["UPLOAD_FOLDER"], filename)
