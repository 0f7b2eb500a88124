# boxbox/controllers/box_controller.py

from flask import Blueprint, request, jsonify
from flask_jwt_extended import jwt_required

from boxbox.exceptions import NotFound
from boxbox.services.box_service import BoxService
from boxbox.utils.decorators import role_required, json_error

box_bp = Blueprint("boxes", __name__)


def _box_payload(b):
    return {
        "id": b.id,
        "name": b.name,
        "box_type": b.box_type,
        "cover_image_url": b.cover_image_url,
        "items": [i.to_dict() for i in b.items],
    }


@box_bp.get("/")
def list_boxes():
    return jsonify({"success": True, "data": BoxService.list_boxes()})


@box_bp.get("/<int:box_id>")
def get_box(box_id: int):
    try:
        b = BoxService.get_box(box_id)
        return jsonify({"success": True, "data": _box_payload(b)})
    except NotFound as e:
        return json_error(str(e), 404)


@box_bp.get("/<int:box_id>/items")
def list_items(box_id: int):
    try:
        items = BoxService.list_items(box_id)
        return jsonify({"success": True, "data": [i.to_dict() for i in items]})
    except NotFound as e:
        return json_error(str(e), 404)


@box_bp.post("/")
@jwt_required()
@role_required("admin")
def create_box():
    data = request.get_json(silent=True) or {}
    try:
        b = BoxService.create_box(data)
        return jsonify({"success": True, "data": _box_payload(b)}), 201
    except (TypeError, ValueError) as e:
        return json_error(str(e), 400)


@box_bp.put("/<int:box_id>")
@jwt_required()
@role_required("admin")
def update_box(box_id: int):
    data = request.get_json(silent=True) or {}
    try:
        b = BoxService.update_box(box_id, data)
        return jsonify({"success": True, "data": _box_payload(b)})
    except NotFound as e:
        return json_error(str(e), 404)
    except ValueError as e:
        return json_error(str(e), 400)


@box_bp.delete("/<int:box_id>")
@jwt_required()
@role_required("admin")
def delete_box(box_id: int):
    try:
        BoxService.delete_box(box_id)
        return jsonify({"success": True})
    except NotFound as e:
        return json_error(str(e), 404)
    except ValueError as e:
        return json_error(str(e), 400)
