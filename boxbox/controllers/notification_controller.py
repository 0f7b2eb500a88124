from flask import Blueprint, jsonify
from flask_jwt_extended import jwt_required, get_jwt_identity

from boxbox import events
from boxbox.exceptions import NotFound
from boxbox.repositories.notification_repo import NotificationRepo
from boxbox.services.admin_notification_service import AdminNotificationService
from boxbox.services.user_notification_service import UserNotificationService
from boxbox.tasks.due_soon_check import run_due_soon_check
from boxbox.utils.decorators import role_required, json_error

notif_bp = Blueprint("notifications", __name__)


@notif_bp.get("/my")
@jwt_required()
def my_notifications():
    notices = UserNotificationService.for_user(int(get_jwt_identity()))
    return jsonify({"success": True, "data": [n.to_dict() for n in notices]})


@notif_bp.get("/admin")
@jwt_required()
@role_required("admin")
def admin_feed():
    rows = AdminNotificationService.list_for_admin(int(get_jwt_identity()))
    return jsonify({
        "success": True,
        "unread": sum(1 for n in rows if not n.is_read),
        "data": [n.to_dict() for n in rows],
    })


@notif_bp.post("/admin/<int:notification_id>/read")
@jwt_required()
@role_required("admin")
def admin_mark_read(notification_id: int):
    try:
        n = AdminNotificationService.mark_read(notification_id, int(get_jwt_identity()))
        return jsonify({"success": True, "data": n.to_dict()})
    except NotFound as e:
        return json_error(str(e), 404)


@notif_bp.post("/admin/read-all")
@jwt_required()
@role_required("admin")
def admin_mark_all_read():
    count = AdminNotificationService.mark_all_read(int(get_jwt_identity()))
    return jsonify({"success": True, "updated": count})


@notif_bp.delete("/admin")
@jwt_required()
@role_required("admin")
def admin_clear_all():
    count = AdminNotificationService.clear_all(int(get_jwt_identity()))
    return jsonify({"success": True, "deleted": count})


@notif_bp.post("/run-due-soon-check")
@jwt_required()
@role_required("admin")
def run_due_soon():
    summary = run_due_soon_check()
    return jsonify({"success": True, "data": summary})


@notif_bp.get("/mail-log")
@jwt_required()
@role_required("admin")
def mail_log():
    return jsonify({"success": True, "data": [row.to_dict() for row in NotificationRepo.list_recent()]})


@notif_bp.get("/revision")
def revision():
    return jsonify({"success": True, "revision": events.revision()})
