from flask import current_app
from werkzeug.security import generate_password_hash, check_password_hash
from flask_jwt_extended import create_access_token

from boxbox.exceptions import UserNotFound
from boxbox.models.user import User
from boxbox.repositories.borrow_repo import RecordRepo
from boxbox.repositories.user_repo import UserRepo
from boxbox.services.borrow_service import BorrowService
from boxbox.services.mail_service import MailService

PROFILE_FIELDS = ("name", "phone", "avatar_url")
PREFERENCE_FIELDS = ("notify_on_borrow", "notify_on_return", "notify_on_rejected")


class AuthService:
    @staticmethod
    def register(name: str, email: str, password: str, phone: str = None, role: str = "user"):
        if UserRepo.get_by_email(email):
            raise ValueError("Email is already registered")

        user = User(
            name=name,
            email=email,
            phone=phone,
            password_hash=generate_password_hash(password),
            role=role,
        )
        UserRepo.create(user)
        return user

    @staticmethod
    def login(email: str, password: str):
        user = UserRepo.get_by_email(email)
        if not user or not check_password_hash(user.password_hash, password):
            raise ValueError("Wrong email or password")

        token = create_access_token(
            identity=str(user.id),
            additional_claims={"role": user.role, "name": user.name},
        )
        return token, user

    @staticmethod
    def get_user(user_id: int):
        user = UserRepo.get_by_id(user_id)
        if not user:
            raise UserNotFound("User not found")
        return user

    @staticmethod
    def update_profile(user_id: int, data: dict):
        user = AuthService.get_user(user_id)
        for k in PROFILE_FIELDS:
            if k in data:
                setattr(user, k, data[k])
        for k in PREFERENCE_FIELDS:
            if k in data:
                setattr(user, k, bool(data[k]))
        if not (user.name or "").strip():
            raise ValueError("name is required")
        UserRepo.update()
        return user

    @staticmethod
    def change_password(user_id: int, old_password: str, new_password: str):
        user = AuthService.get_user(user_id)
        if not check_password_hash(user.password_hash, old_password or ""):
            raise ValueError("Current password is wrong")
        if not new_password:
            raise ValueError("New password is required")
        user.password_hash = generate_password_hash(new_password)
        UserRepo.update()

    @staticmethod
    def delete_account(user_id: int):
        user = AuthService.get_user(user_id)
        # loans go with the account; their items are freed
        BorrowService.admin_delete_records([r.id for r in RecordRepo.list_by_user(user.id)])
        UserRepo.delete(user)

    # --- admin ---

    @staticmethod
    def list_users():
        return UserRepo.list_all()

    @staticmethod
    def admin_create_admin(requester, name: str, email: str, password: str, phone: str = None):
        if not requester or not requester.is_admin:
            raise PermissionError("Not allowed to create admins")
        return AuthService.register(name=name, email=email, password=password, phone=phone, role="admin")

    @staticmethod
    def admin_delete_user(requester, target_user_id: int):
        if not requester or not requester.is_admin:
            raise PermissionError("Not allowed to delete users")

        target = UserRepo.get_by_id(target_user_id)
        if not target:
            raise UserNotFound("User not found")

        main_admin_email = current_app.config["MAIN_ADMIN_EMAIL"]
        if target.email == main_admin_email and requester.email != main_admin_email:
            raise PermissionError("The main admin account cannot be deleted")

        AuthService.delete_account(target.id)
        current_app.logger.info(f"[auth] user {target_user_id} deleted by {requester.id}")

    @staticmethod
    def admin_send_message(user_id: int, subject: str, message: str) -> bool:
        user = AuthService.get_user(user_id)
        if not subject or not message:
            raise ValueError("subject and message are required")
        ok = MailService.send_user_message(user, subject, message)
        UserRepo.update()
        return ok

    @staticmethod
    def ensure_default_admin():
        email = current_app.config["MAIN_ADMIN_EMAIL"]
        user = UserRepo.get_by_email(email)
        if user:
            return user, False
        current_app.logger.info("Initializing default admin user...")
        user = AuthService.register(
            name="Admin",
            email=email,
            password=current_app.config["DEFAULT_ADMIN_PASSWORD"],
            phone="0000000000",
            role="admin",
        )
        return user, True
