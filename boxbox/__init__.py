import click
from flask import Flask, jsonify

from boxbox.config import Config
from boxbox.extensions import db, migrate, jwt, mail


def create_app(config_object=Config):
    app = Flask(__name__)
    app.config.from_object(config_object)
    app.logger.setLevel(app.config.get("LOG_LEVEL", "INFO"))

    # 1) db first (models need it)
    db.init_app(app)

    # 2) the other extensions
    migrate.init_app(app, db)
    jwt.init_app(app)
    mail.init_app(app)

    # 3) API blueprints
    from boxbox.controllers.auth_controller import auth_bp
    from boxbox.controllers.box_controller import box_bp
    from boxbox.controllers.borrow_controller import borrow_bp
    from boxbox.controllers.admin_controller import admin_bp
    from boxbox.controllers.notification_controller import notif_bp
    app.register_blueprint(auth_bp, url_prefix="/auth")
    app.register_blueprint(box_bp, url_prefix="/boxes")
    app.register_blueprint(borrow_bp, url_prefix="/borrow")
    app.register_blueprint(admin_bp, url_prefix="/admin")
    app.register_blueprint(notif_bp, url_prefix="/notifications")

    @app.get("/health")
    def health():
        return jsonify({"ok": True})

    @app.cli.command("init-db")
    def init_db():
        """Create tables and the default admin account."""
        from boxbox.services.auth_service import AuthService

        db.create_all()
        user, created = AuthService.ensure_default_admin()
        click.echo(f"Tables ready. Admin: {user.email} ({'created' if created else 'exists'})")

    @app.cli.command("due-soon-check")
    def due_soon_check():
        """Run the due-soon sweep once."""
        from boxbox.tasks.due_soon_check import run_due_soon_check

        click.echo(run_due_soon_check())

    # Scheduler (due-soon sweep, first run when the app serves its first request)
    from boxbox.tasks.scheduler import init_scheduler
    init_scheduler(app)

    return app
