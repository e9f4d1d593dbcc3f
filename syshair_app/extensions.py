# syshair_app/extensions.py
# -*- coding: utf-8 -*-
from __future__ import annotations
import logging

import click
from flask_sqlalchemy import SQLAlchemy
from flask_bcrypt import Bcrypt
from flask_migrate import Migrate
from flask_cors import CORS
from apscheduler.schedulers.background import BackgroundScheduler
from sqlalchemy import text


db = SQLAlchemy()
bcrypt = Bcrypt()
migrate = Migrate()
cors = CORS()
scheduler = BackgroundScheduler(daemon=True)

LOG_FORMAT = "%(asctime)s - %(levelname)s - %(name)s - %(message)s"


def init_extensions(app):
    # DB/Bcrypt/Migrate
    db.init_app(app)
    bcrypt.init_app(app)
    migrate.init_app(app, db)
    # webhook do Mercado Pago e API pública aceitam qualquer origem
    cors.init_app(
        app,
        resources={r"/api/*": {"origins": app.config.get("CORS_ORIGINS", "*")},
                   r"/billing/webhook": {"origins": "*"},
                   r"/webhooks/*": {"origins": "*"}},
        allow_headers=["authorization", "x-client-info", "apikey", "content-type"],
    )


def configure_logging(app):
    level = getattr(logging, str(app.config.get("LOG_LEVEL", "INFO")).upper(), logging.INFO)
    root = logging.getLogger("syshair_app")
    root.setLevel(level)
    if not root.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
        root.addHandler(handler)
    app.logger.setLevel(level)


def register_jobs(app):
    """Agenda o processamento de notificações e o recálculo de metas."""
    from .services.notifications import process_notifications
    from .services.goals import recalculate_goals

    def _in_context(func):
        def job():
            with app.app_context():
                func()
        return job

    scheduler.add_job(
        _in_context(process_notifications), "interval",
        minutes=app.config.get("NOTIFICATIONS_INTERVAL_MINUTES", 60),
        id="process_notifications", replace_existing=True,
    )
    scheduler.add_job(
        _in_context(recalculate_goals), "interval",
        minutes=app.config.get("GOALS_INTERVAL_MINUTES", 60),
        id="recalculate_goals", replace_existing=True,
    )


def register_cli(app):
    @app.cli.command("init-db")
    def init_db_cmd():
        """Cria as tabelas iniciais (DEV/MVP). Para produção: use flask db upgrade."""
        with app.app_context():
            # sanity check
            db.session.execute(text("SELECT 1"))
            db.create_all()
            print("Tabelas criadas.")

    @app.cli.command("process-notifications")
    def process_notifications_cmd():
        """Envia notificações pendentes e agendadas vencidas."""
        from .services.notifications import process_notifications
        with app.app_context():
            summary = process_notifications()
            click.echo(f"{summary['processed']} notificações processadas.")

    @app.cli.command("recalculate-goals")
    @click.option("--salon-id", default=None, help="Restringe a um salão.")
    def recalculate_goals_cmd(salon_id):
        """Recalcula o progresso das metas ativas."""
        from .services.goals import recalculate_goals
        with app.app_context():
            changed = recalculate_goals(salon_id=salon_id)
            click.echo(f"{changed} metas atualizadas.")
