# syshair_app/__init__.py
# -*- coding: utf-8 -*-
from __future__ import annotations

import os
from flask import Flask
from config import Config, TestingConfig, StagingConfig, ProductionConfig
from .extensions import scheduler, init_extensions, configure_logging, register_cli, register_jobs
from .errors import register_error_handlers
from .services.notifications import configure_senders
from .blueprints.core import bp as core_bp
from .blueprints.auth import bp as auth_bp
from .blueprints.billing import bp as billing_bp
from .blueprints.subscription import bp as subscription_bp
from .blueprints.notifications import bp as notifications_bp
from .blueprints.marketing import bp as marketing_bp
from .blueprints.goals import bp as goals_bp


def create_app(config_object: type[Config] | None = None) -> Flask:
    app = Flask(__name__, template_folder="../templates")
    app_env = os.getenv("APP_ENV", "").lower()

    if config_object is not None:
        app.config.from_object(config_object)
    elif app_env == "testing":
        app.config.from_object(TestingConfig)
        # o banco de teste pode ser definido depois do import do config
        if os.getenv("SQLALCHEMY_DATABASE_URI"):
            app.config["SQLALCHEMY_DATABASE_URI"] = os.environ["SQLALCHEMY_DATABASE_URI"]
    elif app_env == "staging":
        app.config.from_object(StagingConfig)
    elif app_env == "production":
        app.config.from_object(ProductionConfig)
    else:
        app.config.from_object(Config)

    configure_logging(app)

    # Extensões (DB/Bcrypt/Migrate/CORS)
    init_extensions(app)
    register_error_handlers(app)
    # canais de notificação (Web Push real quando há chave VAPID)
    configure_senders(app)

    # Blueprints
    app.register_blueprint(core_bp)
    app.register_blueprint(auth_bp)
    app.register_blueprint(billing_bp)
    app.register_blueprint(subscription_bp)
    app.register_blueprint(notifications_bp)
    app.register_blueprint(marketing_bp)
    app.register_blueprint(goals_bp)
    # CLI (ex.: flask init-db, flask process-notifications)
    register_cli(app)

    # Scheduler (notificações e metas, de hora em hora)
    if not app.config.get("TESTING") and os.getenv("DISABLE_SCHEDULER") != "1":
        register_jobs(app)
        if not scheduler.running:
            scheduler.start()

    return app
