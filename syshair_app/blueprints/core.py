# syshair_app/blueprints/core.py
# -*- coding: utf-8 -*-
from __future__ import annotations
from flask import Blueprint, render_template, jsonify, g
from sqlalchemy import text

from ..decorators import subscription_required
from ..extensions import db
from ..models import Appointment, Client, Goal

bp = Blueprint("core", __name__)


@bp.route("/")
def index():
    return render_template("landing.html")


@bp.route("/health")
def health():
    try:
        db.session.execute(text("SELECT 1"))
        db_ok = True
    except Exception:
        db.session.rollback()
        db_ok = False
    return jsonify(status="success" if db_ok else "degraded", database=db_ok), (200 if db_ok else 503)


@bp.route("/dashboard")
@subscription_required
def dashboard():
    salon = g.salon
    stats = {
        "clients": Client.query.filter_by(salon_id=salon.id).count(),
        "appointments": Appointment.query.filter_by(salon_id=salon.id).count(),
        "active_goals": Goal.query.filter_by(salon_id=salon.id, status="active").count(),
    }
    return render_template("dashboard.html", salon=salon, stats=stats, access=g.access)
