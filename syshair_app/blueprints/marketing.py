# syshair_app/blueprints/marketing.py
# -*- coding: utf-8 -*-
from __future__ import annotations
from flask import Blueprint, request, jsonify

from ..decorators import login_required, current_user
from ..extensions import db
from ..models import Salon
from ..services.marketing import send_marketing, validate_request

bp = Blueprint("marketing", __name__, url_prefix="/api/marketing")


@bp.route("/send", methods=["POST"])
@login_required
def send():
    data = validate_request(request.get_json(silent=True) or {})
    salon = db.session.get(Salon, data["salon_id"])
    user = current_user()
    if salon is None or user is None or (salon.owner_id != user.id and not user.is_admin):
        return jsonify(success=False, error="Salão não encontrado"), 404
    return jsonify(send_marketing(**data))
