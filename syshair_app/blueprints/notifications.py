# syshair_app/blueprints/notifications.py
# -*- coding: utf-8 -*-
from __future__ import annotations
import hmac

from flask import Blueprint, request, jsonify, current_app

from ..services.notifications import process_notifications
from ..services.push import save_subscription, deactivate_subscription

bp = Blueprint("notifications", __name__, url_prefix="/api")


def _cron_authorized() -> bool:
    secret = current_app.config.get("CRON_SECRET")
    if not secret:
        return True
    given = request.headers.get("Authorization", "").removeprefix("Bearer ").strip()
    return hmac.compare_digest(given, secret)


@bp.route("/notifications/process", methods=["POST"])
def process():
    if not _cron_authorized():
        return jsonify(success=False, error="unauthorized"), 401
    summary = process_notifications()
    return jsonify(success=True, **summary)


@bp.route("/push/vapid-public-key")
def vapid_public_key():
    """Chave pública usada pelo navegador em pushManager.subscribe()."""
    key = current_app.config.get("VAPID_PUBLIC_KEY")
    if not key:
        return jsonify(success=False, error="Web Push não configurado"), 404
    return jsonify(public_key=key)


@bp.route("/push/subscribe", methods=["POST"])
def push_subscribe():
    row = save_subscription(request.get_json(silent=True) or {})
    return jsonify(success=True, id=row.id), 201


@bp.route("/push/unsubscribe", methods=["POST"])
def push_unsubscribe():
    payload = request.get_json(silent=True) or {}
    endpoint = payload.get("endpoint") or (payload.get("subscription") or {}).get("endpoint")
    found = deactivate_subscription(endpoint=endpoint, fcm_token=payload.get("fcm_token"))
    if not found:
        return jsonify(success=False, error="Inscrição não encontrada"), 404
    return jsonify(success=True)
