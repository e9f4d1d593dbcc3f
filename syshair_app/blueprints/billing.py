# syshair_app/blueprints/billing.py
# -*- coding: utf-8 -*-
from __future__ import annotations
from flask import Blueprint, request, jsonify, current_app, redirect, url_for, flash

from ..decorators import login_required, current_salon
from ..extensions import db
from ..services.billing import handle_webhook_event
from ..services.mercado_pago import InvalidSignature, checkout_url, verify_signature

bp = Blueprint("billing", __name__)


@bp.route("/billing/checkout")
@login_required
def checkout():
    """Redireciona para o checkout de assinatura do Mercado Pago."""
    if not current_app.config.get("MERCADO_PAGO_PLAN_ID"):
        flash("Plano do Mercado Pago não configurado.", "warning")
        return redirect(url_for("core.dashboard"))
    if current_salon() is None:
        flash("Cadastre seu salão para assinar.", "warning")
        return redirect(url_for("auth.register"))
    return redirect(checkout_url(), code=303)


def _event_from_request():
    payload = request.get_json(silent=True)
    if not isinstance(payload, dict):
        payload = {}
    data = payload.get("data")
    if not isinstance(data, dict):
        data = {}
    event_type = payload.get("type") or request.args.get("type") or request.args.get("topic")
    data_id = data.get("id") or request.args.get("data.id") or request.args.get("id")
    return event_type, (str(data_id) if data_id is not None else None)


# -------- Webhook Mercado Pago --------
@bp.route("/billing/webhook", methods=["POST"])  # configure a URL no painel do Mercado Pago
@bp.route("/webhooks/mercadopago", methods=["POST"])
def mercadopago_webhook():
    try:
        event_type, data_id = _event_from_request()
        current_app.logger.info("Webhook recebido: %s %s", event_type, data_id)

        secret = current_app.config.get("MERCADO_PAGO_WEBHOOK_SECRET")
        if secret:
            try:
                verify_signature(secret, request.headers.get("x-signature", ""),
                                 request.headers.get("x-request-id", ""), data_id or "")
            except InvalidSignature:
                current_app.logger.warning("Webhook com assinatura inválida: %s %s", event_type, data_id)
                return jsonify(error="invalid signature"), 400

        handle_webhook_event(event_type, data_id)
    except Exception as e:
        db.session.rollback()
        current_app.logger.exception("Erro no webhook do Mercado Pago")
        return jsonify(error=str(e)), 500
    return jsonify(success=True)
