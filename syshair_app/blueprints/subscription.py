# syshair_app/blueprints/subscription.py
# -*- coding: utf-8 -*-
from __future__ import annotations
from flask import Blueprint, jsonify, redirect, url_for, flash

from ..decorators import login_required, current_salon
from ..services.subscriptions import check_subscription, evaluate_access

bp = Blueprint("subscription", __name__, url_prefix="/assinatura")


@bp.route("/status")
@login_required
def status():
    salon = current_salon()
    if salon is None:
        return jsonify(error="Salão não encontrado"), 404
    sub = check_subscription(salon)
    return jsonify(evaluate_access(sub).to_dict())


@bp.route("/verificar", methods=["POST"])
@login_required
def verify():
    """Ação "verificar novamente" do paywall: relê a assinatura."""
    salon = current_salon()
    if salon is None:
        flash("Salão não encontrado.", "warning")
        return redirect(url_for("auth.register"))
    access = evaluate_access(check_subscription(salon))
    if access.is_active:
        flash("Assinatura ativa. Bem-vindo de volta!", "success")
    else:
        flash("Ainda não recebemos a confirmação do pagamento.", "info")
    return redirect(url_for("core.dashboard"))
