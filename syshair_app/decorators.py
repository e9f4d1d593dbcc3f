# syshair_app/decorators.py
# -*- coding: utf-8 -*-
from __future__ import annotations
from functools import wraps
from flask import session, flash, redirect, url_for, request, render_template, g

from .models import User, Salon
from .services.subscriptions import check_subscription, evaluate_access


def current_user():
    data = session.get("user")
    if not data:
        return None
    email = data.get("email")
    if not email:
        return None
    return User.query.filter_by(email=email).first()


def current_salon():
    user = current_user()
    if not user:
        return None
    return Salon.query.filter_by(owner_id=user.id).order_by(Salon.created_at.asc()).first()


def login_required(view_func):
    @wraps(view_func)
    def wrapper(*args, **kwargs):
        if not session.get("user"):
            flash("Faça login para acessar.", "warning")
            return redirect(url_for("auth.login", next=request.path))
        return view_func(*args, **kwargs)
    return wrapper


def subscription_required(view_func):
    """Só libera a view com assinatura ativa (ou teste em andamento); senão mostra o paywall."""
    @wraps(view_func)
    @login_required
    def wrapper(*args, **kwargs):
        salon = current_salon()
        if salon is None:
            flash("Cadastre seu salão para continuar.", "warning")
            return redirect(url_for("auth.register"))
        sub = check_subscription(salon)
        access = evaluate_access(sub)
        g.salon = salon
        g.access = access
        if not access.is_active:
            return render_template("paywall.html", access=access, salon=salon), 402
        return view_func(*args, **kwargs)
    return wrapper
