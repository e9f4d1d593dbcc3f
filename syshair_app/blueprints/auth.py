# syshair_app/blueprints/auth.py
# -*- coding: utf-8 -*-
from __future__ import annotations

import re
import uuid

from flask import Blueprint, render_template, request, redirect, url_for, flash, session

from ..extensions import db
from ..models import User, Salon
from ..services.subscriptions import start_trial

bp = Blueprint("auth", __name__)


def _slugify(name: str) -> str:
    slug = re.sub(r"[^a-z0-9]+", "-", (name or "").lower()).strip("-") or "salao"
    if Salon.query.filter_by(slug=slug).first():
        slug = f"{slug}-{uuid.uuid4().hex[:6]}"
    return slug


def _login(u: User) -> None:
    session["user"] = {"id": u.id, "name": u.name, "email": u.email, "is_admin": u.is_admin}


@bp.route("/login", methods=["GET", "POST"])
def login():
    if request.method == "POST":
        email = request.form.get("email")
        pwd = request.form.get("password") or ""

        u = User.query.filter_by(email=email).first()
        if not u or not u.active or not u.check_password(pwd):
            flash("Credenciais inválidas.", "danger")
            return redirect(url_for("auth.login"))

        _login(u)
        flash("Login efetuado.", "success")
        next_url = request.args.get("next") or ""
        # só caminhos locais; evita redirecionar para outro domínio
        if not next_url.startswith("/") or next_url.startswith("//") or "\\" in next_url:
            next_url = url_for("core.dashboard")
        return redirect(next_url)
    return render_template("auth_login.html")


@bp.route("/logout")
def logout():
    session.clear()
    flash("Você saiu da sessão.", "info")
    return redirect(url_for("core.index"))


@bp.route("/register", methods=["GET", "POST"])
def register():
    if request.method == "POST":
        name = request.form.get("name", "Usuário")
        email = request.form.get("email")
        pwd = request.form.get("password")
        salon_name = (request.form.get("salon_name") or "").strip()

        if not email or not pwd or not salon_name:
            flash("Informe e-mail, senha e o nome do salão.", "warning")
            return redirect(url_for("auth.register"))

        if User.query.filter_by(email=email).first():
            flash("E-mail já cadastrado.", "warning")
            return redirect(url_for("auth.register"))

        u = User(name=name, email=email)
        u.set_password(pwd)
        db.session.add(u)
        db.session.flush()

        salon = Salon(owner_id=u.id, name=salon_name, slug=_slugify(salon_name),
                      phone=request.form.get("phone"), whatsapp=request.form.get("whatsapp"))
        db.session.add(salon)
        db.session.commit()

        # 7 dias grátis para todo salão novo
        start_trial(salon)

        _login(u)
        flash("Conta criada com sucesso. Aproveite o teste gratuito!", "success")
        return redirect(url_for("core.dashboard"))

    return render_template("auth_register.html")
