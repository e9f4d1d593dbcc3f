# syshair_app/services/subscriptions.py
# -*- coding: utf-8 -*-
from __future__ import annotations

import logging
import math
from dataclasses import dataclass, asdict
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Optional

from flask import current_app

from ..extensions import db
from ..models import Salon, Subscription

logger = logging.getLogger(__name__)

# telas de bloqueio
VIEW_TRIAL_EXPIRED = "trial_expired"
VIEW_EXPIRED = "expired"
VIEW_PENDING_PAYMENT = "pending_payment"
VIEW_BLOCKED = "blocked"

WARNING_MESSAGES = {
    VIEW_TRIAL_EXPIRED: "Seu período de teste expirou",
    VIEW_EXPIRED: "Sua assinatura expirou",
    VIEW_PENDING_PAYMENT: "Pagamento pendente",
    VIEW_BLOCKED: "Acesso bloqueado",
}


@dataclass
class AccessState:
    is_active: bool
    status: str
    view: Optional[str] = None            # None = conteúdo liberado
    is_trial: bool = False
    days_remaining: int = 0
    show_trial_warning: bool = False
    warning_message: Optional[str] = None

    def to_dict(self) -> dict:
        return asdict(self)


def _days_until(end: Optional[datetime], now: datetime) -> int:
    if not end:
        return 0
    return max(0, math.ceil((end - now).total_seconds() / 86400))


def trial_active(sub: Subscription, now: datetime) -> bool:
    return bool(sub.is_trial and sub.trial_end_date and sub.trial_end_date > now)


def evaluate_access(sub: Optional[Subscription], now: Optional[datetime] = None,
                    warning_days: Optional[int] = None) -> AccessState:
    now = now or datetime.utcnow()
    if warning_days is None:
        warning_days = current_app.config.get("SUBSCRIPTION_TRIAL_WARNING_DAYS", 3)

    if sub is None:
        return AccessState(is_active=False, status="none", view=VIEW_BLOCKED,
                           warning_message=WARNING_MESSAGES[VIEW_BLOCKED])

    if sub.is_trial:
        active = trial_active(sub, now) and sub.status in ("trial", "active")
        days = _days_until(sub.trial_end_date, now)
    else:
        active = sub.status == "active"
        days = _days_until(sub.current_period_end, now)

    if active:
        warn = bool(sub.is_trial and days <= warning_days)
        message = None
        if warn:
            message = f"Seu teste gratuito termina em {days} dia(s)"
        return AccessState(is_active=True, status=sub.status, is_trial=bool(sub.is_trial),
                           days_remaining=days, show_trial_warning=warn, warning_message=message)

    if sub.is_trial:
        view = VIEW_TRIAL_EXPIRED
    elif sub.status in ("expired", "cancelled"):
        view = VIEW_EXPIRED
    elif sub.status == "pending":
        view = VIEW_PENDING_PAYMENT
    else:
        view = VIEW_BLOCKED
    return AccessState(is_active=False, status=sub.status, view=view, is_trial=bool(sub.is_trial),
                       days_remaining=days, warning_message=WARNING_MESSAGES[view])


def start_trial(salon: Salon, now: Optional[datetime] = None) -> Subscription:
    now = now or datetime.utcnow()
    cfg = current_app.config
    sub = Subscription(
        salon_id=salon.id,
        status="trial",
        is_trial=True,
        trial_start_date=now,
        trial_end_date=now + timedelta(days=cfg.get("SUBSCRIPTION_TRIAL_DAYS", 7)),
        plan_name=cfg.get("SUBSCRIPTION_PLAN_NAME", "SysHair Premium"),
        amount=Decimal(str(cfg.get("SUBSCRIPTION_DEFAULT_AMOUNT", 39.90))),
        external_reference=salon.id,
    )
    db.session.add(sub)
    db.session.commit()
    logger.info("Teste gratuito iniciado para o salão %s até %s", salon.id, sub.trial_end_date)
    return sub


def check_subscription(salon: Salon, now: Optional[datetime] = None) -> Subscription:
    """Relê a assinatura do salão; inicia o teste se não houver e expira teste vencido."""
    now = now or datetime.utcnow()
    sub = Subscription.query.filter_by(salon_id=salon.id).first()
    if sub is None:
        return start_trial(salon, now=now)

    if sub.is_trial and sub.status == "trial" and not trial_active(sub, now):
        sub.status = "expired"
        db.session.add(sub)
        db.session.commit()
        logger.info("Teste gratuito do salão %s expirou", salon.id)
    return sub
