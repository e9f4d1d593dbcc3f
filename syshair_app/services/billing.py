# syshair_app/services/billing.py
# -*- coding: utf-8 -*-
"""Reconciliação da assinatura local com o Mercado Pago."""
from __future__ import annotations

import calendar
import logging
from datetime import datetime, timezone
from decimal import Decimal
from typing import Optional

from flask import current_app
from sqlalchemy import or_

from ..extensions import db
from ..models import Subscription, SubscriptionPayment
from .mercado_pago import MercadoPagoClient

logger = logging.getLogger(__name__)

PREAPPROVAL_STATUS_MAP = {
    "authorized": "active",
    "pending": "pending",
    "paused": "pending",
    "cancelled": "cancelled",
}

PREAPPROVAL_EVENTS = ("subscription_preapproval",)
PAYMENT_EVENTS = ("payment", "subscription_authorized_payment")


def _now() -> datetime:
    return datetime.utcnow()


def map_preapproval_status(provider_status: Optional[str]) -> str:
    return PREAPPROVAL_STATUS_MAP.get(provider_status or "", "pending")


def add_months(value: datetime, months: int = 1) -> datetime:
    """Soma meses preservando o dia; limita ao último dia do mês de destino."""
    month_index = value.month - 1 + months
    year = value.year + month_index // 12
    month = month_index % 12 + 1
    day = min(value.day, calendar.monthrange(year, month)[1])
    return value.replace(year=year, month=month, day=day)


def parse_provider_datetime(value) -> Optional[datetime]:
    """ISO 8601 do Mercado Pago -> datetime UTC sem tzinfo (como gravamos no banco)."""
    if not value:
        return None
    if isinstance(value, datetime):
        dt = value
    else:
        text = str(value).strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            dt = datetime.fromisoformat(text)
        except ValueError:
            logger.warning("Data inválida do provedor: %r", value)
            return None
    if dt.tzinfo is not None:
        dt = dt.astimezone(timezone.utc).replace(tzinfo=None)
    return dt


def apply_preapproval(preapproval: dict, now: Optional[datetime] = None) -> Optional[Subscription]:
    """Espelha um preapproval na assinatura local. Retorna None se não houver assinatura."""
    now = now or _now()
    preapproval_id = str(preapproval.get("id") or "")
    reference = preapproval.get("external_reference")
    status = map_preapproval_status(preapproval.get("status"))
    logger.info("Preapproval %s status=%s -> %s", preapproval_id, preapproval.get("status"), status)

    filters = [Subscription.external_preapproval_id == preapproval_id]
    if reference:
        filters.append(Subscription.external_reference == str(reference))
    sub = Subscription.query.filter(or_(*filters)).first()
    if not sub:
        logger.info("Nenhuma assinatura para o preapproval %s", preapproval_id)
        return None

    period_end = parse_provider_datetime(preapproval.get("next_payment_date")) or add_months(now, 1)
    amount = (preapproval.get("auto_recurring") or {}).get("transaction_amount") \
        or current_app.config.get("SUBSCRIPTION_DEFAULT_AMOUNT", 39.90)
    amount = Decimal(str(amount))

    unchanged = (
        sub.status == status
        and not sub.is_trial
        and sub.external_preapproval_id == preapproval_id
        and sub.current_period_end == period_end
        and sub.amount is not None and Decimal(sub.amount) == amount
    )
    if unchanged:
        # reentrega do mesmo evento: nada a gravar
        logger.info("Assinatura %s já reflete o preapproval %s", sub.id, preapproval_id)
        return sub

    sub.status = status
    sub.is_trial = False
    sub.external_preapproval_id = preapproval_id
    if preapproval.get("payer_id") is not None:
        sub.external_payer_id = str(preapproval["payer_id"])
    sub.current_period_start = now
    sub.current_period_end = period_end
    sub.next_payment_date = period_end
    sub.amount = amount
    sub.updated_at = now
    db.session.add(sub)
    db.session.commit()
    logger.info("Assinatura %s atualizada: status=%s", sub.id, status)
    return sub


def _record_payment(sub: Subscription, payment: dict) -> Optional[SubscriptionPayment]:
    payment_id = str(payment.get("id") or "")
    status = payment.get("status")
    exists = SubscriptionPayment.query.filter_by(
        subscription_id=sub.id, external_payment_id=payment_id, external_status=status
    ).first()
    if exists:
        logger.info("Pagamento %s (%s) já registrado", payment_id, status)
        return exists

    row = SubscriptionPayment(
        subscription_id=sub.id,
        salon_id=sub.salon_id,
        external_payment_id=payment_id,
        external_status=status,
        external_status_detail=payment.get("status_detail"),
        amount=Decimal(str(payment.get("transaction_amount") or 0)),
        currency=payment.get("currency_id"),
        payment_method=payment.get("payment_method_id"),
        paid_at=parse_provider_datetime(payment.get("date_approved")),
    )
    db.session.add(row)
    return row


def apply_payment(payment: dict, now: Optional[datetime] = None) -> Optional[Subscription]:
    """Registra o pagamento e ajusta a assinatura (approved -> active, rejected -> pending)."""
    now = now or _now()
    reference = payment.get("external_reference")
    status = payment.get("status")
    logger.info("Pagamento %s status=%s valor=%s", payment.get("id"), status, payment.get("transaction_amount"))

    if not reference:
        logger.info("Pagamento %s sem external_reference", payment.get("id"))
        return None

    sub = Subscription.query.filter_by(external_reference=str(reference)).first()
    if not sub:
        logger.info("Nenhuma assinatura para a referência %s", reference)
        return None

    _record_payment(sub, payment)

    if status == "approved":
        period_end = add_months(now, 1)
        sub.status = "active"
        sub.is_trial = False
        sub.last_payment_date = parse_provider_datetime(payment.get("date_approved"))
        sub.current_period_end = period_end
        sub.next_payment_date = period_end
        sub.updated_at = now
        logger.info("Pagamento aprovado, assinatura %s ativa", sub.id)
    elif status == "rejected":
        sub.status = "pending"
        sub.updated_at = now
        logger.info("Pagamento recusado, assinatura %s pendente", sub.id)

    db.session.add(sub)
    db.session.commit()
    return sub


def handle_webhook_event(event_type: Optional[str], resource_id: Optional[str],
                         client: Optional[MercadoPagoClient] = None,
                         now: Optional[datetime] = None) -> Optional[Subscription]:
    """Busca o recurso autoritativo no provedor e reconcilia. Tipos desconhecidos são ignorados."""
    if event_type not in PREAPPROVAL_EVENTS + PAYMENT_EVENTS:
        logger.info("Webhook ignorado: tipo %r", event_type)
        return None
    if not resource_id:
        logger.warning("Webhook %s sem data.id", event_type)
        return None

    client = client or MercadoPagoClient.from_config()
    if event_type in PREAPPROVAL_EVENTS:
        preapproval = client.get_preapproval(resource_id)
        if preapproval is None:
            return None
        return apply_preapproval(preapproval, now=now)

    payment = client.get_payment(resource_id)
    if payment is None:
        return None
    return apply_payment(payment, now=now)
