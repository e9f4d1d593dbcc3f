# syshair_app/models/subscription.py
# -*- coding: utf-8 -*-
from __future__ import annotations
from datetime import datetime
from sqlalchemy.orm import validates

from ..extensions import db
from .user import new_id

SUBSCRIPTION_STATUSES = ("trial", "active", "pending", "expired", "cancelled", "blocked")


class Subscription(db.Model):
    __tablename__ = "subscriptions"

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    salon_id = db.Column(db.String(36), db.ForeignKey("salons.id"), unique=True, index=True, nullable=False)

    status = db.Column(db.String(20), nullable=False, default="trial")  # trial, active, pending, expired, cancelled, blocked
    is_trial = db.Column(db.Boolean, default=True)
    trial_start_date = db.Column(db.DateTime)
    trial_end_date = db.Column(db.DateTime)

    current_period_start = db.Column(db.DateTime)
    current_period_end = db.Column(db.DateTime)
    next_payment_date = db.Column(db.DateTime)
    last_payment_date = db.Column(db.DateTime)

    plan_name = db.Column(db.String(80))
    amount = db.Column(db.Numeric(10, 2))
    currency = db.Column(db.String(8), default="BRL")

    # chaves do Mercado Pago
    external_preapproval_id = db.Column(db.String(120), index=True)
    external_payer_id = db.Column(db.String(120))
    external_reference = db.Column(db.String(120), index=True)  # = salon_id

    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    payments = db.relationship("SubscriptionPayment", backref="subscription", lazy="dynamic")

    @validates("status")
    def _validate_status(self, _key, value):
        if value not in SUBSCRIPTION_STATUSES:
            raise ValueError(f"Status de assinatura inválido: {value}")
        return value


class SubscriptionPayment(db.Model):
    """Trilha de auditoria: uma linha por evento de pagamento do provedor."""
    __tablename__ = "subscription_payments"

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    subscription_id = db.Column(db.String(36), db.ForeignKey("subscriptions.id"), index=True)
    salon_id = db.Column(db.String(36), db.ForeignKey("salons.id"), index=True)
    external_payment_id = db.Column(db.String(120), index=True)
    external_status = db.Column(db.String(30))
    external_status_detail = db.Column(db.String(120))
    amount = db.Column(db.Numeric(10, 2), nullable=False, default=0)
    currency = db.Column(db.String(8))
    payment_method = db.Column(db.String(40))
    paid_at = db.Column(db.DateTime)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
