# syshair_app/services/push.py
# -*- coding: utf-8 -*-
from __future__ import annotations

import logging
from typing import Optional

from ..errors import ValidationError
from ..extensions import db
from ..models import PushSubscription, Salon

logger = logging.getLogger(__name__)


def save_subscription(payload: dict) -> PushSubscription:
    """Grava (ou reativa) uma inscrição Web Push ou um token FCM."""
    salon_id = payload.get("salon_id")
    if not salon_id or db.session.get(Salon, salon_id) is None:
        raise ValidationError("Salão não encontrado")

    web_push = payload.get("subscription") or {}
    keys = web_push.get("keys") or {}
    endpoint = web_push.get("endpoint")
    fcm_token = payload.get("fcm_token")

    if endpoint:
        if not keys.get("p256dh") or not keys.get("auth"):
            raise ValidationError("Inscrição push incompleta")
        row = PushSubscription.query.filter_by(endpoint=endpoint).first() or PushSubscription(endpoint=endpoint)
        row.p256dh = keys["p256dh"]
        row.auth = keys["auth"]
    elif fcm_token:
        row = PushSubscription.query.filter_by(fcm_token=fcm_token).first() or PushSubscription(fcm_token=fcm_token)
    else:
        raise ValidationError("Informe subscription.endpoint ou fcm_token")

    row.salon_id = salon_id
    row.client_id = payload.get("client_id")
    row.device_info = payload.get("device_info")
    row.is_active = True
    db.session.add(row)
    db.session.commit()
    logger.info("Inscrição push salva para o salão %s (cliente %s)", salon_id, row.client_id)
    return row


def deactivate_subscription(endpoint: Optional[str] = None, fcm_token: Optional[str] = None) -> bool:
    if endpoint:
        row = PushSubscription.query.filter_by(endpoint=endpoint).first()
    elif fcm_token:
        row = PushSubscription.query.filter_by(fcm_token=fcm_token).first()
    else:
        raise ValidationError("Informe endpoint ou fcm_token")
    if row is None:
        return False
    row.is_active = False
    db.session.add(row)
    db.session.commit()
    return True
