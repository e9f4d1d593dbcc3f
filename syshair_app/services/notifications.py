# syshair_app/services/notifications.py
# -*- coding: utf-8 -*-
"""Processamento de notificações pendentes/agendadas.

Cada canal é atendido por um ``ChannelSender``. O push usa Web Push (VAPID)
quando a chave privada está configurada. O WhatsApp só registra o envio no
log: a integração com um provedor (Evolution API, Twilio...) ainda não existe.
"""
from __future__ import annotations

import json
import logging
import re
from datetime import datetime
from typing import Dict, List, Optional
from urllib.parse import quote

from flask import current_app
from pywebpush import WebPushException, webpush

from ..extensions import db
from ..models import Notification, PushSubscription

logger = logging.getLogger(__name__)

UNSUPPORTED_REASON = "unsupported channel or missing phone"


class ChannelSender:
    channel = ""

    def send(self, notification: Notification) -> None:
        raise NotImplementedError


class LoggingWhatsAppSender(ChannelSender):
    channel = "whatsapp"

    def send(self, notification: Notification) -> None:
        logger.info("[WhatsApp] Enviando para %s: %s", notification.phone, notification.message)


class LoggingPushSender(ChannelSender):
    channel = "push"

    def send(self, notification: Notification) -> None:
        logger.info("[Push] Enviando: %s - %s", notification.title, notification.message)


class PushDeliveryError(Exception):
    """Nenhuma inscrição push recebeu a notificação."""


class WebPushSender(ChannelSender):
    """Entrega via Web Push (VAPID) para as inscrições ativas do cliente.

    Sem ``client_id`` na notificação, envia para todas as inscrições do salão.
    Inscrições respondidas com 404/410 são desativadas.
    """
    channel = "push"
    GONE = (404, 410)

    def __init__(self, private_key: str, subject: str, ttl: int = 86400):
        self.private_key = private_key
        self.subject = subject
        self.ttl = ttl

    def _targets(self, notification: Notification) -> List[PushSubscription]:
        query = PushSubscription.query.filter(
            PushSubscription.salon_id == notification.salon_id,
            PushSubscription.is_active.is_(True),
            PushSubscription.endpoint.isnot(None),
        )
        if notification.client_id:
            query = query.filter(PushSubscription.client_id == notification.client_id)
        return query.all()

    def send(self, notification: Notification) -> None:
        payload = json.dumps({
            "title": notification.title or "SysHair",
            "body": notification.message,
            "type": notification.type,
        })
        delivered, gone = 0, []
        for sub in self._targets(notification):
            try:
                webpush(
                    subscription_info={"endpoint": sub.endpoint, "keys": {"p256dh": sub.p256dh, "auth": sub.auth}},
                    data=payload,
                    vapid_private_key=self.private_key,
                    vapid_claims={"sub": self.subject},
                    ttl=self.ttl,
                )
                delivered += 1
            except WebPushException as e:
                status = getattr(e.response, "status_code", None)
                if status in self.GONE:
                    gone.append(sub)
                logger.warning("[Push] Falha no envio para %s (HTTP %s): %s", sub.id, status, e)

        if gone:
            for sub in gone:
                sub.is_active = False
            # desativação vale mesmo se a notificação terminar em falha
            db.session.commit()
            logger.info("[Push] %d inscrições desativadas (Gone)", len(gone))

        if not delivered:
            raise PushDeliveryError("nenhuma inscrição push ativa recebeu a notificação")
        logger.info("[Push] Notificação %s entregue a %d dispositivo(s)", notification.id, delivered)


_senders: Dict[str, ChannelSender] = {}


def register_sender(sender: ChannelSender) -> None:
    _senders[sender.channel] = sender


def get_sender(channel: str) -> Optional[ChannelSender]:
    return _senders.get(channel)


def reset_senders() -> None:
    _senders.clear()
    register_sender(LoggingWhatsAppSender())
    register_sender(LoggingPushSender())


def configure_senders(app) -> None:
    """Web Push real quando há chave VAPID; senão o sender de log."""
    reset_senders()
    private_key = app.config.get("VAPID_PRIVATE_KEY")
    if private_key:
        register_sender(WebPushSender(
            private_key,
            app.config.get("VAPID_SUBJECT", "mailto:contato@syshair.app"),
            ttl=app.config.get("PUSH_TTL_SECONDS", 86400),
        ))
        app.logger.info("Web Push habilitado (VAPID)")


reset_senders()


def whatsapp_link(phone: str, message: str, country_code: Optional[str] = None) -> str:
    digits = re.sub(r"\D", "", phone or "")
    if country_code is None:
        country_code = current_app.config.get("WHATSAPP_DEFAULT_COUNTRY_CODE", "55")
    # DDD + número (10 ou 11 dígitos) sem código do país
    if country_code and len(digits) in (10, 11):
        digits = f"{country_code}{digits}"
    return f"https://wa.me/{digits}?text={quote(message or '')}"


def due_notifications(now: datetime, limit: int) -> List[Notification]:
    scheduled = (
        Notification.query
        .filter(Notification.status == "scheduled", Notification.scheduled_for <= now)
        .order_by(Notification.scheduled_for.asc())
        .limit(limit)
        .all()
    )
    pending = (
        Notification.query
        .filter(Notification.status == "pending")
        .order_by(Notification.created_at.asc())
        .limit(limit)
        .all()
    )
    return scheduled + pending


def _deliver(notif: Notification, now: datetime) -> dict:
    sender = get_sender(notif.channel)
    deliverable = sender is not None and (notif.channel != "whatsapp" or bool(notif.phone))
    if not deliverable:
        notif.status = "failed"
        notif.error_message = UNSUPPORTED_REASON
        return {"id": notif.id, "status": "failed", "error": "unsupported_channel"}

    sender.send(notif)
    notif.status = "sent"
    notif.sent_at = now
    return {"id": notif.id, "status": "sent"}


def process_notifications(now: Optional[datetime] = None, limit: Optional[int] = None) -> dict:
    now = now or datetime.utcnow()
    if limit is None:
        limit = current_app.config.get("NOTIFICATIONS_BATCH_LIMIT", 100)

    notifications = due_notifications(now, limit)
    # ids primeiro: um rollback expira os objetos carregados
    ids = [n.id for n in notifications]
    results = []

    for notif_id in ids:
        notif = db.session.get(Notification, notif_id)
        if notif is None:
            continue
        try:
            result = _deliver(notif, now)
            db.session.commit()
        except Exception as e:
            db.session.rollback()
            logger.exception("Erro ao processar notificação %s", notif_id)
            result = {"id": notif_id, "status": "failed", "error": str(e)}
            try:
                notif = db.session.get(Notification, notif_id)
                notif.status = "failed"
                notif.error_message = str(e)
                db.session.commit()
            except Exception:
                db.session.rollback()
                logger.exception("Não foi possível marcar a notificação %s como falha", notif_id)
        results.append(result)

    logger.info("%d notificações processadas", len(results))
    return {"processed": len(results), "results": results, "timestamp": now.isoformat()}
