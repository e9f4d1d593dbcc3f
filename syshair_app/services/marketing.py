# syshair_app/services/marketing.py
# -*- coding: utf-8 -*-
from __future__ import annotations

import logging
import re
from datetime import datetime
from typing import Iterable, Optional

from sqlalchemy.exc import SQLAlchemyError

from ..extensions import db
from ..models import Client, Notification, PushSubscription
from ..models.notification import CHANNELS
from ..errors import ValidationError
from .notifications import whatsapp_link

logger = logging.getLogger(__name__)

_NAME_PLACEHOLDER = re.compile(r"\{nome\}", re.IGNORECASE)


def personalize(message: str, client: Client) -> str:
    first = client.first_name or "Cliente"
    return _NAME_PLACEHOLDER.sub(lambda _m: first, message)


def validate_request(payload: dict) -> dict:
    salon_id = payload.get("salon_id")
    client_ids = payload.get("client_ids") or []
    message = (payload.get("message") or "").strip()
    channel = payload.get("channel") or "whatsapp"
    if not salon_id or not isinstance(client_ids, list) or not client_ids or not message:
        raise ValidationError("Parâmetros inválidos")
    if channel not in CHANNELS:
        raise ValidationError(f"Canal não suportado: {channel}")
    return {
        "salon_id": salon_id,
        "client_ids": client_ids,
        "message": message,
        "channel": channel,
        "title": payload.get("title"),
        "type": payload.get("type") or "marketing",
    }


def _push_client_ids(salon_id: str, client_ids: Iterable[str]) -> set:
    rows = (
        PushSubscription.query
        .filter(PushSubscription.salon_id == salon_id,
                PushSubscription.client_id.in_(list(client_ids)),
                PushSubscription.is_active.is_(True))
        .all()
    )
    return {r.client_id for r in rows}


def send_marketing(salon_id: str, client_ids: list, message: str, channel: str = "whatsapp",
                   title: Optional[str] = None, type: str = "marketing",
                   now: Optional[datetime] = None) -> dict:
    """Cria uma notificação por cliente com contato utilizável no canal escolhido."""
    now = now or datetime.utcnow()
    clients = (
        Client.query
        .filter(Client.id.in_(client_ids), Client.salon_id == salon_id)
        .all()
    )
    reachable_push = _push_client_ids(salon_id, [c.id for c in clients]) if channel == "push" else set()

    results = []
    for client in clients:
        text = personalize(message, client)
        result = {"client_id": client.id, "name": client.name}

        if channel == "whatsapp" and client.phone:
            fields = dict(phone=client.phone, status="sent", sent_at=now)
            result["whatsapp_url"] = whatsapp_link(client.phone, text)
        elif channel == "push" and client.id in reachable_push:
            fields = dict(status="pending")
        else:
            result.update(status="skipped", error="Sem telefone ou canal não suportado")
            results.append(result)
            continue

        try:
            with db.session.begin_nested():
                db.session.add(Notification(
                    salon_id=salon_id, client_id=client.id, type=type, channel=channel,
                    title=title, message=text, **fields,
                ))
            result["status"] = "sent"
        except SQLAlchemyError as e:
            logger.error("Erro ao inserir notificação para o cliente %s: %s", client.id, e)
            result.update(status="failed", error=str(e))
        results.append(result)

    db.session.commit()
    summary = {
        "success": True,
        "total": len(clients),
        "sent": sum(1 for r in results if r["status"] == "sent"),
        "failed": sum(1 for r in results if r["status"] == "failed"),
        "skipped": sum(1 for r in results if r["status"] == "skipped"),
        "results": results,
    }
    logger.info("Marketing salão %s: %d enviados, %d ignorados, %d falhas",
                salon_id, summary["sent"], summary["skipped"], summary["failed"])
    return summary
