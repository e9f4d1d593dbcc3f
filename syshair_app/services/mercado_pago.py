# syshair_app/services/mercado_pago.py
# -*- coding: utf-8 -*-
"""Acesso ao Mercado Pago (preapproval e payments) pelo SDK oficial.

Falhas do provedor (status != 2xx, timeout, erro de rede) são registradas no
log e viram ``None``: quem chama encerra aquele ramo sem levantar exceção.
"""
from __future__ import annotations

import hashlib
import hmac
import logging
from typing import Optional

import mercadopago
from mercadopago.config import RequestOptions
from flask import current_app

logger = logging.getLogger(__name__)


class MercadoPagoError(Exception):
    """Falha ao falar com a API do Mercado Pago."""


class InvalidSignature(Exception):
    """Header x-signature ausente ou divergente."""


class MercadoPagoClient:
    def __init__(self, access_token: str, timeout: int = 15, sdk=None):
        self.access_token = access_token
        self.timeout = timeout
        self.sdk = sdk or mercadopago.SDK(
            access_token, request_options=RequestOptions(connection_timeout=timeout)
        )

    @classmethod
    def from_config(cls, config=None) -> "MercadoPagoClient":
        cfg = config if config is not None else current_app.config
        return cls(
            access_token=cfg.get("MERCADO_PAGO_ACCESS_TOKEN", ""),
            timeout=int(cfg.get("MERCADO_PAGO_TIMEOUT", 15)),
        )

    @staticmethod
    def _fetch(resource, name: str, resource_id: str) -> dict:
        try:
            result = resource.get(resource_id)
        except Exception as e:  # SDK propaga erros de transporte do requests
            raise MercadoPagoError(f"{name} {resource_id}: {e}") from e
        status = (result or {}).get("status") or 0
        if not 200 <= status < 300:
            raise MercadoPagoError(f"{name} {resource_id}: HTTP {status}")
        return result.get("response") or {}

    def get_preapproval(self, preapproval_id: str) -> Optional[dict]:
        try:
            return self._fetch(self.sdk.preapproval(), "preapproval", preapproval_id)
        except MercadoPagoError as e:
            logger.error("Falha ao buscar preapproval %s: %s", preapproval_id, e)
            return None

    def get_payment(self, payment_id: str) -> Optional[dict]:
        try:
            return self._fetch(self.sdk.payment(), "payment", payment_id)
        except MercadoPagoError as e:
            logger.error("Falha ao buscar pagamento %s: %s", payment_id, e)
            return None


def checkout_url(config=None) -> str:
    cfg = config if config is not None else current_app.config
    return f"{cfg['MERCADO_PAGO_CHECKOUT_URL']}?preapproval_plan_id={cfg['MERCADO_PAGO_PLAN_ID']}"


def _parse_signature_header(header: str) -> dict:
    parts = {}
    for chunk in (header or "").split(","):
        if "=" in chunk:
            k, v = chunk.split("=", 1)
            parts[k.strip()] = v.strip()
    return parts


def verify_signature(secret: str, header: str, request_id: str, data_id: str) -> None:
    """Valida o header ``x-signature`` (``ts=...,v1=...``) de um webhook.

    O manifesto assinado é ``id:{data.id};request-id:{x-request-id};ts:{ts};``.
    Levanta InvalidSignature quando não confere.
    """
    parts = _parse_signature_header(header)
    ts, v1 = parts.get("ts"), parts.get("v1")
    if not ts or not v1:
        raise InvalidSignature("x-signature incompleto")

    manifest = ""
    if data_id:
        manifest += f"id:{str(data_id).lower()};"
    if request_id:
        manifest += f"request-id:{request_id};"
    manifest += f"ts:{ts};"

    expected = hmac.new(secret.encode("utf-8"), manifest.encode("utf-8"), hashlib.sha256).hexdigest()
    if not hmac.compare_digest(expected, v1):
        raise InvalidSignature("assinatura não confere")
