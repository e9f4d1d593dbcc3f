# tests/test_mercado_pago.py
import hashlib
import hmac

import pytest

from syshair_app.services.mercado_pago import (
    InvalidSignature,
    MercadoPagoClient,
    checkout_url,
    verify_signature,
)


def test_client_returns_payload_on_success(mp_sdk):
    mp_sdk.payments["42"] = (200, {"id": 42, "status": "approved"})
    mp_sdk.preapprovals["pre_1"] = (201, {"id": "pre_1", "status": "authorized"})
    mp = MercadoPagoClient("APP_USR-1", timeout=5)
    assert mp.get_payment("42") == {"id": 42, "status": "approved"}
    assert mp.get_preapproval("pre_1")["status"] == "authorized"
    assert mp_sdk.tokens == ["APP_USR-1"]
    assert mp_sdk.calls == ["42", "pre_1"]


def test_client_returns_none_on_http_error(mp_sdk):
    mp_sdk.payments["1"] = (401, {"message": "invalid token"})
    mp = MercadoPagoClient("APP_USR-1")
    # pre_x não cadastrado: o fake responde 404
    assert mp.get_preapproval("pre_x") is None
    assert mp.get_payment("1") is None


def test_client_returns_none_on_sdk_exception(mp_sdk):
    mp_sdk.payments["1"] = ConnectionError("sem rede")
    assert MercadoPagoClient("APP_USR-1").get_payment("1") is None


def test_client_uses_injected_sdk():
    class _Resource:
        def get(self, resource_id):
            return {"status": 200, "response": {"id": resource_id}}

    class _SDK:
        def payment(self):
            return _Resource()

    assert MercadoPagoClient("x", sdk=_SDK()).get_payment("7") == {"id": "7"}


def test_from_config_and_checkout_url(app, mp_sdk):
    with app.app_context():
        mp = MercadoPagoClient.from_config()
        assert mp.access_token == "TEST-token"
        assert mp.timeout == app.config["MERCADO_PAGO_TIMEOUT"]
        url = checkout_url()
    assert mp_sdk.tokens == ["TEST-token"]
    assert url == "https://www.mercadopago.com.br/subscriptions/checkout?preapproval_plan_id=plan_test_123"


def _v1(secret, manifest):
    return hmac.new(secret.encode(), manifest.encode(), hashlib.sha256).hexdigest()


def test_verify_signature_accepts_valid_header():
    v1 = _v1("s3cr3t", "id:abc123;request-id:req-9;ts:1700000000;")
    # data.id alfanumérico entra em minúsculas no manifesto
    verify_signature("s3cr3t", f"ts=1700000000,v1={v1}", "req-9", "ABC123")


def test_verify_signature_rejects_tampered_or_incomplete():
    v1 = _v1("s3cr3t", "id:abc123;request-id:req-9;ts:1700000000;")
    with pytest.raises(InvalidSignature):
        verify_signature("s3cr3t", f"ts=1700000001,v1={v1}", "req-9", "abc123")
    with pytest.raises(InvalidSignature):
        verify_signature("outro", f"ts=1700000000,v1={v1}", "req-9", "abc123")
    with pytest.raises(InvalidSignature):
        verify_signature("s3cr3t", "", "req-9", "abc123")
