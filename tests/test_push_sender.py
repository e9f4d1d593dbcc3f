# tests/test_push_sender.py
import json
from datetime import datetime

import pytest
from pywebpush import WebPushException

import syshair_app.services.notifications as notifications
from syshair_app.models import Notification, PushSubscription
from syshair_app.services.notifications import (
    LoggingPushSender,
    WebPushSender,
    configure_senders,
    get_sender,
    process_notifications,
    register_sender,
)

NOW = datetime(2026, 10, 18, 12, 0)


class _Resp:
    def __init__(self, status_code):
        self.status_code = status_code


@pytest.fixture
def sent(monkeypatch):
    """Substitui pywebpush.webpush; endpoints em ``gone`` respondem 410."""
    calls = []
    gone = set()

    def _webpush(subscription_info, data, vapid_private_key, vapid_claims, ttl):
        endpoint = subscription_info["endpoint"]
        if endpoint in gone:
            raise WebPushException("Push failed: 410 Gone", response=_Resp(410))
        calls.append({"endpoint": endpoint, "data": json.loads(data),
                      "key": vapid_private_key, "claims": vapid_claims, "ttl": ttl})

    monkeypatch.setattr(notifications, "webpush", _webpush)
    register_sender(WebPushSender("vapid-private", "mailto:ops@test.com", ttl=60))
    return calls, gone


@pytest.fixture
def push_sub(db_session, salon):
    def _make(endpoint, client=None, **kw):
        row = PushSubscription(salon_id=salon.id, client_id=client.id if client else None,
                               endpoint=endpoint, p256dh="BNc", auth="tBH", **kw)
        db_session.add(row); db_session.commit()
        return row
    return _make


def _push(db_session, salon, client=None):
    n = Notification(salon_id=salon.id, client_id=client.id if client else None, type="promotion",
                     channel="push", title="Promoção", message="20% na escova", status="pending")
    db_session.add(n); db_session.commit()
    return n


def test_delivers_to_client_active_subscriptions(db_session, salon, make_client, push_sub, sent):
    calls, _ = sent
    ana, bia = make_client(salon, name="Ana"), make_client(salon, name="Bia")
    push_sub("https://push.test/ana-1", client=ana)
    push_sub("https://push.test/ana-old", client=ana, is_active=False)
    push_sub("https://push.test/bia", client=bia)
    # inscrição só com token FCM não entra no Web Push
    db_session.add(PushSubscription(salon_id=salon.id, client_id=ana.id, fcm_token="fcm-1"))
    db_session.commit()

    n = _push(db_session, salon, client=ana)
    process_notifications(now=NOW, limit=100)

    assert [c["endpoint"] for c in calls] == ["https://push.test/ana-1"]
    assert calls[0]["data"] == {"title": "Promoção", "body": "20% na escova", "type": "promotion"}
    assert calls[0]["claims"] == {"sub": "mailto:ops@test.com"}
    assert calls[0]["ttl"] == 60
    assert db_session.get(Notification, n.id).status == "sent"


def test_notification_without_client_goes_to_whole_salon(db_session, salon, make_client, push_sub, sent):
    calls, _ = sent
    push_sub("https://push.test/a", client=make_client(salon, name="Ana"))
    push_sub("https://push.test/b")
    _push(db_session, salon)
    process_notifications(now=NOW, limit=100)
    assert sorted(c["endpoint"] for c in calls) == ["https://push.test/a", "https://push.test/b"]


def test_gone_subscription_is_deactivated(db_session, salon, push_sub, sent):
    calls, gone = sent
    alive = push_sub("https://push.test/alive")
    dead = push_sub("https://push.test/dead")
    gone.add("https://push.test/dead")

    n = _push(db_session, salon)
    process_notifications(now=NOW, limit=100)

    assert [c["endpoint"] for c in calls] == ["https://push.test/alive"]
    assert db_session.get(Notification, n.id).status == "sent"
    assert db_session.get(PushSubscription, dead.id).is_active is False
    assert db_session.get(PushSubscription, alive.id).is_active is True


def test_all_targets_gone_fails_but_keeps_deactivation(db_session, salon, push_sub, sent):
    _, gone = sent
    dead = push_sub("https://push.test/dead")
    gone.add("https://push.test/dead")

    n = _push(db_session, salon)
    res = process_notifications(now=NOW, limit=100)

    assert res["results"][0]["status"] == "failed"
    row = db_session.get(Notification, n.id)
    assert row.status == "failed"
    assert "nenhuma inscrição push" in row.error_message
    assert db_session.get(PushSubscription, dead.id).is_active is False


def test_no_subscription_fails(db_session, salon, sent):
    n = _push(db_session, salon)
    process_notifications(now=NOW, limit=100)
    assert db_session.get(Notification, n.id).status == "failed"


# -------- registro do sender --------
def test_configure_senders_uses_web_push_with_vapid_key(app, monkeypatch):
    monkeypatch.setitem(app.config, "VAPID_PRIVATE_KEY", "vapid-private")
    monkeypatch.setitem(app.config, "PUSH_TTL_SECONDS", 120)
    configure_senders(app)
    sender = get_sender("push")
    assert isinstance(sender, WebPushSender)
    assert sender.private_key == "vapid-private"
    assert sender.ttl == 120
    assert get_sender("whatsapp") is not None


def test_configure_senders_falls_back_to_log(app):
    configure_senders(app)
    assert isinstance(get_sender("push"), LoggingPushSender)


def test_vapid_public_key_endpoint(app, client, monkeypatch):
    r = client.get("/api/push/vapid-public-key")
    assert r.status_code == 404
    assert r.get_json()["success"] is False

    monkeypatch.setitem(app.config, "VAPID_PUBLIC_KEY", "BPub")
    r = client.get("/api/push/vapid-public-key")
    assert r.status_code == 200
    assert r.get_json() == {"public_key": "BPub"}
