# syshair_app/models/notification.py
# -*- coding: utf-8 -*-
from __future__ import annotations
from datetime import datetime
from ..extensions import db
from .user import new_id

CHANNELS = ("whatsapp", "push")


class Notification(db.Model):
    __tablename__ = "notifications"

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    salon_id = db.Column(db.String(36), db.ForeignKey("salons.id"), index=True, nullable=False)
    client_id = db.Column(db.String(36), db.ForeignKey("clients.id"), nullable=True)
    appointment_id = db.Column(db.String(36), db.ForeignKey("appointments.id"), nullable=True)
    type = db.Column(db.String(30), nullable=False, default="marketing")  # marketing, reminder, birthday...
    channel = db.Column(db.String(20), nullable=False)                    # whatsapp, push
    title = db.Column(db.String(160))
    message = db.Column(db.Text, nullable=False)
    phone = db.Column(db.String(30))
    status = db.Column(db.String(20), index=True, default="pending")      # pending, scheduled, sent, failed
    scheduled_for = db.Column(db.DateTime, index=True)
    sent_at = db.Column(db.DateTime)
    error_message = db.Column(db.Text)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "salon_id": self.salon_id,
            "client_id": self.client_id,
            "type": self.type,
            "channel": self.channel,
            "title": self.title,
            "message": self.message,
            "status": self.status,
            "scheduled_for": self.scheduled_for.isoformat() if self.scheduled_for else None,
            "sent_at": self.sent_at.isoformat() if self.sent_at else None,
            "error_message": self.error_message,
        }


class PushSubscription(db.Model):
    """Inscrição Web Push ({endpoint, p256dh, auth}) ou token FCM."""
    __tablename__ = "push_subscriptions"

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    salon_id = db.Column(db.String(36), db.ForeignKey("salons.id"), index=True, nullable=False)
    client_id = db.Column(db.String(36), db.ForeignKey("clients.id"), index=True, nullable=True)
    endpoint = db.Column(db.Text, unique=True)
    p256dh = db.Column(db.String(255))
    auth = db.Column(db.String(255))
    fcm_token = db.Column(db.String(255), unique=True)
    device_info = db.Column(db.JSON)
    is_active = db.Column(db.Boolean, default=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
