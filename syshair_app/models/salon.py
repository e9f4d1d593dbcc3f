# syshair_app/models/salon.py
# -*- coding: utf-8 -*-
from __future__ import annotations
from datetime import datetime
from ..extensions import db
from .user import new_id


class Salon(db.Model):
    __tablename__ = "salons"

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    owner_id = db.Column(db.String(36), db.ForeignKey("users.id"), index=True, nullable=False)
    name = db.Column(db.String(160), nullable=False)
    slug = db.Column(db.String(80), unique=True, index=True)
    phone = db.Column(db.String(30))
    whatsapp = db.Column(db.String(30))
    is_active = db.Column(db.Boolean, default=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    subscription = db.relationship("Subscription", backref="salon", uselist=False)


class Client(db.Model):
    __tablename__ = "clients"

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    salon_id = db.Column(db.String(36), db.ForeignKey("salons.id"), index=True, nullable=False)
    name = db.Column(db.String(160), nullable=False, default="")
    phone = db.Column(db.String(30))
    email = db.Column(db.String(180))
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    @property
    def first_name(self) -> str:
        parts = (self.name or "").split()
        return parts[0] if parts else ""


class Appointment(db.Model):
    __tablename__ = "appointments"

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    salon_id = db.Column(db.String(36), db.ForeignKey("salons.id"), index=True, nullable=False)
    client_id = db.Column(db.String(36), db.ForeignKey("clients.id"), nullable=True)
    date = db.Column(db.Date, index=True, nullable=False)
    status = db.Column(db.String(20), default="pending")  # pending, confirmed, completed, cancelled, no_show
    price = db.Column(db.Numeric(10, 2), default=0)
    final_price = db.Column(db.Numeric(10, 2), default=0)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)


class Review(db.Model):
    __tablename__ = "reviews"

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    salon_id = db.Column(db.String(36), db.ForeignKey("salons.id"), index=True, nullable=False)
    client_id = db.Column(db.String(36), db.ForeignKey("clients.id"), nullable=True)
    rating = db.Column(db.Integer, nullable=False)  # 1..5
    comment = db.Column(db.Text)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
