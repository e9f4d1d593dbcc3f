# syshair_app/models/goal.py
# -*- coding: utf-8 -*-
from __future__ import annotations
from datetime import datetime
from ..extensions import db
from .user import new_id

GOAL_TYPES = ("revenue", "appointments", "new_clients", "rating", "custom")
GOAL_PERIODS = ("daily", "weekly", "monthly", "quarterly", "yearly")


class Goal(db.Model):
    __tablename__ = "goals"

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    salon_id = db.Column(db.String(36), db.ForeignKey("salons.id"), index=True, nullable=False)
    type = db.Column(db.String(20), nullable=False)
    name = db.Column(db.String(160), nullable=False)
    target_value = db.Column(db.Float, nullable=False, default=0)
    current_value = db.Column(db.Float, nullable=False, default=0)
    period = db.Column(db.String(20), default="monthly")
    start_date = db.Column(db.Date, nullable=False)
    end_date = db.Column(db.Date, nullable=False)
    status = db.Column(db.String(20), index=True, default="active")  # active, completed, failed, cancelled
    completed_at = db.Column(db.DateTime)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "salon_id": self.salon_id,
            "type": self.type,
            "name": self.name,
            "target_value": self.target_value,
            "current_value": self.current_value,
            "period": self.period,
            "start_date": self.start_date.isoformat(),
            "end_date": self.end_date.isoformat(),
            "status": self.status,
            "completed_at": self.completed_at.isoformat() if self.completed_at else None,
        }
