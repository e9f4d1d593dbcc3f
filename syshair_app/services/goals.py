# syshair_app/services/goals.py
# -*- coding: utf-8 -*-
from __future__ import annotations

import calendar
import logging
from datetime import date, datetime, time, timedelta
from typing import Optional, Tuple

from sqlalchemy import func

from ..errors import ValidationError
from ..extensions import db
from ..models import Appointment, Client, Goal, Review
from ..models.goal import GOAL_PERIODS, GOAL_TYPES

logger = logging.getLogger(__name__)


def period_window(period: str, today: date) -> Tuple[date, date]:
    """Janela [início, fim] da meta a partir do período."""
    if period == "daily":
        return today, today
    if period == "weekly":
        # semana começa no domingo
        start = today - timedelta(days=(today.weekday() + 1) % 7)
        return start, start + timedelta(days=6)
    if period == "quarterly":
        first_month = (today.month - 1) // 3 * 3 + 1
        last_month = first_month + 2
        return (date(today.year, first_month, 1),
                date(today.year, last_month, calendar.monthrange(today.year, last_month)[1]))
    if period == "yearly":
        return date(today.year, 1, 1), date(today.year, 12, 31)
    # monthly (padrão)
    return date(today.year, today.month, 1), date(today.year, today.month, calendar.monthrange(today.year, today.month)[1])


def create_goal_with_period(salon_id: str, type: str, name: str, target_value: float,
                            period: str = "monthly", today: Optional[date] = None) -> Goal:
    if type not in GOAL_TYPES:
        raise ValidationError(f"Tipo de meta inválido: {type}")
    if period not in GOAL_PERIODS:
        raise ValidationError(f"Período inválido: {period}")
    if not name:
        raise ValidationError("Nome da meta é obrigatório")
    try:
        target_value = float(target_value)
    except (TypeError, ValueError):
        raise ValidationError("Valor alvo inválido")

    start, end = period_window(period, today or date.today())
    goal = Goal(salon_id=salon_id, type=type, name=name, target_value=target_value,
                current_value=0, period=period, start_date=start, end_date=end, status="active")
    db.session.add(goal)
    db.session.commit()
    return goal


def cancel_goal(goal: Goal) -> Goal:
    goal.status = "cancelled"
    db.session.add(goal)
    db.session.commit()
    return goal


def delete_goal(goal: Goal) -> None:
    db.session.delete(goal)
    db.session.commit()
    logger.info("Meta %s removida", goal.id)


def update_progress(goal: Goal, value, now: Optional[datetime] = None) -> Goal:
    """Progresso manual (metas ``custom``). O encerramento segue a janela da meta."""
    if goal.type != "custom":
        raise ValidationError("Progresso manual só vale para metas personalizadas")
    if goal.status != "active":
        raise ValidationError("Meta não está ativa")
    try:
        value = float(value)
    except (TypeError, ValueError):
        raise ValidationError("Valor de progresso inválido")

    now = now or datetime.utcnow()
    goal.current_value = value
    recalculate_goal(goal, now.date(), now)
    goal.updated_at = now
    db.session.add(goal)
    db.session.commit()
    return goal


def compute_current_value(goal: Goal) -> float:
    start = goal.start_date
    end = goal.end_date
    window_start = datetime.combine(start, time.min)
    window_end = datetime.combine(end, time.max)

    if goal.type == "revenue":
        total = (
            db.session.query(func.coalesce(func.sum(Appointment.final_price), 0))
            .filter(Appointment.salon_id == goal.salon_id,
                    Appointment.status == "completed",
                    Appointment.date >= start, Appointment.date <= end)
            .scalar()
        )
        return float(total or 0)

    if goal.type == "appointments":
        return float(
            Appointment.query
            .filter(Appointment.salon_id == goal.salon_id,
                    Appointment.status.in_(("pending", "confirmed", "completed")),
                    Appointment.date >= start, Appointment.date <= end)
            .count()
        )

    if goal.type == "new_clients":
        return float(
            Client.query
            .filter(Client.salon_id == goal.salon_id,
                    Client.created_at >= window_start, Client.created_at <= window_end)
            .count()
        )

    if goal.type == "rating":
        avg = (
            db.session.query(func.avg(Review.rating))
            .filter(Review.salon_id == goal.salon_id,
                    Review.created_at >= window_start, Review.created_at <= window_end)
            .scalar()
        )
        return float(avg or 0)

    # custom: valor informado manualmente
    return float(goal.current_value or 0)


def recalculate_goal(goal: Goal, today: date, now: datetime) -> bool:
    """Recalcula uma meta ativa. Retorna True se algo foi gravado."""
    value = compute_current_value(goal)
    changed = value != (goal.current_value or 0)
    if changed:
        goal.current_value = value

    if goal.end_date < today:
        goal.status = "completed" if value >= goal.target_value else "failed"
        if goal.status == "completed":
            goal.completed_at = now
        logger.info("Meta %s encerrada: %s (%.2f/%.2f)", goal.id, goal.status, value, goal.target_value)
        changed = True

    if changed:
        goal.updated_at = now
        db.session.add(goal)
    return changed


def recalculate_goals(salon_id: Optional[str] = None, now: Optional[datetime] = None) -> int:
    now = now or datetime.utcnow()
    today = now.date()
    query = Goal.query.filter_by(status="active")
    if salon_id:
        query = query.filter_by(salon_id=salon_id)

    changed = 0
    for goal in query.all():
        if recalculate_goal(goal, today, now):
            changed += 1
    db.session.commit()
    logger.info("Recalculo de metas: %d atualizadas", changed)
    return changed


def goal_stats(salon_id: str) -> dict:
    goals = Goal.query.filter_by(salon_id=salon_id).all()
    rates = [
        min(g.current_value / g.target_value * 100, 100)
        for g in goals
        if g.status != "cancelled" and g.target_value
    ]
    return {
        "active_goals": sum(1 for g in goals if g.status == "active"),
        "completed_goals": sum(1 for g in goals if g.status == "completed"),
        "failed_goals": sum(1 for g in goals if g.status == "failed"),
        "average_completion": round(sum(rates) / len(rates)) if rates else 0,
    }
