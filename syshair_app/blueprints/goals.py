# syshair_app/blueprints/goals.py
# -*- coding: utf-8 -*-
from __future__ import annotations
from flask import Blueprint, request, jsonify

from ..decorators import login_required, current_salon
from ..extensions import db
from ..models import Goal
from ..services.goals import (
    cancel_goal, create_goal_with_period, delete_goal, goal_stats, recalculate_goals, update_progress,
)

bp = Blueprint("goals", __name__, url_prefix="/api/goals")


def _salon_or_404():
    salon = current_salon()
    if salon is None:
        return None, (jsonify(success=False, error="Salão não encontrado"), 404)
    return salon, None


@bp.route("", methods=["GET"])
@login_required
def list_goals():
    salon, err = _salon_or_404()
    if err:
        return err
    query = Goal.query.filter_by(salon_id=salon.id)
    if request.args.get("status"):
        query = query.filter_by(status=request.args["status"])
    if request.args.get("type"):
        query = query.filter_by(type=request.args["type"])
    goals = query.order_by(Goal.created_at.desc()).all()
    return jsonify([g.to_dict() for g in goals])


@bp.route("", methods=["POST"])
@login_required
def create():
    salon, err = _salon_or_404()
    if err:
        return err
    data = request.get_json(silent=True) or {}
    goal = create_goal_with_period(
        salon_id=salon.id,
        type=data.get("type"),
        name=data.get("name"),
        target_value=data.get("target_value"),
        period=data.get("period", "monthly"),
    )
    return jsonify(goal.to_dict()), 201


def _owned_goal(goal_id):
    salon, err = _salon_or_404()
    if err:
        return None, err
    goal = db.session.get(Goal, goal_id)
    if goal is None or goal.salon_id != salon.id:
        return None, (jsonify(success=False, error="Meta não encontrada"), 404)
    return goal, None


@bp.route("/<goal_id>/cancel", methods=["POST"])
@login_required
def cancel(goal_id):
    goal, err = _owned_goal(goal_id)
    if err:
        return err
    return jsonify(cancel_goal(goal).to_dict())


@bp.route("/<goal_id>/progress", methods=["POST"])
@login_required
def progress(goal_id):
    goal, err = _owned_goal(goal_id)
    if err:
        return err
    data = request.get_json(silent=True) or {}
    return jsonify(update_progress(goal, data.get("current_value")).to_dict())


@bp.route("/<goal_id>", methods=["DELETE"])
@login_required
def delete(goal_id):
    goal, err = _owned_goal(goal_id)
    if err:
        return err
    delete_goal(goal)
    return jsonify(success=True)


@bp.route("/stats")
@login_required
def stats():
    salon, err = _salon_or_404()
    if err:
        return err
    return jsonify(goal_stats(salon.id))


@bp.route("/recalculate", methods=["POST"])
@login_required
def recalculate():
    salon, err = _salon_or_404()
    if err:
        return err
    changed = recalculate_goals(salon_id=salon.id)
    return jsonify(success=True, updated=changed)
