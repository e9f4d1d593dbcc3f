# syshair_app/errors.py
# -*- coding: utf-8 -*-
from __future__ import annotations
from flask import jsonify


class ValidationError(ValueError):
    """Parâmetros inválidos na requisição (HTTP 400)."""


def register_error_handlers(app):
    @app.errorhandler(ValidationError)
    def _validation_error(e):
        return jsonify(success=False, error=str(e)), 400
