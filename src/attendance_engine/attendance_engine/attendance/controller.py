from __future__ import annotations

from flask import Flask, jsonify, request

from ..common.datetime_utils import iter_dates
from ..common.validators import require_date_range
from ..container import Container


def register(app: Flask, container: Container) -> None:
    @app.route("/api/attendance/reconcile", methods=["POST"], endpoint="api_attendance_reconcile")
    def api_attendance_reconcile():
        start, end = require_date_range(request.get_json(silent=True), default=container.clock().date())
        summary = container.reconciliation_service.reconcile(start, end)
        for day in iter_dates(start, end):
            container.metrics_service.invalidate(day)
        return jsonify(summary.to_dict())
