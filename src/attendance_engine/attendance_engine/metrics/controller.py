from __future__ import annotations

from flask import Flask, jsonify, request

from ..common.validators import optional_date, parse_flag
from ..container import Container
from ..core.constants import WEEKDAY_NAMES


def register(app: Flask, container: Container) -> None:
    service = container.metrics_service

    def _today():
        return container.clock().date()

    @app.route("/api/metrics/daily", methods=["GET"], endpoint="api_metrics_daily")
    def api_metrics_daily():
        work_date = optional_date(request.args.get("date"), _today())
        snapshot = service.get_daily_metrics(work_date, refresh=parse_flag(request.args.get("refresh")))
        return jsonify(snapshot.to_dict())

    @app.route("/api/metrics/tee", methods=["GET"], endpoint="api_metrics_tee")
    def api_metrics_tee():
        work_date = optional_date(request.args.get("date"), _today())
        return jsonify({
            "date": work_date.isoformat(),
            "weekday": WEEKDAY_NAMES[work_date.weekday()],
            "tee": service.get_tee(work_date),
        })

    @app.route("/api/metrics/tee/table", methods=["GET"], endpoint="api_metrics_tee_table")
    def api_metrics_tee_table():
        work_date = optional_date(request.args.get("date"), _today())
        return jsonify(service.get_tee_metrics(work_date).to_dict())
