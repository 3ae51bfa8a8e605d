from __future__ import annotations

from flask import Flask, jsonify, request

from ..common.validators import parse_flag, require_date_range
from ..container import Container


def register(app: Flask, container: Container) -> None:
    @app.route("/api/resolver/run", methods=["POST"], endpoint="api_resolver_run")
    def api_resolver_run():
        start, end = require_date_range(request.get_json(silent=True), default=container.clock().date())
        summary = container.resolver.run(start, end)
        return jsonify(summary.to_dict(include_results=parse_flag(request.args.get("details"))))
