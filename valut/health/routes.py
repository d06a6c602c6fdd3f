"""Route handler for the liveness check."""

from __future__ import annotations

from flask import Response
from flask.views import MethodView

from . import blp

HEALTHY_BODY = "OK"


@blp.route("")
class HealthStatus(MethodView):
    @blp.doc(summary="Report that the process is alive")
    def get(self):
        return Response(HEALTHY_BODY, status=200, mimetype="text/plain")
