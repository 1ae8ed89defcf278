"""
Health check endpoints for monitoring.

/health/       - Liveness check (always returns 200)
/health/ready/ - Readiness check (verifies DB and channel layer)
"""
import logging

from asgiref.sync import async_to_sync
from channels.layers import get_channel_layer
from django.db import DatabaseError, connection
from django.http import JsonResponse
from django.utils.decorators import method_decorator
from django.views import View
from django.views.decorators.csrf import csrf_exempt

logger = logging.getLogger(__name__)


@method_decorator(csrf_exempt, name='dispatch')
class HealthCheckView(View):
    """Liveness check: always returns 200 if Django is running."""

    def get(self, request):
        return JsonResponse({"status": "ok"})


@method_decorator(csrf_exempt, name='dispatch')
class ReadinessCheckView(View):
    """Readiness check: checks the database and the chat channel layer."""

    def get(self, request):
        checks = {}

        # 1. Database connectivity
        try:
            with connection.cursor() as cursor:
                cursor.execute("SELECT 1")
            checks["database"] = "ok"
        except DatabaseError as e:
            logger.error("Readiness: database check failed: %s", e)
            checks["database"] = f"error: {e}"

        # 2. Channel layer round trip
        layer = get_channel_layer()
        if layer is None:
            checks["channel_layer"] = "error: not configured"
        else:
            try:
                channel = async_to_sync(layer.new_channel)()
                async_to_sync(layer.send)(channel, {"type": "health.ping"})
                async_to_sync(layer.receive)(channel)
                checks["channel_layer"] = "ok"
            except Exception as e:
                logger.error("Readiness: channel layer check failed: %s", e)
                checks["channel_layer"] = f"error: {e}"

        all_ok = all(value == "ok" for value in checks.values())

        return JsonResponse(
            {"status": "ready" if all_ok else "degraded", "checks": checks},
            status=200 if all_ok else 503,
        )
