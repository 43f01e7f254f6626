"""
Core views for health checks and system status.
"""

import logging

from django.core.cache import cache
from django.db import connection
from django.http import JsonResponse
from django.utils.decorators import method_decorator
from django.views import View
from django.views.decorators.csrf import csrf_exempt

logger = logging.getLogger(__name__)

SERVICE_NAME = "access-key-service"


def check_database() -> None:
    """Run a trivial query; raises on connection failure."""
    with connection.cursor() as cursor:
        cursor.execute("SELECT 1")


def check_cache() -> bool:
    """Round-trip a value through the default cache."""
    cache.set("health_check", "ok", 10)
    return cache.get("health_check") == "ok"


@method_decorator(csrf_exempt, name="dispatch")
class HealthView(View):
    """Health check endpoint."""

    def get(self, _request):
        """Return service health status."""
        return JsonResponse({"status": "healthy", "service": SERVICE_NAME})


@method_decorator(csrf_exempt, name="dispatch")
class HealthDBView(View):
    """Database health check endpoint."""

    def get(self, _request):
        """Check database connectivity."""
        try:
            check_database()
        except Exception as e:  # pylint: disable=broad-exception-caught
            logger.warning("Database health check failed: %s", e)
            return JsonResponse(
                {"status": "unhealthy", "database": "disconnected", "error": str(e)},
                status=503,
            )
        return JsonResponse({"status": "healthy", "database": "connected"})


@method_decorator(csrf_exempt, name="dispatch")
class HealthCacheView(View):
    """Cache health check endpoint."""

    def get(self, _request):
        """Check cache connectivity."""
        try:
            healthy = check_cache()
        except Exception as e:  # pylint: disable=broad-exception-caught
            logger.warning("Cache health check failed: %s", e)
            return JsonResponse(
                {"status": "unhealthy", "cache": "disconnected", "error": str(e)},
                status=503,
            )
        if healthy:
            return JsonResponse({"status": "healthy", "cache": "connected"})
        return JsonResponse({"status": "unhealthy", "cache": "disconnected"}, status=503)


@method_decorator(csrf_exempt, name="dispatch")
class ReadyView(View):
    """Readiness check endpoint."""

    def get(self, _request):
        """Check if service is ready to accept traffic."""
        checks = {
            "database": self._check_database(),
            "cache": self._check_cache(),
        }

        all_healthy = all(checks.values())
        return JsonResponse(
            {
                "status": "ready" if all_healthy else "not_ready",
                "checks": checks,
            },
            status=200 if all_healthy else 503,
        )

    def _check_database(self) -> bool:
        try:
            check_database()
            return True
        except Exception:  # pylint: disable=broad-exception-caught
            return False

    def _check_cache(self) -> bool:
        try:
            return check_cache()
        except Exception:  # pylint: disable=broad-exception-caught
            return False
