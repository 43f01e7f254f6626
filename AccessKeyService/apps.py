"""
App configuration for Access Key Service.
"""
import logging
import os
import sys

from django.apps import AppConfig
from django.conf import settings

logger = logging.getLogger(__name__)

# Management commands that never serve traffic
SKIP_SETUP_COMMANDS = {
    "migrate",
    "makemigrations",
    "collectstatic",
    "shell",
    "test",
    "check",
    "createsuperuser",
}


class AccessKeyServiceConfig(AppConfig):
    """App configuration for AccessKeyService."""

    name = "AccessKeyService"
    verbose_name = "Access Key Service"

    def ready(self):
        """Set up tracing once the app registry is loaded."""
        if len(sys.argv) > 1 and sys.argv[1] in SKIP_SETUP_COMMANDS:
            return
        if not getattr(settings, "OTEL_ENABLED", True):
            return
        # Django's autoreloader imports the project twice
        if os.environ.get("RUN_MAIN") == "false":
            return

        from core.instrumentation import setup_opentelemetry

        try:
            setup_opentelemetry()
        except Exception as e:  # pylint: disable=broad-exception-caught
            # Tracing is optional; the service still starts without it
            logger.error("OpenTelemetry setup failed: %s", e, exc_info=True)
