"""
Django system checks for required configuration.

Runs automatically on `manage.py runserver`, `migrate`, and `check`.
"""
import os
from numbers import Number

from django.conf import settings
from django.core.checks import Error, Warning, register


@register()
def check_required_settings(app_configs, **kwargs):
    errors = []

    # E001: every scoring weight must be a non-negative number
    config = getattr(settings, "MATCHING_CONFIG", {})
    weights = dict(config.get("scoring_weights", {}))
    weights["rating_weight"] = config.get("rating_weight", 0)
    for name, value in weights.items():
        if not isinstance(value, Number) or value < 0:
            errors.append(Error(
                f"Matching weight '{name}' must be a non-negative number (got {value!r}).",
                hint="Fix MATCHING_CONFIG in settings.",
                id="mentor.E001",
            ))

    # E002: DATABASE_URL required in production
    if not settings.DEBUG and not os.environ.get("DATABASE_URL"):
        errors.append(Error(
            "DATABASE_URL not set in production.",
            hint="Set DATABASE_URL for PostgreSQL connection.",
            id="mentor.E002",
        ))

    # E003: Insecure SECRET_KEY in production
    if not settings.DEBUG and "insecure" in settings.SECRET_KEY:
        errors.append(Error(
            "SECRET_KEY contains 'insecure' and is not safe for production.",
            hint="Generate a secure SECRET_KEY.",
            id="mentor.E003",
        ))

    # W001: in-memory channel layer does not reach other processes
    backend = getattr(settings, "CHANNEL_LAYERS", {}).get("default", {}).get("BACKEND", "")
    if not settings.DEBUG and backend.endswith("InMemoryChannelLayer"):
        errors.append(Warning(
            "In-memory channel layer configured in production.",
            hint="Set REDIS_URL so chat events reach every worker process.",
            id="mentor.W001",
        ))

    return errors
