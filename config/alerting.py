"""
Operational alerts for degraded dependencies.

Every alert is logged on the "alerting" logger. When ALERT_WEBHOOK_URL is
configured the alert is also posted to that Slack-compatible webhook.
"""
import logging

import requests
from django.conf import settings

from config.logging_filters import get_correlation_id

logger = logging.getLogger("alerting")

SEVERITY_LOG_LEVELS = {
    "critical": logging.CRITICAL,
    "warning": logging.WARNING,
    "info": logging.INFO,
}

SEVERITY_ICONS = {
    "critical": ":red_circle:",
    "warning": ":warning:",
}


def send_alert(severity: str, title: str, detail: str = "") -> None:
    """
    Log an alert and forward it to the webhook, if one is configured.

    Args:
        severity: "critical", "warning", or "info"
        title: Short alert title, e.g. "ratings lookups degraded"
        detail: Additional context
    """
    level = SEVERITY_LOG_LEVELS.get(severity, logging.INFO)
    logger.log(level, "ALERT [%s]: %s -- %s", severity.upper(), title, detail)

    webhook = getattr(settings, "ALERT_WEBHOOK_URL", "")
    if not webhook:
        return

    icon = SEVERITY_ICONS.get(severity, ":information_source:")
    text = f"{icon} *{title}*\n{detail}"
    cid = get_correlation_id()
    if cid:
        text += f"\ncorrelation id: `{cid}`"

    try:
        response = requests.post(
            webhook,
            json={"text": text},
            timeout=getattr(settings, "ALERT_WEBHOOK_TIMEOUT", 5),
        )
        response.raise_for_status()
    except requests.RequestException:
        logger.exception("Failed to deliver alert %r to webhook", title)
