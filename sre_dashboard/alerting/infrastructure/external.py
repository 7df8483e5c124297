"""
Alerting External Service Integrations
======================================

Slack webhook notifications for critical alerts and incident changes.

Delivery is best-effort: one attempt per message, bounded by the configured
timeout. A failed delivery is logged and never fails the request that
triggered it.
"""

from typing import Any, Dict, Optional

import httpx

from sre_dashboard.alerting.application.services import INotifier
from sre_dashboard.alerting.domain import Alert, Incident
from sre_dashboard.config import settings
from sre_dashboard.shared.infrastructure.logging import get_logger

logger = get_logger(__name__)


class SlackNotifier(INotifier):
    """
    Slack webhook client.

    The HTTP client is created lazily and reused until close() is called.
    """

    def __init__(
        self,
        webhook_url: Optional[str] = None,
        channel: Optional[str] = None,
        timeout_seconds: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self._webhook_url = webhook_url if webhook_url is not None else settings.slack_webhook_url
        self._channel = channel or settings.slack_channel
        self._timeout = timeout_seconds or settings.slack_timeout_seconds
        self._transport = transport
        self._http_client: Optional[httpx.AsyncClient] = None

    @property
    def enabled(self) -> bool:
        return bool(self._webhook_url)

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._http_client is None:
            self._http_client = httpx.AsyncClient(timeout=self._timeout, transport=self._transport)
        return self._http_client

    def _alert_message(self, alert: Alert) -> Dict[str, Any]:
        """Build Slack Block Kit message for a fired alert."""
        fields = [
            {"type": "mrkdwn", "text": f"*Alert:*\n{alert.title}"},
            {"type": "mrkdwn", "text": f"*Severity:*\n{alert.severity.value}"},
        ]
        if alert.metric_name:
            fields.append({
                "type": "mrkdwn",
                "text": f"*Metric:*\n{alert.metric_name} = {alert.current_value} (threshold {alert.threshold})"
            })

        blocks = [
            {
                "type": "header",
                "text": {"type": "plain_text", "text": f"Alert fired: {alert.title}", "emoji": True}
            },
            {"type": "section", "fields": fields},
        ]
        if alert.message:
            blocks.append({"type": "context", "elements": [{"type": "mrkdwn", "text": alert.message}]})

        return {"channel": self._channel, "text": f"[{alert.severity.value}] {alert.title}", "blocks": blocks}

    def _incident_message(self, incident: Incident, action: str) -> Dict[str, Any]:
        """Build Slack Block Kit message for an incident change."""
        header = f"Incident {action}: {incident.incident_number}"
        blocks = [
            {
                "type": "header",
                "text": {"type": "plain_text", "text": header, "emoji": True}
            },
            {
                "type": "section",
                "fields": [
                    {"type": "mrkdwn", "text": f"*Title:*\n{incident.title}"},
                    {"type": "mrkdwn", "text": f"*Severity:*\n{incident.severity.value}"},
                    {"type": "mrkdwn", "text": f"*Status:*\n{incident.status.value}"},
                    {"type": "mrkdwn", "text": f"*Started:*\n{incident.started_at.isoformat()}"},
                ]
            },
        ]
        return {"channel": self._channel, "text": header, "blocks": blocks}

    async def alert_fired(self, alert: Alert) -> bool:
        return await self._send(self._alert_message(alert), {"alert_id": alert.id})

    async def incident_changed(self, incident: Incident, action: str) -> bool:
        return await self._send(
            self._incident_message(incident, action),
            {"incident_id": incident.id, "action": action},
        )

    async def _send(self, payload: Dict[str, Any], context: Dict[str, Any]) -> bool:
        """
        Post a message to the webhook.

        Returns:
            True if sent successfully, False otherwise
        """
        if not self.enabled:
            logger.debug("Slack webhook URL not configured, skipping notification")
            return False

        try:
            client = await self._get_client()
            response = await client.post(self._webhook_url, json=payload)
        except httpx.HTTPError as e:
            logger.error("Slack notification failed", extra={"error": str(e), **context})
            return False

        if response.status_code != 200:
            logger.warning(
                "Slack webhook returned non-200",
                extra={"status_code": response.status_code, **context}
            )
            return False

        logger.info("Slack notification sent", extra=context)
        return True

    async def close(self) -> None:
        """Close HTTP client."""
        if self._http_client:
            await self._http_client.aclose()
            self._http_client = None
