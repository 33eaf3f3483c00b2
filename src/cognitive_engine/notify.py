# notify.py
# Notification sinks. Any callable taking a single string is a valid sink;
# these two cover the terminal and a generic JSON webhook.
# Delivery is best-effort: the agent catches and reports sink failures.

import httpx

from cognitive_engine import display


class ConsoleNotifier:
    """Renders notifications through the display layer."""

    def __call__(self, message: str) -> None:
        display.notification(message)


class WebhookNotifier:
    """POSTs {"text": message} to a webhook URL."""

    def __init__(self, url: str, timeout: float = 10.0, client: httpx.Client | None = None) -> None:
        if not url.strip():
            raise ValueError("Webhook URL must not be empty.")
        self.url = url.strip()
        self.timeout = timeout
        self._client = client

    def __call__(self, message: str) -> None:
        if self._client is not None:
            response = self._client.post(self.url, json={"text": message}, timeout=self.timeout)
        else:
            response = httpx.post(self.url, json={"text": message}, timeout=self.timeout)
        response.raise_for_status()
