# pyright: reportAny=false
"""Slack webhook notifier.

Posts a Block Kit message describing a failed run to an incoming webhook.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, final

import httpx
import orjson
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from health_check.exceptions import NotifyError

HEADER_TEXT_LIMIT: int = 150
"""Slack's maximum length for a header block's text."""

SECTION_TEXT_LIMIT: int = 3000
"""Slack's maximum length for a section block's text."""

DEFAULT_TIMEOUT: float = 10.0


def readable_image_id(version: str) -> str:
    """Return the tag of an image reference, or the version unchanged.

    >>> readable_image_id("ghcr.io/fpco/some-app:d5def5a")
    'd5def5a'
    """
    return version.rsplit(":", 1)[-1]


def _truncate(text: str, limit: int) -> str:
    if len(text) <= limit:
        return text
    return text[: limit - 1] + "…"


def _output_block(recent_output: str) -> dict[str, Any]:
    fence = "```"
    room = SECTION_TEXT_LIMIT - 2 * len(fence) - 2
    body = recent_output.rstrip("\n")
    if len(body) > room:
        # Keep the tail, the last lines are the interesting ones
        body = body[-room:]
    return {
        "type": "section",
        "text": {"type": "mrkdwn", "text": f"{fence}\n{body}\n{fence}"},
    }


@dataclass(frozen=True, slots=True)
class AppDetail:
    """Descriptive metadata included in every notification.

    Attributes:
        message: Notification context; literal ``\\n`` sequences become
            newlines.
        description: Human-readable application name.
        version: Application version or full image reference.
        image_url: Optional image shown next to the description.
    """

    message: str
    description: str
    version: str
    image_url: str | None = None


@retry(
    retry=retry_if_exception_type((httpx.ConnectError, httpx.TimeoutException)),
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=0.5, min=0.5, max=2),
    reraise=True,
)
def _post(client: httpx.Client, url: str, content: bytes) -> httpx.Response:
    """Post a JSON payload with retry logic.

    Raises:
        httpx.ConnectError: If connection fails after retries.
        httpx.TimeoutException: If request times out after retries.
    """
    return client.post(
        url, content=content, headers={"Content-Type": "application/json"}
    )


@final
class SlackNotifier:
    """Notifier posting failure alerts to a Slack incoming webhook."""

    __slots__ = ("_transport", "app_info", "timeout", "webhook")

    def __init__(
        self,
        webhook: str,
        app_info: AppDetail,
        *,
        timeout: float = DEFAULT_TIMEOUT,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        """Initialize the notifier.

        Args:
            webhook: Slack incoming webhook URL.
            app_info: Metadata describing the supervised application.
            timeout: Request timeout in seconds.
            transport: Optional httpx transport, used in tests.
        """
        self.webhook = webhook
        self.app_info = app_info
        self.timeout = timeout
        self._transport = transport

    def compute_description(self) -> str:
        """Build the mrkdwn description of the application."""
        version = readable_image_id(self.app_info.version)
        # Handle newline so that Slack renders it properly
        message = self.app_info.message.replace("\\n", "\n")
        return (
            f"{message} \n *Application*: {self.app_info.description} \n "
            f"*Version*: {version}"
        )

    def build_payload(
        self, cause: BaseException, recent_output: str
    ) -> dict[str, Any]:
        """Build the Block Kit payload for a failure.

        Args:
            cause: The failure cause, shown as the header.
            recent_output: Recent child output, shown in a code block.

        Returns:
            The JSON-serializable payload.
        """
        section: dict[str, Any] = {
            "type": "section",
            "block_id": "section567",
            "text": {"type": "mrkdwn", "text": self.compute_description()},
        }
        if self.app_info.image_url is not None:
            section["accessory"] = {
                "type": "image",
                "image_url": self.app_info.image_url,
                "alt_text": "Health check image",
            }

        blocks: list[dict[str, Any]] = [
            {
                "type": "header",
                "text": {
                    "type": "plain_text",
                    "text": _truncate(
                        str(cause) or type(cause).__name__, HEADER_TEXT_LIMIT
                    ),
                },
            },
            section,
        ]
        if recent_output.strip():
            blocks.append(_output_block(recent_output))

        return {"text": "Health check alert", "blocks": blocks}

    def notify(self, cause: BaseException, recent_output: str) -> None:
        """Post the failure to the webhook.

        Raises:
            NotifyError: If the request fails or Slack rejects it.
        """
        content = orjson.dumps(self.build_payload(cause, recent_output))
        try:
            with httpx.Client(
                timeout=self.timeout, transport=self._transport
            ) as client:
                response = _post(client, self.webhook, content)
        except httpx.HTTPError as e:
            msg = f"Slack notification request failed: {e}"
            raise NotifyError(msg, cause=e) from e

        if not response.is_success:
            msg = (
                "Slack notification POST request failed with code "
                f"{response.status_code}"
            )
            raise NotifyError(msg, status_code=response.status_code)
