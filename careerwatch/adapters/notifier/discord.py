"""
DiscordNotifier - posts job changes to a Discord channel webhook.

One message per diff: a source embed linking the career page, followed by
one embed per change category (new, updated, removed).
"""

import logging
from datetime import datetime, timezone
from email.utils import format_datetime
from typing import Any, Dict, List, Optional

import httpx

from careerwatch.adapters.base import Notifier
from careerwatch.config.settings import settings
from careerwatch.core.errors import DeliveryFailure
from careerwatch.core.models import DiffResult, Job, Notification
from careerwatch.core.rate_limit import with_retry

logger = logging.getLogger(__name__)

DEFAULT_USERNAME = "Career Scraper"
DEFAULT_AVATAR_URL = "https://cdn-icons-png.flaticon.com/512/4365/4365271.png"

# Embed colors
BLUE = 3447003
GREEN = 5763719
YELLOW = 16776960
RED = 15158332

# Discord API limits
MAX_EMBEDS = 10
MAX_FIELDS = 25
MAX_FIELD_NAME = 256
MAX_FIELD_VALUE = 1024
MAX_TOTAL_CHARS = 6000  # all embeds in one message
FOOTER_RESERVE = 40  # room for the "... and N more not shown" footer
DESCRIPTION_PREVIEW = 200


class RetryableWebhookError(Exception):
    """Webhook answered with a status worth retrying (429 or 5xx)."""


def _truncate(text: str, limit: int) -> str:
    if len(text) <= limit:
        return text
    return text[: limit - 3] + "..."


def _field(name: str, value: str) -> Dict[str, Any]:
    return {
        "name": _truncate(name or "Untitled", MAX_FIELD_NAME),
        "value": _truncate(value or "-", MAX_FIELD_VALUE),
        "inline": False,
    }


def _job_details(job: Job) -> str:
    details = []
    if job.department:
        details.append(f"Department: {job.department}")
    if job.location:
        details.append(f"Location: {job.location}")
    return " | ".join(details) if details else "No additional details"


def _job_link(job: Job) -> str:
    return f"[View Job]({job.url})" if job.url else "No link available"


def _new_jobs_fields(jobs: List[Job]) -> List[Dict[str, Any]]:
    fields = []
    for job in jobs:
        fields.append(_field(job.title, f"{_job_link(job)}\n{_job_details(job)}"))
        if job.description:
            fields.append(
                _field("Description", _truncate(job.description, DESCRIPTION_PREVIEW))
            )
    return fields


def _updated_jobs_fields(jobs: List[Job]) -> List[Dict[str, Any]]:
    return [_field(job.title, _job_link(job)) for job in jobs]


def _removed_jobs_fields(jobs: List[Job]) -> List[Dict[str, Any]]:
    fields = []
    for job in jobs:
        value = job.department
        if job.location:
            value += f" | {job.location}"
        fields.append(_field(job.title, value))
    return fields


def embed_size(embed: Dict[str, Any]) -> int:
    """Characters Discord counts against the per-message embed total."""
    size = len(embed.get("title", "")) + len(embed.get("description", ""))
    size += len(embed.get("footer", {}).get("text", ""))
    for field in embed.get("fields", []):
        size += len(field["name"]) + len(field["value"])
    return size


def _category_embed(
    title: str,
    description: str,
    color: int,
    fields: List[Dict[str, Any]],
    budget: int,
) -> Dict[str, Any]:
    """
    Embed with as many fields as fit in MAX_FIELDS and `budget` characters.
    Fields that do not fit are counted in the footer.
    """
    embed = {
        "title": title,
        "description": description,
        "color": color,
        "fields": [],
    }
    used = embed_size(embed) + FOOTER_RESERVE
    for field in fields:
        size = len(field["name"]) + len(field["value"])
        if len(embed["fields"]) == MAX_FIELDS or used + size > budget:
            break
        embed["fields"].append(field)
        used += size

    hidden = len(fields) - len(embed["fields"])
    if hidden > 0:
        embed["footer"] = {"text": f"... and {hidden} more not shown"}
    return embed


def build_payload(
    diff: DiffResult,
    username: str = DEFAULT_USERNAME,
    avatar_url: str = DEFAULT_AVATAR_URL,
    now: Optional[datetime] = None,
) -> Dict[str, Any]:
    """
    Build the webhook JSON body for a diff.

    The embeds together stay within MAX_TOTAL_CHARS. Each change category
    keeps room for its own header, so a long list of new jobs cannot push
    the removed jobs out of the message entirely.
    """
    now = now or datetime.now(timezone.utc)
    embeds = [
        {
            "title": "Career Page",
            "url": diff.source_url,
            "description": "Click the title to visit the career page",
            "color": BLUE,
            "footer": {"text": f"Last updated: {format_datetime(now)}"},
        }
    ]

    sections = []
    if diff.new_jobs:
        sections.append((
            f"New Jobs ({len(diff.new_jobs)})",
            "The following jobs have been newly listed:",
            GREEN,
            _new_jobs_fields(diff.new_jobs),
        ))
    if diff.updated_jobs:
        sections.append((
            f"Updated Jobs ({len(diff.updated_jobs)})",
            "The following jobs have been updated:",
            YELLOW,
            _updated_jobs_fields(diff.updated_jobs),
        ))
    if diff.removed_jobs:
        sections.append((
            f"Removed Jobs ({len(diff.removed_jobs)})",
            "The following jobs are no longer listed:",
            RED,
            _removed_jobs_fields(diff.removed_jobs),
        ))

    budget = MAX_TOTAL_CHARS - embed_size(embeds[0])
    headers = [
        len(title) + len(description) + FOOTER_RESERVE
        for title, description, _, _ in sections
    ]
    for i, (title, description, color, fields) in enumerate(sections):
        embed = _category_embed(
            title, description, color, fields, budget - sum(headers[i + 1:])
        )
        budget -= embed_size(embed)
        embeds.append(embed)

    return {
        "username": username,
        "avatar_url": avatar_url,
        "content": f"Job updates for **{diff.company_name}**",
        "embeds": embeds[:MAX_EMBEDS],
    }


def build_error_payload(
    notification: Notification,
    username: str = DEFAULT_USERNAME,
    avatar_url: str = DEFAULT_AVATAR_URL,
) -> Dict[str, Any]:
    return {
        "username": username,
        "avatar_url": avatar_url,
        "content": f"Scraping problem for **{notification.company_name}**",
        "embeds": [
            {
                "title": notification.title,
                "url": notification.source_url,
                "description": _truncate(notification.message, 4096),
                "color": RED,
                "timestamp": notification.created_at.isoformat(),
            }
        ],
    }


class DiscordNotifier(Notifier):
    """
    Notifier that delivers diffs to a Discord webhook.
    """

    def __init__(
        self,
        webhook_url: str,
        timeout: float = settings.HTTP_TIMEOUT,
        username: str = DEFAULT_USERNAME,
        avatar_url: str = DEFAULT_AVATAR_URL,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        if not webhook_url:
            raise ValueError("Discord webhook URL is required for Discord notifier")
        self.webhook_url = webhook_url
        self.timeout = timeout
        self.username = username
        self.avatar_url = avatar_url
        self._transport = transport

    async def notify(self, diff: DiffResult) -> None:
        if not diff.has_changes:
            return

        payload = build_payload(diff, self.username, self.avatar_url)
        await self._send(payload, diff.source_url)
        logger.info(f"Sent Discord notification for {diff.source_url}")

    async def notify_error(self, notification: Notification) -> None:
        payload = build_error_payload(notification, self.username, self.avatar_url)
        await self._send(payload, notification.source_url)

    async def _send(self, payload: Dict[str, Any], source_url: str) -> None:
        try:
            await self._post(payload)
        except DeliveryFailure as e:
            e.url = source_url
            raise
        except (httpx.HTTPError, RetryableWebhookError) as e:
            raise DeliveryFailure(
                f"Failed to send Discord webhook: {e}", url=source_url
            ) from e

    @with_retry(retry_on=(httpx.TransportError, RetryableWebhookError))
    async def _post(self, payload: Dict[str, Any]) -> None:
        async with httpx.AsyncClient(
            timeout=self.timeout, transport=self._transport
        ) as client:
            response = await client.post(self.webhook_url, json=payload)

        if response.status_code == 429 or response.status_code >= 500:
            raise RetryableWebhookError(
                f"Discord webhook returned status {response.status_code}"
            )
        if not response.is_success:
            raise DeliveryFailure(
                f"Discord webhook returned non-success status: {response.status_code}"
            )
