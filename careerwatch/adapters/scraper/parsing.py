"""
Job extraction from rendered career page HTML.
No browser logic here: takes markup in, returns Job objects out.
"""

import hashlib
import logging
from datetime import datetime, timezone
from typing import List, Optional
from urllib.parse import urljoin

from bs4 import BeautifulSoup, Tag

from careerwatch.core.models import Job
from careerwatch.adapters.scraper.selectors import (
    DEPARTMENT_SELECTOR,
    DESCRIPTION_SELECTOR,
    F1SOFT_CLASS,
    F1SOFT_DEADLINE,
    F1SOFT_DEPARTMENT,
    F1SOFT_LOCATION,
    F1SOFT_TAGS,
    F1SOFT_TITLE_LINK,
    ID_ATTRIBUTES,
    LINK_SELECTOR,
    LISTING_SELECTORS,
    LOCATION_SELECTOR,
    TITLE_SELECTOR,
)

logger = logging.getLogger(__name__)


def _text(node: Optional[Tag]) -> str:
    if node is None:
        return ""
    return node.get_text(" ", strip=True)


def _joined_text(card: Tag, selector: str) -> str:
    nodes = card.select(selector)
    # Skip matches nested inside another match so text is not repeated.
    matched = {id(node) for node in nodes}
    outer = [n for n in nodes if not any(id(p) in matched for p in n.parents)]
    return " ".join(_text(node) for node in outer if _text(node))


def _absolute_url(href: Optional[str], source_url: str) -> str:
    if not href:
        return ""
    return urljoin(source_url, href.strip())


def job_identity(card: Tag) -> str:
    """
    Stable id for a listing: an explicit id attribute, else a hash of its text.
    """
    for attribute in ID_ATTRIBUTES:
        value = card.get(attribute)
        if isinstance(value, str) and value.strip():
            return value.strip()
    return hashlib.sha256(card.get_text().encode("utf-8")).hexdigest()


def _parse_f1soft_card(card: Tag, source_url: str, observed_at: datetime) -> Job:
    link = card.select_one(F1SOFT_TITLE_LINK)

    description_parts = []
    for label, selector in F1SOFT_TAGS:
        value = _text(card.select_one(selector))
        if value:
            description_parts.append(f"{label}: {value}")
    deadline = _text(card.select_one(F1SOFT_DEADLINE))
    if deadline:
        description_parts.append(deadline)

    return Job(
        id=job_identity(card),
        title=_text(link),
        description=" | ".join(description_parts),
        location=_text(card.select_one(F1SOFT_LOCATION)),
        department=_text(card.select_one(F1SOFT_DEPARTMENT)),
        url=_absolute_url(link.get("href") if link else None, source_url),
        observed_at=observed_at,
    )


def _parse_generic_card(card: Tag, source_url: str, observed_at: datetime) -> Job:
    link = card.select_one(LINK_SELECTOR)
    return Job(
        id=job_identity(card),
        title=_text(card.select_one(TITLE_SELECTOR)),
        description=_joined_text(card, DESCRIPTION_SELECTOR),
        location=_joined_text(card, LOCATION_SELECTOR),
        department=_joined_text(card, DEPARTMENT_SELECTOR),
        url=_absolute_url(link.get("href") if link else None, source_url),
        observed_at=observed_at,
    )


def parse_job_card(card: Tag, source_url: str, observed_at: datetime) -> Job:
    if F1SOFT_CLASS in (card.get("class") or []):
        return _parse_f1soft_card(card, source_url, observed_at)
    return _parse_generic_card(card, source_url, observed_at)


def parse_jobs(
    html: str, source_url: str, observed_at: Optional[datetime] = None
) -> List[Job]:
    """
    Extract job listings from a career page.

    Args:
        html: Rendered page HTML
        source_url: URL the page was loaded from (used to resolve relative links)
        observed_at: Timestamp stamped on every job (defaults to now)

    Returns:
        Jobs in page order. Cards without a title are skipped and
        duplicate ids keep the first card.
    """
    observed_at = observed_at or datetime.now(timezone.utc)
    soup = BeautifulSoup(html, "html.parser")

    for selector in LISTING_SELECTORS:
        cards = soup.select(selector)
        if not cards:
            continue

        logger.debug(f"Trying selector {selector}: {len(cards)} candidates")
        jobs: List[Job] = []
        seen = set()
        for card in cards:
            job = parse_job_card(card, source_url, observed_at)
            if not job.title or job.id in seen:
                continue
            seen.add(job.id)
            jobs.append(job)

        if jobs:
            logger.info(f"Found {len(jobs)} jobs using selector: {selector}")
            return jobs

    logger.warning(f"No job listings found on {source_url}")
    return []
