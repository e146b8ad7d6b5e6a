import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional
from urllib.parse import urlparse


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


def _parse_iso(value: Optional[str]) -> Optional[datetime]:
    return datetime.fromisoformat(value) if value else None


@dataclass(frozen=True)
class Job:
    """
    One job listing observed on a career page.

    `id` is assigned by the scraper and must be stable across fetches of an
    unchanged page.
    """

    id: str
    title: str
    description: str = ""
    location: str = ""
    department: str = ""
    url: str = ""
    posted_at: Optional[datetime] = None
    observed_at: Optional[datetime] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "location": self.location,
            "department": self.department,
            "url": self.url,
            "posted_at": _iso(self.posted_at),
            "observed_at": _iso(self.observed_at),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Job":
        return cls(
            id=data["id"],
            title=data.get("title", ""),
            description=data.get("description", ""),
            location=data.get("location", ""),
            department=data.get("department", ""),
            url=data.get("url", ""),
            posted_at=_parse_iso(data.get("posted_at")),
            observed_at=_parse_iso(data.get("observed_at")),
        )


def extract_company_name(url: str) -> str:
    """
    Best-effort company name from a career page URL.

    Example: https://careers.google.com/jobs -> "Google"
    """
    host = urlparse(url if "//" in url else f"//{url}").hostname or ""
    labels = [label for label in host.split(".") if label]
    if not labels:
        return "Unknown Company"
    label = labels[-2] if len(labels) > 1 else labels[0]
    return label[:1].upper() + label[1:]


@dataclass
class JobCollection:
    """
    Snapshot of every job seen at one source URL at one point in time.

    The zero value (no URL, no timestamp, no jobs) means "nothing stored yet".
    """

    source_url: str = ""
    company_name: str = ""
    observed_at: Optional[datetime] = None
    jobs: List[Job] = field(default_factory=list)

    @property
    def is_zero(self) -> bool:
        return not self.source_url and self.observed_at is None and not self.jobs

    def copy(self) -> "JobCollection":
        return JobCollection(
            source_url=self.source_url,
            company_name=self.company_name,
            observed_at=self.observed_at,
            jobs=list(self.jobs),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "source_url": self.source_url,
            "company_name": self.company_name,
            "observed_at": _iso(self.observed_at),
            "jobs": [job.to_dict() for job in self.jobs],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "JobCollection":
        return cls(
            source_url=data.get("source_url", ""),
            company_name=data.get("company_name", ""),
            observed_at=_parse_iso(data.get("observed_at")),
            jobs=[Job.from_dict(item) for item in data.get("jobs", [])],
        )


@dataclass
class DiffResult:
    """
    Classification of a snapshot's jobs against the previously stored one.
    """

    company_name: str
    source_url: str
    new_jobs: List[Job] = field(default_factory=list)
    updated_jobs: List[Job] = field(default_factory=list)
    removed_jobs: List[Job] = field(default_factory=list)

    @property
    def has_changes(self) -> bool:
        return bool(self.new_jobs or self.updated_jobs or self.removed_jobs)


class NotificationType(str, Enum):
    NEW_JOBS = "new_jobs"
    UPDATED_JOBS = "updated_jobs"
    REMOVED_JOBS = "removed_jobs"
    ERROR = "error"


@dataclass
class Notification:
    """
    Human readable change alert derived from a diff (or a scrape failure).
    """

    type: NotificationType
    company_name: str
    source_url: str
    title: str
    message: str
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    payload: Optional[List[Job]] = None
    id: str = field(default_factory=lambda: uuid.uuid4().hex)


def _jobs_message(jobs: List[Job], change_type: str) -> str:
    if not jobs:
        return f"No {change_type} jobs found."
    if len(jobs) == 1:
        return f"1 {change_type} job: {jobs[0].title}"
    return f"{len(jobs)} {change_type} jobs found."


def create_new_jobs_notification(diff: DiffResult) -> Notification:
    return Notification(
        type=NotificationType.NEW_JOBS,
        company_name=diff.company_name,
        source_url=diff.source_url,
        title="New Job Listings",
        message=_jobs_message(diff.new_jobs, "new"),
        payload=diff.new_jobs,
    )


def create_updated_jobs_notification(diff: DiffResult) -> Notification:
    return Notification(
        type=NotificationType.UPDATED_JOBS,
        company_name=diff.company_name,
        source_url=diff.source_url,
        title="Updated Job Listings",
        message=_jobs_message(diff.updated_jobs, "updated"),
        payload=diff.updated_jobs,
    )


def create_removed_jobs_notification(diff: DiffResult) -> Notification:
    return Notification(
        type=NotificationType.REMOVED_JOBS,
        company_name=diff.company_name,
        source_url=diff.source_url,
        title="Removed Job Listings",
        message=_jobs_message(diff.removed_jobs, "removed"),
        payload=diff.removed_jobs,
    )


def create_error_notification(
    company_name: str, source_url: str, message: str
) -> Notification:
    return Notification(
        type=NotificationType.ERROR,
        company_name=company_name,
        source_url=source_url,
        title="Scraping Error",
        message=message,
    )


def notifications_for(diff: DiffResult) -> List[Notification]:
    """
    One notification per non-empty change category, ordered new, updated, removed.
    """
    notifications = []
    if diff.new_jobs:
        notifications.append(create_new_jobs_notification(diff))
    if diff.updated_jobs:
        notifications.append(create_updated_jobs_notification(diff))
    if diff.removed_jobs:
        notifications.append(create_removed_jobs_notification(diff))
    return notifications
