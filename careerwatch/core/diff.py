"""
Snapshot comparison.
Pure functions only: no I/O, no logging, no mutation of the inputs.
"""

from typing import Dict

from careerwatch.core.models import DiffResult, Job, JobCollection

# url, posted_at and observed_at are deliberately not compared.
TRACKED_FIELDS = ("title", "description", "location", "department")


def job_changed(previous: Job, current: Job) -> bool:
    """
    True when any tracked field differs between two versions of the same job.
    """
    return any(
        getattr(previous, name) != getattr(current, name) for name in TRACKED_FIELDS
    )


def compare(previous: JobCollection, current: JobCollection) -> DiffResult:
    """
    Classify the jobs of two snapshots of the same source.

    Args:
        previous: Snapshot stored by the last successful pass
        current: Snapshot just produced by the scraper

    Returns:
        DiffResult with new and updated jobs in `current` order and removed
        jobs in `previous` order. Unchanged jobs are left out.
    """
    result = DiffResult(
        company_name=current.company_name,
        source_url=current.source_url,
    )

    previous_by_id: Dict[str, Job] = {job.id: job for job in previous.jobs}
    current_ids = set()

    for job in current.jobs:
        current_ids.add(job.id)
        old = previous_by_id.get(job.id)
        if old is None:
            result.new_jobs.append(job)
        elif job_changed(old, job):
            result.updated_jobs.append(job)

    for job in previous.jobs:
        if job.id not in current_ids:
            result.removed_jobs.append(job)

    return result
