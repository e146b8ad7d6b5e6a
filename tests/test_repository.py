"""Tests for the snapshot repositories"""

import asyncio
import json
from datetime import datetime, timezone

import pytest

from careerwatch.adapters.repository.json_file import JsonFileRepository
from careerwatch.adapters.repository.memory import MemoryRepository
from careerwatch.core.errors import LookupFailure, PersistFailure
from careerwatch.core.models import Job
from conftest import make_collection, make_job

A = "https://careers.alpha.com/jobs"
B = "https://jobs.beta.io/openings"


@pytest.fixture(params=["memory", "json"])
def repo(request, tmp_path):
    if request.param == "memory":
        return MemoryRepository()
    return JsonFileRepository(tmp_path / "store" / "snapshots.json")


async def test_missing_url_returns_zero_collection(repo):
    collection = await repo.get_latest_job_collection(A)
    assert collection.is_zero
    assert collection.jobs == []


async def test_save_overwrites_previous_snapshot(repo):
    await repo.save_job_collection(make_collection(A, make_job("1"), make_job("2")))
    await repo.save_job_collection(make_collection(A, make_job("3")))

    latest = await repo.get_latest_job_collection(A)

    assert [j.id for j in latest.jobs] == ["3"]


async def test_sources_are_stored_independently(repo):
    await repo.save_job_collection(make_collection(A, make_job("a")))
    await repo.save_job_collection(make_collection(B, make_job("b")))

    assert [j.id for j in (await repo.get_latest_job_collection(A)).jobs] == ["a"]
    assert [j.id for j in (await repo.get_latest_job_collection(B)).jobs] == ["b"]


async def test_saved_empty_snapshot_is_not_zero(repo):
    await repo.save_job_collection(make_collection(A))
    latest = await repo.get_latest_job_collection(A)
    assert not latest.is_zero
    assert latest.jobs == []


async def test_concurrent_saves_keep_every_source(repo):
    urls = [f"https://example{i}.com/careers" for i in range(10)]
    await asyncio.gather(
        *[repo.save_job_collection(make_collection(u, make_job(u))) for u in urls]
    )
    for url in urls:
        assert [j.id for j in (await repo.get_latest_job_collection(url)).jobs] == [url]


async def test_memory_repository_isolates_stored_snapshot():
    repo = MemoryRepository()
    collection = make_collection(A, make_job("1"))
    await repo.save_job_collection(collection)

    collection.jobs.append(make_job("2"))
    fetched = await repo.get_latest_job_collection(A)
    fetched.jobs.clear()

    assert [j.id for j in (await repo.get_latest_job_collection(A)).jobs] == ["1"]


async def test_json_repository_round_trips_all_fields(tmp_path):
    path = tmp_path / "snapshots.json"
    job = Job(
        id="42",
        title="Data Engineer",
        description="Pipelines",
        location="Kathmandu",
        department="Data",
        url="https://acme.com/jobs/42",
        posted_at=datetime(2026, 2, 1, tzinfo=timezone.utc),
        observed_at=datetime(2026, 2, 3, 8, 30, tzinfo=timezone.utc),
    )
    await JsonFileRepository(path).save_job_collection(make_collection(A, job))

    # A fresh instance reads what the first one wrote.
    latest = await JsonFileRepository(path).get_latest_job_collection(A)

    assert latest.jobs == [job]
    assert latest.company_name == "Acme"
    assert latest.observed_at == datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc)
    assert json.loads(path.read_text(encoding="utf-8"))[A]["jobs"][0]["id"] == "42"


async def test_json_repository_leaves_no_temp_files(tmp_path):
    repo = JsonFileRepository(tmp_path / "snapshots.json")
    await repo.save_job_collection(make_collection(A, make_job("1")))
    await repo.save_job_collection(make_collection(A, make_job("2")))
    assert [p.name for p in tmp_path.iterdir()] == ["snapshots.json"]


async def test_json_repository_corrupt_file_is_lookup_failure(tmp_path):
    path = tmp_path / "snapshots.json"
    path.write_text("{not json", encoding="utf-8")
    repo = JsonFileRepository(path)

    with pytest.raises(LookupFailure) as excinfo:
        await repo.get_latest_job_collection(A)
    assert excinfo.value.url == A


async def test_json_repository_recovers_from_corrupt_file(tmp_path, caplog):
    path = tmp_path / "snapshots.json"
    path.write_text("{not json", encoding="utf-8")
    repo = JsonFileRepository(path)

    await repo.save_job_collection(make_collection(A, make_job("1")))

    assert [j.id for j in (await repo.get_latest_job_collection(A)).jobs] == ["1"]
    backup = tmp_path / "snapshots.json.corrupt"
    assert backup.read_text(encoding="utf-8") == "{not json"
    assert any("unreadable snapshot store" in r.getMessage() for r in caplog.records)


async def test_json_repository_save_failure_is_persist_failure(tmp_path):
    # The store path is a directory, so it can be neither read nor replaced.
    path = tmp_path / "snapshots.json"
    path.mkdir()

    with pytest.raises(PersistFailure) as excinfo:
        await JsonFileRepository(path).save_job_collection(make_collection(A))
    assert excinfo.value.url == A
