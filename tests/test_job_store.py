import pytest

from awb_tracker.core.errors import InvalidJobActionError, JobNotFoundError
from awb_tracker.models.job import JobState
from awb_tracker.models.tracking import TrackResultCreate


def _result(mawb: str) -> TrackResultCreate:
    prefix, awb_no = mawb.split("-")
    return TrackResultCreate(mawb=mawb, prefix=prefix, awb_no=awb_no, status="DELIVERED")


@pytest.mark.asyncio
async def test_jobs_get_incrementing_ids_and_start_pending(store):
    first = await store.create_job("a.csv")
    second = await store.create_job("b.csv")

    assert (first.id, second.id) == (1, 2)
    assert first.status == JobState.PENDING
    assert first.total_count == 0
    assert first.processed_count == 0
    assert [j.filename for j in await store.list_jobs()] == ["a.csv", "b.csv"]


@pytest.mark.asyncio
async def test_results_are_scoped_to_their_job(store):
    job_a = await store.create_job("a.csv")
    job_b = await store.create_job("b.csv")

    await store.add_result(job_a.id, _result("111-22222222"))
    await store.add_result(job_b.id, _result("333-44444444"))
    await store.add_result(job_a.id, _result("555-66666666"))

    results_a = await store.get_results(job_a.id)
    results_b = await store.get_results(job_b.id)

    assert [r.mawb for r in results_a] == ["111-22222222", "555-66666666"]
    assert [r.mawb for r in results_b] == ["333-44444444"]
    assert all(r.job_id == job_a.id for r in results_a)
    assert results_a[0].status == "DELIVERED"
    assert results_a[0].origin is None


@pytest.mark.asyncio
async def test_unknown_job_raises(store):
    assert await store.get_job(42) is None
    with pytest.raises(JobNotFoundError):
        await store.get_results(42)
    with pytest.raises(JobNotFoundError):
        await store.transition(42, JobState.PROCESSING)
    with pytest.raises(JobNotFoundError):
        await store.add_result(42, _result("111-22222222"))


@pytest.mark.asyncio
async def test_transition_follows_state_machine(store):
    job = await store.create_job("a.csv")

    processing = await store.transition(job.id, JobState.PROCESSING)
    assert processing.status == JobState.PROCESSING
    assert processing.updated_at >= job.updated_at

    completed = await store.transition(job.id, JobState.COMPLETED)
    assert completed.status == JobState.COMPLETED

    for target in (JobState.PROCESSING, JobState.PAUSED, JobState.CANCELLED, JobState.FAILED):
        with pytest.raises(InvalidJobActionError):
            await store.transition(job.id, target)
    assert (await store.get_job(job.id)).status == JobState.COMPLETED


@pytest.mark.asyncio
async def test_transition_with_explicit_sources(store):
    job = await store.create_job("a.csv")
    with pytest.raises(InvalidJobActionError):
        await store.transition(job.id, JobState.CANCELLED, allowed_from={JobState.PROCESSING})
    assert (await store.get_job(job.id)).status == JobState.PENDING


@pytest.mark.asyncio
async def test_progress_is_bounded_and_monotonic(store):
    job = await store.create_job("a.csv")
    await store.set_total(job.id, 3)

    updated = await store.update_progress(job.id, 2)
    assert updated.processed_count == 2

    with pytest.raises(ValueError):
        await store.update_progress(job.id, 4)
    with pytest.raises(ValueError):
        await store.update_progress(job.id, 1)
    with pytest.raises(ValueError):
        await store.set_total(job.id, 1)

    assert (await store.get_job(job.id)).processed_count == 2
