"""
Unit Tests for JobQueue

Tests submission, claiming, retries with exponential backoff, stall
recovery and retention pruning.
"""

from datetime import timedelta

import pytest

from app.middleware.error_handler import InvalidSettingsError, LockLostError
from app.models.job_record import ErrorKind, JobResult, JobStatus
from app.models.layer_settings import LayerSettings
from app.services.job_queue import STALLED_ERROR_MESSAGE

RESULT = JobResult(
    image_url="cas://a",
    metadata_url="cas://b",
    animation_cid="a",
    metadata_cid="b",
    frame_count=10,
)


def submit(queue, **overrides):
    fields = {"settings": {}, "requester": "0xabc", "total_frames": 10, "size": 32}
    fields.update(overrides)
    return queue.submit(**fields)


class TestSubmit:
    """Tests for JobQueue.submit()."""

    def test_submit_creates_queued_job(self, job_queue, fake_clock, layer_settings_payload):
        job = submit(job_queue, settings=layer_settings_payload)

        assert job.status == JobStatus.QUEUED
        assert job.progress == 0
        assert job.max_attempts == 3
        assert job.created_at == fake_clock.now
        assert job.settings == layer_settings_payload
        assert job_queue.get_job(job.id) == job

    def test_submit_accepts_model(self, job_queue):
        job = submit(job_queue, settings=LayerSettings())
        assert job.settings == LayerSettings().to_attributes()

    def test_invalid_settings_never_enqueued(self, job_queue, job_store):
        with pytest.raises(InvalidSettingsError) as exc_info:
            submit(job_queue, settings={"flowFields": {"lineDensity": 5}})

        assert exc_info.value.status_code == 422
        assert exc_info.value.details["errors"]
        assert job_store.list_jobs() == []

    @pytest.mark.parametrize(
        "overrides",
        [{"total_frames": 0}, {"total_frames": 1}, {"size": 0}, {"requester": ""}],
    )
    def test_invalid_dimensions_rejected(self, job_queue, job_store, overrides):
        with pytest.raises(InvalidSettingsError):
            submit(job_queue, **overrides)
        assert job_store.list_jobs() == []


class TestClaim:
    """Tests for claim_next()."""

    def test_claim_fifo(self, job_queue, fake_clock):
        first = submit(job_queue)
        fake_clock.advance(seconds=1)
        second = submit(job_queue)

        assert job_queue.claim_next("w1").id == first.id
        assert job_queue.claim_next("w2").id == second.id
        assert job_queue.claim_next("w3") is None

    def test_claim_marks_active_and_locks(self, job_queue, job_store, fake_clock):
        job = submit(job_queue)

        claimed = job_queue.claim_next("w1")

        assert claimed.status == JobStatus.ACTIVE
        assert claimed.started_at == fake_clock.now
        assert claimed.attempt_timestamps == [fake_clock.now]
        assert claimed.lock_expires_at == fake_clock.now + timedelta(seconds=120)
        assert job_store.lock_owner(job.id) == "w1"

    def test_empty_queue(self, job_queue):
        assert job_queue.claim_next("w1") is None

    def test_failed_claim_releases_lock(self, job_queue, job_store, monkeypatch):
        job = submit(job_queue)

        def broken_save(record):
            raise OSError("disk full")

        with monkeypatch.context() as m:
            m.setattr(job_store, "save_job", broken_save)
            with pytest.raises(OSError):
                job_queue.claim_next("w1")

        assert job_store.lock_owner(job.id) is None
        assert job_queue.get_job(job.id).status == JobStatus.QUEUED
        assert job_queue.claim_next("w1").id == job.id


class TestHeartbeat:
    """Tests for heartbeat() and progress reporting."""

    def test_progress_is_monotonic(self, job_queue):
        job = submit(job_queue)
        job_queue.claim_next("w1")

        job_queue.heartbeat(job.id, "w1", 40)
        job_queue.heartbeat(job.id, "w1", 20)

        assert job_queue.get_job(job.id).progress == 40

    def test_heartbeat_extends_lock(self, job_queue, fake_clock):
        job = submit(job_queue)
        job_queue.claim_next("w1")
        fake_clock.advance(seconds=100)

        updated = job_queue.heartbeat(job.id, "w1")

        assert updated.lock_expires_at == fake_clock.now + timedelta(seconds=120)

    def test_heartbeat_with_wrong_token(self, job_queue):
        job = submit(job_queue)
        job_queue.claim_next("w1")

        with pytest.raises(LockLostError):
            job_queue.heartbeat(job.id, "w2", 10)


class TestCompleteAndFail:
    """Tests for complete() and fail() with retries."""

    def test_complete(self, job_queue, job_store, fake_clock):
        job = submit(job_queue)
        job_queue.claim_next("w1")

        done = job_queue.complete(job.id, "w1", RESULT)

        assert done.status == JobStatus.COMPLETED
        assert done.progress == 100
        assert done.result == RESULT
        assert done.attempts_made == 1
        assert done.finished_at == fake_clock.now
        assert job_store.lock_owner(job.id) is None

    def test_retry_backoff_timestamps(self, job_queue, fake_clock):
        job = submit(job_queue)
        claims = []

        # Attempt 1 fails; the retry waits 2000 ms
        claims.append(job_queue.claim_next("w1").attempt_timestamps[-1])
        failed = job_queue.fail(job.id, "w1", "boom", ErrorKind.RENDER)
        assert failed.status == JobStatus.QUEUED
        assert failed.progress == 0
        assert failed.available_at == claims[0] + timedelta(milliseconds=2000)

        fake_clock.advance(milliseconds=1999)
        assert job_queue.claim_next("w1") is None
        fake_clock.advance(milliseconds=1)

        # Attempt 2 fails; the retry waits 4000 ms
        claims.append(job_queue.claim_next("w1").attempt_timestamps[-1])
        failed = job_queue.fail(job.id, "w1", "boom", ErrorKind.RENDER)
        assert failed.available_at == claims[1] + timedelta(milliseconds=4000)

        fake_clock.advance(milliseconds=4000)

        # Attempt 3 fails; attempts exhausted
        claims.append(job_queue.claim_next("w1").attempt_timestamps[-1])
        failed = job_queue.fail(job.id, "w1", "boom", ErrorKind.RENDER)

        assert failed.status == JobStatus.FAILED
        assert failed.attempts_made == 3
        assert failed.error == "boom"
        assert failed.error_kind == ErrorKind.RENDER
        assert failed.attempt_timestamps == claims
        assert claims[1] - claims[0] >= timedelta(milliseconds=2000)
        assert claims[2] - claims[1] >= timedelta(milliseconds=4000)

    def test_non_retryable_failure(self, job_queue):
        job = submit(job_queue)
        job_queue.claim_next("w1")

        failed = job_queue.fail(job.id, "w1", "pinata down", ErrorKind.PUBLISH, retryable=False)

        assert failed.status == JobStatus.FAILED
        assert failed.attempts_made == 1
        assert failed.error_kind == ErrorKind.PUBLISH

    def test_success_after_retry_clears_error(self, job_queue, fake_clock):
        job = submit(job_queue)
        job_queue.claim_next("w1")
        job_queue.fail(job.id, "w1", "boom", ErrorKind.RENDER)
        fake_clock.advance(seconds=2)
        job_queue.claim_next("w1")

        done = job_queue.complete(job.id, "w1", RESULT)

        assert done.error is None
        assert done.attempts_made == 2

    def test_progress_kept_across_retry(self, job_queue, fake_clock):
        job = submit(job_queue)
        job_queue.claim_next("w1")
        job_queue.heartbeat(job.id, "w1", 60)

        failed = job_queue.fail(job.id, "w1", "boom", ErrorKind.RENDER)
        assert failed.status == JobStatus.QUEUED
        assert failed.progress == 60

        fake_clock.advance(seconds=2)
        assert job_queue.claim_next("w2").progress == 60
        assert job_queue.heartbeat(job.id, "w2", 20).progress == 60
        assert job_queue.heartbeat(job.id, "w2", 90).progress == 90
        assert job_queue.complete(job.id, "w2", RESULT).progress == 100

    def test_backoff_delay(self, job_queue):
        assert job_queue.backoff_delay(1) == timedelta(milliseconds=2000)
        assert job_queue.backoff_delay(2) == timedelta(milliseconds=4000)
        assert job_queue.backoff_delay(3) == timedelta(milliseconds=8000)


class TestStallRecovery:
    """Tests for recover_stalled()."""

    def test_live_lock_untouched(self, job_queue, fake_clock):
        job = submit(job_queue)
        job_queue.claim_next("w1")
        fake_clock.advance(seconds=60)

        assert job_queue.recover_stalled() == {"requeued": 0, "failed": 0}
        assert job_queue.get_job(job.id).status == JobStatus.ACTIVE

    def test_expired_lock_requeued_then_failed(self, job_queue, job_store, fake_clock):
        job = submit(job_queue)
        job_queue.claim_next("w1")
        job_queue.heartbeat(job.id, "w1", 30)
        fake_clock.advance(seconds=121)

        assert job_queue.recover_stalled() == {"requeued": 1, "failed": 0}
        requeued = job_queue.get_job(job.id)
        assert requeued.status == JobStatus.QUEUED
        assert requeued.progress == 30
        assert requeued.stalled_count == 1
        assert requeued.attempts_made == 0
        assert job_store.lock_owner(job.id) is None

        # The stalled worker can no longer report on the job
        with pytest.raises(LockLostError):
            job_queue.heartbeat(job.id, "w1", 50)

        job_queue.claim_next("w2")
        fake_clock.advance(seconds=121)

        assert job_queue.recover_stalled() == {"requeued": 0, "failed": 1}
        failed = job_queue.get_job(job.id)
        assert failed.status == JobStatus.FAILED
        assert failed.error == STALLED_ERROR_MESSAGE
        assert failed.error_kind == ErrorKind.STALLED

    def test_orphaned_claim_lock_released(self, job_queue, job_store, fake_clock):
        job = submit(job_queue)
        job_store.acquire_lock(job.id, "crashed-worker")
        assert job_queue.claim_next("w2") is None

        fake_clock.advance(seconds=121)

        assert job_queue.recover_stalled() == {"requeued": 1, "failed": 0}
        assert job_store.lock_owner(job.id) is None
        claimed = job_queue.claim_next("w2")
        assert claimed.id == job.id
        assert claimed.status == JobStatus.ACTIVE

    def test_recent_claim_lock_untouched(self, job_queue, job_store, fake_clock):
        job = submit(job_queue)
        job_store.acquire_lock(job.id, "other-worker")
        fake_clock.advance(seconds=60)

        assert job_queue.recover_stalled() == {"requeued": 0, "failed": 0}
        assert job_store.lock_owner(job.id) == "other-worker"


class TestPrune:
    """Tests for prune_finished()."""

    def test_keeps_newest(self, job_queue, fake_clock):
        ids = []
        for _ in range(3):
            job = submit(job_queue)
            job_queue.claim_next("w1")
            job_queue.complete(job.id, "w1", RESULT)
            ids.append(job.id)
            fake_clock.advance(seconds=1)
        pending = submit(job_queue)

        pruned = job_queue.prune_finished(keep_completed=1, keep_failed=0)

        assert pruned == ids[:2]
        assert job_queue.get_job(ids[2]) is not None
        assert job_queue.get_job(pending.id) is not None
