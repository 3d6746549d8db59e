"""
Job Lifecycle Tests.

- Scenarios: claim, stop, abort and append against their preconditions
- Exactly-one-collection membership and forward-only transitions
- Read before move: a malformed record leaves the job where it was
- Notification after move: a failed notification keeps the transition
"""

import pytest

from ciqueue.coordinator import Collection, ErrorKind, Ok, Outcome

from fakes import PUBLIC_URL, snap


def assert_only_in(store, job_id, collection):
    assert store.locate(job_id) == [collection]


# =============================================================================
# Claim
# =============================================================================


class TestClaim:

    def test_claim_moves_waiting_to_running(self, lifecycle, store, notifier, create_job):
        create_job(5, Collection.WAITING, snap("abc", "base1", "sec1"))

        result = lifecycle.claim(5, "worker1")

        assert result == Ok("abc base1 sec1")
        assert_only_in(store, 5, Collection.RUNNING)
        job = lifecycle.codec.read_job(5, Collection.RUNNING, store.read(Collection.RUNNING, 5))
        assert job.claim.worker_name == "worker1"
        assert job.final_status is None
        assert notifier.statuses == [("abc", Outcome.PENDING, f"{PUBLIC_URL}/job/5")]

    def test_second_claim_conflicts(self, lifecycle, store, notifier, create_job):
        create_job(5)
        assert lifecycle.claim(5, "worker1").ok

        result = lifecycle.claim(5, "worker2")

        assert result.kind == ErrorKind.CONFLICT
        assert result.status_code == 409
        assert_only_in(store, 5, Collection.RUNNING)
        assert len(notifier.statuses) == 1

    def test_claim_unknown_job_conflicts(self, lifecycle):
        assert lifecycle.claim(99, "worker1").kind == ErrorKind.CONFLICT

    def test_claim_job_in_two_collections(self, lifecycle, store, create_job):
        create_job(5, Collection.WAITING)
        create_job(5, Collection.RUNNING)

        result = lifecycle.claim(5, "worker1")

        assert result.kind == ErrorKind.INVARIANT_VIOLATION
        assert result.status_code == 500
        assert store.exists(Collection.WAITING, 5)

    def test_claim_malformed_record_is_not_moved(self, lifecycle, store, notifier):
        store.create(Collection.WAITING, 5, "not a header\n")

        result = lifecycle.claim(5, "worker1")

        assert result.kind == ErrorKind.RECORD_FORMAT_ERROR
        assert_only_in(store, 5, Collection.WAITING)
        assert notifier.statuses == []

    def test_claim_notification_failure_keeps_transition(self, lifecycle, store, notifier, create_job):
        create_job(5)
        notifier.fail_status = True

        result = lifecycle.claim(5, "worker1")

        assert result.kind == ErrorKind.UNHANDLED
        assert_only_in(store, 5, Collection.RUNNING)


# =============================================================================
# Append / Log
# =============================================================================


class TestAppendAndLog:

    def test_append_to_running(self, lifecycle, store, create_job):
        create_job(3, Collection.RUNNING)

        assert lifecycle.append(3, "step one").ok

        record = store.read(Collection.RUNNING, 3)
        assert record.splitlines()[-1].endswith(" step one")
        assert record.splitlines()[-1].startswith("log ")

    def test_log_appends_raw_bytes(self, lifecycle, store, create_job):
        create_job(3, Collection.RUNNING)

        assert lifecycle.log(3, b"line a\nline b").ok

        assert store.read(Collection.RUNNING, 3).endswith("line a\nline b\n")

    def test_log_keeps_line_endings(self, lifecycle, store, service, create_job):
        create_job(3, Collection.RUNNING)
        before = store.read(Collection.RUNNING, 3)

        assert lifecycle.log(3, b"a\r\nb\r\n").ok

        assert store.read(Collection.RUNNING, 3) == before + "a\r\nb\r\n"
        assert service.fetch_record(3).body == before + "a\r\nb\r\n"

    @pytest.mark.parametrize("collection", [Collection.WAITING, Collection.STOPPED, Collection.ABORTED])
    def test_append_outside_running_conflicts(self, lifecycle, store, create_job, collection):
        create_job(3, collection)
        before = store.read(collection, 3)

        assert lifecycle.append(3, "x").kind == ErrorKind.CONFLICT
        assert lifecycle.log(3, b"x").kind == ErrorKind.CONFLICT
        assert store.read(collection, 3) == before


# =============================================================================
# Stop
# =============================================================================


class TestStop:

    def test_stop_notifies_once(self, lifecycle, store, notifier, create_job):
        create_job(7, Collection.RUNNING, snap("abc"), extra="claim w1 T\nstatus success\n")

        result = lifecycle.stop(7)

        assert result == Ok("success")
        assert_only_in(store, 7, Collection.STOPPED)
        assert notifier.statuses == [("abc", Outcome.SUCCESS, f"{PUBLIC_URL}/job/7")]
        assert len(notifier.emails) == 1
        subject, body = notifier.emails[0]
        assert "job 7 success" in subject
        assert f"{PUBLIC_URL}/job/7" in body
        assert "w1" in body

    def test_second_stop_conflicts(self, lifecycle, notifier, create_job):
        create_job(7, Collection.RUNNING, extra="status failure\n")
        assert lifecycle.stop(7).ok

        result = lifecycle.stop(7)

        assert result.kind == ErrorKind.CONFLICT
        assert len(notifier.statuses) == 1
        assert len(notifier.emails) == 1

    def test_stop_without_status_records_error(self, lifecycle, store, notifier, create_job):
        create_job(7, Collection.RUNNING, extra="claim w1 T\n")

        assert lifecycle.stop(7) == Ok("error")

        job = lifecycle.codec.read_job(7, Collection.STOPPED, store.read(Collection.STOPPED, 7))
        assert job.final_status == Outcome.ERROR
        assert notifier.statuses[0][1] == Outcome.ERROR

    def test_explicit_status_overrides_recorded(self, lifecycle, store, create_job):
        create_job(7, Collection.RUNNING, extra="status success\n")

        assert lifecycle.stop(7, Outcome.FAILURE) == Ok("failure")

        record = store.read(Collection.STOPPED, 7)
        assert record.endswith("status failure\n")

    def test_stop_waiting_job_conflicts(self, lifecycle, store, create_job):
        create_job(7, Collection.WAITING)

        assert lifecycle.stop(7).kind == ErrorKind.CONFLICT
        assert_only_in(store, 7, Collection.WAITING)

    def test_stop_after_log_with_status_like_line(self, lifecycle, store, notifier, create_job):
        create_job(7, Collection.RUNNING, snap("abc"))
        assert lifecycle.log(7, b"compiling\nstatus ok\n").ok

        result = lifecycle.stop(7, Outcome.SUCCESS)

        assert result == Ok("success")
        assert_only_in(store, 7, Collection.STOPPED)
        assert notifier.statuses == [("abc", Outcome.SUCCESS, f"{PUBLIC_URL}/job/7")]
        job = lifecycle.codec.read_job(7, Collection.STOPPED, store.read(Collection.STOPPED, 7))
        assert job.final_status == Outcome.SUCCESS
        assert "status ok" in job.log

    def test_stop_ignores_unknown_status_words(self, lifecycle, store, create_job):
        create_job(7, Collection.RUNNING, extra="status failure\nstatus sideways\n")

        assert lifecycle.stop(7) == Ok("failure")
        assert_only_in(store, 7, Collection.STOPPED)

    def test_stop_malformed_header_is_not_moved(self, lifecycle, store, notifier):
        store.create(Collection.RUNNING, 7, "not a header\n")

        result = lifecycle.stop(7, Outcome.SUCCESS)

        assert result.kind == ErrorKind.RECORD_FORMAT_ERROR
        assert_only_in(store, 7, Collection.RUNNING)
        assert notifier.statuses == []

    def test_stop_email_failure_keeps_transition(self, lifecycle, store, notifier, create_job):
        create_job(7, Collection.RUNNING, extra="status success\n")
        notifier.fail_email = True

        result = lifecycle.stop(7)

        assert result.kind == ErrorKind.UNHANDLED
        assert_only_in(store, 7, Collection.STOPPED)
        assert len(notifier.statuses) == 1


# =============================================================================
# Abort
# =============================================================================


class TestAbort:

    def test_abort_then_append_conflicts(self, lifecycle, store, notifier, create_job):
        create_job(9, Collection.STOPPED, extra="status success\n")

        assert lifecycle.abort(9) == Ok()
        assert_only_in(store, 9, Collection.ABORTED)
        assert notifier.statuses == []
        assert notifier.emails == []

        assert lifecycle.append(9, "x").kind == ErrorKind.CONFLICT

    def test_abort_running_job_conflicts(self, lifecycle, store, create_job):
        create_job(9, Collection.RUNNING)

        assert lifecycle.abort(9).kind == ErrorKind.CONFLICT
        assert_only_in(store, 9, Collection.RUNNING)

    def test_abort_twice_conflicts(self, lifecycle, create_job):
        create_job(9, Collection.STOPPED)
        assert lifecycle.abort(9).ok

        assert lifecycle.abort(9).kind == ErrorKind.CONFLICT


# =============================================================================
# Membership and monotonicity
# =============================================================================


class TestInvariants:

    def test_full_lifecycle_keeps_single_membership(self, lifecycle, store, create_job):
        create_job(1)
        steps = [
            (lambda: lifecycle.claim(1, "w"), Collection.RUNNING),
            (lambda: lifecycle.append(1, "building"), Collection.RUNNING),
            (lambda: lifecycle.stop(1, Outcome.SUCCESS), Collection.STOPPED),
            (lambda: lifecycle.abort(1), Collection.ABORTED),
        ]
        for operation, expected in steps:
            assert operation().ok
            assert_only_in(store, 1, expected)

    def test_no_operation_moves_a_job_backward(self, lifecycle, store, create_job):
        create_job(1, Collection.ABORTED)

        results = [
            lifecycle.claim(1, "w"),
            lifecycle.append(1, "x"),
            lifecycle.log(1, b"x"),
            lifecycle.stop(1),
            lifecycle.abort(1),
        ]

        assert all(r.kind == ErrorKind.CONFLICT for r in results)
        assert_only_in(store, 1, Collection.ABORTED)

    def test_claim_cannot_skip_to_stopped(self, lifecycle, store, create_job):
        create_job(1)

        assert lifecycle.stop(1).kind == ErrorKind.CONFLICT
        assert lifecycle.abort(1).kind == ErrorKind.CONFLICT
        assert_only_in(store, 1, Collection.WAITING)
