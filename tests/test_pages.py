"""
Tests for the overview and detail pages.
"""

from ciqueue.api.pages import render_detail, render_overview
from ciqueue.coordinator import Claim, Collection, Job, Outcome, Snapshot


def make_job(job_id, collection, **kwargs):
    return Job(
        job_id=job_id,
        collection=collection,
        snapshot=Snapshot("0123456789abcdef", "fedcba9876543210", "-"),
        **kwargs,
    )


def test_overview_lists_every_collection():
    jobs = {
        Collection.WAITING: [make_job(3, Collection.WAITING)],
        Collection.STOPPED: [
            make_job(2, Collection.STOPPED, final_status=Outcome.FAILURE),
            make_job(1, Collection.STOPPED, final_status=Outcome.SUCCESS),
        ],
    }

    html = render_overview(jobs)

    assert "Waiting (1)" in html
    assert "Running (0)" in html
    assert "Stopped (2)" in html
    assert "Aborted (0)" in html
    assert "<a href='/job/3'>3</a>" in html
    assert html.index("/job/2") < html.index("/job/1")
    assert "<span class='failure'>failure</span>" in html


def test_detail_escapes_log_text():
    job = make_job(
        5,
        Collection.RUNNING,
        claim=Claim("builder-1", "2026-01-01T00:00:00Z"),
        log=["log T <script>alert(1)</script>"],
    )

    html = render_detail(job)

    assert "<title>Job 5</title>" in html
    assert "builder-1 at 2026-01-01T00:00:00Z" in html
    assert "<script>alert(1)</script>" not in html
    assert "&lt;script&gt;" in html
    assert "/api/jobs/5" in html


def test_detail_without_log():
    html = render_detail(make_job(6, Collection.WAITING))
    assert "No log yet." in html
    assert "<td>waiting</td>" in html
