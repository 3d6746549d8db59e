"""
HTML rendering for the overview and job detail pages.
"""

from html import escape

from ciqueue import __version__
from ciqueue.coordinator.entities import Collection, Job, Outcome

BASE_STYLE = """
  body { font-family: Arial, sans-serif; margin: 0; background: #f9f9f9; color: #333; }
  h1 { background: #37474F; color: white; padding: 15px; margin: 0; }
  h2 { margin-top: 30px; color: #37474F; }
  .container { padding: 20px; }
  table { border-collapse: collapse; width: 100%; margin-top: 10px; background: white; }
  th, td { border: 1px solid #ddd; padding: 6px 8px; text-align: left; }
  th { background-color: #546E7A; color: white; }
  tr:nth-child(even) { background-color: #f2f2f2; }
  code, pre { font-family: Menlo, Consolas, monospace; font-size: 13px; }
  pre { background: white; border: 1px solid #ddd; padding: 10px; overflow-x: auto; }
  .success { color: #2E7D32; font-weight: bold; }
  .failure { color: #C62828; font-weight: bold; }
  .error { color: #EF6C00; font-weight: bold; }
  .muted { color: #777; }
"""


def page(title: str, body_html: str) -> str:
    return f"""<!DOCTYPE html>
<html>
<head>
  <meta charset="utf-8">
  <title>{escape(title)}</title>
  <style>{BASE_STYLE}</style>
</head>
<body>
  <h1>{escape(title)}</h1>
  <div class="container">
    {body_html}
    <p class="muted">ciqueue {__version__} · <a href="/">overview</a></p>
  </div>
</body>
</html>
"""


def _status_cell(status: Outcome | None) -> str:
    if status is None:
        return "-"
    return f"<span class='{status.value}'>{status.value}</span>"


def _job_row(job: Job) -> str:
    worker = escape(job.claim.worker_name) if job.claim else "-"
    claimed_at = escape(job.claim.claimed_at) if job.claim else "-"
    return (
        f"<tr><td><a href='/job/{job.job_id}'>{job.job_id}</a></td>"
        f"<td><code>{escape(job.snapshot.head_sha[:12])}</code></td>"
        f"<td><code>{escape(job.snapshot.base_sha[:12])}</code></td>"
        f"<td><code>{escape(job.snapshot.secondary_sha[:12])}</code></td>"
        f"<td>{worker}</td><td>{claimed_at}</td>"
        f"<td>{_status_cell(job.final_status)}</td></tr>"
    )


def render_overview(jobs: dict[Collection, list[Job]]) -> str:
    """Overview of all four collections, newest job first."""
    body = ""
    for collection in Collection:
        entries = jobs.get(collection, [])
        body += f"<h2>{collection.value.capitalize()} ({len(entries)})</h2>"
        if not entries:
            body += "<p class='muted'>No jobs.</p>"
            continue
        body += (
            "<table><tr><th>ID</th><th>Head</th><th>Base</th><th>Secondary</th>"
            "<th>Worker</th><th>Claimed at</th><th>Status</th></tr>"
        )
        body += "".join(_job_row(job) for job in entries)
        body += "</table>"
    return page("Regression queue", body)


def render_detail(job: Job) -> str:
    """Detail page of one job with its full log."""
    claim = (
        f"{escape(job.claim.worker_name)} at {escape(job.claim.claimed_at)}"
        if job.claim else "-"
    )
    log_text = escape("\n".join(job.log)) if job.log else ""
    body = f"""
    <table>
      <tr><th>State</th><td>{job.state.value}</td></tr>
      <tr><th>Head</th><td><code>{escape(job.snapshot.head_sha)}</code></td></tr>
      <tr><th>Base</th><td><code>{escape(job.snapshot.base_sha)}</code></td></tr>
      <tr><th>Secondary</th><td><code>{escape(job.snapshot.secondary_sha)}</code></td></tr>
      <tr><th>Claim</th><td>{claim}</td></tr>
      <tr><th>Status</th><td>{_status_cell(job.final_status)}</td></tr>
    </table>
    <h2>Log</h2>
    {f"<pre>{log_text}</pre>" if log_text else "<p class='muted'>No log yet.</p>"}
    <p><a href="/api/jobs/{job.job_id}">raw record</a></p>
    """
    return page(f"Job {job.job_id}", body)
