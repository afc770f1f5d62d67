"""Prometheus metrics for Warden.

Tracks job runs, per-item outcomes, and run latency.
"""

from prometheus_client import Counter, Gauge, Histogram

JOB_RUNS = Counter(
    "warden_job_runs_total",
    "Total number of job runs",
    labelnames=["job", "outcome"],
)

JOB_ITEMS = Counter(
    "warden_job_items_total",
    "Total number of items processed by jobs",
    labelnames=["job", "outcome"],
)

JOB_RUN_DURATION = Histogram(
    "warden_job_run_duration_seconds",
    "Job run duration in seconds",
    labelnames=["job"],
    buckets=(0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0, 60.0, 300.0),
)

JOB_BATCH_SIZE = Gauge(
    "warden_job_batch_size",
    "Number of items selected by the most recent run",
    labelnames=["job"],
)

JOB_NEXT_RUN_SECONDS = Gauge(
    "warden_job_next_run_seconds",
    "Seconds until the job asked to be run again",
    labelnames=["job"],
)
