"""Prometheus collectors for the video pipeline."""

from __future__ import annotations

from prometheus_client import Counter, Histogram

VIDEO_TASKS_SUBMITTED = Counter(
    "reelgate_video_tasks_submitted_total",
    "Video generation submissions by provider and outcome",
    ["provider", "outcome"],
)
VIDEO_TASK_POLLS = Counter(
    "reelgate_video_task_polls_total",
    "Video task polls by provider and normalized status",
    ["provider", "status"],
)
RELOCATIONS = Counter(
    "reelgate_relocations_total",
    "Asset relocations by outcome (uploaded|cached|passthrough|rejected|failed)",
    ["outcome"],
)
RELOCATION_DURATION = Histogram(
    "reelgate_relocation_duration_seconds",
    "Time spent streaming a vendor asset into the object store",
    buckets=(0.5, 1, 2.5, 5, 10, 30, 60, 120),
)
PROXY_REQUESTS = Counter(
    "reelgate_proxy_requests_total",
    "Asset proxy requests by outcome",
    ["outcome"],
)
