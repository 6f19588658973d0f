"""In-process metrics collector with Prometheus text exposition."""

from __future__ import annotations

from collections import defaultdict
from threading import Lock
import time
from typing import Dict, Tuple


_lock = Lock()
_started_at = time.time()

_http_requests_total: Dict[Tuple[str, str, str], int] = defaultdict(int)
_http_request_duration_sum: Dict[Tuple[str, str], float] = defaultdict(float)
_http_request_duration_count: Dict[Tuple[str, str], int] = defaultdict(int)
_rate_limit_block_total: Dict[str, int] = defaultdict(int)
_blog_lifecycle_total: Dict[Tuple[str, str], int] = defaultdict(int)
_saga_compensations_total: Dict[Tuple[str, str, str], int] = defaultdict(int)
_uploads_total: Dict[str, int] = defaultdict(int)
_drafts_generated_total: Dict[Tuple[str, str], int] = defaultdict(int)


def _escape_label(value: str) -> str:
    return value.replace("\\", "\\\\").replace('"', '\\"')


def _normalize_label(value: str, *, fallback: str = "unknown") -> str:
    normalized = (value or "").strip()
    return normalized or fallback


def record_http_request(*, method: str, path: str, status_code: int, duration_seconds: float) -> None:
    status = str(status_code)
    method_label = method.upper()
    path_label = path or "unknown"
    duration = max(duration_seconds, 0.0)

    with _lock:
        _http_requests_total[(method_label, path_label, status)] += 1
        _http_request_duration_sum[(method_label, path_label)] += duration
        _http_request_duration_count[(method_label, path_label)] += 1


def record_rate_limit_block(*, kind: str) -> None:
    with _lock:
        _rate_limit_block_total[_normalize_label(kind)] += 1


def record_blog_lifecycle(*, operation: str, outcome: str) -> None:
    with _lock:
        _blog_lifecycle_total[(_normalize_label(operation), _normalize_label(outcome))] += 1


def record_saga_compensation(*, saga: str, step: str, outcome: str) -> None:
    with _lock:
        key = (_normalize_label(saga), _normalize_label(step), _normalize_label(outcome))
        _saga_compensations_total[key] += 1


def record_upload(*, status: str) -> None:
    with _lock:
        _uploads_total[_normalize_label(status)] += 1


def record_draft_generated(*, provider: str, status: str) -> None:
    with _lock:
        _drafts_generated_total[(_normalize_label(provider), _normalize_label(status))] += 1


def render_prometheus_metrics(*, app_name: str, app_version: str, env: str) -> str:
    uptime = max(time.time() - _started_at, 0.0)

    with _lock:
        http_total = dict(_http_requests_total)
        duration_sum = dict(_http_request_duration_sum)
        duration_count = dict(_http_request_duration_count)
        rate_limit_total = dict(_rate_limit_block_total)
        blog_lifecycle_total = dict(_blog_lifecycle_total)
        saga_compensations_total = dict(_saga_compensations_total)
        uploads_total = dict(_uploads_total)
        drafts_generated_total = dict(_drafts_generated_total)

    lines = [
        "# HELP roomblog_build_info Build metadata.",
        "# TYPE roomblog_build_info gauge",
        (
            f'roomblog_build_info{{app_name="{_escape_label(app_name)}",'
            f'version="{_escape_label(app_version)}",env="{_escape_label(env)}"}} 1'
        ),
        "# HELP roomblog_process_uptime_seconds Process uptime in seconds.",
        "# TYPE roomblog_process_uptime_seconds gauge",
        f"roomblog_process_uptime_seconds {uptime:.6f}",
        "# HELP roomblog_http_requests_total Total HTTP requests.",
        "# TYPE roomblog_http_requests_total counter",
    ]

    for (method, path, status), value in sorted(http_total.items()):
        lines.append(
            (
                f'roomblog_http_requests_total{{method="{_escape_label(method)}",'
                f'path="{_escape_label(path)}",status="{_escape_label(status)}"}} {value}'
            )
        )

    lines.extend(
        [
            "# HELP roomblog_http_request_duration_seconds Request duration summary.",
            "# TYPE roomblog_http_request_duration_seconds summary",
        ]
    )
    for (method, path), value in sorted(duration_sum.items()):
        lines.append(
            (
                f'roomblog_http_request_duration_seconds_sum{{method="{_escape_label(method)}",'
                f'path="{_escape_label(path)}"}} {value:.6f}'
            )
        )
    for (method, path), value in sorted(duration_count.items()):
        lines.append(
            (
                f'roomblog_http_request_duration_seconds_count{{method="{_escape_label(method)}",'
                f'path="{_escape_label(path)}"}} {value}'
            )
        )

    lines.extend(
        [
            "# HELP roomblog_rate_limit_block_total Requests blocked by rate limiting.",
            "# TYPE roomblog_rate_limit_block_total counter",
        ]
    )
    for kind, value in sorted(rate_limit_total.items()):
        lines.append(f'roomblog_rate_limit_block_total{{kind="{_escape_label(kind)}"}} {value}')

    lines.extend(
        [
            "# HELP roomblog_blog_lifecycle_total Blog lifecycle operations by outcome.",
            "# TYPE roomblog_blog_lifecycle_total counter",
        ]
    )
    for (operation, outcome), value in sorted(blog_lifecycle_total.items()):
        lines.append(
            (
                f'roomblog_blog_lifecycle_total{{operation="{_escape_label(operation)}",'
                f'outcome="{_escape_label(outcome)}"}} {value}'
            )
        )

    lines.extend(
        [
            "# HELP roomblog_saga_compensations_total Compensating actions run after partial failures.",
            "# TYPE roomblog_saga_compensations_total counter",
        ]
    )
    for (saga, step, outcome), value in sorted(saga_compensations_total.items()):
        lines.append(
            (
                f'roomblog_saga_compensations_total{{saga="{_escape_label(saga)}",'
                f'step="{_escape_label(step)}",outcome="{_escape_label(outcome)}"}} {value}'
            )
        )

    lines.extend(
        [
            "# HELP roomblog_uploads_total Image uploads by status.",
            "# TYPE roomblog_uploads_total counter",
        ]
    )
    for status, value in sorted(uploads_total.items()):
        lines.append(f'roomblog_uploads_total{{status="{_escape_label(status)}"}} {value}')

    lines.extend(
        [
            "# HELP roomblog_drafts_generated_total AI draft generations by provider and status.",
            "# TYPE roomblog_drafts_generated_total counter",
        ]
    )
    for (provider, status), value in sorted(drafts_generated_total.items()):
        lines.append(
            (
                f'roomblog_drafts_generated_total{{provider="{_escape_label(provider)}",'
                f'status="{_escape_label(status)}"}} {value}'
            )
        )

    lines.append("")
    return "\n".join(lines)


def reset_metrics_for_tests() -> None:
    global _started_at
    with _lock:
        _http_requests_total.clear()
        _http_request_duration_sum.clear()
        _http_request_duration_count.clear()
        _rate_limit_block_total.clear()
        _blog_lifecycle_total.clear()
        _saga_compensations_total.clear()
        _uploads_total.clear()
        _drafts_generated_total.clear()
    _started_at = time.time()
