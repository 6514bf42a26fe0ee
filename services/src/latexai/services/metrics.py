"""Lightweight Prometheus-style metrics utilities for the service."""

from __future__ import annotations

from collections import Counter
from threading import Lock
from typing import Iterable

_COUNTERS: Counter[str] = Counter()
_LOCK = Lock()

COMPLETION_OUTCOMES = ("previewed", "logged", "discarded", "stale", "failed")


def record_request(method: str, status_code: int) -> None:
    """Track an HTTP request labelled by method and status code."""

    labels = f'method="{method.lower()}",status="{status_code}"'
    sample = f"latexai_requests_total{{{labels}}}"
    with _LOCK:
        _COUNTERS[sample] += 1


def record_completion(outcome: str) -> None:
    """Track how a model completion ended (previewed, discarded, failed...)."""

    sample = f'latexai_completions_total{{outcome="{outcome}"}}'
    with _LOCK:
        _COUNTERS[sample] += 1


def reset() -> None:
    with _LOCK:
        _COUNTERS.clear()


def _snapshot(prefix: str) -> Iterable[tuple[str, int]]:
    """Return recorded counters for one metric family in sorted order."""

    with _LOCK:
        return sorted(item for item in _COUNTERS.items() if item[0].startswith(prefix + "{"))


def render(service_version: str) -> str:
    """Render metrics using the Prometheus text exposition format."""

    lines = [
        "# HELP latexai_requests_total Count of HTTP requests processed by the LaTeX assistant service",
        "# TYPE latexai_requests_total counter",
    ]
    requests = list(_snapshot("latexai_requests_total"))
    lines.extend(f"{sample} {value}" for sample, value in requests)
    if not requests:
        lines.append('latexai_requests_total{method="none",status="0"} 0')

    lines.extend(
        [
            "# HELP latexai_completions_total Count of model completions by outcome",
            "# TYPE latexai_completions_total counter",
        ]
    )
    completions = dict(_snapshot("latexai_completions_total"))
    for outcome in COMPLETION_OUTCOMES:
        sample = f'latexai_completions_total{{outcome="{outcome}"}}'
        lines.append(f"{sample} {completions.get(sample, 0)}")

    lines.extend(
        [
            "# HELP latexai_service_info Static service metadata",
            "# TYPE latexai_service_info gauge",
            f'latexai_service_info{{version="{service_version}"}} 1',
        ]
    )
    return "\n".join(lines) + "\n"


__all__ = ["COMPLETION_OUTCOMES", "record_completion", "record_request", "render", "reset"]
