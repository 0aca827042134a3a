from __future__ import annotations

from collections import Counter as TallyCounter
from collections import deque
from contextvars import ContextVar
from dataclasses import asdict, dataclass
from typing import Protocol

from prometheus_client import CollectorRegistry, Counter, Histogram, generate_latest

_trace_id_ctx: ContextVar[str] = ContextVar("trace_id", default="")


def set_trace_id(trace_id: str) -> None:
    _trace_id_ctx.set(trace_id)


def get_trace_id() -> str:
    return _trace_id_ctx.get()


@dataclass(frozen=True)
class RequestMetric:
    method: str
    path: str
    status_code: int
    duration_ms: float
    trace_id: str


class MetricsCollector(Protocol):
    def observe(self, metric: RequestMetric) -> None: ...

    def record_outcome(self, outcome: str) -> None: ...


class InMemoryMetricsCollector(MetricsCollector):
    """Keeps the most recent request metrics and a running tally of intake outcomes."""

    def __init__(self, max_entries: int = 1000) -> None:
        self._metrics: deque[RequestMetric] = deque(maxlen=max_entries)
        self.outcomes: TallyCounter[str] = TallyCounter()

    def observe(self, metric: RequestMetric) -> None:
        self._metrics.append(metric)

    def record_outcome(self, outcome: str) -> None:
        self.outcomes[outcome] += 1

    def snapshot(self) -> list[dict]:
        return [asdict(item) for item in self._metrics]


class PrometheusMetricsCollector(MetricsCollector):
    def __init__(self) -> None:
        self._registry = CollectorRegistry()
        self._request_counter = Counter(
            "emergency_http_requests_total",
            "Total HTTP requests",
            labelnames=("method", "path", "status_code"),
            registry=self._registry,
        )
        self._latency_histogram = Histogram(
            "emergency_http_request_duration_ms",
            "HTTP request latency in milliseconds",
            labelnames=("method", "path"),
            buckets=(5, 10, 25, 50, 100, 250, 500, 1000, 3000, 10000),
            registry=self._registry,
        )
        self._outcome_counter = Counter(
            "emergency_intake_outcomes_total",
            "Emergency intake results by terminal outcome",
            labelnames=("outcome",),
            registry=self._registry,
        )

    def observe(self, metric: RequestMetric) -> None:
        self._request_counter.labels(metric.method, metric.path, str(metric.status_code)).inc()
        self._latency_histogram.labels(metric.method, metric.path).observe(metric.duration_ms)

    def record_outcome(self, outcome: str) -> None:
        self._outcome_counter.labels(outcome).inc()

    def render(self) -> str:
        return generate_latest(self._registry).decode("utf-8")


class CompositeMetricsCollector(MetricsCollector):
    def __init__(self, collectors: list[MetricsCollector]) -> None:
        self._collectors = collectors

    def observe(self, metric: RequestMetric) -> None:
        for collector in self._collectors:
            collector.observe(metric)

    def record_outcome(self, outcome: str) -> None:
        for collector in self._collectors:
            collector.record_outcome(outcome)
