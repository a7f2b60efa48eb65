"""Metrics hook protocol and no-op default implementation.

imagedrop emits counters and timings around placeholder insertion and
uploads.  Without a configured hook a :class:`NoopMetricsHook` is used.
Any object satisfying :class:`MetricsHook` can route the data points to
StatsD, Prometheus, Datadog or a test double.

Emitted metric names:

* ``imagedrop.placeholders_total``     -- counter, tag ``kind``
* ``imagedrop.upload_success_total``   -- counter
* ``imagedrop.upload_failure_total``   -- counter, tag ``code``
* ``imagedrop.upload_duration_ms``     -- timing, tag ``outcome``
* ``imagedrop.uploads_in_flight``      -- gauge
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class MetricsHook(Protocol):
    """Protocol that any metrics backend must satisfy."""

    def increment(
        self,
        name: str,
        value: int = 1,
        tags: dict[str, str] | None = None,
    ) -> None:
        """Increment a counter metric."""
        ...

    def timing(
        self,
        name: str,
        ms: float,
        tags: dict[str, str] | None = None,
    ) -> None:
        """Record a duration in milliseconds."""
        ...

    def gauge(
        self,
        name: str,
        value: float,
        tags: dict[str, str] | None = None,
    ) -> None:
        """Set a gauge metric to an absolute value."""
        ...


class NoopMetricsHook:
    """Metrics backend that discards every data point."""

    __slots__ = ()

    def increment(
        self,
        name: str,
        value: int = 1,
        tags: dict[str, str] | None = None,
    ) -> None:
        pass

    def timing(
        self,
        name: str,
        ms: float,
        tags: dict[str, str] | None = None,
    ) -> None:
        pass

    def gauge(
        self,
        name: str,
        value: float,
        tags: dict[str, str] | None = None,
    ) -> None:
        pass
