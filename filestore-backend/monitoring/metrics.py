"""
Operation Metrics - Monitoring Layer

In-process counters for storage outcomes, rendered in the Prometheus text
exposition format by the CLI's ``--metrics`` flag.

Only counters exist: every storage call ends in exactly one StorageStatus,
so "how many calls of each operation ended in each status" is the whole
picture.

@.architecture
Incoming: data/storage/local.py, scripts/filestore_cli.py --- {str metric_name, label keyword arguments, increments}
Processing: Counter.inc(), MetricsRegistry.counter(), snapshot(), render_prometheus() --- {3 jobs: metric_creation, recording, export}
Outgoing: scripts/filestore_cli.py (--metrics flag), tests --- {Counter instances, Dict snapshot, str Prometheus text}
"""

import threading
from typing import Dict, List, Optional, Sequence, Tuple

LabelValues = Tuple[str, ...]
Sample = Tuple[Dict[str, str], float]


def _escape_label_value(value: str) -> str:
    return value.replace('\\', '\\\\').replace('"', '\\"').replace('\n', '\\n')


class Counter:
    """
    Monotonic count per label combination.

    Every increment must name exactly the labels the counter was declared
    with; values are kept in declaration order.
    """

    kind = "counter"

    def __init__(self, name: str, help_text: str, labels: Optional[Sequence[str]] = None):
        self.name = name
        self.help_text = help_text
        self.label_names: Tuple[str, ...] = tuple(labels or ())
        self._lock = threading.Lock()
        self._counts: Dict[LabelValues, float] = {}

    def _key(self, labels: Dict[str, str]) -> LabelValues:
        if set(labels) != set(self.label_names):
            raise ValueError(
                f"{self.name} takes labels {list(self.label_names)}, got {sorted(labels)}"
            )
        return tuple(str(labels[name]) for name in self.label_names)

    def inc(self, amount: float = 1.0, **labels: str) -> None:
        """
        Add ``amount`` to the series selected by ``labels``.

        Raises:
            ValueError: On a negative amount or a label set that does not
                match the declaration
        """
        if amount < 0:
            raise ValueError(f"{self.name} cannot decrease (got {amount})")

        key = self._key(labels)
        with self._lock:
            self._counts[key] = self._counts.get(key, 0.0) + amount

    def get(self, **labels: str) -> float:
        key = self._key(labels)
        with self._lock:
            return self._counts.get(key, 0.0)

    def total(self) -> float:
        """Sum over every series."""
        with self._lock:
            return sum(self._counts.values())

    def reset(self) -> None:
        with self._lock:
            self._counts.clear()

    def samples(self) -> List[Sample]:
        """Series as (labels, value) pairs, sorted by label values."""
        with self._lock:
            items = sorted(self._counts.items())
        return [(dict(zip(self.label_names, key)), value) for key, value in items]


class MetricsRegistry:
    """Named counters shared by the storage layer and the CLI."""

    def __init__(self):
        self._lock = threading.Lock()
        self._counters: Dict[str, Counter] = {}

    def counter(self, name: str, help_text: str, labels: Optional[Sequence[str]] = None) -> Counter:
        """
        Return the counter registered as ``name``, creating it on first use.

        Raises:
            ValueError: If ``name`` is already registered with other labels
        """
        with self._lock:
            existing = self._counters.get(name)
            if existing is None:
                existing = self._counters[name] = Counter(name, help_text, labels)
            elif existing.label_names != tuple(labels or ()):
                raise ValueError(
                    f"{name} already registered with labels {list(existing.label_names)}"
                )
            return existing

    def _registered(self) -> List[Counter]:
        with self._lock:
            return [self._counters[name] for name in sorted(self._counters)]

    def snapshot(self) -> Dict[str, List[Sample]]:
        """Current samples of every counter, keyed by metric name."""
        return {metric.name: metric.samples() for metric in self._registered()}

    def render_prometheus(self) -> str:
        """Render every counter as Prometheus text, one HELP/TYPE block each."""
        lines = []
        for metric in self._registered():
            lines.append(f"# HELP {metric.name} {metric.help_text}")
            lines.append(f"# TYPE {metric.name} {metric.kind}")
            for labels, value in metric.samples():
                if labels:
                    pairs = ",".join(
                        f'{key}="{_escape_label_value(val)}"' for key, val in labels.items()
                    )
                    lines.append(f"{metric.name}{{{pairs}}} {value}")
                else:
                    lines.append(f"{metric.name} {value}")
        return '\n'.join(lines) + '\n' if lines else ''


_registry = MetricsRegistry()


def get_registry() -> MetricsRegistry:
    """Process-wide registry."""
    return _registry


def counter(name: str, help_text: str, labels: Optional[Sequence[str]] = None) -> Counter:
    """Get or create a counter in the process-wide registry."""
    return _registry.counter(name, help_text, labels)
