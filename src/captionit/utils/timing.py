from __future__ import annotations

import time
from contextlib import contextmanager
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Iterator, List

Clock = Callable[[], float]


class Phase(str, Enum):
    VALIDATING = "validating"
    PROBING = "probing"
    WRAPPING = "wrapping"
    SYNTHESIZING = "synthesizing"
    RENDERING = "rendering"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


TERMINAL_PHASES = frozenset({Phase.SUCCEEDED, Phase.FAILED})


@dataclass(frozen=True)
class PhaseTiming:
    phase: Phase
    started_at: float
    finished_at: float

    @property
    def duration_s(self) -> float:
        return self.finished_at - self.started_at


class PhaseTracker:
    """Records which request phase is active and how long each one took."""

    def __init__(self, *, clock: Clock = time.monotonic) -> None:
        self._clock = clock
        self.current: Phase | None = None
        self.timings: List[PhaseTiming] = []

    @property
    def finished(self) -> bool:
        return self.current in TERMINAL_PHASES

    @contextmanager
    def phase(self, phase: Phase) -> Iterator[None]:
        self.current = phase
        started_at = self._clock()
        try:
            yield
        except BaseException:
            self._record(phase, started_at)
            self.current = Phase.FAILED
            raise
        self._record(phase, started_at)

    def succeed(self) -> None:
        self.current = Phase.SUCCEEDED

    def _record(self, phase: Phase, started_at: float) -> None:
        self.timings.append(
            PhaseTiming(
                phase=phase,
                started_at=started_at,
                finished_at=self._clock(),
            )
        )

    def summary(self) -> str:
        return ", ".join(f"{t.phase.value}={t.duration_s:.3f}s" for t in self.timings)
