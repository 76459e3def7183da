"""Path history for fused, predicted and measured positions.

Keeps the three paths a display layer draws, one point per FusionResult.

License: AGPL-3.0-or-later
"""

from __future__ import annotations

from typing import Dict, Iterable, List, Optional

import numpy as np

from .geofusion_types import FusionResult, PositionKind, TaggedPosition


class TrackHistory:
    """Accumulates FusionResults into per-kind paths.

    Example::

        history = TrackHistory()
        for result in session.process_many(fixes):
            history.record(result)
        fused_xy = history.path(PositionKind.FUSED)    # (N, 2)
    """

    def __init__(self, max_points: Optional[int] = None):
        self.max_points = max_points
        self._points: Dict[PositionKind, List[TaggedPosition]] = {k: [] for k in PositionKind}
        self._timestamps: List[int] = []

    def record(self, result: FusionResult) -> None:
        for pos in result.positions():
            self._points[pos.kind].append(pos)
        self._timestamps.append(result.timestamp)
        if self.max_points is not None and len(self._timestamps) > self.max_points:
            drop = len(self._timestamps) - self.max_points
            for kind in PositionKind:
                del self._points[kind][:drop]
            del self._timestamps[:drop]

    def extend(self, results: Iterable[FusionResult]) -> None:
        for r in results:
            self.record(r)

    def clear(self) -> None:
        for kind in PositionKind:
            self._points[kind].clear()
        self._timestamps.clear()

    def __len__(self) -> int:
        return len(self._timestamps)

    @property
    def timestamps(self) -> np.ndarray:
        return np.array(self._timestamps, dtype=np.int64)

    def path(self, kind: PositionKind) -> np.ndarray:
        """Positions of one kind as an (N, 2) array."""
        pts = self._points[kind]
        if not pts:
            return np.empty((0, 2))
        return np.array([[p.x, p.y] for p in pts])

    def latest(self, kind: PositionKind) -> Optional[TaggedPosition]:
        pts = self._points[kind]
        return pts[-1] if pts else None

    def distance(self, kind: PositionKind) -> float:
        """Length of the polyline through one kind's positions."""
        xy = self.path(kind)
        if len(xy) < 2:
            return 0.0
        return float(np.sum(np.linalg.norm(np.diff(xy, axis=0), axis=1)))

    def rmse(self, kind: PositionKind, truth: np.ndarray) -> float:
        """Root-mean-square position error against an (N, 2) truth path."""
        xy = self.path(kind)
        truth = np.asarray(truth, dtype=float)
        if truth.shape != xy.shape:
            raise ValueError(f"truth shape {truth.shape} does not match path {xy.shape}")
        if len(xy) == 0:
            return float('nan')
        return float(np.sqrt(np.mean(np.sum((xy - truth) ** 2, axis=1))))
