#!/usr/bin/env python3
"""GeoFusion Quick Start: filter a noisy walk with the adaptive Kalman filter.

Run:
    python examples/quick_start.py [config.yaml]

Output:
    Fix-by-fix fused/predicted positions and the adapting noise levels.
"""
import sys

import numpy as np

from geofusion import (
    FusionSession, PositionKind, SyntheticTrackGenerator, TrackHistory, load_config,
)


def main():
    config = load_config(sys.argv[1]) if len(sys.argv) > 1 else None
    print("GeoFusion: Quick Start Demo")
    print("=" * 50)

    track = SyntheticTrackGenerator(seed=42, noise_std=4.0).degraded_fixes(n_fixes=60)
    print(f"Fixes: {len(track)} ({track.metadata['dropped']} dropped), "
          f"poor-accuracy window: {track.metadata['poor_window']}")

    last_ts = track.measurements[-1].timestamp
    session = FusionSession(config, clock=lambda: last_ts)
    history = TrackHistory()

    for k, fix in enumerate(track.measurements):
        result = session.process(fix)
        history.record(result)
        if k % 10 == 0:
            kf = session.filter
            print(f"  t={fix.timestamp:>8d}  acc={fix.accuracy:5.1f}  "
                  f"fused=({result.fused.x:7.2f}, {result.fused.y:7.2f})  "
                  f"pred=({result.predicted.x:7.2f}, {result.predicted.y:7.2f})  "
                  f"Q={kf.process_noise:.4f} R={kf.measurement_noise:.4f}  "
                  f"stale={result.stale}")

    print("-" * 50)
    for kind in PositionKind:
        if kind is PositionKind.PREDICTED:
            continue
        print(f"  {kind.value:>9s} RMSE: {history.rmse(kind, track.truth):.2f} m")
    print(f"  path length (fused): {history.distance(PositionKind.FUSED):.1f} m, "
          f"truth: {np.sum(np.linalg.norm(np.diff(track.truth, axis=0), axis=1)):.1f} m")
    session.stop()


if __name__ == "__main__":
    main()
