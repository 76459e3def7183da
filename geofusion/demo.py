#!/usr/bin/env python3
"""
GeoFusion Demo: Adaptive Location Filtering
=============================================

Run with:
    python -m geofusion.demo               # All 4 scenarios
    python -m geofusion.demo --scenario 2  # Turning vehicle only
    python -m geofusion.demo --plot --save # Save PNGs of the three paths

Scenarios:
  1. Straight Walk: steady pedestrian at 1.4 m/s
  2. Turning Vehicle: 8 m/s with a 30 s constant-rate turn
  3. Stop and Go: vehicle halts for 20 s, then drives on
  4. Degraded Fixes: dropped fixes and a 40 m accuracy stretch

License: AGPL-3.0-or-later
"""

import argparse
import logging
import os

from .geofusion_datasets import SyntheticTrackGenerator, SyntheticTrack
from .geofusion_history import TrackHistory
from .geofusion_session import FusionSession
from .geofusion_types import PositionKind

SCENARIOS = {
    1: ("Straight Walk", "straight_line"),
    2: ("Turning Vehicle", "turning"),
    3: ("Stop and Go", "stop_and_go"),
    4: ("Degraded Fixes", "degraded_fixes"),
}

PATH_STYLE = {
    PositionKind.MEASURED: ('#00ff88', 'Measured'),
    PositionKind.PREDICTED: ('#ff4444', 'Predicted'),
    PositionKind.FUSED: ('#00ddff', 'Fused'),
}


def run_session_on_track(track: SyntheticTrack) -> TrackHistory:
    """Fuse a synthetic track; the clock replays fix time so nothing is stale."""
    timestamps = iter([m.timestamp for m in track.measurements])
    session = FusionSession(clock=lambda: next(timestamps))
    history = TrackHistory()
    history.extend(session.process_many(track.measurements))
    session.stop()
    return history


def plot_track(track: SyntheticTrack, history: TrackHistory, title: str, save_path=None):
    """Plot truth plus measured/predicted/fused paths in the plane."""
    import matplotlib.pyplot as plt

    fig, ax = plt.subplots(figsize=(9, 8))
    fig.patch.set_facecolor('#1a1a2e')
    ax.set_facecolor('#16213e')
    ax.tick_params(colors='#A0A0A0')
    ax.set_title(f'GeoFusion Demo: {title}', color='#E0E0E0')
    ax.set_xlabel('East [m]', color='#C0C0C0')
    ax.set_ylabel('North [m]', color='#C0C0C0')

    ax.plot(track.truth[:, 0], track.truth[:, 1], 'w-', linewidth=2, alpha=0.4, label='Truth')
    for kind, (color, label) in PATH_STYLE.items():
        xy = history.path(kind)
        ax.plot(xy[:, 0], xy[:, 1], '.-', color=color, linewidth=1.2, markersize=3, label=label)
    ax.set_aspect('equal', adjustable='datalim')
    ax.legend(facecolor='#16213e', labelcolor='#E0E0E0')

    if save_path:
        fig.savefig(save_path, dpi=120, facecolor=fig.get_facecolor())
        plt.close(fig)


def run_demo(scenario=None, plot=False, save=False, output_dir='.'):
    """Run GeoFusion demo scenarios; returns {scenario: (measured_rmse, fused_rmse)}."""
    if plot:
        import matplotlib
        if save:
            matplotlib.use('Agg')
        os.makedirs(output_dir, exist_ok=True)

    gen = SyntheticTrackGenerator(seed=7)
    scenarios_to_run = sorted(SCENARIOS) if not scenario else [scenario]
    summary = {}

    for s in scenarios_to_run:
        title, method = SCENARIOS[s]
        print(f"━━━ Scenario {s}: {title} ━━━")
        track = getattr(gen, method)()
        history = run_session_on_track(track)

        meas_rmse = history.rmse(PositionKind.MEASURED, track.truth)
        fused_rmse = history.rmse(PositionKind.FUSED, track.truth)
        summary[s] = (meas_rmse, fused_rmse)
        print(f"  Fixes: {len(history)} | Measured RMSE: {meas_rmse:.2f} m | "
              f"Fused RMSE: {fused_rmse:.2f} m")

        if plot:
            path = os.path.join(output_dir, f'demo_{method}.png') if save else None
            plot_track(track, history, title, save_path=path)

    print("\n━━━ Demo complete. ━━━")
    if plot and not save:
        import matplotlib.pyplot as plt
        plt.show()
    return summary


def main():
    parser = argparse.ArgumentParser(
        description='GeoFusion Demo: Adaptive Location Filtering',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python -m geofusion.demo               # Run all scenarios
  python -m geofusion.demo --scenario 4  # Degraded fixes only
  python -m geofusion.demo --plot --save # Save PNGs (headless)
""")
    parser.add_argument('--scenario', '-s', type=int, default=None,
                        choices=sorted(SCENARIOS),
                        help='Scenario number (default: all)')
    parser.add_argument('--plot', action='store_true',
                        help='Plot paths (needs the viz extra)')
    parser.add_argument('--save', action='store_true',
                        help='Save PNG files instead of displaying')
    parser.add_argument('--output-dir', '-o', type=str, default='.',
                        help='Output directory for PNGs (default: current)')
    parser.add_argument('--verbose', '-v', action='store_true',
                        help='Log per-cycle filter diagnostics')

    args = parser.parse_args()
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING,
                        format='%(asctime)s %(name)s %(levelname)s %(message)s')
    run_demo(scenario=args.scenario, plot=args.plot, save=args.save,
             output_dir=args.output_dir)


if __name__ == '__main__':
    main()
