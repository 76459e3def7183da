"""Tests for GeoFusion path history and measurement sources."""
import numpy as np
import pytest
import sys, os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from geofusion import (
    FusionSession, Measurement, MeasurementLog, PositionKind,
    SyntheticTrackGenerator, TrackHistory,
)
from geofusion.geofusion_datasets import velocity_from, speed_and_heading
from geofusion.geofusion_types import FusionResult, TaggedPosition


def _result(t, fused, predicted, measured):
    return FusionResult(
        fused=TaggedPosition(PositionKind.FUSED, *fused),
        predicted=TaggedPosition(PositionKind.PREDICTED, *predicted),
        measured=TaggedPosition(PositionKind.MEASURED, *measured),
        timestamp=t, stale=False, horizontal_accuracy=5.0,
    )


@pytest.fixture
def history():
    h = TrackHistory()
    h.record(_result(0, (0.0, 0.0), (0.0, 0.0), (0.0, 0.0)))
    h.record(_result(1000, (3.0, 4.0), (1.0, 1.0), (6.0, 8.0)))
    h.record(_result(2000, (6.0, 8.0), (2.0, 2.0), (6.0, 8.0)))
    return h


class TestTrackHistory:
    def test_paths(self, history):
        assert len(history) == 3
        np.testing.assert_array_equal(history.path(PositionKind.FUSED),
                                      [[0, 0], [3, 4], [6, 8]])
        np.testing.assert_array_equal(history.timestamps, [0, 1000, 2000])

    def test_latest(self, history):
        last = history.latest(PositionKind.PREDICTED)
        assert last.kind is PositionKind.PREDICTED
        assert (last.x, last.y) == (2.0, 2.0)
        assert TrackHistory().latest(PositionKind.FUSED) is None

    def test_distance(self, history):
        assert history.distance(PositionKind.FUSED) == pytest.approx(10.0)
        assert history.distance(PositionKind.MEASURED) == pytest.approx(10.0)
        assert TrackHistory().distance(PositionKind.FUSED) == 0.0

    def test_rmse(self, history):
        truth = np.array([[0, 0], [3, 4], [6, 8]], dtype=float)
        assert history.rmse(PositionKind.FUSED, truth) == 0.0
        assert history.rmse(PositionKind.MEASURED, truth) == pytest.approx(np.sqrt(25.0 / 3))
        with pytest.raises(ValueError):
            history.rmse(PositionKind.FUSED, truth[:2])

    def test_max_points(self):
        h = TrackHistory(max_points=2)
        for t in range(5):
            h.record(_result(t, (t, t), (t, t), (t, t)))
        assert len(h) == 2
        np.testing.assert_array_equal(h.path(PositionKind.MEASURED), [[3, 3], [4, 4]])

    def test_clear(self, history):
        history.clear()
        assert len(history) == 0
        assert history.path(PositionKind.FUSED).shape == (0, 2)


class TestMeasurementLog:
    def test_save_and_load(self, tmp_path):
        fixes = [
            Measurement(2.0, 3.0, 4.0, 1.5, 270.0, 2000, vertical_accuracy=6.0),
            Measurement(0.5, 1.0, 12.0, 0.0, 0.0, 1000),
        ]
        path = str(tmp_path / "fixes.csv")
        MeasurementLog.save(fixes, path)
        loaded = MeasurementLog.load(path)
        assert [m.timestamp for m in loaded] == [1000, 2000]
        assert loaded[0] == fixes[1]
        assert loaded[1] == fixes[0]

    def test_missing_columns(self, tmp_path):
        path = tmp_path / "bad.csv"
        path.write_text("timestamp,x,y\n0,1,2\n")
        with pytest.raises(ValueError, match="missing columns"):
            MeasurementLog.load(str(path))

    def test_garbage_cell_is_rejected_downstream(self, tmp_path):
        path = tmp_path / "gap.csv"
        path.write_text("timestamp,x,y,accuracy,speed,heading\n"
                        "0,1,2,5,0,0\n"
                        "1000,,2,5,0,0\n"
                        "2000,1,2,5,0,0\n")
        fixes = MeasurementLog.load(str(path))
        assert np.isnan(fixes[1].x)
        out = list(FusionSession(clock=lambda: 0).process_many(fixes))
        assert [r.timestamp for r in out] == [0, 2000]


class TestSyntheticTracks:
    def test_reproducible(self):
        a = SyntheticTrackGenerator(seed=1).degraded_fixes()
        b = SyntheticTrackGenerator(seed=1).degraded_fixes()
        assert a.measurements == b.measurements
        np.testing.assert_array_equal(a.truth, b.truth)

    def test_shapes(self):
        gen = SyntheticTrackGenerator()
        for track in (gen.straight_line(n_fixes=10), gen.turning(n_fixes=10),
                      gen.stop_and_go(n_fixes=60)):
            assert track.truth.shape == (len(track), 2)
            assert all(m.is_finite() for m in track.measurements)

    def test_degraded_fixes_drop_and_degrade(self):
        track = SyntheticTrackGenerator(seed=3).degraded_fixes(n_fixes=100, p_drop=0.3)
        assert len(track) + track.metadata['dropped'] == 100
        assert track.measurements[0].timestamp == 1_000_000
        assert max(m.accuracy for m in track.measurements) == 40.0

    def test_compass_helpers(self):
        np.testing.assert_allclose(velocity_from(2.0, 90.0), [2.0, 0.0], atol=1e-12)
        np.testing.assert_allclose(velocity_from(2.0, 0.0), [0.0, 2.0], atol=1e-12)
        assert speed_and_heading(np.array([0.0, -3.0])) == pytest.approx((3.0, 180.0))
        assert speed_and_heading(np.zeros(2)) == (0.0, 0.0)

    def test_prediction_follows_noiseless_course(self):
        """With exact fixes the predicted point lands on the next true position."""
        gen = SyntheticTrackGenerator(noise_std=0.0)
        track = gen.straight_line(n_fixes=40, speed=1.4, heading_deg=30.0)
        out = list(FusionSession(clock=lambda: 0).process_many(track.measurements))
        for k in range(5, len(out) - 1):
            err = np.hypot(out[k].predicted.x - track.truth[k + 1, 0],
                           out[k].predicted.y - track.truth[k + 1, 1])
            assert err < 0.05

class TestDemo:
    def test_run_demo_without_plot(self, capsys):
        from geofusion.demo import run_demo
        summary = run_demo(scenario=2)
        meas_rmse, fused_rmse = summary[2]
        assert np.isfinite(meas_rmse) and np.isfinite(fused_rmse)
        assert "Turning Vehicle" in capsys.readouterr().out
