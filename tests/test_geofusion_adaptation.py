"""Tests for the GeoFusion noise-adaptation rules."""
import pytest
import sys, os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from geofusion.geofusion_adaptation import (
    clamp_noise, accuracy_factor, scale_for_accuracy,
    innovation_magnitude, retune_for_innovation,
)
from geofusion.geofusion_config import AdaptationConfig


class TestAccuracyScaling:
    """Accuracy-driven measurement-noise scaling."""

    def test_poor_fix_inflates(self):
        assert scale_for_accuracy(0.01, 25.0) == pytest.approx(0.015)

    def test_good_fix_tightens(self):
        assert scale_for_accuracy(0.01, 3.0) == pytest.approx(0.009)

    @pytest.mark.parametrize("accuracy", [5.0, 12.5, 20.0])
    def test_neutral_band_is_inclusive(self, accuracy):
        assert scale_for_accuracy(0.01, accuracy) == 0.01
        assert accuracy_factor(accuracy) == 1.0

    def test_clamped_to_bounds(self):
        assert scale_for_accuracy(8.0, 100.0) == 10.0
        assert scale_for_accuracy(0.001, 0.5) == 0.001

    def test_custom_thresholds(self):
        cfg = AdaptationConfig(low_accuracy_threshold=50.0, low_accuracy_factor=2.0)
        assert scale_for_accuracy(0.01, 25.0, cfg) == 0.01
        assert scale_for_accuracy(0.01, 60.0, cfg) == pytest.approx(0.02)


class TestInnovationRetune:
    """Innovation-driven joint retuning of Q and R."""

    def test_large_innovation(self):
        q, r = retune_for_innovation(0.1, 0.01, [12.0, 0.0])
        assert q == pytest.approx(0.11)
        assert r == pytest.approx(0.009)

    def test_small_innovation(self):
        q, r = retune_for_innovation(0.1, 0.01, [0.3, 0.4])
        assert q == pytest.approx(0.09)
        assert r == pytest.approx(0.011)

    @pytest.mark.parametrize("nu", [[6.0, 8.0], [1.0, 0.0], [3.0, -4.0]])
    def test_neutral_band(self, nu):
        assert retune_for_innovation(0.1, 0.01, nu) == (0.1, 0.01)

    def test_each_noise_clamped_independently(self):
        q, r = retune_for_innovation(9.5, 0.0011, [50.0, 50.0])
        assert q == 10.0
        assert r == 0.001

        q, r = retune_for_innovation(0.0011, 9.5, [0.0, 0.0])
        assert q == 0.001
        assert r == 10.0

    def test_magnitude(self):
        assert innovation_magnitude([3.0, 4.0]) == 5.0


class TestClamp:
    def test_bounds(self):
        assert clamp_noise(0.0) == 0.001
        assert clamp_noise(11.0) == 10.0
        assert clamp_noise(0.5) == 0.5

    def test_custom_bounds(self):
        cfg = AdaptationConfig(min_noise=0.1, max_noise=1.0)
        assert clamp_noise(0.01, cfg) == 0.1
        assert clamp_noise(5.0, cfg) == 1.0

    def test_repeated_adaptation_stays_bounded(self):
        q, r = 0.1, 0.01
        for k in range(500):
            r = scale_for_accuracy(r, 30.0 if k % 3 else 1.0)
            nu = [15.0, 0.0] if k % 2 else [0.1, 0.0]
            q, r = retune_for_innovation(q, r, nu)
            assert 0.001 <= q <= 10.0
            assert 0.001 <= r <= 10.0
