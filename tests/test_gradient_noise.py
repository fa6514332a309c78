import math
import unittest

import numpy as np
import pytest

from models.constants import Constants
from utils.gradient_noise import (
    create_noise_table, fade, fade_array, grad, grad_array,
    smoothed_noise, smoothed_noise_array, mix_sample, mix_range,
)


class TestFade(unittest.TestCase):
    def test_endpoints(self):
        self.assertEqual(fade(0.0), 0.0)
        self.assertEqual(fade(1.0), 1.0)
        self.assertEqual(fade(0.5), 0.5)

    def test_monotonic_on_unit_interval(self):
        t = np.linspace(0.0, 1.0, 1001)
        values = fade_array(t)
        self.assertTrue(np.all(np.diff(values) >= 0.0))
        self.assertTrue(np.all((values >= 0.0) & (values <= 1.0)))

    def test_scalar_matches_array(self):
        t = np.linspace(0.0, 1.0, 17)
        expected = [fade(float(x)) for x in t]
        np.testing.assert_array_equal(fade_array(t), expected)


class TestGrad(unittest.TestCase):
    def setUp(self):
        self.table = create_noise_table(64, seed=11)

    def test_only_unit_gradients(self):
        for p in [0.0, 0.3, 1.0, 17.9, 63.5, 64.0, 1e6 + 0.25, -0.5, -12.75]:
            self.assertIn(grad(p, self.table), (1.0, -1.0))

        values = grad_array(np.linspace(-200.0, 200.0, 4001), self.table)
        self.assertTrue(set(np.unique(values)) <= {1.0, -1.0})

    def test_threshold_is_exclusive(self):
        half = np.full(8, 0.5)
        for p in [0.0, 1.5, 7.99, 8.0, 123.4, -3.2]:
            self.assertEqual(grad(p, half), -1.0)
        self.assertTrue(np.all(grad_array(np.array([0.0, 2.5, 9.0]), half) == -1.0))

        above = np.full(8, np.nextafter(Constants.GRADIENT_THRESHOLD, 1.0))
        self.assertEqual(grad(3.0, above), 1.0)

    def test_wraps_with_table_length(self):
        table = np.array([0.9, 0.1, 0.7, 0.2])
        self.assertEqual(grad(0.0, table), 1.0)
        self.assertEqual(grad(1.2, table), -1.0)
        self.assertEqual(grad(4.0, table), 1.0)
        self.assertEqual(grad(6.5, table), 1.0)
        # floor(-1) mod 4 == 3
        self.assertEqual(grad(-1.0, table), -1.0)


class TestSmoothedNoise(unittest.TestCase):
    def setUp(self):
        self.table = create_noise_table(32, seed=5)

    def test_zero_at_lattice_points(self):
        for p in range(0, 40):
            self.assertEqual(smoothed_noise(float(p), self.table), 0.0)

    def test_bounded(self):
        p = np.linspace(0.0, 50.0, 5001)
        values = smoothed_noise_array(p, self.table)
        self.assertTrue(np.all(np.isfinite(values)))
        self.assertTrue(np.all(np.abs(values) <= 1.0))

    def test_known_value(self):
        # Positive gradient on the left, negative on the right
        table = np.array([0.9, 0.1])
        p = 0.25
        fade_t = fade(0.25)
        expected = (1.0 - fade_t) * 1.0 * 0.25 + fade_t * -1.0 * (0.25 - 1.0)
        self.assertAlmostEqual(smoothed_noise(p, table), expected, places=15)

    def test_scalar_matches_array(self):
        p = np.linspace(0.0, 20.0, 403)
        expected = np.array([smoothed_noise(float(x), self.table) for x in p])
        np.testing.assert_allclose(smoothed_noise_array(p, self.table), expected, rtol=0, atol=1e-12)


class TestMix(unittest.TestCase):
    def test_range_matches_reference_samples(self):
        table = create_noise_table(8, seed=3)
        frequencies = (1.0, 2.0, 4.0)
        values = mix_range(0, 24, 8, frequencies, Constants.MIX_WEIGHTS, table)
        expected = [mix_sample(i, 8, frequencies, Constants.MIX_WEIGHTS, table) for i in range(24)]
        np.testing.assert_allclose(values, expected, rtol=0, atol=1e-12)

    def test_offset_range_matches_full_range(self):
        table = create_noise_table(100, seed=9)
        full = mix_range(0, 300, 100, (110.0, 220.0, 440.0), Constants.MIX_WEIGHTS, table)
        tail = mix_range(100, 300, 100, (110.0, 220.0, 440.0), Constants.MIX_WEIGHTS, table)
        np.testing.assert_array_equal(full[100:], tail)

    def test_invalid_range(self):
        with self.assertRaises(ValueError):
            mix_range(10, 5, 8, (1.0, 2.0, 4.0), Constants.MIX_WEIGHTS, np.full(8, 0.2))


def test_noise_table_is_uniform_read_only_and_reproducible():
    table = create_noise_table(44100, seed=42)
    assert table.shape == (44100,)
    assert table.min() >= 0.0 and table.max() < 1.0
    assert not table.flags.writeable
    assert np.array_equal(table, create_noise_table(44100, seed=42))
    assert not np.array_equal(table, create_noise_table(44100, seed=43))
    assert math.isclose(float(table.mean()), 0.5, abs_tol=0.02)


def test_noise_table_rejects_empty_size():
    with pytest.raises(ValueError):
        create_noise_table(0)
