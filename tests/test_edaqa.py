import unittest
import numpy as np
import edaqa
from edaqa import QAConfig, run_edaqa


class TestRunEDAQA(unittest.TestCase):

    def setUp(self):
        # Ten minutes of 8 Hz EDA with a detachment and a motion artifact
        self.fs = 8
        n = 10 * 60 * self.fs
        rng = np.random.default_rng(11)
        self.time = 1.5e9 + np.arange(n) / self.fs
        self.eda = 3 + 0.5 * np.sin(np.arange(n) / 400) + \
            rng.normal(0, 0.005, n)
        self.eda[1000:1200] = 0.01
        self.eda[3000] = np.nan
        self.eda[4000:4200] += 40
        self.temp = 32 + rng.normal(0, 0.05, n)

    def test_documented_example(self):
        result = run_edaqa([1, 1, 1, 1, 1, 61, 1, 1, 1, 1], range(10),
                           filter_window_seconds = None,
                           dilation_radius_seconds = 2)
        np.testing.assert_array_equal(result.valid.astype(int),
                                      [1, 1, 1, 1, 0, 0, 0, 0, 1, 1])

    def test_artifacts_flagged(self):
        result = run_edaqa(self.eda, self.time, self.temp)
        self.assertEqual(len(result.valid), len(self.eda))
        self.assertEqual(len(result.filtered), len(self.eda))
        self.assertEqual(result.sampling_period, 1 / self.fs)
        self.assertEqual(result.n_imputed_eda, 1)

        # Detachment: out of range, spread 5 sec (40 samples) each side
        self.assertTrue(result.out_of_range[1050])
        self.assertFalse(result.valid[1000 - 20])
        self.assertTrue(result.valid[1000 - 60])

        # Motion artifact: excessive slope
        self.assertTrue(result.excessive_slope[3990:4015].any())
        self.assertFalse(result.valid[4002])

        # The imputed sample is usable
        self.assertTrue(result.valid[3000])
        self.assertTrue(result.valid[-1])
        self.assertFalse(result.temp_out_of_range.any())

    def test_config_and_overrides(self):
        config = QAConfig(eda_floor = 0.001, max_slope_per_second = 1000)
        result = run_edaqa(self.eda, self.time, config = config,
                           dilation_radius_seconds = 0)
        self.assertFalse(result.out_of_range.any())
        self.assertFalse(result.excessive_slope.any())
        self.assertTrue(result.valid.all())
        self.assertIsNone(result.temp_out_of_range)

    def test_matches_class_interface(self):
        config = QAConfig(filter_window_seconds = 1)
        result = run_edaqa(self.eda, self.time, self.temp, config)
        expected = edaqa.EDAQA(config).assess(self.eda, self.time, self.temp)
        np.testing.assert_array_equal(result.valid, expected.valid)
        np.testing.assert_array_equal(result.filtered, expected.filtered)

    def test_errors_exposed(self):
        with self.assertRaises(edaqa.InvalidInput):
            run_edaqa(self.eda, self.time[:10])
        with self.assertRaises(edaqa.FilterError):
            run_edaqa(self.eda[:20], self.time[:20])
        self.assertTrue(issubclass(edaqa.InvalidInput, edaqa.EDAQAError))
        self.assertTrue(issubclass(edaqa.FilterError, edaqa.EDAQAError))


if __name__ == '__main__':
    unittest.main()
