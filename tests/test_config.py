import json
import os
import tempfile
import unittest
import numpy as np
from edaqa.config import QAConfig, load_config
from edaqa.exceptions import InvalidInput


class TestQAConfig(unittest.TestCase):

    def test_defaults_match_published_procedure(self):
        cfg = QAConfig()
        self.assertEqual(cfg.filter_window_seconds, 2.0)
        self.assertEqual(cfg.eda_floor, 0.05)
        self.assertEqual(cfg.eda_ceiling, 60.0)
        self.assertEqual(cfg.max_slope_per_second, 10.0)
        self.assertEqual(cfg.temp_min, 30.0)
        self.assertEqual(cfg.temp_max, 40.0)
        self.assertEqual(cfg.dilation_radius_seconds, 5.0)
        self.assertTrue(cfg.smoothing_enabled)

    def test_disabled_filter(self):
        self.assertFalse(QAConfig(filter_window_seconds = None)
                         .smoothing_enabled)
        self.assertFalse(QAConfig(filter_window_seconds = np.nan)
                         .smoothing_enabled)

    def test_floor_must_be_below_ceiling(self):
        with self.assertRaises(InvalidInput):
            QAConfig(eda_floor = 60, eda_ceiling = 60).validate()
        with self.assertRaises(InvalidInput):
            QAConfig(eda_floor = 70, eda_ceiling = 60).validate(
                has_temp = False)

    def test_temp_order_only_checked_with_temperature(self):
        cfg = QAConfig(temp_min = 40, temp_max = 30)
        with self.assertRaises(InvalidInput):
            cfg.validate(has_temp = True)
        self.assertIs(cfg.validate(has_temp = False), cfg)

    def test_other_bounds(self):
        for kwargs in ({'max_slope_per_second': 0},
                       {'dilation_radius_seconds': -1},
                       {'filter_window_seconds': 0}):
            with self.subTest(**kwargs):
                with self.assertRaises(InvalidInput):
                    QAConfig(**kwargs).validate()

    def test_invalid_input_is_a_value_error(self):
        with self.assertRaises(ValueError):
            QAConfig(eda_floor = 1, eda_ceiling = 0).validate()

    def test_replace(self):
        cfg = QAConfig().replace(eda_ceiling = 40)
        self.assertEqual(cfg.eda_ceiling, 40)
        self.assertEqual(QAConfig().eda_ceiling, 60.0)
        with self.assertRaises(InvalidInput):
            QAConfig().replace(ceiling = 40)

    def test_json_layout(self):
        configs = json.loads(QAConfig(filter_window_seconds = None).to_json())
        self.assertIsNone(configs['filter window'])
        self.assertEqual(configs['eda floor'], 0.05)
        self.assertEqual(configs['spread radius'], 5.0)
        self.assertEqual(QAConfig.from_dict(configs),
                         QAConfig(filter_window_seconds = None))

    def test_from_dict_accepts_field_names(self):
        cfg = QAConfig.from_dict({'eda_ceiling': 40, 'temp min': 25})
        self.assertEqual(cfg.eda_ceiling, 40)
        self.assertEqual(cfg.temp_min, 25)
        with self.assertRaises(InvalidInput):
            QAConfig.from_dict({'sampling rate': 4})

    def test_load_config(self):
        fd, path = tempfile.mkstemp(suffix = '.json')
        try:
            with os.fdopen(fd, 'w') as f:
                f.write(QAConfig(max_slope_per_second = 5).to_json())
            cfg = load_config(path)
        finally:
            os.remove(path)
        self.assertEqual(cfg.max_slope_per_second, 5)
        self.assertEqual(cfg.eda_floor, 0.05)


if __name__ == '__main__':
    unittest.main()
