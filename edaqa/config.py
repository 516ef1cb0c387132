from dataclasses import asdict, dataclass, fields
from dataclasses import replace as _replace
from typing import Optional
from edaqa.exceptions import InvalidInput
import numpy as np
import json

__all__ = ['QAConfig', 'load_config']

# JSON keys used in saved QA configuration files
_JSON_KEYS = {
    'filter_window_seconds': 'filter window',
    'eda_floor': 'eda floor',
    'eda_ceiling': 'eda ceiling',
    'max_slope_per_second': 'max slope',
    'temp_min': 'temp min',
    'temp_max': 'temp max',
    'dilation_radius_seconds': 'spread radius',
}

@dataclass(frozen = True)
class QAConfig:
    """
    Thresholds for the automated EDA quality assessment procedure by
    Kleckner et al. (2017).

    Parameters/Attributes
    ---------------------
    filter_window_seconds : float or None, optional
        The length of the moving average filter window in seconds; by
        default, 2 seconds. Set to None to disable smoothing.
    eda_floor : float, optional
        Rule 1: the minimum acceptable EDA value in microsiemens; by
        default, 0.05 uS.
    eda_ceiling : float, optional
        Rule 1: the maximum acceptable EDA value in microsiemens; by
        default, 60 uS.
    max_slope_per_second : float, optional
        Rule 2: the maximum absolute slope of EDA data in microsiemens per
        second; by default, 10 uS/sec.
    temp_min : float, optional
        Rule 3: the minimum acceptable temperature in degrees Celsius; by
        default, 30. Ignored when no temperature data are given.
    temp_max : float, optional
        Rule 3: the maximum acceptable temperature in degrees Celsius; by
        default, 40. Ignored when no temperature data are given.
    dilation_radius_seconds : float, optional
        Rule 4: the transition radius for artifacts in seconds; by
        default, 5 seconds.

    References
    ----------
    Kleckner, I.R., Jones, R.M., Wilder-Smith, O., Wormwood, J.B.,
    Akcakaya, M., Quigley, K.S., ... & Goodwin, M.S. (2017). Simple,
    transparent, and flexible automated quality assessment procedures for
    ambulatory electrodermal activity data. IEEE Transactions on
    Biomedical Engineering, 65(7), 1460-1467.
    """
    filter_window_seconds: Optional[float] = 2.0
    eda_floor: float = 0.05
    eda_ceiling: float = 60.0
    max_slope_per_second: float = 10.0
    temp_min: float = 30.0
    temp_max: float = 40.0
    dilation_radius_seconds: float = 5.0

    @property
    def smoothing_enabled(self) -> bool:
        """Whether the moving average filter is applied before QA."""
        window = self.filter_window_seconds
        return window is not None and not np.isnan(window)

    def validate(self, has_temp: bool = True) -> 'QAConfig':
        """
        Check the ordering of the QA thresholds.

        Parameters
        ----------
        has_temp : bool, optional
            Whether temperature data will be assessed; by default, True.
            If False, `temp_min` and `temp_max` are not checked.

        Returns
        -------
        config : QAConfig
            This configuration, unchanged.

        Raises
        ------
        InvalidInput
            If any threshold is out of order or out of bounds.
        """
        if self.eda_floor >= self.eda_ceiling:
            raise InvalidInput('`eda_floor` must be smaller than '
                               '`eda_ceiling`.')
        if has_temp and self.temp_min >= self.temp_max:
            raise InvalidInput('`temp_min` must be smaller than `temp_max`.')
        if not self.max_slope_per_second > 0:
            raise InvalidInput('`max_slope_per_second` must be positive.')
        if not self.dilation_radius_seconds >= 0:
            raise InvalidInput('`dilation_radius_seconds` must not be '
                               'negative.')
        if self.smoothing_enabled and not self.filter_window_seconds > 0:
            raise InvalidInput('`filter_window_seconds` must be positive, '
                               'or None to disable the filter.')
        return self

    def replace(self, **changes) -> 'QAConfig':
        """Return a copy of this configuration with the given fields
        replaced."""
        unknown = set(changes) - {f.name for f in fields(self)}
        if unknown:
            raise InvalidInput(
                f'Unknown QA parameter(s): {", ".join(sorted(unknown))}.')
        return _replace(self, **changes)

    def to_json(self) -> str:
        """Serialize the configuration into a JSON-formatted string."""
        configs = {_JSON_KEYS[name]: value
                   for name, value in asdict(self).items()}
        if not self.smoothing_enabled:
            configs['filter window'] = None
        return json.dumps(configs)

    @classmethod
    def from_dict(cls, configs: dict) -> 'QAConfig':
        """
        Create a configuration from a dictionary keyed either by field
        names or by the keys of a saved JSON configuration file.
        """
        names = {v: k for k, v in _JSON_KEYS.items()}
        kwargs = {}
        for key, value in configs.items():
            name = names.get(key, key)
            if name not in _JSON_KEYS:
                raise InvalidInput(f'Unknown QA parameter: {key!r}.')
            kwargs[name] = value
        return cls(**kwargs)

def load_config(filename: str) -> QAConfig:
    """Load a JSON configuration file into a `QAConfig`."""
    with open(filename) as cfg:
        configs = json.load(cfg)
    return QAConfig.from_dict(configs)
