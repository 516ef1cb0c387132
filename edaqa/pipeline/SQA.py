from dataclasses import dataclass
from typing import Optional, Union
from tqdm import tqdm
from loguru import logger
from edaqa.config import QAConfig
from edaqa.exceptions import InvalidInput
from edaqa.pipeline.EDA import impute_missing, seconds_to_samples, \
    smooth_channels
import pandas as pd
import numpy as np

__all__ = ['EDA', 'EDAQAResult', 'dilate_invalid', 'validate_inputs']

# =============================== VALIDATION =================================
def validate_inputs(
    eda,
    time,
    temp = None,
    config: Optional[QAConfig] = None
) -> tuple[np.ndarray, np.ndarray, Optional[np.ndarray], float]:
    """
    Check the input series and QA thresholds before any processing.

    Parameters
    ----------
    eda : array_like
        An array containing the EDA signal in microsiemens.
    time : array_like
        An array containing the time of each sample in seconds.
    temp : array_like, optional
        An array containing temperature data in Celsius; by default, None.
    config : QAConfig, optional
        The QA thresholds; by default, the thresholds of `QAConfig()`.

    Returns
    -------
    eda : np.ndarray
        The EDA signal as a float array.
    time : np.ndarray
        The timestamps as a float array.
    temp : np.ndarray or None
        The temperature data as a float array, or None.
    sampling_period : float
        The time between the first two samples in seconds.

    Raises
    ------
    InvalidInput
        If the series differ in length, are too short to derive the
        sampling period, or the thresholds are invalid.
    """
    config = config if config is not None else QAConfig()
    eda = np.array(eda, dtype = float).ravel()
    time = np.array(time, dtype = float).ravel()
    if temp is not None:
        temp = np.array(temp, dtype = float).ravel()

    if len(eda) != len(time) or (temp is not None and len(temp) != len(eda)):
        raise InvalidInput('Input data must all be the same length. If you '
                           'do not have temperature data, use None.')
    if len(eda) < 2:
        raise InvalidInput('At least two samples are required to determine '
                           'the sampling period.')
    sampling_period = float(time[1] - time[0])
    if not sampling_period > 0:
        raise InvalidInput('Timestamps must be increasing; the sampling '
                           f'period is {sampling_period} seconds.')
    config.validate(has_temp = temp is not None)
    return eda, time, temp, sampling_period

# ================================ RULE 4 ====================================
def dilate_invalid(
    invalid_mask: np.ndarray,
    radius_samples: int
) -> np.ndarray:
    """
    Spread invalid labels to all data points within `radius_samples - 1`
    samples of a directly invalid data point (Rule 4).

    Parameters
    ----------
    invalid_mask : array_like
        A boolean array flagging directly invalid data points.
    radius_samples : int
        The transition radius for artifacts in samples. Radii of 0 and 1
        spread nothing.

    Returns
    -------
    spread : np.ndarray
        A new boolean array flagging invalid data points.
    """
    invalid_mask = np.asarray(invalid_mask, dtype = bool)
    half_width = max(int(radius_samples) - 1, 0)
    if half_width == 0 or not invalid_mask.any():
        return invalid_mask.copy()

    # Count directly invalid points in each clamped window
    n = len(invalid_mask)
    csum = np.concatenate([[0], np.cumsum(invalid_mask, dtype = np.int64)])
    ix = np.arange(n)
    lo = np.clip(ix - half_width, 0, n)
    hi = np.clip(ix + half_width + 1, 0, n)
    return (csum[hi] - csum[lo]) > 0

# ================================= RESULT ===================================
@dataclass(frozen = True, eq = False)
class EDAQAResult:
    """
    The outcome of the automated EDA quality assessment of one recording.

    Attributes
    ----------
    eda : np.ndarray
        A copy of the raw EDA signal, before imputation.
    temp : np.ndarray or None
        A copy of the raw temperature data, before imputation; None
        without temperature data.
    filtered : np.ndarray
        The EDA signal evaluated by the rules, i.e., after imputation and
        (if enabled) filtering.
    valid : np.ndarray
        A read-only boolean array; True where the EDA data are valid.
    invalid_direct : np.ndarray
        Data points flagged by Rules 1-3, before spreading (Rule 4).
    out_of_range : np.ndarray
        Data points flagged by Rule 1.
    excessive_slope : np.ndarray
        Data points flagged by Rule 2.
    temp_out_of_range : np.ndarray or None
        Data points flagged by Rule 3; None without temperature data.
    filtered_temp : np.ndarray or None
        The temperature data evaluated by Rule 3.
    sampling_period : float
        The sampling period in seconds.
    n_imputed_eda, n_imputed_temp : int
        The number of missing values replaced in each channel.
    temp_filter_fallback : bool
        Whether unfiltered temperature data were used because filtering
        them failed.
    """
    eda: np.ndarray
    temp: Optional[np.ndarray]
    filtered: np.ndarray
    valid: np.ndarray
    invalid_direct: np.ndarray
    out_of_range: np.ndarray
    excessive_slope: np.ndarray
    temp_out_of_range: Optional[np.ndarray]
    filtered_temp: Optional[np.ndarray]
    sampling_period: float
    n_imputed_eda: int = 0
    n_imputed_temp: int = 0
    temp_filter_fallback: bool = False

    def __post_init__(self):
        self.valid.setflags(write = False)

    @property
    def invalid(self) -> np.ndarray:
        return ~self.valid

    @property
    def has_temp(self) -> bool:
        return self.filtered_temp is not None

    @property
    def invalid_fraction(self) -> float:
        """The fraction of invalid data points."""
        return float(np.mean(self.invalid))

    def censored(self) -> np.ndarray:
        """Return the raw EDA signal with invalid data points set to NaN."""
        censored = self.eda.copy()
        censored[self.invalid] = np.nan
        return censored

    def to_frame(
        self,
        timestamps: Optional[np.ndarray] = None
    ) -> pd.DataFrame:
        """
        Tabulate the QA results per data point.

        Parameters
        ----------
        timestamps : array_like, optional
            The time of each data point; by default, the time in seconds
            since the first data point.

        Returns
        -------
        df : pd.DataFrame
            A DataFrame with the columns 'Time(sec)', 'EDA(uS)',
            'EDA_Filtered(uS)', 'EDA_Valid(1Yes_0No)',
            'EDA_w_NaN_from_QA(uS)', and 'Temp(C)' (the raw temperature data,
            if available).
        """
        if timestamps is None:
            timestamps = np.arange(len(self.eda)) * self.sampling_period
        df = pd.DataFrame({
            'Time(sec)': timestamps,
            'EDA(uS)': self.eda,
            'EDA_Filtered(uS)': self.filtered,
            'EDA_Valid(1Yes_0No)': self.valid.astype(int),
            'EDA_w_NaN_from_QA(uS)': self.censored(),
        })
        if self.has_temp:
            df['Temp(C)'] = self.temp
        return df

# ================================== EDA =====================================
class EDA:
    """
    A class for signal quality assessment on electrodermal activity (EDA)
    data.

    Parameters/Attributes
    ---------------------
    config : QAConfig, optional
        The QA thresholds; by default, `QAConfig()`.
    **overrides
        `QAConfig` fields replacing those of `config`, e.g.,
        `eda_ceiling = 40`.
    """

    def __init__(self, config: Optional[QAConfig] = None, **overrides):
        """
        Initialize the EDA object.

        Parameters
        ----------
        config : QAConfig, optional
            The QA thresholds; by default, `QAConfig()`.
        **overrides
            `QAConfig` fields replacing those of `config`.
        """
        config = config if config is not None else QAConfig()
        self.config = config.replace(**overrides) if overrides else config

    def assess(
        self,
        eda,
        time,
        temp = None
    ) -> EDAQAResult:
        """
        Assess and flag valid and invalid EDA data points with the four
        rules by Kleckner et al. (2017).

        Parameters
        ----------
        eda : array_like
            An array containing the raw EDA signal in microsiemens.
        time : array_like
            An array containing the time of each sample in seconds.
        temp : array_like, optional
            An array containing temperature data in Celsius; by default,
            None. Rule 3 is skipped without temperature data.

        Returns
        -------
        result : EDAQAResult
            The validity mask, filtered EDA signal, and rule-specific
            masks.

        Raises
        ------
        InvalidInput
            If the inputs or thresholds are invalid.
        FilterError
            If the EDA signal cannot be filtered.

        References
        ----------
        Kleckner, I.R., Jones, R. M., Wilder-Smith, O., Wormwood, J.B.,
        Akcakaya, M., Quigley, K.S., ... & Goodwin, M.S. (2017). Simple,
        transparent, and flexible automated quality assessment procedures
        for ambulatory electrodermal activity data. IEEE Transactions on
        Biomedical Engineering, 65(7), 1460-1467.
        """
        cfg = self.config
        eda, time, temp, sampling_period = validate_inputs(
            eda, time, temp, cfg)

        # Replace missing values
        eda_imputed, n_imputed_eda = impute_missing(eda, 'EDA')
        n_imputed_temp = 0
        temp_imputed = None
        if temp is not None:
            temp_imputed, n_imputed_temp = impute_missing(temp, 'Temperature')

        # Filter for QA
        channels = smooth_channels(
            eda_imputed, temp_imputed, 1 / sampling_period,
            cfg.filter_window_seconds if cfg.smoothing_enabled else None)

        # Rules 1-3
        out_of_range, excessive_slope, temp_out_of_range = \
            self._evaluate_rules(channels.eda, channels.temp, sampling_period)
        invalid_direct = out_of_range | excessive_slope
        if temp_out_of_range is not None:
            invalid_direct |= temp_out_of_range

        # Rule 4
        invalid = self._set_neighbors_invalid(invalid_direct, sampling_period)

        result = EDAQAResult(
            eda = eda,
            temp = temp,
            filtered = channels.eda,
            valid = ~invalid,
            invalid_direct = invalid_direct,
            out_of_range = out_of_range,
            excessive_slope = excessive_slope,
            temp_out_of_range = temp_out_of_range,
            filtered_temp = channels.temp,
            sampling_period = sampling_period,
            n_imputed_eda = n_imputed_eda,
            n_imputed_temp = n_imputed_temp,
            temp_filter_fallback = channels.temp_fallback)
        logger.info(f'EDA QA: {invalid.sum()} of {len(invalid)} data points '
                    f'invalid ({100 * result.invalid_fraction:.0f}%)')
        return result

    def get_validity_metrics(
        self,
        result: EDAQAResult,
        timestamps: Optional[np.ndarray] = None
    ) -> pd.DataFrame:
        """
        Tabulate valid and invalid EDA data points.

        Parameters
        ----------
        result : EDAQAResult
            The output of `assess()`.
        timestamps : array_like, optional
            An array of timestamps corresponding to each data point.

        Returns
        -------
        eda_validity : pd.DataFrame
            A DataFrame with the columns:
            - 'Timestamp' (if provided) or 'Sample'
            - 'EDA'
            - 'Filtered'
            - 'TEMP' (if available)
            - 'Valid' (1 if valid, NaN otherwise)
            - 'Invalid' (1 if invalid, NaN otherwise)
        """
        eda_validity = pd.DataFrame({
            'EDA': result.eda,
            'Filtered': result.filtered,
        })
        self._insert_index(eda_validity, timestamps)
        if result.has_temp:
            eda_validity['TEMP'] = result.filtered_temp
        eda_validity['Valid'] = np.where(result.valid, 1, np.nan)
        eda_validity['Invalid'] = np.where(result.invalid, 1, np.nan)
        return eda_validity

    def get_quality_metrics(
        self,
        result: EDAQAResult,
        timestamps: Optional[np.ndarray] = None
    ) -> pd.DataFrame:
        """
        Tabulate rule violations of EDA quality per data point, before
        invalid labels are spread to neighboring data points.

        Parameters
        ----------
        result : EDAQAResult
            The output of `assess()`.
        timestamps : array_like, optional
            Array of timestamps corresponding to each data point.

        Returns
        -------
        eda_quality : pd.DataFrame
            A DataFrame with the columns:
            - 'Timestamp' (if provided) or 'Sample'
            - 'EDA'
            - 'TEMP' (if available)
            - 'Out of Range'
            - 'Excessive Slope'
            - 'Temp Out of Range' (if available)
        """
        eda_quality = pd.DataFrame({
            'EDA': result.filtered,
            'Out of Range': np.where(result.out_of_range, 1, np.nan),
            'Excessive Slope': np.where(result.excessive_slope, 1, np.nan),
        })
        self._insert_index(eda_quality, timestamps)
        if result.has_temp:
            eda_quality.insert(2, 'TEMP', result.filtered_temp)
            eda_quality['Temp Out of Range'] = np.where(
                result.temp_out_of_range, 1, np.nan)
        return eda_quality

    def compute_metrics(
        self,
        result: EDAQAResult,
        seg_size: int = 60,
        rolling_window: Optional[int] = None,
        rolling_step: int = 15,
        show_progress: bool = True
    ) -> pd.DataFrame:
        """
        Compute rule-specific quality metrics (proportions of valid and
        invalid data points, out-of-range points, excessive slopes, and
        temperature violations), either by segment or across sliding
        windows.

        Parameters
        ----------
        result : EDAQAResult
            The output of `assess()`.
        seg_size : int
            The segment size in seconds; by default, 60.
        rolling_window : int, optional
            The size, in seconds, of the sliding window across which to
            compute the EDA SQA metrics; by default, None.
        rolling_step : int, optional
            The step size, in seconds, of the sliding windows; by default, 15.
        show_progress : bool, optional
            Whether to show a progress bar; by default, True.

        Returns
        -------
        metrics : pd.DataFrame
            A DataFrame containing EDA quality assessment metrics by segment
            or sliding window.

        Notes
        -----
        The QA rules are applied to the whole recording before it is
        divided, so invalid labels spread across segment boundaries.
        Trailing data shorter than a segment or window are not included.
        """
        period = result.sampling_period
        n = len(result.valid)
        if rolling_window is not None:
            seg_name = 'Moving Window'
            win_len = max(1, seconds_to_samples(rolling_window, period))
            step = max(1, seconds_to_samples(rolling_step, period))
            starts = range(0, n - win_len + 1, step)
        else:
            seg_name = 'Segment'
            win_len = max(1, seconds_to_samples(seg_size, period))
            starts = range(0, (n // win_len) * win_len, win_len)

        metrics = []
        for i, start in enumerate(tqdm(starts, desc = 'EDA QA',
                                       disable = not show_progress)):
            end = start + win_len
            n_valid = int(result.valid[start:end].sum())
            row = {
                seg_name: i + 1,
                'N Valid': n_valid,
                '% Valid': round((n_valid / win_len) * 100, 2),
                'N Invalid': win_len - n_valid,
                '% Invalid': round(((win_len - n_valid) / win_len) * 100, 2),
            }
            row.update(self._rule_counts(result, start, end))
            metrics.append(row)
        metrics = pd.DataFrame(metrics, columns = [
            seg_name, 'N Valid', '% Valid', 'N Invalid', '% Invalid',
            'Out of Range', '% Out of Range', 'Excessive Slope',
            '% Excessive Slope', 'Temp Out of Range', '% Temp Out of Range'])
        return metrics

    def _evaluate_rules(
        self,
        signal: np.ndarray,
        temp: Optional[np.ndarray],
        sampling_interval: float
    ) -> tuple[np.ndarray, np.ndarray, Optional[np.ndarray]]:
        """Return the masks of Rules 1, 2, and 3 (None without temperature
        data)."""
        return (self._check_out_of_range(signal),
                self._check_excessive_slope(signal, sampling_interval),
                self._check_temp_out_of_range(temp))

    def _check_out_of_range(
        self,
        signal: np.ndarray
    ) -> np.ndarray:
        """Return a boolean mask where EDA values are below eda_floor or
        above eda_ceiling (Rule 1)."""
        return (signal < self.config.eda_floor) | \
            (signal > self.config.eda_ceiling)

    def _check_excessive_slope(
        self,
        signal: np.ndarray,
        sampling_interval: float
    ) -> np.ndarray:
        """Return a boolean mask where the slope exceeds
        max_slope_per_second (Rule 2)."""
        slopes = np.concatenate([[0], np.diff(signal) / sampling_interval])
        return np.abs(slopes) > self.config.max_slope_per_second

    def _check_temp_out_of_range(
        self,
        temp: Optional[np.ndarray] = None
    ) -> Union[None, np.ndarray]:
        """Return a boolean mask where temperature values are below temp_min
        or above temp_max (Rule 3)."""
        if temp is None:
            return None
        return (temp < self.config.temp_min) | (temp > self.config.temp_max)

    def _set_neighbors_invalid(
        self,
        invalid_mask: np.ndarray,
        sampling_interval: float
    ) -> np.ndarray:
        """Spread invalid labels around detected invalid points (Rule 4)."""
        radius = seconds_to_samples(
            self.config.dilation_radius_seconds, sampling_interval)
        return dilate_invalid(invalid_mask, radius)

    def _insert_index(
        self,
        df: pd.DataFrame,
        timestamps: Optional[np.ndarray] = None
    ) -> None:
        if timestamps is not None:
            df.insert(0, 'Timestamp', timestamps)
        else:
            df.insert(0, 'Sample', np.arange(len(df)) + 1)

    def _rule_counts(
        self,
        result: EDAQAResult,
        start: int,
        end: int
    ) -> dict:
        """Count rule violations between `start` and `end`."""
        total_len = end - start
        counts = {}
        for name, mask in (('Out of Range', result.out_of_range),
                           ('Excessive Slope', result.excessive_slope),
                           ('Temp Out of Range', result.temp_out_of_range)):
            if mask is None:
                counts[name] = np.nan
                counts[f'% {name}'] = np.nan
            else:
                n_flagged = int(mask[start:end].sum())
                counts[name] = n_flagged
                counts[f'% {name}'] = round((n_flagged / total_len) * 100, 2)
        return counts
