import numpy as np
from dataclasses import dataclass
from typing import Optional
from loguru import logger
from scipy.signal import filtfilt
from edaqa.exceptions import FilterError

__all__ = ['Filters', 'SmoothedChannels', 'impute_missing', 'smooth_channels',
           'seconds_to_samples']

def seconds_to_samples(duration: float, sampling_period: float) -> int:
    """Convert a duration in seconds into a number of samples, rounding
    halves up."""
    # Snap float noise such as 0.35 / 0.1 = 3.4999999999999996
    return int(np.floor(np.round(duration / sampling_period, 9) + 0.5))

# ============================== EDA Filters =================================
class Filters:
    """
    A class for filtering raw electrodermal activity (EDA) and skin
    temperature data.

    Parameters/Attributes
    ---------------------
    fs : float
        The sampling rate of the EDA signal.
    """

    def __init__(self, fs: float):
        """
        Initialize the Filters object.

        Parameters
        ----------
        fs : float
            The sampling rate of the EDA signal.
        """
        self.fs = fs

    def window_samples(self, window_len: float) -> int:
        """Return the length, in samples, of a `window_len`-second window
        (at least one sample)."""
        return max(1, seconds_to_samples(window_len, 1 / self.fs))

    def moving_average(self, signal, window_len):
        """
        Apply a zero-phase moving average filter to an EDA signal.

        The averaging kernel is run forward and then backward over the
        signal so that the delays of both passes cancel out and features
        keep their timing.

        Parameters
        ----------
        signal : array_like
            An array containing the raw EDA signal.
        window_len : int or float
            The moving average window size, in seconds.

        Returns
        -------
        ma : array_like
            An array containing the moving average of the EDA signal.

        Raises
        ------
        ValueError
            If the signal is not longer than three times the window.
        """
        samples = self.window_samples(window_len)
        if samples == 1:
            return np.array(signal, dtype = float)
        kernel = np.ones(samples) / samples
        ma = filtfilt(kernel, [1.0], np.asarray(signal, dtype = float),
                      padlen = 3 * (samples - 1))
        return ma

# ======================== Other EDA Data Processing ========================
def impute_missing(
    signal: np.ndarray,
    label: str = 'EDA'
) -> tuple[np.ndarray, int]:
    """
    Replace missing (NaN) values with the mean of their immediate left and
    right neighbors.

    Parameters
    ----------
    signal : array_like
        An array containing EDA or temperature data.
    label : str, optional
        The name of the channel used in log messages; by default, 'EDA'.

    Returns
    -------
    imputed : np.ndarray
        A copy of the signal with missing values replaced.
    n_imputed : int
        The number of missing values that were replaced.

    Notes
    -----
    Missing values are replaced in order of position, so a replaced value
    may serve as the left neighbor of the next one. A neighbor outside the
    signal counts as missing, and the mean of a missing neighbor is itself
    missing. Missing values at the first or last sample, and runs of two
    or more missing values, are therefore left missing.
    """
    imputed = np.array(signal, dtype = float)
    n = len(imputed)
    n_imputed = 0
    for k, ix in enumerate(np.flatnonzero(np.isnan(imputed))):
        left = imputed[ix - 1] if ix > 0 else np.nan
        right = imputed[ix + 1] if ix < n - 1 else np.nan
        imputed[ix] = (left + right) / 2
        logger.debug(f'{label} data: replacing missing value number {k + 1} '
                     f'(sample {ix}) with {imputed[ix]:f}')
        if not np.isnan(imputed[ix]):
            n_imputed += 1

    n_missing = int(np.isnan(imputed).sum())
    if n_imputed:
        logger.info(f'{label} data: replaced {n_imputed} missing value(s) '
                    f'with the mean of their neighbors')
    if n_missing:
        logger.warning(f'{label} data: {n_missing} missing value(s) at the '
                       f'signal edges or in consecutive gaps could not be '
                       f'replaced')
    return imputed, n_imputed

@dataclass(frozen = True, eq = False)
class SmoothedChannels:
    """
    The EDA and temperature channels used for quality assessment.

    Attributes
    ----------
    eda : np.ndarray
        The filtered (or, if smoothing is disabled, unfiltered) EDA signal.
    temp : np.ndarray or None
        The filtered temperature data, the unfiltered temperature data if
        filtering it failed, or None if no temperature data were given.
    window_samples : int or None
        The filter window length in samples; None if smoothing is
        disabled.
    temp_fallback : bool
        Whether the unfiltered temperature data are used because
        filtering them failed.
    temp_fallback_reason : str or None
        Why filtering the temperature data failed.
    """
    eda: np.ndarray
    temp: Optional[np.ndarray] = None
    window_samples: Optional[int] = None
    temp_fallback: bool = False
    temp_fallback_reason: Optional[str] = None

def smooth_channels(
    eda: np.ndarray,
    temp: Optional[np.ndarray],
    fs: float,
    window_len: Optional[float]
) -> SmoothedChannels:
    """
    Smooth the EDA and temperature channels independently with a
    zero-phase moving average filter.

    Parameters
    ----------
    eda : array_like
        An array containing the EDA signal.
    temp : array_like, optional
        An array containing temperature data, or None.
    fs : float
        The sampling rate of both channels.
    window_len : float, optional
        The filter window size in seconds. If None, neither channel is
        filtered.

    Returns
    -------
    channels : SmoothedChannels
        The channels to be assessed.

    Raises
    ------
    FilterError
        If the EDA signal cannot be filtered. A failure to filter the
        temperature data is not raised; the unfiltered temperature data are
        used instead and a warning is logged.
    """
    if window_len is None or np.isnan(window_len):
        return SmoothedChannels(eda = eda, temp = temp)

    filters = Filters(fs)
    samples = filters.window_samples(window_len)
    logger.debug(f'Moving average window: {samples} sample(s)')

    try:
        eda_filtered = filters.moving_average(eda, window_len)
    except ValueError as e:
        raise FilterError(f'EDA data could not be filtered: {e}') from e

    if temp is None:
        return SmoothedChannels(eda = eda_filtered, window_samples = samples)

    reason = None
    try:
        temp_filtered = filters.moving_average(temp, window_len)
        if np.isnan(temp_filtered).all():
            reason = 'filtered temperature data are all NaN'
    except ValueError as e:
        reason = str(e)

    if reason is None:
        return SmoothedChannels(eda = eda_filtered, temp = temp_filtered,
                                window_samples = samples)

    n_nan = int(np.isnan(temp).sum())
    logger.warning(f'Temperature data could not be filtered ({reason}). '
                   f'Using unfiltered temperature data for QA. Number of '
                   f'NaNs in raw temperature data: {n_nan} '
                   f'({100 * n_nan / len(temp):.0f}%)')
    return SmoothedChannels(eda = eda_filtered, temp = temp,
                            window_samples = samples, temp_fallback = True,
                            temp_fallback_reason = reason)
