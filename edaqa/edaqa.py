from typing import Optional
from edaqa.config import QAConfig
from edaqa.pipeline.SQA import EDA, EDAQAResult

__all__ = ['run_edaqa']

def run_edaqa(
    eda,
    time,
    temp = None,
    config: Optional[QAConfig] = None,
    **overrides
) -> EDAQAResult:
    """
    Run the automated EDA quality assessment procedure by Kleckner et al.
    (2017) on one recording.

    Four simple rules determine invalid data:
    1. EDA is out of the valid range (e.g., not within 0.05-60 uS).
    2. EDA changes too quickly (e.g., faster than +/-10 uS/sec).
    3. Temperature is out of range (e.g., not within 30-40 C).
    4. EDA data surrounding (e.g., within 5 sec of) invalid portions from
       Rules 1-3 are also invalid.

    Parameters
    ----------
    eda : array_like
        An array containing the EDA signal in microsiemens.
    time : array_like
        An array containing the time of each sample in seconds.
    temp : array_like, optional
        An array containing temperature data in Celsius; by default, None,
        in which case no temperature criteria are used.
    config : QAConfig, optional
        The QA thresholds; by default, `QAConfig()`.
    **overrides
        `QAConfig` fields replacing those of `config`, e.g.,
        `filter_window_seconds = None` to disable the filter.

    Returns
    -------
    result : EDAQAResult
        The validity mask (`result.valid`) and the filtered EDA signal
        (`result.filtered`), among other rule-specific outputs.

    Examples
    --------
    >>> result = run_edaqa([1, 1, 1, 1, 1, 61, 1, 1, 1, 1], range(10),
    ...                    filter_window_seconds = None,
    ...                    dilation_radius_seconds = 2)
    >>> result.valid.astype(int)
    array([1, 1, 1, 1, 0, 0, 0, 0, 1, 1])
    """
    return EDA(config, **overrides).assess(eda, time, temp)
