# __init.py
__version__ = '1.0'

# Import signal preprocessing and quality assessment modules and classes
from edaqa.pipeline.SQA import EDA as EDAQA, EDAQAResult
from edaqa.pipeline.EDA import Filters as EDAFilters, SmoothedChannels
from edaqa.pipeline import EDA, SQA
from edaqa.config import QAConfig, load_config
from edaqa.exceptions import EDAQAError, FilterError, InvalidInput

# Import public symbols from edaqa.py
from edaqa.edaqa import *
import edaqa.edaqa as _edaqa

# Expose classes and methods
__all__ = [
    'EDAQA',
    'EDAQAResult',
    'EDAFilters',
    'SmoothedChannels',
    'EDA',
    'SQA',
    'QAConfig',
    'load_config',
    'EDAQAError',
    'FilterError',
    'InvalidInput',
]

# Extend __all__ with everything public from edaqa.py
__all__ += _edaqa.__all__
