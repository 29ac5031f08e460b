"""
Core optimizer components.

Contains the data models, configuration and error types.
"""

from . import config
from . import data_models
from . import exceptions
from . import time_utils

__all__ = ['config', 'data_models', 'exceptions', 'time_utils']
