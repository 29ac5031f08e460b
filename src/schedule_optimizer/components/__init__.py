"""
NSGA-II components.

Contains the initializer, evaluator, ranking, selection, variation and
projection stages used by the optimizer.
"""

from . import population
from . import objectives
from . import ranking
from . import selection
from . import variation
from . import projection

__all__ = [
    'population',
    'objectives',
    'ranking',
    'selection',
    'variation',
    'projection'
]
