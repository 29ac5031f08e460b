"""
Generation driver for the schedule optimizer.
"""

from . import nsga2_optimizer

__all__ = ['nsga2_optimizer']
