"""
Optimizer configuration and YAML loading.
"""

import os
import math
import logging
import yaml
from dataclasses import dataclass, fields
from typing import Dict, Any, Optional

from .exceptions import ConfigurationError

logger = logging.getLogger(__name__)

ASSIGNMENT_POLICIES = ('modulo', 'per_route')


@dataclass
class OptimizerConfig:
    """Configuration parameters for the NSGA-II schedule optimizer"""
    population_size: int = 100
    generations: int = 50
    schedule_length: int = 24  # departures per candidate
    crossover_rate: float = 0.8
    mutation_rate: float = 0.1
    min_headway_minutes: float = 30.0
    operating_window_minutes: float = 1440.0
    random_seed: Optional[int] = None

    # Objective constants
    trip_cost: float = 50.0
    headway_penalty: float = 100.0
    trip_duration_minutes: float = 60.0
    available_service_minutes: float = 960.0  # 16 service hours

    # Run options
    n_workers: int = 1
    log_interval: int = 10
    day_of_week: Optional[int] = None
    assignment_policy: str = 'modulo'

    def _require_number(self, name: str) -> float:
        value = getattr(self, name)
        if isinstance(value, bool) or not isinstance(value, (int, float)) or not math.isfinite(value):
            raise ConfigurationError(f"{name} must be a finite number, got {value!r}")
        return value

    def _require_int(self, name: str, minimum: int) -> int:
        value = getattr(self, name)
        if isinstance(value, bool) or not isinstance(value, int) or value < minimum:
            raise ConfigurationError(f"{name} must be an integer >= {minimum}, got {value!r}")
        return value

    def validate(self) -> "OptimizerConfig":
        """
        Check every option, raising ConfigurationError on the first bad value.

        Returns:
        --------
        OptimizerConfig
            The config itself, so calls can be chained.
        """
        for name in ('population_size', 'generations', 'schedule_length'):
            self._require_int(name, 1)

        for name in ('crossover_rate', 'mutation_rate'):
            if not 0.0 <= self._require_number(name) <= 1.0:
                raise ConfigurationError(f"{name} must be within [0, 1], got {getattr(self, name)!r}")

        if self._require_number('min_headway_minutes') < 0:
            raise ConfigurationError("min_headway_minutes must be non-negative")

        for name in ('operating_window_minutes', 'trip_duration_minutes', 'available_service_minutes'):
            if self._require_number(name) <= 0:
                raise ConfigurationError(f"{name} must be positive")

        if self._require_number('trip_cost') < 0 or self._require_number('headway_penalty') < 0:
            raise ConfigurationError("trip_cost and headway_penalty must be non-negative")

        self._require_int('n_workers', 1)
        self._require_int('log_interval', 1)

        if self.random_seed is not None:
            self._require_int('random_seed', 0)

        if self.day_of_week is not None and self._require_int('day_of_week', 1) > 7:
            raise ConfigurationError(f"day_of_week must be within 1..7, got {self.day_of_week!r}")

        if self.assignment_policy not in ASSIGNMENT_POLICIES:
            raise ConfigurationError(
                f"Unknown assignment_policy {self.assignment_policy!r}; "
                f"expected one of {ASSIGNMENT_POLICIES}")

        return self

    @classmethod
    def from_dict(cls, options: Dict[str, Any]) -> "OptimizerConfig":
        """Build a config from a mapping, ignoring unknown keys."""
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(options) - known)
        if unknown:
            logger.warning(f"Ignoring unknown optimizer options: {unknown}")

        return cls(**{key: value for key, value in options.items() if key in known})


def load_yaml(config_file: str) -> Dict[str, Any]:
    """Load a YAML configuration file into a dictionary."""
    if not os.path.exists(config_file):
        raise ConfigurationError(f"Config file not found: {config_file}")

    try:
        with open(config_file, 'r') as f:
            config = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Error parsing config file {config_file}: {e}") from e

    if not isinstance(config, dict):
        raise ConfigurationError(f"Config file {config_file} must contain a mapping")
    return config


def load_config(config_file: str) -> OptimizerConfig:
    """
    Load and validate an OptimizerConfig from the 'optimization' section of a YAML file.

    Parameters:
    -----------
    config_file : str
        Path to the configuration file.

    Returns:
    --------
    OptimizerConfig
        The validated configuration.
    """
    config = load_yaml(config_file)
    return OptimizerConfig.from_dict(config.get('optimization') or {}).validate()
