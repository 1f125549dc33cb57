"""
Config Module - Presets and validation for match configurations.
"""

from .presets import (
    GridPreset,
    GRID_PRESETS,
    build_side_configs,
    make_config,
    default_config,
)
from .validation import (
    validate_config,
    require_valid_config,
    ValidationResult,
    ConfigValidationError,
)

__all__ = [
    "GridPreset",
    "GRID_PRESETS",
    "build_side_configs",
    "make_config",
    "default_config",
    "validate_config",
    "require_valid_config",
    "ValidationResult",
    "ConfigValidationError",
]
