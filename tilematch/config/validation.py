"""
Config Validation - Checks a match configuration before a session starts.

Validates that:
1. Grid dimensions are playable (rows, cols >= 2, at least 6 tiles)
2. There are at least two side entries, each with a positive count
3. Side counts fill the grid exactly
4. The match kind agrees with the number of side entries

The engine itself never calls this; an invalid configuration simply
produces an odd grid. Callers validate up front.
"""

from __future__ import annotations
from dataclasses import dataclass, field

from ..engine_core.state import MatchConfig, MatchKind

MIN_DIMENSION = 2
MIN_TILES = 6

EXPECTED_ENTRIES = {
    MatchKind.TWO_WAY: 2,
    MatchKind.THREE_WAY: 3,
}


class ConfigValidationError(Exception):
    """Raised when a match configuration is unusable."""

    def __init__(self, errors: list[str]):
        self.errors = errors
        super().__init__(f"Match configuration invalid: {'; '.join(errors)}")


@dataclass
class ValidationResult:
    """Result of validation, with errors and warnings."""
    valid: bool
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)


def validate_config(config: MatchConfig) -> ValidationResult:
    """
    Validate a match configuration.

    Unequal side counts are only a warning: the grid is still generated,
    but some tiles can never be matched.
    """
    errors: list[str] = []
    warnings: list[str] = []

    if config.rows < MIN_DIMENSION:
        errors.append(f"rows must be >= {MIN_DIMENSION}")
    if config.cols < MIN_DIMENSION:
        errors.append(f"cols must be >= {MIN_DIMENSION}")
    if config.total_tiles < MIN_TILES:
        errors.append(f"grid must have at least {MIN_TILES} tiles")

    entries = config.side_configs
    if len(entries) < 2:
        errors.append("at least 2 side entries are required")

    for i, entry in enumerate(entries):
        if entry.count <= 0:
            errors.append(f"side entry {i} ({entry.label}) must have count > 0")
        if not entry.sides:
            errors.append(f"side entry {i} ({entry.label}) shows no sides")

    total = sum(entry.count for entry in entries)
    if entries and total != config.total_tiles:
        errors.append(
            f"side counts sum to {total}, grid has {config.total_tiles} tiles"
        )

    expected = EXPECTED_ENTRIES.get(config.match_kind)
    if expected is not None and len(entries) != expected:
        errors.append(
            f"{config.match_kind.value} needs {expected} side entries, got {len(entries)}"
        )

    counts = {entry.count for entry in entries}
    if len(counts) > 1:
        warnings.append(
            "side entries have unequal counts; some tiles will be unmatchable"
        )

    if config.timer_seconds < 0:
        errors.append("timer_seconds must be >= 0")

    return ValidationResult(valid=not errors, errors=errors, warnings=warnings)


def require_valid_config(config: MatchConfig) -> ValidationResult:
    """Validate and raise ConfigValidationError on any error."""
    result = validate_config(config)
    if not result.valid:
        raise ConfigValidationError(result.errors)
    return result
