"""
Table Settings

Configuration for a single table-finding call. Settings are resolved from
``None``, a plain dict (for example loaded from YAML) or an existing
``TableSettings`` instance, and validated up front so a bad configuration
fails with ``ConfigurationError`` before any geometry is processed.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field, fields, replace
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple, Union

import yaml
from loguru import logger

from ..exceptions import ConfigurationError


class Strategy(Enum):
    """Per-axis method for producing edges."""
    LINES = 'lines'
    LINES_STRICT = 'lines_strict'
    TEXT = 'text'
    EXPLICIT = 'explicit'

    @property
    def uses_lines(self) -> bool:
        return self in (Strategy.LINES, Strategy.LINES_STRICT)

    @classmethod
    def parse(cls, value: Union[str, 'Strategy']) -> 'Strategy':
        if isinstance(value, Strategy):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            names = ', '.join(s.value for s in cls)
            raise ConfigurationError(
                f"Unknown table strategy {value!r}; expected one of: {names}"
            ) from None


NON_NEGATIVE_SETTINGS = (
    'snap_tolerance',
    'snap_x_tolerance',
    'snap_y_tolerance',
    'join_tolerance',
    'join_x_tolerance',
    'join_y_tolerance',
    'edge_min_length',
    'angle_tolerance',
    'min_words_vertical',
    'min_words_horizontal',
    'min_text_rows',
    'intersection_tolerance',
    'intersection_x_tolerance',
    'intersection_y_tolerance',
    'text_x_tolerance',
    'text_y_tolerance',
    'borderless_min_rows',
    'borderless_min_cols',
    'borderless_min_chars',
    'borderless_density_ratio',
    'borderless_gap_x',
    'borderless_gap_y',
    'max_depth',
    'min_nested_confidence',
    'hybrid_overlap',
)

ExplicitLines = Optional[Sequence[Any]]


@dataclass
class TableSettings:
    """
    Settings for the table finder.

    Attributes:
        vertical_strategy: Edge source for column separators
        horizontal_strategy: Edge source for row separators
        explicit_vertical_lines: Caller-supplied x coordinates (or segments)
        explicit_horizontal_lines: Caller-supplied y coordinates (or segments)
        snap_tolerance: Distance within which parallel edges are snapped
            onto one position
        join_tolerance: Largest gap bridged when merging collinear edges
        edge_min_length: Shortest edge kept (default 3x snap_tolerance)
        intersection_tolerance: Slack when testing edge crossings
        min_words_vertical: Words needed to infer a vertical text edge
        min_words_horizontal: Words needed to infer a horizontal text edge
        min_text_rows: Distinct rows a vertical text edge must touch
        detect_borderless: Fall back to projection profiles when a page has
            no structural edges
        detect_nested: Search non-empty cells for nested tables
        text_cross_check: Re-tag line tables confirmed by text alignment
            as hybrid
        score_weights: Weights of edge completeness, content coverage and
            grid regularity in the confidence score
    """

    vertical_strategy: Strategy = Strategy.LINES
    horizontal_strategy: Strategy = Strategy.LINES
    explicit_vertical_lines: ExplicitLines = None
    explicit_horizontal_lines: ExplicitLines = None

    # Edge canonicalisation
    snap_tolerance: float = 3.0
    snap_x_tolerance: Optional[float] = None
    snap_y_tolerance: Optional[float] = None
    join_tolerance: float = 3.0
    join_x_tolerance: Optional[float] = None
    join_y_tolerance: Optional[float] = None
    edge_min_length: Optional[float] = None
    angle_tolerance: float = 3.0

    # Text strategies
    min_words_vertical: int = 3
    min_words_horizontal: int = 1
    min_text_rows: int = 1
    text_x_tolerance: float = 3.0
    text_y_tolerance: float = 3.0
    keep_blank_chars: bool = False

    # Intersections
    intersection_tolerance: Optional[float] = None
    intersection_x_tolerance: Optional[float] = None
    intersection_y_tolerance: Optional[float] = None

    # Borderless detection
    detect_borderless: bool = False
    borderless_min_rows: int = 2
    borderless_min_cols: int = 2
    borderless_min_chars: int = 10
    borderless_density_ratio: float = 0.1
    borderless_gap_x: Optional[float] = None
    borderless_gap_y: Optional[float] = None

    # Nested detection
    detect_nested: bool = False
    max_depth: int = 2
    min_nested_confidence: float = 0.5

    # Scoring
    text_cross_check: bool = False
    hybrid_overlap: float = 0.8
    score_weights: Tuple[float, float, float] = field(
        default=(1 / 3, 1 / 3, 1 / 3)
    )

    def __post_init__(self):
        self.vertical_strategy = Strategy.parse(self.vertical_strategy)
        self.horizontal_strategy = Strategy.parse(self.horizontal_strategy)

        for name in NON_NEGATIVE_SETTINGS:
            value = getattr(self, name)
            if value is None:
                continue
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                raise ConfigurationError(f"Table setting {name} must be numeric, got {value!r}")
            if not math.isfinite(value) or value < 0:
                raise ConfigurationError(f"Table setting {name} must be a non-negative number")

        self.score_weights = self._normalize_weights(self.score_weights)
        self.explicit_vertical_lines = self._as_list(self.explicit_vertical_lines, 'explicit_vertical_lines')
        self.explicit_horizontal_lines = self._as_list(self.explicit_horizontal_lines, 'explicit_horizontal_lines')

        if self.vertical_strategy is Strategy.EXPLICIT and not self.explicit_vertical_lines:
            raise ConfigurationError(
                "vertical_strategy 'explicit' requires explicit_vertical_lines"
            )
        if self.horizontal_strategy is Strategy.EXPLICIT and not self.explicit_horizontal_lines:
            raise ConfigurationError(
                "horizontal_strategy 'explicit' requires explicit_horizontal_lines"
            )

    @staticmethod
    def _as_list(lines: ExplicitLines, name: str) -> Optional[List[Any]]:
        """Explicit coordinates as a plain list; arrays and tuples are accepted."""
        if lines is None:
            return None
        try:
            return list(lines)
        except TypeError:
            raise ConfigurationError(f"{name} must be a sequence, got {lines!r}") from None

    @staticmethod
    def _normalize_weights(weights: Sequence[float]) -> Tuple[float, float, float]:
        try:
            values = tuple(float(w) for w in weights)
        except (TypeError, ValueError):
            raise ConfigurationError(f"score_weights must be three numbers, got {weights!r}") from None
        if len(values) != 3 or any(not math.isfinite(w) or w < 0 for w in values):
            raise ConfigurationError("score_weights must be three non-negative numbers")
        total = sum(values)
        if total <= 0:
            raise ConfigurationError("score_weights must not all be zero")
        return (values[0] / total, values[1] / total, values[2] / total)

    # Effective per-axis values

    @property
    def snap_x(self) -> float:
        return self._pick(self.snap_x_tolerance, self.snap_tolerance)

    @property
    def snap_y(self) -> float:
        return self._pick(self.snap_y_tolerance, self.snap_tolerance)

    @property
    def join_x(self) -> float:
        return self._pick(self.join_x_tolerance, self.join_tolerance)

    @property
    def join_y(self) -> float:
        return self._pick(self.join_y_tolerance, self.join_tolerance)

    @property
    def min_edge_length(self) -> float:
        return self._pick(self.edge_min_length, 3 * self.snap_tolerance)

    @property
    def intersection_x(self) -> float:
        base = self._pick(self.intersection_tolerance, self.snap_tolerance)
        return self._pick(self.intersection_x_tolerance, base)

    @property
    def intersection_y(self) -> float:
        base = self._pick(self.intersection_tolerance, self.snap_tolerance)
        return self._pick(self.intersection_y_tolerance, base)

    @property
    def uses_lines(self) -> bool:
        """Both axes draw edges from page graphics."""
        return self.vertical_strategy.uses_lines and self.horizontal_strategy.uses_lines

    @staticmethod
    def _pick(value: Optional[float], default: float) -> float:
        return default if value is None else value

    def evolve(self, **changes: Any) -> 'TableSettings':
        """Return a validated copy with some settings replaced."""
        return replace(self, **changes)

    @classmethod
    def resolve(cls, options: Union[None, 'TableSettings', Mapping[str, Any]] = None) -> 'TableSettings':
        """
        Build settings from None, a mapping or an existing instance.

        Raises:
            ConfigurationError: On unknown keys or invalid values
        """
        if options is None:
            return cls()
        if isinstance(options, TableSettings):
            return options
        if not isinstance(options, Mapping):
            raise ConfigurationError(
                f"Table options must be a mapping or TableSettings, got {type(options).__name__}"
            )

        known = {f.name for f in fields(cls)}
        unknown = sorted(set(options) - known)
        if unknown:
            raise ConfigurationError(f"Unrecognized table settings: {', '.join(unknown)}")

        values = dict(options)
        if 'score_weights' in values and values['score_weights'] is not None:
            values['score_weights'] = tuple(values['score_weights'])
        try:
            return cls(**values)
        except TypeError as e:
            raise ConfigurationError(str(e)) from e

    def to_dict(self) -> Dict[str, Any]:
        """Convert to a plain dictionary (YAML/JSON friendly)."""
        result: Dict[str, Any] = {}
        for f in fields(self):
            value = getattr(self, f.name)
            if isinstance(value, Strategy):
                value = value.value
            elif isinstance(value, tuple):
                value = list(value)
            elif f.name.startswith('explicit_') and value is not None:
                value = list(value)
            result[f.name] = value
        return result


def load_settings(config_path: Union[str, Path]) -> TableSettings:
    """
    Load table settings from a YAML file.

    The file may hold the settings mapping directly or under a top-level
    ``table_settings`` key.

    Raises:
        ConfigurationError: If the file is not valid YAML, does not contain
            a mapping or holds invalid settings
    """
    config_path = Path(config_path)
    logger.info(f"Loading table settings from: {config_path}")

    try:
        with open(config_path, 'r', encoding='utf-8') as f:
            config = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid YAML in {config_path}: {e}") from e

    if not isinstance(config, dict):
        raise ConfigurationError(f"Settings file {config_path} must contain a mapping")

    if 'table_settings' in config:
        config = config['table_settings'] or {}
        if not isinstance(config, dict):
            raise ConfigurationError("table_settings must be a mapping")

    settings = TableSettings.resolve(config)
    logger.debug(
        f"Resolved settings: vertical={settings.vertical_strategy.value}, "
        f"horizontal={settings.horizontal_strategy.value}"
    )
    return settings


def explicit_values(lines: ExplicitLines, axis: str) -> Optional[List[float]]:
    """
    Read explicit coordinates for one axis.

    Entries may be numbers or segment-like objects; for the vertical axis the
    segment's ``x0`` is used, for the horizontal axis its ``y0``. Returns
    None when the list is malformed (non-numeric, non-finite, unsorted or
    fewer than two entries) so the axis degrades to no grid.
    """
    if lines is None or len(lines) == 0:
        return None

    attr = 'x0' if axis == 'x' else 'y0'
    values: List[float] = []
    for entry in lines:
        raw = getattr(entry, attr, entry)
        if isinstance(raw, bool):
            logger.warning(f"Ignoring explicit {axis} lines: non-numeric entry {entry!r}")
            return None
        try:
            value = float(raw)
        except (TypeError, ValueError):
            logger.warning(f"Ignoring explicit {axis} lines: non-numeric entry {entry!r}")
            return None
        if not math.isfinite(value):
            logger.warning(f"Ignoring explicit {axis} lines: non-finite entry {entry!r}")
            return None
        values.append(value)

    if len(values) < 2:
        logger.warning(f"Ignoring explicit {axis} lines: need at least 2 entries, got {len(values)}")
        return None
    if any(b <= a for a, b in zip(values, values[1:])):
        logger.warning(f"Ignoring explicit {axis} lines: coordinates are not strictly increasing")
        return None
    return values
