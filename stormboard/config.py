"""Board settings.

Centralizes the geometric constants shared by the card store, the cluster
detector, the router and the placement assist. Defaults can be overridden from
a YAML file passed explicitly or named by `STORMBOARD_CONFIG`.
"""

from __future__ import annotations

import math
import os
from dataclasses import dataclass, field, fields, replace
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from .errors import ValidationError

CONFIG_ENV_VAR = "STORMBOARD_CONFIG"


@dataclass(frozen=True)
class CardLayout:
    """Font and padding model used to estimate card size from its name."""

    min_width: float = 120
    max_width: float = 320
    min_height: float = 80
    padding: float = 10
    font_size: float = 14
    line_height: float = 1.25
    # Average glyph advance as a fraction of the font size.
    glyph_ratio: float = 0.52

    @property
    def px_per_unit(self) -> float:
        return self.font_size * self.glyph_ratio


@dataclass(frozen=True)
class BoardSettings:
    board_extent: float = 10000
    clustering_radius: float = 300
    aggregate_max_distance: float = 500
    aggregate_bounds_padding: float = 50
    route_margin: float = 24
    placement_step: float = 40
    placement_rings: int = 12
    layout: CardLayout = field(default_factory=CardLayout)


DEFAULT_SETTINGS = BoardSettings()

# Zero here would collapse card geometry or the placement grid.
_POSITIVE_LAYOUT = {"min_width", "max_width", "min_height", "font_size", "line_height", "glyph_ratio"}
_POSITIVE_BOARD = {"board_extent", "placement_step"}


def _coerce_number(key: str, value: Any, *, integer: bool = False, positive: bool = False) -> float | int:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValidationError(f"Setting {key!r} must be a number, got {value!r}")
    if not math.isfinite(value) or value < 0:
        raise ValidationError(f"Setting {key!r} must be a non-negative finite number")
    if positive and value == 0:
        raise ValidationError(f"Setting {key!r} must be greater than zero")
    if integer:
        if int(value) != value:
            raise ValidationError(f"Setting {key!r} must be an integer")
        return int(value)
    return float(value)


def _known(cls) -> Dict[str, Any]:
    return {f.name: f for f in fields(cls)}


def settings_from_dict(data: Dict[str, Any]) -> BoardSettings:
    """Build settings from a plain mapping. Unknown keys are ignored."""
    if not isinstance(data, dict):
        raise ValidationError("Board settings must be a mapping")

    layout_raw = data.get("layout") or {}
    if not isinstance(layout_raw, dict):
        raise ValidationError("Setting 'layout' must be a mapping")

    layout_fields = _known(CardLayout)
    layout_kwargs = {
        k: _coerce_number(f"layout.{k}", v, positive=k in _POSITIVE_LAYOUT)
        for k, v in layout_raw.items() if k in layout_fields
    }
    layout = replace(DEFAULT_SETTINGS.layout, **layout_kwargs)
    if layout.max_width < layout.min_width:
        raise ValidationError("layout.max_width must not be smaller than layout.min_width")
    if layout.min_width <= layout.padding * 2:
        raise ValidationError("layout.min_width must leave room inside the padding")

    kwargs: Dict[str, Any] = {}
    for key, f in _known(BoardSettings).items():
        if key == "layout" or key not in data:
            continue
        kwargs[key] = _coerce_number(
            key,
            data[key],
            integer=(f.type in ("int", int)),
            positive=key in _POSITIVE_BOARD,
        )
    return replace(DEFAULT_SETTINGS, layout=layout, **kwargs)


def _config_path(path: str | Path | None) -> Optional[Path]:
    if path:
        return Path(path)
    override = (os.environ.get(CONFIG_ENV_VAR) or "").strip()
    if override:
        p = Path(override)
        return p if p.is_absolute() else (Path.cwd() / p).resolve()
    return None


def load_settings(path: str | Path | None = None) -> BoardSettings:
    """Load settings from YAML.

    Falls back to defaults when no path is given, `STORMBOARD_CONFIG` is unset,
    or the file does not exist. An unreadable or invalid file raises
    `ValidationError`.
    """
    p = _config_path(path)
    if p is None or not p.exists():
        return DEFAULT_SETTINGS

    try:
        data = yaml.safe_load(p.read_text(encoding="utf-8")) or {}
    except (OSError, UnicodeDecodeError, yaml.YAMLError) as e:
        raise ValidationError(f"Invalid board settings file {p}: {e}") from e

    board_section = data.get("board", data) if isinstance(data, dict) else data
    return settings_from_dict(board_section)


@lru_cache
def get_settings() -> BoardSettings:
    """Process-wide settings, loaded once."""
    return load_settings()
