"""Configuration loading for the proposal compositor."""

import copy
import logging
import os
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Tuple

import yaml

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = os.path.join("config", "compositor.yaml")

DEFAULT_CONFIG: Dict[str, Any] = {
    "currency": {"prefix": "₱", "suffix": " per month"},
    "fields": {
        "default_visibility_unit": "m",
        "max_additional_specs": 3,
    },
    "logo": {
        "width": 183,
        "height": 110,
        "left": 114,
        "top": 175,
        "min_width": 50,
        "min_height": 30,
    },
    # Pixel geometry per paper size and orientation, as rendered on screen
    "page_geometry": {
        "A4": {"Landscape": [1058, 680], "Portrait": [756, 907]},
        "Letter size": {"Landscape": [960, 672], "Portrait": [768, 864]},
        "Legal size": {"Landscape": [1152, 672], "Portrait": [768, 960]},
        "default": [800, 600],
    },
    "storage": {
        "proposals_table": "proposals",
        "assets_bucket": "",
        "region": "us-east-2",
    },
}


@dataclass
class CompositorConfig:
    """Typed view over the merged configuration."""

    currency_prefix: str = "₱"
    currency_suffix: str = " per month"
    default_visibility_unit: str = "m"
    max_additional_specs: int = 3
    logo_width: int = 183
    logo_height: int = 110
    logo_left: int = 114
    logo_top: int = 175
    logo_min_width: int = 50
    logo_min_height: int = 30
    page_geometry: Dict[str, Any] = field(
        default_factory=lambda: copy.deepcopy(DEFAULT_CONFIG["page_geometry"])
    )
    proposals_table: str = "proposals"
    assets_bucket: str = ""
    region: str = "us-east-2"

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> "CompositorConfig":
        currency = raw.get("currency", {})
        fields = raw.get("fields", {})
        logo = raw.get("logo", {})
        storage = raw.get("storage", {})
        return cls(
            currency_prefix=currency.get("prefix", "₱"),
            currency_suffix=currency.get("suffix", " per month"),
            default_visibility_unit=fields.get("default_visibility_unit", "m"),
            max_additional_specs=int(fields.get("max_additional_specs", 3)),
            logo_width=logo.get("width", 183),
            logo_height=logo.get("height", 110),
            logo_left=logo.get("left", 114),
            logo_top=logo.get("top", 175),
            logo_min_width=logo.get("min_width", 50),
            logo_min_height=logo.get("min_height", 30),
            page_geometry=raw.get("page_geometry") or copy.deepcopy(DEFAULT_CONFIG["page_geometry"]),
            proposals_table=storage.get("proposals_table", "proposals"),
            assets_bucket=storage.get("assets_bucket", ""),
            region=storage.get("region", "us-east-2"),
        )

    def page_geometry_for(self, size: str, orientation: str) -> Tuple[int, int]:
        """Return (width, height) in pixels for a paper size and orientation."""
        by_orientation = self.page_geometry.get(size)
        if isinstance(by_orientation, dict) and orientation in by_orientation:
            width, height = by_orientation[orientation]
            return int(width), int(height)
        width, height = self.page_geometry.get("default", [800, 600])
        return int(width), int(height)


def _deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    merged = copy.deepcopy(base)
    for key, value in (override or {}).items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def load_config(config_path: Optional[str] = None) -> CompositorConfig:
    """Load compositor configuration.

    Resolution order: built-in defaults, then the YAML file (explicit path,
    ``SITEDECK_CONFIG`` or ``config/compositor.yaml``), then environment
    overrides for storage settings.

    Args:
        config_path: Optional path to a YAML configuration file

    Returns:
        CompositorConfig instance
    """
    path = config_path or os.environ.get("SITEDECK_CONFIG") or DEFAULT_CONFIG_PATH
    raw = copy.deepcopy(DEFAULT_CONFIG)

    if os.path.exists(path):
        with open(path) as f:
            loaded = yaml.safe_load(f) or {}
        if not isinstance(loaded, dict):
            raise ValueError(f"Configuration file {path} must contain a mapping")
        raw = _deep_merge(raw, loaded)
        logger.info(f"Loaded compositor configuration from {path}")
    elif config_path:
        logger.warning(f"Configuration file not found: {config_path}, using defaults")

    storage = raw["storage"]
    storage["proposals_table"] = os.environ.get("PROPOSALS_TABLE", storage["proposals_table"])
    storage["assets_bucket"] = os.environ.get("ASSETS_BUCKET", storage["assets_bucket"])
    storage["region"] = os.environ.get("AWS_REGION", storage["region"])

    return CompositorConfig.from_dict(raw)
