"""Scorecard configuration: metric weights, goal maxima and tenants"""

import logging
import math
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from .metrics import MetricKey, MetricValues

logger = logging.getLogger(__name__)

CONFIG_FILENAMES = ("scorecard.yaml", "scorecard.yml")
USER_CONFIG_DIR = Path.home() / ".seller-scorecard"

DEFAULT_WEIGHTS = MetricValues(
    sales=0.3,
    featured=0.15,
    dispatcher=0.15,
    finance_rate=0.15,
    finance_profitability=0.15,
    trade_in=0.15,
)

DEFAULT_MAXIMA = MetricValues(
    sales=8,
    featured=2,
    dispatcher=0.7,
    finance_rate=0.35,
    finance_profitability=3250,
    trade_in=0.25,
)

DEFAULT_TENANTS = {
    "toyota-morumbi": "Toyota Morumbi",
    "toyota-nacoes": "Toyota Nações",
    "hyundai-barra-funda": "Hyundai Barra Funda",
    "hyundai-guarulhos": "Hyundai Guarulhos",
    "byd-ibirapuera": "BYD Ibirapuera",
    "byd-alphaville": "BYD Alphaville",
}

DEFAULT_TENANT_LABEL = "Loja Padrão"

# Seconds between the last edit and the persisted write
DEFAULT_PERSIST_DELAY = 0.12


class ConfigurationError(ValueError):
    """Raised when a scorecard configuration cannot be used"""


@dataclass
class ScorecardConfig:
    """Process-wide scoring configuration"""
    weights: MetricValues = DEFAULT_WEIGHTS
    maxima: MetricValues = DEFAULT_MAXIMA
    tenants: Dict[str, str] = field(default_factory=lambda: dict(DEFAULT_TENANTS))
    default_tenant_label: str = DEFAULT_TENANT_LABEL
    persist_delay: float = DEFAULT_PERSIST_DELAY
    source: Optional[Path] = None

    def validate(self) -> "ScorecardConfig":
        """Check weights, maxima and delay; returns self for chaining"""
        for section, values in (("weights", self.weights), ("maxima", self.maxima)):
            for key, value in values.items():
                if isinstance(value, bool) or not isinstance(value, (int, float)):
                    raise ConfigurationError(f"{section}.{key.value} must be a number, got {value!r}")
                if not math.isfinite(value) or value < 0:
                    raise ConfigurationError(f"{section}.{key.value} must be a finite non-negative number")

        total = sum(value for _, value in self.weights.items())
        if total <= 0:
            raise ConfigurationError("Metric weights must sum to a positive number")

        if not math.isfinite(self.persist_delay) or self.persist_delay < 0:
            raise ConfigurationError("persist_delay must be a finite non-negative number")

        return self


def find_config_file() -> Optional[Path]:
    """Look for a scorecard config in the working directory, then the user directory"""
    possible_paths = [Path(name) for name in CONFIG_FILENAMES]
    possible_paths += [USER_CONFIG_DIR / name for name in CONFIG_FILENAMES]
    for path in possible_paths:
        if path.exists():
            return path
    return None


def load_config(config_path: Optional[str] = None) -> ScorecardConfig:
    """Load configuration from YAML, falling back to built-in defaults"""
    path = Path(config_path) if config_path else find_config_file()
    if path is None:
        logger.debug("No scorecard config found, using defaults")
        return ScorecardConfig().validate()

    try:
        with open(path, 'r', encoding='utf-8') as f:
            data = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        raise ConfigurationError(f"Cannot read config {path}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigurationError(f"Config {path} must be a mapping")

    logger.debug("Loaded scorecard config from %s", path)
    return config_from_dict(data, source=path)


def config_from_dict(data: Dict[str, Any], source: Optional[Path] = None) -> ScorecardConfig:
    """Build a validated config from a parsed mapping; missing sections keep defaults"""
    weights = _metric_section(data, "weights", DEFAULT_WEIGHTS)
    maxima = _metric_section(data, "maxima", DEFAULT_MAXIMA)

    tenants = data.get("tenants", DEFAULT_TENANTS)
    if not isinstance(tenants, dict):
        raise ConfigurationError("tenants must map store keys to labels")

    try:
        persist_delay = float(data.get("persist_delay", DEFAULT_PERSIST_DELAY))
    except (TypeError, ValueError) as e:
        raise ConfigurationError("persist_delay must be a number") from e

    config = ScorecardConfig(
        weights=weights,
        maxima=maxima,
        tenants={str(k): str(v) for k, v in tenants.items()},
        default_tenant_label=str(data.get("default_tenant_label", DEFAULT_TENANT_LABEL)),
        persist_delay=persist_delay,
        source=source,
    )
    return config.validate()


def _metric_section(data: Dict[str, Any], section: str, default: MetricValues) -> MetricValues:
    values = data.get(section) or {}
    if not isinstance(values, dict):
        raise ConfigurationError(f"{section} must map metric names to numbers")

    known = {key.value for key in MetricKey}
    unknown = set(values) - known
    if unknown:
        raise ConfigurationError(f"Unknown metric(s) in {section}: {', '.join(sorted(unknown))}")

    return MetricValues.from_mapping(values, default)
