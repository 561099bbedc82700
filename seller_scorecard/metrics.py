"""Metric keys, per-metric value records and numeric helpers"""

import math
from dataclasses import dataclass, fields, replace
from enum import Enum
from typing import Any, Dict, Iterator, Mapping, Tuple


class MetricKey(str, Enum):
    """Scored salesperson metrics (values are the serialized names)"""
    SALES = "sales"
    FEATURED = "featured"
    DISPATCHER = "dispatcher"
    FINANCE_RATE = "financeRate"
    FINANCE_PROFITABILITY = "financeProfitability"
    TRADE_IN = "tradeIn"


# MetricKey -> MetricValues attribute
_ATTRS: Dict[MetricKey, str] = {
    MetricKey.SALES: "sales",
    MetricKey.FEATURED: "featured",
    MetricKey.DISPATCHER: "dispatcher",
    MetricKey.FINANCE_RATE: "finance_rate",
    MetricKey.FINANCE_PROFITABILITY: "finance_profitability",
    MetricKey.TRADE_IN: "trade_in",
}

# Keys used by the spreadsheet-era dashboard exports
LEGACY_ALIASES: Dict[str, MetricKey] = {
    "vendas": MetricKey.SALES,
    "destaque": MetricKey.FEATURED,
    "despachante": MetricKey.DISPATCHER,
    "fi": MetricKey.FINANCE_RATE,
    "fiRent": MetricKey.FINANCE_PROFITABILITY,
}

METRIC_LABELS: Dict[MetricKey, str] = {
    MetricKey.SALES: "Meta de venda",
    MetricKey.FEATURED: "Veículo destaque",
    MetricKey.DISPATCHER: "Despachante",
    MetricKey.FINANCE_RATE: "F&I",
    MetricKey.FINANCE_PROFITABILITY: "Rentabilidade média F&I (R$)",
    MetricKey.TRADE_IN: "Trade-in",
}

# Bounds applied to actual ("real") values
ACTUAL_BOUNDS: Dict[MetricKey, Tuple[float, float]] = {
    MetricKey.SALES: (0.0, 9999.0),
    MetricKey.FEATURED: (0.0, 9999.0),
    MetricKey.DISPATCHER: (0.0, 1.0),
    MetricKey.FINANCE_RATE: (0.0, 1.0),
    MetricKey.FINANCE_PROFITABILITY: (0.0, 999999.0),
    MetricKey.TRADE_IN: (0.0, 1.0),
}


@dataclass(frozen=True)
class MetricValues:
    """One value per MetricKey"""
    sales: Any
    featured: Any
    dispatcher: Any
    finance_rate: Any
    finance_profitability: Any
    trade_in: Any

    def get(self, key: MetricKey) -> Any:
        return getattr(self, _ATTRS[MetricKey(key)])

    def replace(self, key: MetricKey, value: Any) -> "MetricValues":
        """Return a copy with a single metric changed"""
        return replace(self, **{_ATTRS[MetricKey(key)]: value})

    def items(self) -> Iterator[Tuple[MetricKey, Any]]:
        for key in MetricKey:
            yield key, self.get(key)

    def map(self, func) -> "MetricValues":
        """Apply func(key, value) to every metric"""
        return MetricValues(**{_ATTRS[key]: func(key, value) for key, value in self.items()})

    def to_dict(self) -> Dict[str, Any]:
        return {key.value: value for key, value in self.items()}

    @classmethod
    def uniform(cls, value: Any) -> "MetricValues":
        return cls(**{f.name: value for f in fields(cls)})

    @classmethod
    def from_mapping(cls, mapping: Mapping[str, Any], default: "MetricValues") -> "MetricValues":
        """Build from a key -> value mapping, filling missing metrics from default"""
        values = {}
        for key in MetricKey:
            if key.value in mapping:
                values[_ATTRS[key]] = mapping[key.value]
        for alias, key in LEGACY_ALIASES.items():
            if alias in mapping and _ATTRS[key] not in values:
                values[_ATTRS[key]] = mapping[alias]
        for key in MetricKey:
            values.setdefault(_ATTRS[key], default.get(key))
        return cls(**values)


def clamp(n: float, lo: float, hi: float) -> float:
    return max(lo, min(hi, n))


def to_number(value: Any) -> float:
    """Coerce free-form input to a finite float, falling back to 0.0"""
    if isinstance(value, str):
        text = value.replace(",", ".", 1).strip()
        if not text or "_" in text:
            return 0.0
        try:
            number = float(text)
        except ValueError:
            return 0.0
    elif value is None:
        return 0.0
    else:
        try:
            number = float(value)
        except (TypeError, ValueError):
            return 0.0
    if not math.isfinite(number):
        return 0.0
    return number


def percent(ratio: float) -> str:
    return f"{ratio * 100:.1f}%"


def attainment_tone(ratio: float) -> str:
    """Display tone for an attainment ratio"""
    if ratio >= 1:
        return "good"
    if ratio >= 0.8:
        return "accent"
    return "neutral"
