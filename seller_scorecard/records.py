"""Salesperson record model with immutable field updates"""

import uuid
from dataclasses import dataclass, replace
from typing import Any, Dict, Mapping

from .config import ScorecardConfig
from .metrics import MetricKey, MetricValues

COMPLAINT_RATINGS = ("", "Ótimo", "Bom", "Regular", "Ruim", "Péssimo")

DEFAULT_ACTUAL = "0"


@dataclass(frozen=True)
class BonusSignals:
    """Secondary inputs that may add flat bonuses to the score"""
    rating_score: Any = ""
    complaint_rating: str = ""


@dataclass(frozen=True)
class SalespersonRecord:
    """One salesperson's goals, results and bonus signals"""
    id: str
    name: str
    store_label: str
    goals: MetricValues
    actuals: MetricValues
    bonus_signals: BonusSignals
    notes: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "storeLabel": self.store_label,
            "goals": self.goals.to_dict(),
            "actuals": self.actuals.to_dict(),
            "bonusSignals": {
                "ratingScore": self.bonus_signals.rating_score,
                "complaintRating": self.bonus_signals.complaint_rating,
            },
            "notes": self.notes,
        }


def new_record_id() -> str:
    return uuid.uuid4().hex


def create_record(config: ScorecardConfig, store_label: str = "", name: str = "") -> SalespersonRecord:
    """Create a record with default goals (the maxima) and zeroed actuals"""
    return SalespersonRecord(
        id=new_record_id(),
        name=name,
        store_label=store_label,
        goals=config.maxima,
        actuals=MetricValues.uniform(DEFAULT_ACTUAL),
        bonus_signals=BonusSignals(),
    )


def from_dict(data: Mapping[str, Any], config: ScorecardConfig) -> SalespersonRecord:
    """Build a record from its JSON shape.

    Accepts both the current field names and the older dashboard export
    (nome, loja, metas, real, extras, obs). Missing metrics take their
    defaults; a missing id gets a new one.
    """
    goals = _first(data, "goals", "metas") or {}
    actuals = _first(data, "actuals", "real") or {}
    signals = data.get("bonusSignals")
    if signals is None:
        extras = data.get("extras")
        extras = extras if isinstance(extras, Mapping) else {}
        signals = {
            "ratingScore": extras.get("gmbNota", ""),
            "complaintRating": extras.get("reclameAqui", ""),
        }
    elif not isinstance(signals, Mapping):
        signals = {}

    record_id = data.get("id")
    return SalespersonRecord(
        id=str(record_id) if record_id else new_record_id(),
        name=str(_first(data, "name", "nome") or ""),
        store_label=str(_first(data, "storeLabel", "loja") or ""),
        goals=MetricValues.from_mapping(goals if isinstance(goals, Mapping) else {}, config.maxima),
        actuals=MetricValues.from_mapping(
            actuals if isinstance(actuals, Mapping) else {},
            MetricValues.uniform(DEFAULT_ACTUAL),
        ),
        bonus_signals=BonusSignals(
            rating_score=signals.get("ratingScore", ""),
            complaint_rating=str(signals.get("complaintRating") or ""),
        ),
        notes=str(_first(data, "notes", "obs") or ""),
    )


def with_field(record: SalespersonRecord, path: str, value: Any) -> SalespersonRecord:
    """Return a copy of record with the field at a dotted path replaced.

    Paths use the serialized names: name, storeLabel, notes, goals.<metric>,
    actuals.<metric>, bonusSignals.ratingScore, bonusSignals.complaintRating.
    """
    head, _, tail = path.partition(".")

    if not tail:
        if head == "name":
            return replace(record, name=str(value))
        if head == "storeLabel":
            return replace(record, store_label=str(value))
        if head == "notes":
            return replace(record, notes=str(value))
        if head == "id":
            raise KeyError("Record id cannot be changed")
        raise KeyError(f"Unknown field: {path}")

    if head in ("goals", "actuals"):
        try:
            key = MetricKey(tail)
        except ValueError:
            raise KeyError(f"Unknown metric: {tail}") from None
        if head == "goals":
            return replace(record, goals=record.goals.replace(key, value))
        return replace(record, actuals=record.actuals.replace(key, value))

    if head == "bonusSignals":
        if tail == "ratingScore":
            signals = replace(record.bonus_signals, rating_score=value)
        elif tail == "complaintRating":
            if value not in COMPLAINT_RATINGS:
                raise ValueError(
                    f"Complaint rating must be one of: {', '.join(r for r in COMPLAINT_RATINGS if r)}"
                )
            signals = replace(record.bonus_signals, complaint_rating=value)
        else:
            raise KeyError(f"Unknown field: {path}")
        return replace(record, bonus_signals=signals)

    raise KeyError(f"Unknown field: {path}")


def _first(data: Mapping[str, Any], *keys: str) -> Any:
    for key in keys:
        if key in data:
            return data[key]
    return None
