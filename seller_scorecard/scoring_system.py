"""Scoring system module for calculating salesperson performance scores"""

import unicodedata
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Tuple

from .config import ScorecardConfig
from .metrics import (
    ACTUAL_BOUNDS,
    METRIC_LABELS,
    MetricKey,
    MetricValues,
    clamp,
    percent,
    to_number,
)
from .records import BonusSignals, SalespersonRecord

# Attainment credit is capped at 120% per metric
MAX_ATTAINMENT = 1.2
MAX_SCORE = 1.2

# Missing this metric alone never forces a failing grade
EXEMPT_FROM_CRITICAL_ZERO = MetricKey.FEATURED

RATING_BONUS = 0.05
RATING_BONUS_THRESHOLD = 4.6
COMPLAINT_BONUS = 0.05
COMPLAINT_BONUS_RATINGS = ("ótimo", "otimo")

FAILING_GRADE = "F"


@dataclass(frozen=True)
class ScoreResult:
    """Computed score for a single record"""
    attainment: MetricValues
    base_score: float
    rating_bonus: float
    complaint_bonus: float
    final_score: float
    grade: str
    has_zero_metric: bool
    zeroed_metrics: Tuple[MetricKey, ...] = ()
    notes: Tuple[str, ...] = field(default_factory=tuple)

    @property
    def bonus(self) -> float:
        return self.rating_bonus + self.complaint_bonus

    def to_dict(self) -> Dict[str, Any]:
        return {
            "attainment": self.attainment.to_dict(),
            "base_score": self.base_score,
            "bonus": self.bonus,
            "rating_bonus": self.rating_bonus,
            "complaint_bonus": self.complaint_bonus,
            "final_score": self.final_score,
            "final_percent": percent(self.final_score),
            "grade": self.grade,
            "has_zero_metric": self.has_zero_metric,
            "zeroed_metrics": [key.value for key in self.zeroed_metrics],
            "notes": list(self.notes),
        }


class ScoringSystem:
    """Calculates weighted goal-attainment scores and letter grades"""

    def __init__(self, config: Optional[ScorecardConfig] = None):
        self.config = config or ScorecardConfig()
        self._normalized_weights: Optional[MetricValues] = None

    @property
    def normalized_weights(self) -> MetricValues:
        """Nominal weights rescaled to sum to 1 (computed once)"""
        if self._normalized_weights is None:
            weights = self.config.weights
            total = sum(value for _, value in weights.items())
            self._normalized_weights = weights.map(lambda key, value: value / total)
        return self._normalized_weights

    def calculate(self, record: SalespersonRecord) -> ScoreResult:
        """Calculate attainment, bonuses, final score and grade for a record"""
        goals = self.clamp_goals(record.goals)
        actuals = self.clamp_actuals(record.actuals)

        attainment = self.attainment(goals, actuals)
        zeroed = self.zeroed_metrics(goals, actuals)
        has_zero_metric = any(key != EXEMPT_FROM_CRITICAL_ZERO for key in zeroed)

        # Weighted base score
        weights = self.normalized_weights
        base_score = 0.0
        for key, ratio in attainment.items():
            base_score += ratio * weights.get(key)

        rating_bonus, complaint_bonus = self.bonus(record.bonus_signals)
        final_score = clamp(base_score + rating_bonus + complaint_bonus, 0.0, MAX_SCORE)

        grade = self.score_to_grade(final_score, has_zero_metric)
        notes = self._generate_notes(zeroed, has_zero_metric, rating_bonus, complaint_bonus)

        return ScoreResult(
            attainment=attainment,
            base_score=base_score,
            rating_bonus=rating_bonus,
            complaint_bonus=complaint_bonus,
            final_score=final_score,
            grade=grade,
            has_zero_metric=has_zero_metric,
            zeroed_metrics=zeroed,
            notes=tuple(notes),
        )

    def rank(self, records: Iterable[SalespersonRecord]) -> List[Tuple[SalespersonRecord, ScoreResult]]:
        """Score records and order them by final score, best first"""
        scored = [(record, self.calculate(record)) for record in records]
        # sorted() is stable, so ties keep input order
        return sorted(scored, key=lambda pair: pair[1].final_score, reverse=True)

    def clamp_goals(self, goals: MetricValues) -> MetricValues:
        maxima = self.config.maxima
        return goals.map(lambda key, value: clamp(to_number(value), 0.0, maxima.get(key)))

    def clamp_actuals(self, actuals: MetricValues) -> MetricValues:
        return actuals.map(lambda key, value: clamp(to_number(value), *ACTUAL_BOUNDS[key]))

    def attainment(self, goals: MetricValues, actuals: MetricValues) -> MetricValues:
        """Per-metric actual/goal ratio from clamped values; 0 when the goal is 0"""
        def ratio(key: MetricKey, goal: float) -> float:
            if goal <= 0:
                return 0.0
            return clamp(actuals.get(key) / goal, 0.0, MAX_ATTAINMENT)

        return goals.map(ratio)

    def zeroed_metrics(self, goals: MetricValues, actuals: MetricValues) -> Tuple[MetricKey, ...]:
        """Metrics with a goal set but nothing achieved (clamped values)"""
        return tuple(
            key for key, goal in goals.items()
            if goal > 0 and actuals.get(key) == 0
        )

    def has_zero_metric(self, goals: MetricValues, actuals: MetricValues) -> bool:
        zeroed = self.zeroed_metrics(self.clamp_goals(goals), self.clamp_actuals(actuals))
        return any(key != EXEMPT_FROM_CRITICAL_ZERO for key in zeroed)

    def bonus(self, signals: BonusSignals) -> Tuple[float, float]:
        """Return (rating bonus, complaint bonus)"""
        rating_bonus = RATING_BONUS if to_number(signals.rating_score) >= RATING_BONUS_THRESHOLD else 0.0

        complaint = unicodedata.normalize("NFC", signals.complaint_rating or "").lower()
        complaint_bonus = COMPLAINT_BONUS if complaint in COMPLAINT_BONUS_RATINGS else 0.0

        return rating_bonus, complaint_bonus

    def score_to_grade(self, score: float, has_zero_metric: bool = False) -> str:
        """Convert final score to letter grade"""
        if has_zero_metric:
            return FAILING_GRADE

        # Strip float noise so 0.85 lands on 85.0, not 84.99999999999999
        pct = round(score * 100, 9)
        if pct > 95:
            return "A"
        elif pct >= 85:
            return "B"
        elif pct >= 75:
            return "C"
        elif pct >= 65:
            return "D"
        else:
            return FAILING_GRADE

    def _generate_notes(self, zeroed: Tuple[MetricKey, ...], has_zero_metric: bool,
                        rating_bonus: float, complaint_bonus: float) -> List[str]:
        """Generate notes about the score"""
        notes = []

        if has_zero_metric:
            critical = [METRIC_LABELS[key] for key in zeroed if key != EXEMPT_FROM_CRITICAL_ZERO]
            notes.append(f"Critical metric zeroed: {', '.join(critical)}. Grade forced to {FAILING_GRADE}.")

        if EXEMPT_FROM_CRITICAL_ZERO in zeroed:
            notes.append(f"{METRIC_LABELS[EXEMPT_FROM_CRITICAL_ZERO]} zeroed (exempt, no grade penalty).")

        if rating_bonus:
            notes.append(f"Rating bonus applied: +{percent(rating_bonus)}")
        if complaint_bonus:
            notes.append(f"Complaint-site bonus applied: +{percent(complaint_bonus)}")

        return notes
