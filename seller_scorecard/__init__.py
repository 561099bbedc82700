"""Salesperson performance scorecard"""

from .config import ScorecardConfig, load_config
from .records import SalespersonRecord, create_record, with_field
from .scoring_system import ScoreResult, ScoringSystem

__version__ = "1.0.0"

__all__ = [
    "ScorecardConfig",
    "load_config",
    "SalespersonRecord",
    "create_record",
    "with_field",
    "ScoreResult",
    "ScoringSystem",
]
