import pytest

from seller_scorecard.config import ScorecardConfig
from seller_scorecard.records import create_record, with_field
from seller_scorecard.scoring_system import ScoringSystem
from seller_scorecard.store import RecordStore
from seller_scorecard.tenants import resolve_tenant


@pytest.fixture
def config():
    return ScorecardConfig().validate()


@pytest.fixture
def scoring(config):
    return ScoringSystem(config)


@pytest.fixture
def store(tmp_path):
    return RecordStore(tmp_path / "data")


@pytest.fixture
def tenant(config):
    return resolve_tenant("toyota-morumbi", config)


@pytest.fixture
def make_record(config):
    """Record that hits every default goal, with optional overrides"""
    def _make(goals=None, actuals=None, rating="", complaint="", name="Ana"):
        record = create_record(config, store_label="Toyota Morumbi", name=name)
        for key, value in record.goals.items():
            record = with_field(record, f"actuals.{key.value}", value)
        for key, value in (goals or {}).items():
            record = with_field(record, f"goals.{key}", value)
        for key, value in (actuals or {}).items():
            record = with_field(record, f"actuals.{key}", value)
        return with_field(
            with_field(record, "bonusSignals.ratingScore", rating),
            "bonusSignals.complaintRating",
            complaint,
        )

    return _make
