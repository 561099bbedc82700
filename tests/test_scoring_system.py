import pytest

from seller_scorecard.config import config_from_dict
from seller_scorecard.metrics import MetricKey, MetricValues
from seller_scorecard.records import BonusSignals
from seller_scorecard.scoring_system import ScoringSystem


class TestNormalizedWeights:
    @pytest.mark.parametrize(
        "weights",
        [
            {},
            {"sales": 1, "featured": 1, "dispatcher": 1, "financeRate": 1, "financeProfitability": 1, "tradeIn": 1},
            {"sales": 7.3, "featured": 0.01, "dispatcher": 0, "financeRate": 2, "financeProfitability": 0.4, "tradeIn": 11},
            {"sales": 0, "featured": 0, "dispatcher": 0, "financeRate": 0, "financeProfitability": 0, "tradeIn": 0.2},
        ],
    )
    def test_sum_to_one(self, weights):
        scoring = ScoringSystem(config_from_dict({"weights": weights}))
        total = sum(value for _, value in scoring.normalized_weights.items())
        assert total == pytest.approx(1.0, abs=1e-9)

    def test_default_weights_are_rescaled(self, scoring):
        weights = scoring.normalized_weights
        assert weights.get(MetricKey.SALES) == pytest.approx(0.3 / 1.05)
        assert weights.get(MetricKey.TRADE_IN) == pytest.approx(0.15 / 1.05)

    def test_computed_once(self, scoring):
        assert scoring.normalized_weights is scoring.normalized_weights


class TestClamping:
    def test_goals_bounded_by_maxima(self, scoring):
        goals = MetricValues(
            sales="50", featured=-3, dispatcher="0,9", finance_rate="abc",
            finance_profitability=4000, trade_in="0.1",
        )
        clamped = scoring.clamp_goals(goals)
        assert clamped == MetricValues(
            sales=8.0, featured=0.0, dispatcher=0.7, finance_rate=0.0,
            finance_profitability=3250.0, trade_in=0.1,
        )

    def test_actuals_bounded_per_metric_kind(self, scoring):
        actuals = MetricValues(
            sales=20000, featured="12", dispatcher="1.5", finance_rate=-1,
            finance_profitability="2000000", trade_in="0,3",
        )
        clamped = scoring.clamp_actuals(actuals)
        assert clamped == MetricValues(
            sales=9999.0, featured=12.0, dispatcher=1.0, finance_rate=0.0,
            finance_profitability=999999.0, trade_in=0.3,
        )


class TestAttainment:
    @pytest.mark.parametrize(
        "goal, actual, expected",
        [
            (8, 8, 1.0),
            (8, 4, 0.5),
            (8, 20, 1.2),
            (8, 0, 0.0),
            (0, 5, 0.0),
            ("", 5, 0.0),
        ],
    )
    def test_sales_ratio(self, scoring, goal, actual, expected):
        goals = scoring.clamp_goals(MetricValues.uniform(0).replace(MetricKey.SALES, goal))
        actuals = scoring.clamp_actuals(MetricValues.uniform(0).replace(MetricKey.SALES, actual))
        ratio = scoring.attainment(goals, actuals).get(MetricKey.SALES)
        assert ratio == pytest.approx(expected)

    def test_always_within_bounds(self, scoring):
        for goal in (0, 0.1, 1, 8, 100):
            for actual in (0, 0.05, 1, 9, 99999):
                goals = scoring.clamp_goals(MetricValues.uniform(goal))
                actuals = scoring.clamp_actuals(MetricValues.uniform(actual))
                for key, ratio in scoring.attainment(goals, actuals).items():
                    assert 0.0 <= ratio <= 1.2
                    if goals.get(key) == 0:
                        assert ratio == 0.0


class TestCriticalZero:
    def test_zeroed_finance_rate_fails_record(self, scoring, make_record):
        record = make_record(actuals={"financeRate": "0"}, rating="5", complaint="Ótimo")
        result = scoring.calculate(record)
        assert result.has_zero_metric is True
        assert result.grade == "F"
        assert result.zeroed_metrics == (MetricKey.FINANCE_RATE,)
        # The numeric score is still computed
        assert result.final_score > 0.9

    def test_zeroed_featured_is_exempt(self, scoring, make_record):
        result = scoring.calculate(make_record(actuals={"featured": "0"}))
        assert result.has_zero_metric is False
        assert result.zeroed_metrics == (MetricKey.FEATURED,)
        assert result.grade != "F"

    def test_zero_goal_is_not_zeroed(self, scoring, make_record):
        result = scoring.calculate(make_record(goals={"tradeIn": "0"}, actuals={"tradeIn": "0"}))
        assert result.has_zero_metric is False
        assert result.attainment.get(MetricKey.TRADE_IN) == 0.0

    def test_has_zero_metric_clamps_raw_values(self, scoring):
        goals = MetricValues.uniform("1")
        actuals = MetricValues.uniform("1").replace(MetricKey.DISPATCHER, "-4")
        assert scoring.has_zero_metric(goals, actuals) is True


class TestBonus:
    @pytest.mark.parametrize(
        "rating, expected",
        [("4.6", 0.05), ("4,6", 0.05), (4.6, 0.05), ("5", 0.05), ("4.59", 0.0), ("", 0.0), ("abc", 0.0)],
    )
    def test_rating_bonus(self, scoring, rating, expected):
        rating_bonus, _ = scoring.bonus(BonusSignals(rating_score=rating))
        assert rating_bonus == expected

    @pytest.mark.parametrize(
        "complaint, expected",
        [("Ótimo", 0.05), ("otimo", 0.05), ("ÓTIMO", 0.05), ("O\u0301timo", 0.05), ("Bom", 0.0), ("", 0.0)],
    )
    def test_complaint_bonus(self, scoring, complaint, expected):
        _, complaint_bonus = scoring.bonus(BonusSignals(complaint_rating=complaint))
        assert complaint_bonus == expected

    def test_bonuses_add_up(self, scoring, make_record):
        result = scoring.calculate(make_record(rating="4.8", complaint="Ótimo"))
        assert result.bonus == pytest.approx(0.10)


class TestGrades:
    @pytest.mark.parametrize(
        "score, grade",
        [
            (1.2, "A"),
            (0.951, "A"),
            (0.95, "B"),
            (0.85, "B"),
            (0.849, "C"),
            (0.75, "C"),
            (0.749, "D"),
            (0.65, "D"),
            (0.649, "F"),
            (0.0, "F"),
        ],
    )
    def test_thresholds(self, scoring, score, grade):
        assert scoring.score_to_grade(score) == grade

    def test_critical_zero_overrides_score(self, scoring):
        assert scoring.score_to_grade(1.2, has_zero_metric=True) == "F"


class TestCalculate:
    def test_full_attainment_with_bonuses(self, scoring, make_record):
        result = scoring.calculate(make_record(rating="4.8", complaint="Ótimo"))
        assert result.base_score == pytest.approx(1.0)
        assert result.final_score == pytest.approx(1.10)
        assert result.grade == "A"

    def test_dealership_example_with_exempt_featured_metric(self, scoring, make_record):
        record = make_record(
            goals={"sales": 8, "featured": 2, "dispatcher": ".7", "financeRate": ".35",
                   "financeProfitability": 3250, "tradeIn": ".25"},
            actuals={"sales": 8, "featured": 0, "dispatcher": ".7", "financeRate": ".35",
                     "financeProfitability": 3250, "tradeIn": ".25"},
            rating="4.8",
            complaint="Ótimo",
        )
        result = scoring.calculate(record)

        for key, ratio in result.attainment.items():
            assert ratio == pytest.approx(0.0 if key == MetricKey.FEATURED else 1.0)
        assert result.has_zero_metric is False
        assert result.base_score == pytest.approx(0.9 / 1.05)
        assert result.final_score == pytest.approx(0.9 / 1.05 + 0.10)
        assert result.grade == "A"

    def test_final_score_capped(self, scoring, make_record):
        record = make_record(actuals={key.value: "9999" for key in MetricKey}, rating="5", complaint="Ótimo")
        result = scoring.calculate(record)
        assert result.base_score == pytest.approx(1.2)
        assert result.final_score == pytest.approx(1.2)

    def test_recompute_is_identical(self, scoring, make_record):
        record = make_record(actuals={"sales": "5", "tradeIn": "0,2"}, rating="4.7")
        assert scoring.calculate(record) == scoring.calculate(record)

    def test_notes_mention_zeroed_metrics_and_bonuses(self, scoring, make_record):
        result = scoring.calculate(make_record(actuals={"featured": "0", "tradeIn": "0"}, rating="4.9"))
        assert any("Trade-in" in note and "forced to F" in note for note in result.notes)
        assert any("exempt" in note for note in result.notes)
        assert any("Rating bonus" in note for note in result.notes)

    def test_to_dict(self, scoring, make_record):
        data = scoring.calculate(make_record()).to_dict()
        assert data["grade"] == "A"
        assert data["final_percent"] == "100.0%"
        assert set(data["attainment"]) == {key.value for key in MetricKey}


def test_rank_orders_by_final_score(scoring, make_record):
    weak = make_record(name="weak", actuals={"sales": "2"})
    strong = make_record(name="strong", rating="5")
    middle = make_record(name="middle")
    ranked = scoring.rank([weak, middle, strong])
    assert [record.name for record, _ in ranked] == ["strong", "middle", "weak"]
