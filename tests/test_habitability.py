import pytest

from src.planetary_climate import AtmosphericComposition, HabitabilityAnalyzer, TerraformingPhase


@pytest.fixture
def analyzer():
    return HabitabilityAnalyzer()


def test_present_day_mars(analyzer, config):
    mars = AtmosphericComposition(config.initial_atmosphere)
    score = analyzer.score(mars, 210.0)
    assert score == pytest.approx(19.03, abs=0.05)
    assert analyzer.phase(mars, 210.0) is TerraformingPhase.FOUNDATION

    factors = analyzer.breakdown(mars, 210.0)
    assert factors["toxicity"] > 99.0
    assert factors["oxygen"] < 1.0
    assessment = analyzer.assessment(mars, 210.0)
    assert assessment.startswith("Hostile")
    assert "insufficient oxygen" in assessment
    assert "atmospheric toxicity" not in assessment


def test_earth_like_atmosphere(analyzer):
    earth = AtmosphericComposition({"N2": 79.3, "O2": 21.0, "Ar": 1.0, "CO2": 0.04})
    assert analyzer.score(earth, 293.0) == pytest.approx(100.0, abs=0.01)
    assert analyzer.phase(earth, 293.0) is TerraformingPhase.COMPLETE
    assert analyzer.assessment(earth, 293.0).startswith("Excellent")


def test_missing_composition(analyzer):
    assert analyzer.score(None, 288.0) == 0.0
    assert analyzer.breakdown(None, 288.0) == {
        "oxygen": 0.0, "pressure": 0.0, "temperature": 0.0, "toxicity": 0.0,
    }


def test_factor_scores(analyzer):
    assert analyzer.oxygen_score(8.0) == pytest.approx(25.0)
    assert analyzer.oxygen_score(21.0) == pytest.approx(100.0)
    assert analyzer.oxygen_score(200.0) == pytest.approx(50.0)
    assert analyzer.temperature_score(290.0) == 100.0
    assert analyzer.temperature_score(273.15) == pytest.approx(70.0)
    assert analyzer.pressure_score(101.325) == pytest.approx(100.0)
    assert analyzer.pressure_score(0.0) == 0.0

    toxicity = [analyzer.toxicity_score(p) for p in (0.0, 0.5, 2.0, 4.0, 6.0, 7.0, 10.0, 20.0)]
    assert toxicity == sorted(toxicity, reverse=True)
    assert toxicity[0] == 100.0
    assert toxicity[-1] == 0.0


@pytest.mark.parametrize("score, phase", [
    (0.0, TerraformingPhase.EARLY_STAGE),
    (9.9, TerraformingPhase.EARLY_STAGE),
    (10.0, TerraformingPhase.FOUNDATION),
    (49.0, TerraformingPhase.DEVELOPMENT),
    (74.9, TerraformingPhase.ADVANCED),
    (80.0, TerraformingPhase.FINAL),
    (90.0, TerraformingPhase.COMPLETE),
])
def test_phase_thresholds(score, phase):
    assert TerraformingPhase.from_score(score) is phase
