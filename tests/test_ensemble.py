import pytest

from app.core.exceptions import EnsembleInputError
from app.sentiment.ensemble import EnsembleCombiner, label_for_score, prediction_score
from app.sentiment.types import ModelPrediction

NEUTRAL_FILLER = "x" * 80
SARCASTIC_TEXT = "Oh great, another bug in the app. Just perfect!"


def lexicon(label="positive", confidence=0.99, score=0.5) -> ModelPrediction:
    return ModelPrediction(label=label, confidence=confidence, score=score, method="lexicon")


def statistical(label="positive", confidence=0.8) -> ModelPrediction:
    return ModelPrediction(label=label, confidence=confidence, score=None, method="naive_bayes")


def external(label="positive", confidence=0.9, score=0.72) -> ModelPrediction:
    return ModelPrediction(label=label, confidence=confidence, score=score, method="transformer")


@pytest.fixture
def combiner() -> EnsembleCombiner:
    return EnsembleCombiner()


class TestHelpers:

    def test_prediction_score_prefers_native_score(self):
        assert prediction_score(lexicon(score=0.25)) == 0.25

    @pytest.mark.parametrize("label, expected", [
        ("positive", 0.7),
        ("negative", -0.7),
        ("neutral", 0.0),
    ])
    def test_prediction_score_maps_label(self, label, expected):
        assert prediction_score(statistical(label=label)) == expected

    def test_label_for_score_is_strict(self):
        assert label_for_score(0.15, 0.15) == "neutral"
        assert label_for_score(0.16, 0.15) == "positive"
        assert label_for_score(0.16, 0.18) == "neutral"
        assert label_for_score(-0.2, 0.18) == "negative"


class TestCombination:
    """Testes da combinação ponderada."""

    def test_base_weights_without_context(self, combiner):
        result = combiner.combine(NEUTRAL_FILLER, [(lexicon(), 0.5), (statistical(), 0.5)])

        assert result["weights"] == {
            "lexicon": pytest.approx(0.5),
            "naive_bayes": pytest.approx(0.5),
        }
        assert result["score"] == pytest.approx(0.5 * 0.5 + 0.5 * 0.7)
        assert result["confidence"] == pytest.approx(0.5 * 0.99 + 0.5 * 0.8)
        assert result["label"] == "positive"
        assert result["adjustments"] == []

    def test_weights_are_normalized(self, combiner):
        result = combiner.combine(NEUTRAL_FILLER, [(lexicon(), 2.0), (statistical(), 2.0)])
        assert sum(result["weights"].values()) == pytest.approx(1.0)

    def test_short_text_favors_lexicon(self, combiner):
        result = combiner.combine("short", [(lexicon(), 0.5), (statistical(), 0.5)])

        assert result["weights"]["lexicon"] == pytest.approx(0.7)
        assert result["weights"]["naive_bayes"] == pytest.approx(0.3)
        assert result["adjustments"] == ["short_text_favors_lexicon"]
        assert "lexicon: 0.70, naive_bayes: 0.30" in result["explanation"]

    def test_long_complex_text_favors_statistical(self, combiner):
        text = " ".join(["words"] * 45)
        result = combiner.combine(text, [(lexicon(), 0.5), (statistical(), 0.5)])

        assert result["weights"]["lexicon"] == pytest.approx(0.3)
        assert result["weights"]["naive_bayes"] == pytest.approx(0.7)
        assert result["adjustments"] == ["long_text_favors_statistical"]

    def test_emotional_intensity_favors_most_confident(self, combiner):
        result = combiner.combine(
            "love amazing fantastic",
            [(lexicon(confidence=0.6), 0.5), (statistical(confidence=0.9), 0.5)],
        )

        assert "emotional_intensity_favors_naive_bayes" in result["adjustments"]
        assert result["weights"]["lexicon"] == pytest.approx(0.55)
        assert result["weights"]["naive_bayes"] == pytest.approx(0.45)
        assert "High emotional intensity detected" in result["explanation"]

    def test_emotional_intensity_tie_favors_first(self, combiner):
        result = combiner.combine(
            "love amazing fantastic",
            [(lexicon(confidence=0.8), 0.5), (statistical(confidence=0.8), 0.5)],
        )
        assert "emotional_intensity_favors_lexicon" in result["adjustments"]

    def test_emoji_favors_lexicon(self, combiner):
        result = combiner.combine("nice \U0001F600", [(lexicon(), 0.5), (statistical(), 0.5)])

        assert result["adjustments"] == ["short_text_favors_lexicon", "emoji_favors_lexicon"]
        assert result["weights"]["lexicon"] == pytest.approx(0.8)
        assert "Emoji analysis applied" in result["explanation"]

    def test_contextual_weighting_disabled(self, combiner):
        result = combiner.combine(
            "short", [(lexicon(), 0.5), (statistical(), 0.5)], contextual_weighting=False
        )

        assert result["weights"]["lexicon"] == pytest.approx(0.5)
        assert result["adjustments"] == []

    def test_weights_are_clamped(self, combiner):
        result = combiner.combine(
            SARCASTIC_TEXT, [(lexicon(), 0.5), (statistical(), 0.5)], sarcasm_detection=False
        )
        # sem sarcasmo: apenas texto curto
        assert result["weights"]["lexicon"] == pytest.approx(0.7)

        result = combiner.combine(SARCASTIC_TEXT, [(lexicon(), 0.5), (statistical(), 0.5)])
        assert result["weights"]["lexicon"] == pytest.approx(0.9)
        assert result["weights"]["naive_bayes"] == pytest.approx(0.1)

    def test_three_predictors(self, combiner):
        result = combiner.combine(
            NEUTRAL_FILLER,
            [(lexicon(), 0.25), (statistical(), 0.25), (external(), 0.5)],
        )

        assert result["weights"] == {
            "lexicon": pytest.approx(0.25),
            "naive_bayes": pytest.approx(0.25),
            "transformer": pytest.approx(0.5),
        }
        assert result["score"] == pytest.approx(0.25 * 0.5 + 0.25 * 0.7 + 0.5 * 0.72)

    def test_three_predictors_short_text(self, combiner):
        result = combiner.combine(
            "short",
            [(lexicon(), 0.25), (statistical(), 0.25), (external(), 0.5)],
        )

        assert sum(result["weights"].values()) == pytest.approx(1.0)
        assert result["weights"]["lexicon"] == pytest.approx(0.45 / 1.05)
        assert result["weights"]["naive_bayes"] == pytest.approx(0.1 / 1.05)

    def test_bounds(self, combiner):
        result = combiner.combine(
            NEUTRAL_FILLER,
            [(lexicon(label="negative", score=-1.0, confidence=1.0), 1.0), (statistical("negative", 1.0), 1.0)],
        )

        assert -1.0 <= result["score"] <= 1.0
        assert 0.0 <= result["confidence"] <= 1.0
        assert result["label"] == "negative"


class TestSarcasmOverride:

    def test_positive_lean_is_forced_negative(self, combiner):
        result = combiner.combine(SARCASTIC_TEXT, [(lexicon(), 0.5), (statistical(), 0.5)])

        assert result["label"] == "negative"
        assert result["score"] == pytest.approx(-(0.9 * 0.5 + 0.1 * 0.7))
        assert result["sarcasm_override"] is True
        assert result["adjustments"] == [
            "sarcasm_favors_lexicon",
            "short_text_favors_lexicon",
            "sarcasm_override",
        ]
        assert "Sarcasm override forced negative label" in result["explanation"]

    def test_confidence_is_not_dampened(self, combiner):
        result = combiner.combine(SARCASTIC_TEXT, [(lexicon(), 0.5), (statistical(), 0.5)])
        assert result["confidence"] == pytest.approx(0.9 * 0.99 + 0.1 * 0.8)

    def test_no_override_without_positive_lean(self, combiner):
        result = combiner.combine(
            SARCASTIC_TEXT,
            [(lexicon("neutral", 0.6, 0.0), 0.5), (statistical("neutral", 0.5), 0.5)],
        )

        assert result["label"] == "neutral"
        assert result["sarcasm_override"] is False

    def test_disabled_sarcasm_keeps_positive(self, combiner):
        result = combiner.combine(
            SARCASTIC_TEXT, [(lexicon(), 0.5), (statistical(), 0.5)], sarcasm_detection=False
        )

        assert result["label"] == "positive"
        assert result["sarcasm_override"] is False


class TestSinglePredictor:
    """Um único preditor ainda percorre todo o pipeline."""

    @pytest.mark.parametrize("prediction", [lexicon(), statistical()])
    def test_short_text_keeps_full_weight(self, combiner, prediction):
        result = combiner.combine("short", [(prediction, 0.4)])

        assert result["weights"] == {prediction["method"]: pytest.approx(1.0)}
        assert result["label"] == "positive"
        assert result["adjustments"] == []
        assert result["score"] == pytest.approx(prediction_score(prediction))

    def test_sarcasm_override_still_fires(self, combiner):
        result = combiner.combine(SARCASTIC_TEXT, [(lexicon(), 1.0)])

        assert result["weights"] == {"lexicon": pytest.approx(1.0)}
        assert result["label"] == "negative"
        assert result["score"] == pytest.approx(-0.5)
        assert result["confidence"] == pytest.approx(0.99)
        assert result["sarcasm_override"] is True
        assert result["adjustments"] == ["sarcasm_override"]


class TestValidation:

    def test_empty_predictions(self, combiner):
        with pytest.raises(EnsembleInputError):
            combiner.combine("text", [])

    def test_negative_weight(self, combiner):
        with pytest.raises(EnsembleInputError):
            combiner.combine("text", [(lexicon(), -0.1), (statistical(), 0.5)])

    def test_zero_weight_sum(self, combiner):
        with pytest.raises(EnsembleInputError):
            combiner.combine("text", [(lexicon(), 0.0), (statistical(), 0.0)])

    def test_unknown_label(self, combiner):
        prediction = lexicon()
        prediction["label"] = "mixed"
        with pytest.raises(EnsembleInputError):
            combiner.combine("text", [(prediction, 1.0)])
