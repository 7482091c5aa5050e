import logging
from unittest.mock import AsyncMock, MagicMock

import pytest

from app.core.exceptions import ExternalPredictorError
from app.sentiment.engine import (
    ScoringEngine,
    build_signals,
    create_engine,
    derive_emotions,
    truncate_tokens,
)
from app.sentiment.schemas import AnalysisRequest
from app.sentiment.training_data import BOOTSTRAP_EXAMPLES


class TestHelpers:

    def test_emotions_for_strong_positive(self):
        emotions = derive_emotions(0.9, 0.8)

        assert emotions.joy == pytest.approx(0.8)
        assert emotions.surprise == pytest.approx(0.24)
        assert emotions.sadness == 0.0
        assert emotions.disgust == 0.0

    def test_emotions_for_strong_negative(self):
        emotions = derive_emotions(-0.7, 1.0)

        assert emotions.joy == 0.0
        assert emotions.sadness == pytest.approx(0.7)
        assert emotions.anger == pytest.approx(0.8)
        assert emotions.fear == pytest.approx(0.5)
        assert emotions.disgust == pytest.approx(0.6)
        assert emotions.surprise == 0.0

    def test_emotions_for_neutral(self):
        assert derive_emotions(0.0, 0.9).model_dump() == {
            "joy": 0.0, "sadness": 0.0, "anger": 0.0, "fear": 0.0, "surprise": 0.0, "disgust": 0.0,
        }

    def test_signals(self):
        signals = build_signals("I don't really like it, it's not very good", "en", sarcasm_score=1)

        assert signals.token_count == 9
        assert signals.negation_flips == 2
        assert signals.intensifier_boost == pytest.approx(1.0)
        assert signals.sarcasm_score == 1

    def test_truncate_tokens(self):
        assert truncate_tokens("one two three four", 2) == "one two"
        assert truncate_tokens("one two", 5) == "one two"
        assert truncate_tokens("one two", None) == "one two"


class TestAcceptance:
    """Frases de referência com o conjunto de treino embutido."""

    @pytest.mark.asyncio
    async def test_positive_sentence(self, trained_engine):
        result = await trained_engine.analyze(AnalysisRequest(text="I love this product! It's amazing!"))

        assert result.sentiment.label == "positive"
        assert result.sentiment.confidence > 0.6
        assert result.version == "1.0.0-unified"
        assert result.language == "en"
        assert "love" in result.keywords

    @pytest.mark.asyncio
    async def test_negative_sentence(self, trained_engine):
        result = await trained_engine.analyze(AnalysisRequest(text="This is the worst purchase I've ever made"))
        assert result.sentiment.label == "negative"

    @pytest.mark.asyncio
    async def test_neutral_sentence(self, trained_engine):
        result = await trained_engine.analyze(AnalysisRequest(text="The package arrived today."))
        assert result.sentiment.label == "neutral"

    @pytest.mark.asyncio
    async def test_sarcasm_override(self, trained_engine):
        result = await trained_engine.analyze(
            AnalysisRequest(text="Oh great, another bug in the app. Just perfect!")
        )

        assert result.sentiment.label == "negative"
        assert result.sentiment.score <= 0
        assert "sarcasm_override" in result.adjustments
        assert result.signals.sarcasm_score >= 2

    @pytest.mark.asyncio
    async def test_sarcasm_detection_disabled(self, trained_engine):
        result = await trained_engine.analyze(
            AnalysisRequest(
                text="Oh great, another bug in the app. Just perfect!",
                sarcasm_detection_enabled=False,
            )
        )

        assert "sarcasm_override" not in result.adjustments
        assert result.signals.sarcasm_score == 0


class TestFailSoft:

    @pytest.mark.asyncio
    @pytest.mark.parametrize("text", ["", "   "])
    async def test_empty_text_is_neutral(self, trained_engine, text):
        result = await trained_engine.analyze(AnalysisRequest(text=text))

        assert result.sentiment.label == "neutral"
        assert result.sentiment.score == 0.0
        assert result.sentiment.confidence == 0.0
        assert result.explanation == "Empty text - neutral result"

    @pytest.mark.asyncio
    async def test_none_request_raises(self, trained_engine):
        with pytest.raises(TypeError):
            await trained_engine.analyze(None)

    @pytest.mark.asyncio
    async def test_wrong_request_type_raises(self, trained_engine):
        with pytest.raises(TypeError):
            await trained_engine.analyze({"text": "hello"})

    @pytest.mark.asyncio
    @pytest.mark.parametrize("text", [
        "!!!???...",
        "\U0001F600\U0001F622\U0001F644",
        "1234 5678",
        "a" * 2000,
        "Das ist sehr gut, aber nicht perfekt",
    ])
    async def test_results_are_bounded(self, trained_engine, text):
        result = await trained_engine.analyze(AnalysisRequest(text=text))

        assert -1.0 <= result.sentiment.score <= 1.0
        assert 0.0 <= result.sentiment.confidence <= 1.0
        assert result.sentiment.magnitude == pytest.approx(abs(result.sentiment.score))

    @pytest.mark.asyncio
    async def test_max_tokens_truncates(self, trained_engine):
        result = await trained_engine.analyze(
            AnalysisRequest(text="The package arrived today and it is terrible", max_tokens=4)
        )

        assert result.signals.token_count == 4
        assert result.sentiment.label == "neutral"

    @pytest.mark.asyncio
    async def test_language_defaults_to_request(self, trained_engine):
        result = await trained_engine.analyze(AnalysisRequest(text="I love it", language="ES"))
        assert result.language == "es"


class TestExternalPredictor:

    def _engine_with_external(self, test_settings, external):
        engine = create_engine(test_settings, BOOTSTRAP_EXAMPLES)
        engine.external = external
        return engine

    @pytest.mark.asyncio
    async def test_external_participates(self, test_settings):
        external = MagicMock()
        external.predict = AsyncMock(return_value={
            "label": "positive", "confidence": 0.9, "score": 0.72, "method": "transformer",
        })
        engine = self._engine_with_external(test_settings, external)

        result = await engine.analyze(AnalysisRequest(text="I love this product! It's amazing!"))

        assert result.version == "1.0.0-unified-external"
        assert set(result.weights) == {"lexicon", "naive_bayes", "transformer"}
        assert sum(result.weights.values()) == pytest.approx(1.0)

    @pytest.mark.asyncio
    async def test_external_failure_falls_back(self, test_settings):
        external = MagicMock()
        external.predict = AsyncMock(side_effect=ExternalPredictorError("inference_api", "boom"))
        engine = self._engine_with_external(test_settings, external)

        result = await engine.analyze(AnalysisRequest(text="I love this product! It's amazing!"))

        assert result.version == "1.0.0-unified"
        assert set(result.weights) == {"lexicon", "naive_bayes"}
        assert result.sentiment.label == "positive"

    @pytest.mark.asyncio
    async def test_close_closes_external(self, test_settings):
        external = MagicMock()
        external.close = AsyncMock()
        engine = self._engine_with_external(test_settings, external)

        await engine.close()

        external.close.assert_awaited_once()


    @pytest.mark.asyncio
    async def test_external_fallback_logs_warning_only(self, test_settings, caplog):
        external = MagicMock()

        async def failing_predict(text):
            raise ExternalPredictorError("inference_api", "boom")

        external.predict = failing_predict
        engine = self._engine_with_external(test_settings, external)

        with caplog.at_level(logging.DEBUG):
            await engine.analyze(AnalysisRequest(text="I love this product! It's amazing!"))

        assert not [record for record in caplog.records if record.levelno >= logging.ERROR]
        assert any(record.levelno == logging.WARNING for record in caplog.records)


class TestTraining:

    def test_exported_state_loads_into_fresh_engine(self, test_settings):
        engine = ScoringEngine(settings=test_settings)
        engine.train([("zorblax", "negative"), ("quimble", "positive"), ("plonk", "neutral")])

        state = engine.export_state()
        assert state["total_documents"] == 3

        fresh = ScoringEngine(settings=test_settings)
        fresh.load_state(state)
        assert fresh.get_classifier_stats() == engine.get_classifier_stats()

    @pytest.mark.asyncio
    async def test_tokenless_training_keeps_engine_fail_soft(self, test_settings):
        engine = ScoringEngine(settings=test_settings)
        engine.train([("!!!", "positive"), ("the", "negative")])

        result = await engine.analyze(AnalysisRequest(text="I love this product! It's amazing!"))

        assert result.sentiment.label == "positive"
        assert -1.0 <= result.sentiment.score <= 1.0
