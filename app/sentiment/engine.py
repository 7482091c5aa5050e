"""
Motor de análise: compõe léxico, classificador estatístico, preditor externo
opcional e ensemble em uma única chamada analyze(request).

Fail-soft: texto vazio ou malformado gera resultado neutro de baixa confiança.
Só levanta exceção para erros de programação (request ausente ou de tipo errado).
"""
import asyncio
import logging
import re
from typing import List, Optional, Sequence, Tuple

from app.config import Settings, get_settings
from app.sentiment import lexicons
from app.sentiment.classifier import NaiveBayesClassifier, TrainingExample
from app.sentiment.ensemble import EnsembleCombiner, PredictionWithWeight
from app.sentiment.external import ExternalPredictor, create_external_predictor
from app.sentiment.lexicon_scorer import LexiconScorer, normalize_text
from app.sentiment.schemas import (
    AnalysisRequest,
    AnalysisResult,
    EmotionScores,
    SentimentBreakdown,
    SignalBreakdown,
)
from app.sentiment.types import ClassifierState, ClassifierStats, ModelPrediction

logger = logging.getLogger(__name__)

_SIGNAL_PUNCTUATION_RE = re.compile(r"[^\w\s]", re.UNICODE)


def _clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def derive_emotions(score: float, confidence: float) -> EmotionScores:
    """Sub-scores de emoção derivados de forma determinística do score final."""
    return EmotionScores(
        joy=confidence if score > 0.5 else 0.0,
        sadness=confidence * 0.7 if score < -0.5 else 0.0,
        anger=confidence * 0.8 if score < -0.5 else 0.0,
        fear=confidence * 0.5 if score < -0.3 else 0.0,
        surprise=confidence * 0.3 if abs(score) > 0.8 else 0.0,
        disgust=confidence * 0.6 if score < -0.6 else 0.0,
    )


def build_signals(text: str, language: str, sarcasm_score: int) -> SignalBreakdown:
    tokens = _SIGNAL_PUNCTUATION_RE.sub("", normalize_text(text)).split()
    negations = lexicons.for_language(lexicons.NEGATIONS, language)
    intensifiers = lexicons.for_language(lexicons.INTENSIFIERS, language)

    boost = 0.0
    for token in tokens:
        for level, words in intensifiers.items():
            if token in words:
                boost += lexicons.INTENSIFIER_WEIGHTS[level]
                break

    return SignalBreakdown(
        token_count=len(tokens),
        negation_flips=sum(1 for token in tokens if token in negations),
        intensifier_boost=boost,
        sarcasm_score=sarcasm_score,
    )


def truncate_tokens(text: str, max_tokens: Optional[int]) -> str:
    if not max_tokens:
        return text
    tokens = text.split()
    if len(tokens) <= max_tokens:
        return text
    return " ".join(tokens[:max_tokens])


class ScoringEngine:
    """Motor híbrido de análise de sentimentos."""

    def __init__(
        self,
        classifier: Optional[NaiveBayesClassifier] = None,
        lexicon: Optional[LexiconScorer] = None,
        external: Optional[ExternalPredictor] = None,
        combiner: Optional[EnsembleCombiner] = None,
        settings: Optional[Settings] = None,
    ):
        self.settings = settings or get_settings()
        self.classifier = classifier or NaiveBayesClassifier(smoothing=self.settings.ml.smoothing)
        self.lexicon = lexicon or LexiconScorer()
        self.external = external
        self.combiner = combiner or EnsembleCombiner()

    @property
    def version(self) -> str:
        return self.settings.engine_tag

    async def analyze(self, request: AnalysisRequest) -> AnalysisResult:
        """
        Analisa o sentimento de um texto.

        Args:
            request: Requisição de análise

        Returns:
            AnalysisResult completo

        Raises:
            TypeError: Se request for None ou não for AnalysisRequest
        """
        if request is None:
            raise TypeError("request não pode ser None")
        if not isinstance(request, AnalysisRequest):
            raise TypeError(f"request deve ser AnalysisRequest, recebido {type(request).__name__}")

        text = request.text
        if not isinstance(text, str) or not text.strip():
            logger.debug("Texto vazio ou malformado, retornando resultado neutro")
            return self._neutral_result(request.language)

        text = truncate_tokens(text, request.max_tokens)
        ensemble_language = request.language or self.settings.ensemble.default_language

        lexicon_prediction, classifier_prediction, external_prediction = await asyncio.gather(
            asyncio.to_thread(self.lexicon.predict, text),
            asyncio.to_thread(self.classifier.predict, text),
            self._external_prediction(text),
        )

        combined = self.combiner.combine(
            text,
            self._weighted_predictions(lexicon_prediction, classifier_prediction, external_prediction),
            language=ensemble_language,
            sarcasm_detection=request.sarcasm_detection_enabled,
            contextual_weighting=request.context_window_enabled,
        )

        score = _clamp(combined["score"], -1.0, 1.0)
        confidence = _clamp(combined["confidence"], 0.0, 1.0)
        language = request.language or lexicon_prediction["language_guess"]
        version = self.version if external_prediction is None else f"{self.version}-external"

        result = AnalysisResult(
            sentiment=SentimentBreakdown(
                label=combined["label"],
                score=score,
                magnitude=abs(score),
                confidence=confidence,
                emotions=derive_emotions(score, confidence),
            ),
            keywords=lexicon_prediction["keywords"],
            language=language,
            signals=build_signals(text, language, combined["features"]["sarcasm_indicators"]),
            version=version,
            weights=combined["weights"],
            adjustments=combined["adjustments"],
            explanation=combined["explanation"],
        )

        logger.debug(f"Análise concluída: {result.sentiment.label} ({result.sentiment.score:.3f})")
        return result

    def _weighted_predictions(
        self,
        lexicon_prediction: ModelPrediction,
        classifier_prediction: ModelPrediction,
        external_prediction: Optional[ModelPrediction],
    ) -> List[PredictionWithWeight]:
        config = self.settings.ensemble
        if external_prediction is None:
            return [
                (lexicon_prediction, config.lexicon_weight),
                (classifier_prediction, config.statistical_weight),
            ]
        return [
            (lexicon_prediction, config.lexicon_weight_with_external),
            (classifier_prediction, config.statistical_weight_with_external),
            (external_prediction, config.external_weight),
        ]

    async def _external_prediction(self, text: str) -> Optional[ModelPrediction]:
        if self.external is None:
            return None
        try:
            return await self.external.predict(text)
        except Exception as e:
            # Qualquer falha do preditor externo apenas o remove do ensemble
            logger.warning(f"Preditor externo indisponível, usando fallback local: {e}")
            return None

    def _neutral_result(self, language: Optional[str]) -> AnalysisResult:
        return AnalysisResult(
            sentiment=SentimentBreakdown(
                label="neutral",
                score=0.0,
                magnitude=0.0,
                confidence=0.0,
                emotions=derive_emotions(0.0, 0.0),
            ),
            keywords=[],
            language=language or self.settings.ensemble.default_language,
            signals=SignalBreakdown(token_count=0, negation_flips=0, intensifier_boost=0.0, sarcasm_score=0),
            version=self.version,
            explanation="Empty text - neutral result",
        )

    def train(self, examples: Sequence[TrainingExample]) -> int:
        return self.classifier.train(examples)

    def export_state(self) -> ClassifierState:
        return self.classifier.to_state()

    def load_state(self, state: ClassifierState) -> None:
        self.classifier.load_state(state)

    def get_classifier_stats(self) -> ClassifierStats:
        return self.classifier.get_stats()

    async def close(self) -> None:
        if self.external is not None:
            await self.external.close()


def create_engine(
    settings: Optional[Settings] = None,
    examples: Optional[Sequence[Tuple[str, str]]] = None,
) -> ScoringEngine:
    """Cria o motor configurado, opcionalmente já treinado."""
    settings = settings or get_settings()
    engine = ScoringEngine(
        classifier=NaiveBayesClassifier(smoothing=settings.ml.smoothing),
        external=create_external_predictor(settings),
        settings=settings,
    )
    if examples:
        engine.train(examples)
    return engine
