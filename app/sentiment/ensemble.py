"""
Combinação ponderada de preditores com reponderação contextual.

O combinador é genérico sobre uma lista de pares (predição, peso base): não
conhece os tipos concretos dos preditores, apenas o nome do método informado
em cada predição.
"""
import logging
from typing import Dict, List, Optional, Sequence, Tuple

from app.core.exceptions import EnsembleInputError
from app.sentiment.features import extract_features
from app.sentiment.types import (
    CombinedPrediction,
    ContextualFeatures,
    ModelPrediction,
    SentimentLabel,
)

logger = logging.getLogger(__name__)

LEXICON = "lexicon"
STATISTICAL = "naive_bayes"

LABEL_SCORES: Dict[str, float] = {"positive": 0.7, "negative": -0.7, "neutral": 0.0}

BASE_THRESHOLD = 0.15
SARCASM_THRESHOLD = 0.18
SARCASM_MIN_INDICATORS = 1
SARCASM_POSITIVE_SCORE = 0.05

SARCASM_SHIFT = 0.3
SHORT_TEXT_LENGTH = 50
SHORT_TEXT_SHIFT = 0.2
LONG_TEXT_LENGTH = 200
LONG_TEXT_COMPLEXITY = 0.8
LONG_TEXT_SHIFT = 0.2
EMOTIONAL_MIN_WORDS = 2
EMOTIONAL_SHIFT = 0.15
EMOJI_SHIFT = 0.1

MIN_WEIGHT = 0.1
MAX_WEIGHT = 0.9

PredictionWithWeight = Tuple[ModelPrediction, float]


def prediction_score(prediction: ModelPrediction) -> float:
    """Score nativo quando presente; caso contrário, mapeamento fixo do rótulo."""
    score = prediction.get("score")
    if score is not None:
        return float(score)
    return LABEL_SCORES[prediction["label"]]


def label_for_score(score: float, threshold: float) -> SentimentLabel:
    if score > threshold:
        return "positive"
    if score < -threshold:
        return "negative"
    return "neutral"


class EnsembleCombiner:
    """Funde N pares (predição, peso) em um resultado calibrado."""

    def combine(
        self,
        text: str,
        predictions: Sequence[PredictionWithWeight],
        language: str = "en",
        sarcasm_detection: bool = True,
        contextual_weighting: bool = True,
    ) -> CombinedPrediction:
        """
        Combina as predições aplicando reponderação contextual e override de sarcasmo.

        Args:
            text: Texto analisado
            predictions: Pares (predição, peso base), um por preditor
            language: Idioma usado nos padrões de sarcasmo
            sarcasm_detection: Se False, indicadores de sarcasmo são zerados
            contextual_weighting: Se False, usa apenas os pesos base normalizados

        Returns:
            CombinedPrediction com rótulo, score, confiança e explicação

        Raises:
            EnsembleInputError: Lista vazia ou pesos inválidos
        """
        self._validate(predictions)

        features = extract_features(text, language, sarcasm_detection=sarcasm_detection)
        methods = [prediction["method"] for prediction, _ in predictions]
        weights = self._normalize([float(weight) for _, weight in predictions])

        adjustments: List[str] = []
        if contextual_weighting:
            weights = self._adjust_weights(weights, methods, predictions, features, adjustments)

        scores = [prediction_score(prediction) for prediction, _ in predictions]
        weighted_score = sum(w * s for w, s in zip(weights, scores))
        weighted_confidence = sum(w * p["confidence"] for w, (p, _) in zip(weights, predictions))

        sarcastic = features["sarcasm_indicators"] > SARCASM_MIN_INDICATORS
        threshold = SARCASM_THRESHOLD if sarcastic else BASE_THRESHOLD
        label = label_for_score(weighted_score, threshold)

        # A confiança permanece a média ponderada mesmo quando o rótulo é invertido
        override = False
        if sarcastic and self._leans_positive(predictions, weighted_score):
            label = "negative"
            weighted_score = -abs(weighted_score)
            override = True
            adjustments.append("sarcasm_override")

        final_score = max(-1.0, min(1.0, weighted_score))
        final_confidence = max(0.0, min(1.0, weighted_confidence))
        weight_map = self._weight_map(methods, weights)

        return CombinedPrediction(
            label=label,
            score=final_score,
            confidence=final_confidence,
            weights=weight_map,
            adjustments=adjustments,
            explanation=self._explain(weight_map, features, override),
            features=features,
            sarcasm_override=override,
        )

    @staticmethod
    def _validate(predictions: Sequence[PredictionWithWeight]) -> None:
        if not predictions:
            raise EnsembleInputError("lista de predições vazia")

        for prediction, weight in predictions:
            if weight is None or weight < 0:
                raise EnsembleInputError(
                    "peso base negativo ou ausente",
                    details={"method": prediction.get("method"), "weight": weight}
                )
            if prediction.get("label") not in LABEL_SCORES:
                raise EnsembleInputError(
                    "rótulo de predição desconhecido",
                    details={"method": prediction.get("method"), "label": prediction.get("label")}
                )

        if sum(weight for _, weight in predictions) <= 0:
            raise EnsembleInputError("soma dos pesos base deve ser positiva")

    @staticmethod
    def _normalize(weights: List[float]) -> List[float]:
        total = sum(weights)
        return [weight / total for weight in weights]

    def _adjust_weights(
        self,
        weights: List[float],
        methods: List[str],
        predictions: Sequence[PredictionWithWeight],
        features: ContextualFeatures,
        adjustments: List[str],
    ) -> List[float]:
        adjusted = list(weights)

        if features["sarcasm_indicators"] > SARCASM_MIN_INDICATORS:
            if self._transfer(adjusted, methods, LEXICON, SARCASM_SHIFT, source=STATISTICAL):
                adjustments.append("sarcasm_favors_lexicon")

        if features["text_length"] < SHORT_TEXT_LENGTH:
            if self._transfer(adjusted, methods, LEXICON, SHORT_TEXT_SHIFT, source=STATISTICAL):
                adjustments.append("short_text_favors_lexicon")

        if features["text_length"] > LONG_TEXT_LENGTH and features["complexity"] > LONG_TEXT_COMPLEXITY:
            if self._transfer(adjusted, methods, STATISTICAL, LONG_TEXT_SHIFT, source=LEXICON):
                adjustments.append("long_text_favors_statistical")

        if features["emotional_words"] > EMOTIONAL_MIN_WORDS:
            # Primeiro preditor com a maior confiança
            best_index = max(range(len(predictions)), key=lambda i: (predictions[i][0]["confidence"], -i))
            if self._transfer(adjusted, methods, methods[best_index], EMOTIONAL_SHIFT, target_index=best_index):
                adjustments.append(f"emotional_intensity_favors_{methods[best_index]}")

        if features["has_emojis"]:
            if self._transfer(adjusted, methods, LEXICON, EMOJI_SHIFT, source=STATISTICAL):
                adjustments.append("emoji_favors_lexicon")

        clamped = [max(MIN_WEIGHT, min(MAX_WEIGHT, weight)) for weight in adjusted]
        return self._normalize(clamped)

    @staticmethod
    def _transfer(
        weights: List[float],
        methods: List[str],
        target: str,
        amount: float,
        source: Optional[str] = None,
        target_index: Optional[int] = None,
    ) -> bool:
        """Move peso para o preditor alvo. Soma dos pesos permanece constante.

        O peso sai do preditor de origem quando presente; senão é dividido
        igualmente entre os demais preditores.
        """
        if target_index is None:
            if target not in methods:
                return False
            target_index = methods.index(target)

        if source is not None and source in methods and methods.index(source) != target_index:
            donors = [methods.index(source)]
        else:
            donors = [i for i in range(len(weights)) if i != target_index]

        if not donors:
            return False

        weights[target_index] += amount
        share = amount / len(donors)
        for index in donors:
            weights[index] -= share
        return True

    @staticmethod
    def _leans_positive(predictions: Sequence[PredictionWithWeight], weighted_score: float) -> bool:
        for prediction, _ in predictions:
            if prediction["label"] == "positive":
                return True
            score = prediction.get("score")
            if score is not None and score > 0:
                return True
        return weighted_score > SARCASM_POSITIVE_SCORE

    @staticmethod
    def _weight_map(methods: List[str], weights: List[float]) -> Dict[str, float]:
        weight_map: Dict[str, float] = {}
        for method, weight in zip(methods, weights):
            weight_map[method] = weight_map.get(method, 0.0) + weight
        return weight_map

    @staticmethod
    def _explain(weights: Dict[str, float], features: ContextualFeatures, override: bool) -> str:
        parts = ", ".join(f"{method}: {weight:.2f}" for method, weight in weights.items())
        explanation = f"Auto-adjusted weights ({parts})"

        if features["sarcasm_indicators"] > SARCASM_MIN_INDICATORS:
            explanation += "; Sarcasm detected - biasing toward negative"
        if override:
            explanation += "; Sarcasm override forced negative label"
        if features["emotional_words"] > EMOTIONAL_MIN_WORDS:
            explanation += "; High emotional intensity detected"
        if features["has_emojis"]:
            explanation += "; Emoji analysis applied"

        return explanation
