"""
Classificador Naive Bayes multinomial com suavização de Laplace.

O treino reconstrói todo o estado e o substitui de uma vez, de modo que
predições concorrentes sempre enxergam um modelo consistente.
"""
import logging
import math
import re
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Sequence, Set, Tuple

from app.core.exceptions import ModelLoadError
from app.sentiment.lexicons import STOPWORDS
from app.sentiment.types import (
    LABELS,
    ClassifierPrediction,
    ClassifierState,
    ClassifierStats,
)

logger = logging.getLogger(__name__)

_PUNCTUATION_RE = re.compile(r"[^\w\s]", re.UNICODE)

TrainingExample = Tuple[str, str]


def tokenize(text: str) -> List[str]:
    """Minúsculas, remove pontuação, separa por espaço e descarta stop-words."""
    stripped = _PUNCTUATION_RE.sub("", text.lower())
    return [token for token in stripped.split() if token not in STOPWORDS]


@dataclass
class _ModelState:
    smoothing: float
    vocabulary: Set[str] = field(default_factory=set)
    class_word_counts: Dict[str, Dict[str, int]] = field(
        default_factory=lambda: {label: {} for label in LABELS}
    )
    class_counts: Dict[str, int] = field(default_factory=lambda: {label: 0 for label in LABELS})
    total_words_per_class: Dict[str, int] = field(default_factory=lambda: {label: 0 for label in LABELS})
    total_documents: int = 0

    def add(self, examples: Iterable[TrainingExample]) -> int:
        added = 0
        for text, label in examples:
            if label not in LABELS:
                logger.warning(f"Rótulo desconhecido ignorado no treino: {label!r}")
                continue

            tokens = tokenize(text)
            word_counts = self.class_word_counts[label]
            for token in tokens:
                self.vocabulary.add(token)
                word_counts[token] = word_counts.get(token, 0) + 1

            self.total_words_per_class[label] += len(tokens)
            self.class_counts[label] += 1
            self.total_documents += 1
            added += 1
        return added

    def copy(self) -> "_ModelState":
        return _ModelState(
            smoothing=self.smoothing,
            vocabulary=set(self.vocabulary),
            class_word_counts={label: dict(counts) for label, counts in self.class_word_counts.items()},
            class_counts=dict(self.class_counts),
            total_words_per_class=dict(self.total_words_per_class),
            total_documents=self.total_documents,
        )


class NaiveBayesClassifier:
    """Preditor estatístico bag-of-words."""

    name = "naive_bayes"

    def __init__(self, smoothing: float = 1.0):
        if smoothing <= 0:
            raise ValueError("Fator de suavização deve ser positivo")
        self._state = _ModelState(smoothing=smoothing)

    @property
    def is_trained(self) -> bool:
        return self._state.total_documents > 0

    @property
    def smoothing(self) -> float:
        return self._state.smoothing

    def train(self, examples: Sequence[TrainingExample]) -> int:
        """Descarta todo o estado anterior e treina do zero.

        Returns:
            Número de exemplos efetivamente usados
        """
        state = _ModelState(smoothing=self._state.smoothing)
        added = state.add(examples)
        self._state = state

        logger.info(
            f"Classificador treinado com {added} exemplos "
            f"(vocabulário: {len(state.vocabulary)} tokens)"
        )
        return added

    def incremental_train(self, examples: Sequence[TrainingExample]) -> int:
        """Acrescenta exemplos ao estado atual sem reiniciá-lo."""
        state = self._state.copy()
        added = state.add(examples)
        self._state = state

        logger.info(f"Treino incremental com {added} exemplos (total: {state.total_documents})")
        return added

    def predict(self, text: str) -> ClassifierPrediction:
        state = self._state
        tokens = tokenize(text) if text else []

        # Sem vocabulário o denominador da verossimilhança seria zero
        if not tokens or state.total_documents == 0 or not state.vocabulary:
            uniform = 1.0 / len(LABELS)
            return ClassifierPrediction(
                label="neutral",
                confidence=uniform,
                score=None,
                method="naive_bayes",
                probabilities={label: uniform for label in LABELS},
            )

        log_scores = {label: self._log_score(state, label, tokens) for label in LABELS}

        max_score = max(log_scores.values())
        exp_scores = {label: math.exp(value - max_score) for label, value in log_scores.items()}
        total = sum(exp_scores.values())
        probabilities = {label: value / total for label, value in exp_scores.items()}

        # Empates resolvidos pela ordem fixa de LABELS
        predicted = max(LABELS, key=lambda label: probabilities[label])

        return ClassifierPrediction(
            label=predicted,
            confidence=probabilities[predicted],
            score=None,
            method="naive_bayes",
            probabilities=probabilities,
        )

    @staticmethod
    def _log_score(state: _ModelState, label: str, tokens: List[str]) -> float:
        alpha = state.smoothing
        log_prob = math.log(
            (state.class_counts[label] + alpha) / (state.total_documents + len(LABELS) * alpha)
        )

        word_counts = state.class_word_counts[label]
        denominator = state.total_words_per_class[label] + len(state.vocabulary) * alpha
        for token in tokens:
            log_prob += math.log((word_counts.get(token, 0) + alpha) / denominator)

        return log_prob

    def get_stats(self) -> ClassifierStats:
        state = self._state
        return ClassifierStats(
            trained=state.total_documents > 0,
            vocabulary_size=len(state.vocabulary),
            total_documents=state.total_documents,
            class_counts=dict(state.class_counts),
            total_words_per_class=dict(state.total_words_per_class),
        )

    def to_state(self) -> ClassifierState:
        """Exporta o estado em estrutura compatível com JSON."""
        state = self._state
        return ClassifierState(
            vocabulary=sorted(state.vocabulary),
            class_word_counts={
                label: dict(sorted(counts.items())) for label, counts in state.class_word_counts.items()
            },
            class_counts=dict(state.class_counts),
            total_words_per_class=dict(state.total_words_per_class),
            total_documents=state.total_documents,
            smoothing=state.smoothing,
        )

    def load_state(self, data: ClassifierState) -> None:
        """Substitui o estado atual por um estado exportado."""
        self._state = self._state_from_dict(data)
        logger.info(
            f"Estado do classificador restaurado "
            f"({self._state.total_documents} documentos, {len(self._state.vocabulary)} tokens)"
        )

    @classmethod
    def from_state(cls, data: ClassifierState) -> "NaiveBayesClassifier":
        classifier = cls()
        classifier.load_state(data)
        return classifier

    @staticmethod
    def _state_from_dict(data: ClassifierState) -> _ModelState:
        try:
            smoothing = float(data["smoothing"])
            if smoothing <= 0:
                raise ValueError("smoothing deve ser positivo")

            state = _ModelState(
                smoothing=smoothing,
                vocabulary=set(data["vocabulary"]),
                total_documents=int(data["total_documents"]),
            )
            for label in LABELS:
                state.class_word_counts[label] = {
                    str(token): int(count)
                    for token, count in data["class_word_counts"].get(label, {}).items()
                }
                state.class_counts[label] = int(data["class_counts"].get(label, 0))
                state.total_words_per_class[label] = int(data["total_words_per_class"].get(label, 0))
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            raise ModelLoadError(
                model_name="naive_bayes",
                message="Estado do classificador inválido",
                details={"error": str(e)}
            ) from e

        return state


def build_classifier(
    examples: Optional[Sequence[TrainingExample]] = None,
    smoothing: float = 1.0,
) -> NaiveBayesClassifier:
    classifier = NaiveBayesClassifier(smoothing=smoothing)
    if examples:
        classifier.train(examples)
    return classifier
