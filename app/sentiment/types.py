"""
TypedDicts para os valores que circulam entre preditores, ensemble e orquestrador.

Substitui Dict[str, Any] por tipos explícitos para melhor documentação e IDE support.
"""
from typing import Dict, List, Literal, Optional, Tuple, TypedDict

SentimentLabel = Literal["positive", "negative", "neutral"]
PredictorName = Literal["lexicon", "naive_bayes", "transformer"]

LABELS: Tuple[SentimentLabel, ...] = ("positive", "negative", "neutral")


class ContextualFeatures(TypedDict):
    """Features contextuais de um texto. Puras e determinísticas."""
    text_length: int
    has_emojis: bool
    has_exclamation: bool
    has_question: bool
    emotional_words: int
    sarcasm_indicators: int
    language: str
    complexity: float


class ModelPrediction(TypedDict):
    """Predição de um único preditor.

    score é None quando o preditor só fornece rótulo e confiança;
    o ensemble então mapeia o rótulo para um score fixo.
    """
    label: SentimentLabel
    confidence: float
    score: Optional[float]
    method: PredictorName


class LexiconPrediction(ModelPrediction):
    """Predição do léxico com metadados auxiliares."""
    keywords: List[str]
    language_guess: str


class ClassifierPrediction(ModelPrediction):
    """Predição Naive Bayes com a distribuição completa."""
    probabilities: Dict[str, float]


class CombinedPrediction(TypedDict):
    """Saída do ensemble."""
    label: SentimentLabel
    score: float
    confidence: float
    weights: Dict[str, float]
    adjustments: List[str]
    explanation: str
    features: ContextualFeatures
    sarcasm_override: bool


class ClassifierState(TypedDict):
    """Estado serializável do classificador Naive Bayes."""
    vocabulary: List[str]
    class_word_counts: Dict[str, Dict[str, int]]
    class_counts: Dict[str, int]
    total_words_per_class: Dict[str, int]
    total_documents: int
    smoothing: float


class ClassifierStats(TypedDict):
    """Estatísticas do classificador."""
    trained: bool
    vocabulary_size: int
    total_documents: int
    class_counts: Dict[str, int]
    total_words_per_class: Dict[str, int]


class OrchestratorMetrics(TypedDict):
    """Contadores do orquestrador."""
    total_requests: int
    cache_hits: int
    cache_misses: int
    error_count: int
    average_processing_time_ms: float
    total_processing_time_ms: float
    circuit_breaker_trips: int


class MetricsSnapshot(OrchestratorMetrics):
    """Métricas acrescidas do estado do cache."""
    cache_size: int
    cache_hit_rate: float


class CircuitBreakerSnapshot(TypedDict):
    """Estado observável do circuit breaker."""
    is_open: bool
    failure_count: int
    last_failure_time: Optional[float]
    next_attempt_time: Optional[float]
