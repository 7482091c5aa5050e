"""
Extração de features contextuais.

Função pura: texto + idioma -> ContextualFeatures. Nunca falha; texto vazio
gera features zeradas.
"""
import re

from app.sentiment import lexicons
from app.sentiment.types import ContextualFeatures

_SENTENCE_SPLIT_RE = re.compile(r"[.!?]+")


def count_emotional_words(lower_text: str) -> int:
    return sum(1 for word in lexicons.EMOTIONAL_WORDS if word in lower_text)


def detect_sarcasm_indicators(lower_text: str, language: str) -> int:
    """Pontua indicadores de sarcasmo com os padrões do idioma (fallback en)."""
    patterns = lexicons.for_language(lexicons.SARCASM_PATTERNS, language)
    indicators = sum(
        lexicons.SARCASM_PATTERN_WEIGHT for pattern in patterns if pattern.search(lower_text)
    )

    if lexicons.ELLIPSIS_RE.search(lower_text):
        indicators += lexicons.ELLIPSIS_WEIGHT
    if lexicons.SARCASTIC_EMOJI_RE.search(lower_text):
        indicators += lexicons.SARCASTIC_EMOJI_WEIGHT
    if lexicons.EMPHASIS_RE.search(lower_text):
        indicators += lexicons.EMPHASIS_WEIGHT

    return indicators


def calculate_complexity(text: str) -> float:
    """(tamanho médio das palavras + tamanho médio das sentenças) / 10."""
    words = text.split()
    if not words:
        return 0.0

    avg_word_length = sum(len(word) for word in words) / len(words)
    sentence_count = len(_SENTENCE_SPLIT_RE.split(text))
    avg_sentence_length = len(words) / sentence_count

    return (avg_word_length + avg_sentence_length) / 10


def extract_features(
    text: str,
    language: str = "en",
    sarcasm_detection: bool = True,
) -> ContextualFeatures:
    lower_text = text.lower()

    return ContextualFeatures(
        text_length=len(text),
        has_emojis=bool(lexicons.FEATURE_EMOJI_RE.search(text)),
        has_exclamation="!" in text,
        has_question="?" in text,
        emotional_words=count_emotional_words(lower_text),
        sarcasm_indicators=detect_sarcasm_indicators(lower_text, language) if sarcasm_detection else 0,
        language=language,
        complexity=calculate_complexity(text),
    )
