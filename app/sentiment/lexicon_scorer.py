import logging
import re
import unicodedata
from typing import List, Tuple

from langdetect import DetectorFactory, LangDetectException, detect
from langdetect.detector_factory import init_factory

from app.sentiment import lexicons
from app.sentiment.types import LexiconPrediction, SentimentLabel

logger = logging.getLogger(__name__)

# Configurar langdetect para resultados consistentes
DetectorFactory.seed = 0
# Perfis carregados na importação: detect() roda em threads concorrentes
init_factory()

_TOKEN_RE = re.compile(r"[^\W\d_]+", re.UNICODE)

WORD_WEIGHT = 0.25
EMOJI_DENSITY_FACTOR = 0.15
EMOJI_CONTRIBUTION_CAP = 0.5
LABEL_THRESHOLD = 0.15
MAX_KEYWORDS = 5


def normalize_text(text: str) -> str:
    """Minúsculas e remoção de diacríticos (NFKD)."""
    decomposed = unicodedata.normalize("NFKD", text.lower())
    return "".join(ch for ch in decomposed if not unicodedata.combining(ch))


def tokenize(text: str) -> List[str]:
    """Tokens formados apenas por sequências de letras, já normalizados."""
    return _TOKEN_RE.findall(normalize_text(text))


class LexiconScorer:
    """Preditor determinístico baseado em tabelas de palavras e emojis."""

    name = "lexicon"

    def predict(self, text: str) -> LexiconPrediction:
        tokens = tokenize(text)
        score = self._score(tokens, text)

        return LexiconPrediction(
            label=self._label_for(score),
            confidence=min(0.99, 0.6 + abs(score)),
            score=score,
            method="lexicon",
            keywords=self.extract_keywords(tokens),
            language_guess=self.guess_language(tokens, text),
        )

    def _score(self, tokens: List[str], text: str) -> float:
        positives = sum(1 for token in tokens if token in lexicons.ALL_POSITIVE_WORDS)
        negatives = sum(1 for token in tokens if token in lexicons.ALL_NEGATIVE_WORDS)
        score = WORD_WEIGHT * (positives - negatives)

        emoji_total, emoji_count = self._emoji_valence(text)
        if emoji_count:
            contribution = (emoji_total / emoji_count) * min(1.0, emoji_count * EMOJI_DENSITY_FACTOR)
            score += max(-EMOJI_CONTRIBUTION_CAP, min(EMOJI_CONTRIBUTION_CAP, contribution))

        return max(-1.0, min(1.0, score))

    @staticmethod
    def _emoji_valence(text: str) -> Tuple[float, int]:
        total = 0.0
        count = 0
        for match in lexicons.LEXICON_EMOJI_RE.finditer(text):
            count += 1
            total += lexicons.EMOJI_VALENCE.get(match.group(0), 0.0)
        return total, count

    @staticmethod
    def _label_for(score: float) -> SentimentLabel:
        if score > LABEL_THRESHOLD:
            return "positive"
        if score < -LABEL_THRESHOLD:
            return "negative"
        return "neutral"

    @staticmethod
    def extract_keywords(tokens: List[str]) -> List[str]:
        keywords: List[str] = []
        for token in tokens:
            if len(token) > 3 and token not in keywords:
                keywords.append(token)
                if len(keywords) == MAX_KEYWORDS:
                    break
        return keywords

    def guess_language(self, tokens: List[str], text: str) -> str:
        """Estimativa por sobreposição com palavras frequentes; langdetect como fallback."""
        token_set = set(tokens)
        overlaps = {
            language: len(token_set & hints)
            for language, hints in lexicons.LANGUAGE_HINTS.items()
        }
        best_language, best_overlap = max(overlaps.items(), key=lambda item: item[1])
        if best_overlap > 0:
            return best_language

        return self._detect_language(text)

    def _detect_language(self, text: str) -> str:
        """Detecta idioma do texto com fallback robusto."""
        detection_text = text[:1000].strip()

        if len(detection_text) < 3:
            return lexicons.FALLBACK_LANGUAGE

        try:
            detected_lang = detect(detection_text)
        except LangDetectException as e:
            logger.debug(f"Erro na detecção de idioma: {e}, usando fallback 'en'")
            return lexicons.FALLBACK_LANGUAGE

        if detected_lang not in lexicons.SUPPORTED_LANGUAGES:
            logger.debug(f"Idioma detectado não suportado: {detected_lang}, usando fallback 'en'")
            return lexicons.FALLBACK_LANGUAGE

        return detected_lang
