from concurrent.futures import ThreadPoolExecutor

import pytest
from langdetect import detector_factory

from app.sentiment.lexicon_scorer import LexiconScorer, normalize_text, tokenize


@pytest.fixture
def scorer() -> LexiconScorer:
    return LexiconScorer()


class TestNormalization:

    def test_strips_diacritics_and_lowercases(self):
        assert normalize_text("Increíble ÉTÉ") == "increible ete"

    def test_tokenize_keeps_only_letter_runs(self):
        assert tokenize("It's 2 good!! ok_fine") == ["it", "s", "good", "ok", "fine"]


class TestLexiconScoring:
    """Testes do preditor léxico."""

    def test_positive_words(self, scorer):
        prediction = scorer.predict("I love this product! It's amazing!")

        assert prediction["label"] == "positive"
        assert prediction["score"] == pytest.approx(0.5)
        assert prediction["confidence"] == pytest.approx(0.99)
        assert prediction["method"] == "lexicon"

    def test_negative_word(self, scorer):
        prediction = scorer.predict("This is terrible")

        assert prediction["label"] == "negative"
        assert prediction["score"] == pytest.approx(-0.25)
        assert prediction["confidence"] == pytest.approx(0.85)

    def test_neutral_text_confidence_follows_formula(self, scorer):
        prediction = scorer.predict("The package arrived today.")

        assert prediction["label"] == "neutral"
        assert prediction["score"] == 0.0
        assert prediction["confidence"] == pytest.approx(0.6)

    def test_score_is_clamped(self, scorer):
        prediction = scorer.predict("good great excellent amazing love fantastic")
        assert prediction["score"] == 1.0

    def test_single_emoji_contribution(self, scorer):
        prediction = scorer.predict("great \U0001F600")
        assert prediction["score"] == pytest.approx(0.25 + 0.15)

    def test_emoji_contribution_is_capped(self, scorer):
        prediction = scorer.predict("\U0001F600" * 4)

        assert prediction["score"] == pytest.approx(0.5)
        assert prediction["label"] == "positive"

    def test_negative_emoji(self, scorer):
        prediction = scorer.predict("bad \U0001F622\U0001F622")
        assert prediction["score"] == pytest.approx(-0.25 - 0.3)

    def test_multilingual_words_with_diacritics(self, scorer):
        assert scorer.predict("Es increíble")["label"] == "positive"
        assert scorer.predict("C'est nul")["label"] == "negative"

    def test_empty_text(self, scorer):
        prediction = scorer.predict("")

        assert prediction["label"] == "neutral"
        assert prediction["keywords"] == []


class TestKeywordsAndLanguage:

    def test_keywords(self, scorer):
        prediction = scorer.predict("I love this product! It's amazing!")
        assert prediction["keywords"] == ["love", "this", "product", "amazing"]

    def test_keywords_limited_to_five_unique(self, scorer):
        keywords = scorer.extract_keywords(
            ["alpha", "alpha", "bravo", "charlie", "delta", "echo", "foxtrot"]
        )
        assert keywords == ["alpha", "bravo", "charlie", "delta", "echo"]

    @pytest.mark.parametrize("text, expected", [
        ("The package arrived today", "en"),
        ("El producto es muy bueno", "es"),
        ("Le film est très bon", "fr"),
        ("Das ist sehr gut", "de"),
    ])
    def test_guess_language_by_hints(self, scorer, text, expected):
        assert scorer.predict(text)["language_guess"] == expected

    def test_short_text_without_hints_falls_back_to_english(self, scorer):
        assert scorer.predict("ok")["language_guess"] == "en"


class TestLanguageDetection:

    def test_profiles_are_loaded_on_import(self):
        assert detector_factory._factory is not None
        assert detector_factory._factory.get_lang_list()

    def test_concurrent_detection_is_consistent(self, scorer):
        text = "Guten Morgen, wunderbares Wetter heute in Berlin"
        expected = scorer.guess_language([], text)

        with ThreadPoolExecutor(max_workers=8) as executor:
            results = list(executor.map(lambda _: scorer.guess_language([], text), range(32)))

        assert set(results) == {expected}
