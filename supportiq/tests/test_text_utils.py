"""
Tests for keyword and theme helpers
"""
from supportiq.utils.text import extract_keywords, extract_theme_keywords, format_theme


class TestExtractKeywords:
    def test_stop_words_and_punctuation(self):
        keywords = extract_keywords("How do I reset my password? It's not working!")
        assert keywords == ["how", "reset", "password", "not", "working"]

    def test_limit(self):
        assert len(extract_keywords("alpha bravo charlie delta echo foxtrot", limit=3)) == 3

    def test_empty(self):
        assert extract_keywords("") == []
        assert extract_keywords(None) == []


class TestThemeKeywords:
    def test_most_frequent(self):
        texts = [
            "Invoice download broken",
            "Cannot download invoice",
            "Invoice missing from billing page",
        ]
        assert extract_theme_keywords(texts) == ["invoice", "download", "broken"]

    def test_short_and_stop_words_dropped(self):
        assert extract_theme_keywords(["the api and our sdk have bugs"]) == ["bugs"]

    def test_format_theme(self):
        assert format_theme(["invoice", "download"]) == "Invoice Download"
        assert format_theme([]) == ""
