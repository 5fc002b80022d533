"""Tests for the filter compiler."""

from safekids.search.filters import (
    SortOrder,
    compile_query,
    fallback_query,
    to_search_expression,
)
from safekids.search.schemas import ParsedQuery


class TestCompileQuery:
    def test_joins_keywords(self):
        q = compile_query(ParsedQuery(keywords=["playground", "broken", "swing"]))
        assert q.search_text == "playground broken swing"

    def test_appends_category(self):
        q = compile_query(ParsedQuery(keywords=["dog"], category="animals"))
        assert q.search_text == "dog animals"

    def test_general_category_not_appended(self):
        q = compile_query(ParsedQuery(keywords=["dog"], category="general"))
        assert q.search_text == "dog"

    def test_popular_sorts_by_likes(self):
        q = compile_query(ParsedQuery(keywords=["a"], sortBy="popular"))
        assert q.sort == SortOrder.POPULAR

    def test_recent_sorts_by_creation(self):
        q = compile_query(ParsedQuery(keywords=["a"], sortBy="recent"))
        assert q.sort == SortOrder.RECENT

    def test_missing_sort_defaults_to_recent(self):
        q = compile_query(ParsedQuery(keywords=["a"]))
        assert q.sort == SortOrder.RECENT


class TestFallbackQuery:
    def test_literal_text_by_relevance(self):
        q = fallback_query("Stray dogs")
        assert q.search_text == "Stray dogs"
        assert q.sort == SortOrder.RELEVANCE


class TestSearchExpression:
    def test_ors_tokens(self):
        assert to_search_expression("broken swing playground") == "broken or swing or playground"

    def test_multiword_keywords_split(self):
        assert to_search_expression("stray dog  כלב משוטט") == "stray or dog or כלב or משוטט"

    def test_quotes_and_or_tokens_removed(self):
        assert to_search_expression('"dog" or cat') == "dog or cat"

    def test_empty(self):
        assert to_search_expression("   ") == ""
