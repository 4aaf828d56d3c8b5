"""Tests for query expansion into sub-queries."""

import pytest

from fetscr.aggregation import compose_query, detect_mode, expand_query
from fetscr.models.search import SearchMode
from fetscr.utils.errors import InvalidRequestError


class TestComposeQuery:
    def test_joins_with_single_space(self):
        assert compose_query("coffee", "beans") == "coffee beans"

    def test_trims_both_ends(self):
        assert compose_query("  coffee ", "  ") == "coffee"
        assert compose_query("", " beans ") == "beans"
        assert compose_query(None, None) == ""


class TestExpandQuery:
    def test_query_only_is_simple(self):
        sub_queries = expand_query("coffee", "")

        assert len(sub_queries) == 1
        assert sub_queries[0].label == ""
        assert sub_queries[0].text == "coffee"
        assert detect_mode(sub_queries) == SearchMode.SIMPLE

    def test_keywords_without_comma_are_appended(self):
        sub_queries = expand_query("coffee", "arabica beans")

        assert [sq.text for sq in sub_queries] == ["coffee arabica beans"]
        assert detect_mode(sub_queries) == SearchMode.SIMPLE

    def test_keywords_only_simple(self):
        sub_queries = expand_query("", "espresso")

        assert [sq.text for sq in sub_queries] == ["espresso"]

    def test_comma_splits_into_keywords(self):
        sub_queries = expand_query("coffee", "a, b ,c")

        assert [sq.label for sq in sub_queries] == ["a", "b", "c"]
        assert [sq.text for sq in sub_queries] == ["coffee a", "coffee b", "coffee c"]
        assert detect_mode(sub_queries) == SearchMode.KEYWORD

    def test_empty_tokens_are_dropped(self):
        sub_queries = expand_query("coffee", "a,,  ,b,")

        assert [sq.label for sq in sub_queries] == ["a", "b"]

    def test_single_keyword_with_trailing_comma_is_keyword_mode(self):
        sub_queries = expand_query("coffee", "a,")

        assert [sq.label for sq in sub_queries] == ["a"]
        assert detect_mode(sub_queries) == SearchMode.KEYWORD

    def test_keywords_without_query(self):
        sub_queries = expand_query("", "x,y")

        assert [sq.text for sq in sub_queries] == ["x", "y"]

    def test_preserves_input_order_and_duplicates(self):
        sub_queries = expand_query("q", "b,a,b")

        assert [sq.label for sq in sub_queries] == ["b", "a", "b"]

    @pytest.mark.parametrize(
        "query,keywords", [("", ""), ("   ", "  "), (None, None), ("", None)]
    )
    def test_missing_query(self, query, keywords):
        with pytest.raises(InvalidRequestError) as exc_info:
            expand_query(query, keywords)

        assert exc_info.value.message == "Missing query"
        assert exc_info.value.status_code == 400

    def test_only_commas_is_rejected(self):
        with pytest.raises(InvalidRequestError) as exc_info:
            expand_query("", ", ,")

        assert exc_info.value.details["field"] == "keywords"

    def test_query_with_only_commas_is_rejected(self):
        with pytest.raises(InvalidRequestError):
            expand_query("coffee", ",")
