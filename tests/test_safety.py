"""
Tests for the safe-mode keyword gate
"""

import pytest

from query.safety import classify, DENIAL_REASON, DENYLIST_TOKENS


class TestClassify:
    """Substring scan over the lower-cased query"""

    @pytest.mark.parametrize("query", [
        "DROP TABLE events",
        "truncate events",
        "DELETE FROM events WHERE id = 1",
        "UPDATE events SET title = 'x'",
        "ALTER TABLE events ADD COLUMN note TEXT",
        "CREATE TABLE scratch (id int)",
        "INSERT INTO events (title) VALUES ('x')",
        "select 1; Drop table events",
    ])
    def test_mutating_statements_denied(self, query):
        verdict = classify(query)

        assert verdict.allowed is False
        assert verdict.reason == DENIAL_REASON

    @pytest.mark.parametrize("query", [
        "SELECT 1 AS x",
        "SELECT updated_at, created FROM events",
        "SELECT * FROM deleted_items",
        "WITH t AS (SELECT 1) SELECT * FROM t",
        "EXPLAIN SELECT * FROM events",
    ])
    def test_read_queries_allowed(self, query):
        verdict = classify(query)

        assert verdict.allowed is True
        assert verdict.reason is None

    def test_keyword_inside_comment_is_still_denied(self):
        """Comments are not stripped: known false positive of the heuristic"""
        verdict = classify("SELECT * FROM t WHERE 1=1 -- DELETE me")

        assert verdict.allowed is False
        assert verdict.token == "delete"

    def test_keyword_inside_string_literal_is_denied(self):
        verdict = classify("SELECT * FROM notes WHERE body = 'please update me'")

        assert verdict.allowed is False

    def test_keyword_followed_by_newline_passes(self):
        """Only keyword+space is matched: known false negative"""
        verdict = classify("DELETE\nFROM events")

        assert verdict.allowed is True

    def test_denylist_tokens_carry_trailing_space(self):
        assert all(token.endswith(" ") for token in DENYLIST_TOKENS)
        assert len(DENYLIST_TOKENS) == 7
