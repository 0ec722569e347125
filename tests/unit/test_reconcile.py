"""Tests for the stale-import policy."""

import re

import pytest

from fleetkm.core.reconcile import (
    DecisionType,
    decide,
    format_timestamp,
    resolve,
)

LOCAL = 1736935200000


class TestDecide:
    def test_nothing_stored_always_accepts(self):
        assert decide(1, 0).action == DecisionType.ACCEPT

    def test_newer_accepts(self):
        assert decide(LOCAL + 60_000, LOCAL).action == DecisionType.ACCEPT

    def test_equal_accepts(self):
        assert decide(LOCAL, LOCAL).action == DecisionType.ACCEPT

    @pytest.mark.parametrize("age", [1, 999, 1000])
    def test_within_tolerance_accepts(self, age):
        assert decide(LOCAL - age, LOCAL, tolerance_ms=1000).action == DecisionType.ACCEPT

    def test_older_needs_confirmation(self):
        decision = decide(LOCAL - 1001, LOCAL, tolerance_ms=1000, year=2024)
        assert decision.needs_confirmation
        assert decision.warning.year == 2024
        assert decision.warning.incoming_timestamp == LOCAL - 1001
        assert decision.warning.local_timestamp == LOCAL

    def test_zero_tolerance(self):
        assert decide(LOCAL - 1, LOCAL, tolerance_ms=0).needs_confirmation

    def test_default_tolerance(self):
        assert decide(LOCAL - 100_000, LOCAL).needs_confirmation
        assert not decide(LOCAL - 500, LOCAL).needs_confirmation

    def test_accept_has_no_warning(self):
        assert decide(LOCAL, LOCAL).warning is None


class TestResolve:
    def test_confirmed(self):
        decision = decide(LOCAL - 5000, LOCAL)
        assert resolve(decision, confirmed=True) == DecisionType.ACCEPT

    def test_declined(self):
        decision = decide(LOCAL - 5000, LOCAL)
        assert resolve(decision, confirmed=False) == DecisionType.REJECT

    def test_accept_ignores_answer(self):
        assert resolve(decide(LOCAL, LOCAL), confirmed=False) == DecisionType.ACCEPT


class TestWarningMessage:
    def test_mentions_year_and_times(self):
        warning = decide(LOCAL - 86_400_000, LOCAL, year=2024).warning
        assert "2024" in warning.message
        assert "OLDER" in warning.message
        assert format_timestamp(LOCAL) in warning.message

    def test_format_timestamp(self):
        assert re.fullmatch(r"\d{2}/\d{2}/\d{4} \d{2}:\d{2}", format_timestamp(LOCAL))

    def test_format_zero(self):
        assert format_timestamp(0) == "No data"
