"""Tests for pause, resume and manual-delete exception planning."""
import pytest


class TestPauseExceptions:
    """Test cases for pause-skip planning."""

    def test_covers_dates_from_pause_point(self, make_series):
        """Should create a pause-skip for every date from pause_from to its horizon."""
        from finance_tracker.recurring.lifecycle import plan_pause_exceptions

        series = make_series(id=4, start_date="2026-01-15", anchor_day=15)
        exceptions = plan_pause_exceptions(series, "2026-03-10")

        assert exceptions[0].date == "2026-03-15"
        assert exceptions[-1].date == "2028-02-15"
        assert len(exceptions) == 24
        assert all(e.kind == "pause-skip" and e.recurrence_id == 4 for e in exceptions)

    def test_respects_end_date(self, make_series):
        """Should stop at the series end date."""
        from finance_tracker.recurring.lifecycle import plan_pause_exceptions

        series = make_series(frequency="weekly", start_date="2026-03-02", end_date="2026-03-31")
        dates = [e.date for e in plan_pause_exceptions(series, "2026-03-10")]

        assert dates == ["2026-03-16", "2026-03-23", "2026-03-30"]

    def test_keys_are_deterministic(self, make_series):
        """Pausing twice should plan the same keys."""
        from finance_tracker.recurring.lifecycle import plan_pause_exceptions

        series = make_series(id=4)
        first = {e.key for e in plan_pause_exceptions(series, "2026-03-10")}
        second = {e.key for e in plan_pause_exceptions(series, "2026-03-10")}

        assert first == second
        assert "4_2026-04-01_pause" in first


class TestResumeSelection:
    """Test cases for choosing pause-skips to clear."""

    def test_clears_pause_skips_from_resume_date(self):
        """Should return pause-skips on or after the resume date only."""
        from finance_tracker.recurring.lifecycle import select_pause_exceptions_to_clear
        from finance_tracker.recurring.models import SeriesException

        exceptions = [
            SeriesException(recurrence_id=1, date="2026-04-01", kind="pause-skip"),
            SeriesException(recurrence_id=1, date="2026-05-01", kind="pause-skip"),
            SeriesException(recurrence_id=1, date="2026-06-01", kind="pause-skip"),
        ]
        cleared = select_pause_exceptions_to_clear(exceptions, "2026-05-01")

        assert [e.date for e in cleared] == ["2026-05-01", "2026-06-01"]

    def test_never_clears_manual_deletes(self):
        """Manual deletions should survive a resume."""
        from finance_tracker.recurring.lifecycle import select_pause_exceptions_to_clear
        from finance_tracker.recurring.models import SeriesException

        exceptions = [
            SeriesException(recurrence_id=1, date="2026-05-01", kind="manual-delete"),
            SeriesException(recurrence_id=1, date="2026-06-01", kind="pause-skip"),
        ]
        cleared = select_pause_exceptions_to_clear(exceptions, "2026-01-01")

        assert [e.kind for e in cleared] == ["pause-skip"]


class TestManualDelete:
    """Test cases for manual-delete exceptions."""

    def test_builds_manual_delete(self, make_series):
        """Should key the exception on series id and date."""
        from finance_tracker.recurring.lifecycle import manual_delete_exception
        from finance_tracker.recurring.materializer import materialize

        occurrence = materialize(make_series(id=9), "2026-04-01")
        exception = manual_delete_exception(occurrence)

        assert exception.kind == "manual-delete"
        assert exception.key == "9_2026-04-01_manual"

    def test_rejects_unlinked_transaction(self, make_series):
        """A one-time transaction has no series to record against."""
        from dataclasses import replace
        from finance_tracker.recurring.lifecycle import manual_delete_exception
        from finance_tracker.recurring.materializer import materialize

        occurrence = replace(materialize(make_series(), "2026-04-01"), recurrence_id=None)

        with pytest.raises(ValueError):
            manual_delete_exception(occurrence)


class TestStatusTransitions:
    """Test cases for paused/resumed copies."""

    def test_pause_and_resume_are_idempotent(self, make_series):
        """Pausing a paused series or resuming an active one changes nothing."""
        from finance_tracker.recurring.lifecycle import paused, resumed

        series = make_series()

        assert paused(paused(series)).status == "paused"
        assert resumed(series) == series
        assert resumed(paused(series)) == series

    def test_pause_keeps_earliest_cutoff(self, make_series):
        """Pausing again should not move the recorded cutoff later."""
        from finance_tracker.recurring.lifecycle import paused, resumed

        series = paused(make_series(), "2026-03-10")

        assert series.paused_from == "2026-03-10"
        assert paused(series, "2026-05-01").paused_from == "2026-03-10"
        assert paused(series, "2026-02-01").paused_from == "2026-02-01"
        assert resumed(series).paused_from is None


class TestResumeGap:
    """Test cases for skipping paused dates past the pause-skip horizon."""

    def test_covers_dates_up_to_resume(self, make_series):
        """Should skip every paused date strictly before the resume date."""
        from finance_tracker.recurring.lifecycle import plan_resume_gap_exceptions

        series = make_series(
            start_date="2026-01-10", anchor_day=10, status="paused", paused_from="2026-03-10"
        )
        dates = [e.date for e in plan_resume_gap_exceptions(series, "2028-09-10")]

        assert dates[0] == "2026-03-10"
        assert dates[-1] == "2028-08-10"
        assert len(dates) == 30

    def test_nothing_without_cutoff(self, make_series):
        """Active series, or a resume on the cutoff itself, need no gap."""
        from finance_tracker.recurring.lifecycle import plan_resume_gap_exceptions

        assert plan_resume_gap_exceptions(make_series(), "2026-06-01") == []
        series = make_series(status="paused", paused_from="2026-03-10")
        assert plan_resume_gap_exceptions(series, "2026-03-10") == []
