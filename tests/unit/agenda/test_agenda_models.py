"""Unit tests for agenda data models."""

from datetime import date, datetime, timedelta, timezone

import pytest
from pydantic import ValidationError

from dailyagenda.agenda.models import (
    AgendaSnapshot,
    AgendaStatus,
    DayBucket,
    SourceFailure,
    Window,
)

UTC = timezone.utc
EST = timezone(timedelta(hours=-5), "EST")


class TestWindow:
    """Tests for the display window."""

    def test_bounds(self):
        window = Window.for_day(date(2025, 6, 2), 3, UTC)

        assert window.start == datetime(2025, 6, 2, tzinfo=UTC)
        assert window.end == datetime(2025, 6, 5, tzinfo=UTC)
        assert window.first_day == date(2025, 6, 2)
        assert list(window.days()) == [date(2025, 6, 2), date(2025, 6, 3), date(2025, 6, 4)]

    def test_start_is_truncated_to_midnight(self):
        window = Window(start=datetime(2025, 6, 2, 13, 45, tzinfo=UTC), number_of_days=1)

        assert window.start == datetime(2025, 6, 2, tzinfo=UTC)

    def test_naive_start_is_rejected(self):
        with pytest.raises(ValidationError):
            Window(start=datetime(2025, 6, 2), number_of_days=1)

    @pytest.mark.parametrize("days", [0, -1])
    def test_number_of_days_must_be_positive(self, days):
        with pytest.raises(ValidationError):
            Window.for_day(date(2025, 6, 2), days, UTC)

    def test_day_floor_uses_window_timezone(self):
        window = Window.for_day(date(2025, 6, 2), 1, EST)

        assert window.day_floor(datetime(2025, 6, 3, 3, tzinfo=UTC)) == date(2025, 6, 2)
        assert window.day_start(date(2025, 6, 3)) == datetime(2025, 6, 3, tzinfo=EST)


class TestOccurrence:
    """Tests for Occurrence helpers."""

    def test_dedup_key_ignores_source(self, make_occurrence):
        start = datetime(2025, 6, 2, 9, tzinfo=UTC)
        a = make_occurrence("Standup", start, source_id="a")
        b = make_occurrence("Standup", start, source_id="b", color="red")

        assert a.dedup_key == b.dedup_key

    def test_is_over(self, make_occurrence):
        occurrence = make_occurrence("Call", datetime(2025, 6, 2, 9, tzinfo=UTC))

        assert occurrence.is_over(datetime(2025, 6, 2, 11, tzinfo=UTC)) is True
        assert occurrence.is_over(datetime(2025, 6, 2, 9, 30, tzinfo=UTC)) is False

    def test_occurrence_is_immutable(self, make_occurrence):
        occurrence = make_occurrence("Call", datetime(2025, 6, 2, 9, tzinfo=UTC))

        with pytest.raises(ValidationError):
            occurrence.title = "Other"


class TestAgendaSnapshot:
    """Tests for snapshot status reporting."""

    def test_initial_snapshot_is_loading(self):
        assert AgendaSnapshot().status == AgendaStatus.LOADING

    def test_loaded_snapshot_is_ready(self):
        assert AgendaSnapshot(loaded=True).status == AgendaStatus.READY

    def test_error_snapshot(self):
        failure = SourceFailure(source_id="work", message="Error fetching https://x")

        snapshot = AgendaSnapshot(loaded=True, error=failure)

        assert snapshot.status == AgendaStatus.ERROR

    def test_error_is_not_reported_while_loading(self):
        failure = SourceFailure(source_id="work", message="boom")

        assert AgendaSnapshot(loaded=False, error=failure).status == AgendaStatus.LOADING


class TestDayBucket:
    def test_is_empty(self):
        assert DayBucket(date=date(2025, 6, 2)).is_empty is True
