"""Tests for group activation countdowns."""

from datetime import datetime, timedelta, timezone

from unittest.mock import MagicMock

from modules.groups.countdown import CountdownBoard, GroupCountdown, format_remaining
from modules.groups.models import Group, GroupStatus
from modules.session.models import EnglishLevel

START = datetime(2026, 10, 19, 19, 0, tzinfo=timezone.utc)


def make_group(group_id="g1", status=GroupStatus.SCHEDULED, activation_time=None) -> Group:
    return Group(
        id=group_id,
        name="Debate",
        level=EnglishLevel.BEGINNER,
        status=status,
        activation_time=activation_time,
    )


class TestFormatRemaining:
    def test_minutes(self):
        assert format_remaining(65) == "1:05"

    def test_hours(self):
        assert format_remaining(3725) == "1:02:05"

    def test_negative_clamped(self):
        assert format_remaining(-10) == "0:00"


class TestGroupCountdown:
    def test_fires_once_at_zero(self):
        """Repeated ticks at or past zero fire only once."""
        callback = MagicMock()
        countdown = GroupCountdown("g1", START + timedelta(seconds=2), callback)

        countdown.tick(START)
        countdown.tick(START + timedelta(seconds=1))
        callback.assert_not_called()

        countdown.tick(START + timedelta(seconds=2))
        countdown.tick(START + timedelta(seconds=3))
        countdown.tick(START + timedelta(seconds=4))

        callback.assert_called_once_with("g1")
        assert countdown.fired is True
        assert countdown.remaining == -2

    def test_rearms_when_time_positive_again(self):
        callback = MagicMock()
        countdown = GroupCountdown("g1", START, callback)

        countdown.tick(START)
        countdown.tick(START - timedelta(seconds=5))
        countdown.tick(START)

        assert callback.call_count == 2


class TestCountdownBoard:
    def test_tracks_only_scheduled_groups(self):
        board = CountdownBoard(MagicMock())
        board.sync([
            make_group("g1", activation_time=START),
            make_group("g2", status=GroupStatus.ACTIVE, activation_time=START),
            make_group("g3"),
        ])

        assert "g1" in board
        assert "g2" not in board
        assert "g3" not in board
        assert len(board) == 1

    def test_resync_keeps_fired_flag(self):
        """Re-rendering the same group does not fire again."""
        callback = MagicMock()
        board = CountdownBoard(callback)
        groups = [make_group("g1", activation_time=START)]

        board.sync(groups)
        board.tick(START + timedelta(seconds=1))
        board.sync(groups)
        board.tick(START + timedelta(seconds=2))

        callback.assert_called_once_with("g1")

    def test_new_activation_time_restarts(self):
        callback = MagicMock()
        board = CountdownBoard(callback)
        board.sync([make_group("g1", activation_time=START)])
        board.tick(START)

        board.sync([make_group("g1", activation_time=START + timedelta(minutes=5))])

        assert board.get("g1").fired is False

    def test_removed_group_dropped(self):
        board = CountdownBoard(MagicMock())
        board.sync([make_group("g1", activation_time=START)])
        board.sync([])
        assert board.get("g1") is None
