"""Tests for groups module models."""

import pytest
from datetime import time

from modules.groups.models import (
    AdminGroupAction,
    ChangeType,
    Group,
    GroupChangeEvent,
    GroupStatus,
    GroupViewer,
    LevelSchedule,
)
from modules.session.models import EnglishLevel


class TestGroupStatus:
    @pytest.mark.parametrize(
        "old,new",
        [
            (GroupStatus.SCHEDULED, GroupStatus.ACTIVE),
            (GroupStatus.SCHEDULED, GroupStatus.WAITING),
            (GroupStatus.WAITING, GroupStatus.FULL),
            (GroupStatus.ACTIVE, GroupStatus.FULL),
            (GroupStatus.FULL, GroupStatus.CLOSED),
            (GroupStatus.WAITING, GroupStatus.CLOSED),
        ],
    )
    def test_forward_transitions(self, old, new):
        assert old.can_transition_to(new) is True

    @pytest.mark.parametrize(
        "old,new",
        [
            (GroupStatus.ACTIVE, GroupStatus.SCHEDULED),
            (GroupStatus.FULL, GroupStatus.ACTIVE),
            (GroupStatus.CLOSED, GroupStatus.WAITING),
            (GroupStatus.ACTIVE, GroupStatus.ACTIVE),
        ],
    )
    def test_backward_transitions_rejected(self, old, new):
        assert old.can_transition_to(new) is False

    def test_closed_is_terminal(self):
        assert GroupStatus.CLOSED.is_terminal is True
        assert GroupStatus.FULL.is_terminal is False


class TestGroup:
    def test_capacity(self):
        group = Group(
            id="g1",
            name="Debate",
            level=EnglishLevel.BEGINNER,
            status=GroupStatus.WAITING,
            participants=["u1", "u2"],
            max_participants=2,
        )
        assert group.participant_count == 2
        assert group.is_full is True
        assert group.is_joinable is False

    def test_joinable_when_open(self):
        group = Group(id="g1", name="Debate", level=EnglishLevel.BEGINNER, status=GroupStatus.ACTIVE)
        assert group.is_joinable is True


class TestGroupChangeEvent:
    def test_status_change_detected(self):
        event = GroupChangeEvent(
            type=ChangeType.UPDATE,
            record={"id": "g1", "status": "active", "level": "beginner"},
            old_record={"id": "g1", "status": "scheduled"},
        )
        assert event.group_id == "g1"
        assert event.level == "beginner"
        assert event.old_status == GroupStatus.SCHEDULED
        assert event.new_status == GroupStatus.ACTIVE
        assert event.status_changed is True

    def test_same_status_is_not_a_change(self):
        event = GroupChangeEvent(
            type=ChangeType.UPDATE,
            record={"id": "g1", "status": "active"},
            old_record={"id": "g1", "status": "active"},
        )
        assert event.status_changed is False

    def test_delete_uses_old_record(self):
        event = GroupChangeEvent(type=ChangeType.DELETE, old_record={"id": "g1", "level": "advanced"})
        assert event.group_id == "g1"
        assert event.level == "advanced"
        assert event.status_changed is False

    def test_unknown_status_ignored(self):
        event = GroupChangeEvent(type=ChangeType.UPDATE, record={"status": "archived"})
        assert event.new_status is None


class TestGroupViewer:
    def test_learner_sees_own_level(self):
        viewer = GroupViewer(user_id="u1", level=EnglishLevel.BEGINNER)
        assert viewer.can_see("beginner") is True
        assert viewer.can_see("advanced") is False
        assert viewer.can_see(None) is False

    def test_admin_sees_everything(self):
        viewer = GroupViewer(user_id="u1", level=EnglishLevel.BEGINNER, is_admin=True)
        assert viewer.can_see("advanced") is True

    def test_one_group_per_day(self):
        assert GroupViewer(user_id="u1", level=EnglishLevel.BEGINNER).can_create_group is True
        viewer = GroupViewer(user_id="u1", level=EnglishLevel.BEGINNER, groups_created_today=1)
        assert viewer.can_create_group is False


class TestMisc:
    def test_delete_is_irreversible(self):
        assert AdminGroupAction.DELETE.is_irreversible is True
        assert AdminGroupAction.CLOSE.is_irreversible is False

    def test_past_tense(self):
        assert [a.past_tense for a in AdminGroupAction] == ["closed", "deleted", "extended"]

    def test_schedule_display(self):
        assert LevelSchedule().display() == "20:00 - 23:00"
        assert LevelSchedule(start_time=time(18, 30), end_time=time(21, 0)).display() == "18:30 - 21:00"
