import pytest

from backend.economics import Assignment, StaffMember
from backend.economics.roster import (
    DEFAULT_HOURS,
    available,
    default_hours_for,
    pick,
    resolve_hours,
    set_hours,
    split_roster,
    unpick,
)


class TestHours:
    def test_default_hours(self, roster):
        doc, rn = roster[0], roster[1]
        assert default_hours_for(doc) == 9
        assert default_hours_for(rn) == DEFAULT_HOURS == 8
        assert default_hours_for(None) == 8

    @pytest.mark.parametrize("requested, expected", [(5.5, 5.5), (0, 9), (None, 9)])
    def test_resolve_hours_falls_back_to_staff_default(self, roster, requested, expected):
        assert resolve_hours(requested, roster[0]) == expected

    def test_resolve_hours_without_default(self, roster):
        assert resolve_hours(0, roster[1]) == 8
        assert resolve_hours(None, None) == 8


class TestSplitRoster:
    def test_groups_active_staff(self, roster):
        physicians, others = split_roster(roster)
        assert [s.id for s in physicians] == ["doc"]
        assert [s.id for s in others] == ["rn", "ma"]


class TestSelection:
    def test_pick_appends_and_ignores_duplicates(self):
        picked = pick((), "doc", 9)
        picked = pick(picked, "rn", 8)
        again = pick(picked, "doc", 4)
        assert again == (Assignment("doc", 9), Assignment("rn", 8))

    def test_pick_blank_id_is_noop(self):
        assert pick((Assignment("rn", 8),), "", 8) == (Assignment("rn", 8),)

    def test_pick_returns_new_tuple(self):
        original = (Assignment("rn", 8),)
        updated = pick(original, "ma", 6)
        assert original == (Assignment("rn", 8),)
        assert len(updated) == 2

    def test_set_hours_and_unpick(self):
        picked = (Assignment("doc", 9), Assignment("rn", 8))
        assert set_hours(picked, "rn", 10.5) == (Assignment("doc", 9), Assignment("rn", 10.5))
        assert unpick(picked, "doc") == (Assignment("rn", 8),)
        assert unpick(picked, "nobody") == picked

    def test_available_excludes_picked(self, roster):
        picked = (Assignment("rn", 8),)
        assert [s.id for s in available(roster, picked)] == ["doc", "ma", "old"]
