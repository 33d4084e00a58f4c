"""Tests for filtering and sorting enriched photographers."""

from assignment_engine.scheduling.ranking import SortBy, availability_of, rank_photographers

from tests.conftest import make_photographer


def names(photographers):
    return [p.name for p in photographers]


class TestDistanceSort:
    def test_nearest_first_unknown_last(self):
        roster = [
            make_photographer(1, "Far", distance=20.0),
            make_photographer(2, "Unknown"),
            make_photographer(3, "Near", distance=2.5),
        ]
        assert names(rank_photographers(roster, show_all=True)) == ["Near", "Far", "Unknown"]

    def test_ties_broken_by_name(self):
        roster = [
            make_photographer(1, "bea", distance=5.0),
            make_photographer(2, "Adam", distance=5.0),
        ]
        assert names(rank_photographers(roster, show_all=True)) == ["Adam", "bea"]

    def test_time_selected_puts_available_first(self):
        roster = [
            make_photographer(1, "Close Busy", distance=1.0, is_available_at_time=False),
            make_photographer(2, "Far Free", distance=30.0, is_available_at_time=True),
        ]
        ranked = rank_photographers(roster, show_all=True, time_selected=True)
        assert names(ranked) == ["Far Free", "Close Busy"]


class TestAvailabilitySort:
    def test_available_then_distance(self):
        roster = [
            make_photographer(1, "Busy", distance=1.0, has_availability=False),
            make_photographer(2, "Free Far", distance=9.0, has_availability=True),
            make_photographer(3, "Free Near", distance=3.0, has_availability=True),
            make_photographer(4, "Unknown", distance=0.5),
        ]
        ranked = rank_photographers(roster, sort_by=SortBy.AVAILABILITY, show_all=True)
        assert names(ranked) == ["Free Near", "Free Far", "Busy", "Unknown"]

    def test_point_in_time_flag_used_when_time_selected(self):
        p = make_photographer(1, "P", has_availability=True, is_available_at_time=False)
        assert availability_of(p, time_selected=True) is False
        assert availability_of(p, time_selected=False) is True


class TestNameSort:
    def test_case_insensitive(self):
        roster = [make_photographer(1, "zoe"), make_photographer(2, "Amy"), make_photographer(3, "bob")]
        ranked = rank_photographers(roster, sort_by="name", show_all=True)
        assert names(ranked) == ["Amy", "bob", "zoe"]


class TestFiltering:
    def test_query_matches_name_city_state(self):
        roster = [
            make_photographer(1, "Avery", city="Springfield", state="IL"),
            make_photographer(2, "Blake", city="Decatur", state="IL"),
            make_photographer(3, "Casey", city="Austin", state="TX"),
        ]
        assert names(rank_photographers(roster, query="decatur", show_all=True)) == ["Blake"]
        assert names(rank_photographers(roster, query=" tx ", show_all=True)) == ["Casey"]
        assert names(rank_photographers(roster, query="AVE", show_all=True)) == ["Avery"]

    def test_hides_unavailable_by_default(self):
        roster = [
            make_photographer(1, "Free", has_availability=True),
            make_photographer(2, "Busy", has_availability=False),
            make_photographer(3, "Unknown"),
        ]
        assert names(rank_photographers(roster)) == ["Free"]

    def test_shows_everyone_when_nothing_known(self):
        roster = [make_photographer(1, "A"), make_photographer(2, "B")]
        assert names(rank_photographers(roster)) == ["A", "B"]

    def test_input_not_mutated(self):
        roster = [make_photographer(1, "B", distance=2.0), make_photographer(2, "A", distance=1.0)]
        rank_photographers(roster, show_all=True)
        assert names(roster) == ["B", "A"]
