"""Unit tests for channel group aggregation and membership changes"""
from datetime import datetime, timezone
from unittest.mock import patch

import pytest

from analysis.channel_groups import (
    FALLBACK_GROUP_NAME,
    ChannelGroupAggregator,
    add_secondary_channel,
    chunked,
    group_metrics,
    reconcile_channel_groups,
    remove_secondary_channel,
)
from core.errors import ChannelNotFoundError, InvalidGroupError


@pytest.fixture
def sample_group(add_channel):
    """Primary P with one secondary S1"""
    primary = add_channel("P", title="Primary", subscribers=100, views=1000, videos=10,
                          secondary_channel_ids=["S1"], group_name="Family")
    add_channel("S1", title="Second", subscribers=50, views=500, videos=5,
                parent_channel_id="P", group_name="Family")
    return primary


class TestGroupMetrics:

    def test_lifetime_totals_skip_video_reads(self, store, sample_group):
        with patch.object(store, "list_videos_for_channel_ids",
                          wraps=store.list_videos_for_channel_ids) as spy:
            metrics = group_metrics(store, "P")

        spy.assert_not_called()
        assert metrics.total_subscribers == 150
        assert metrics.total_views == 1500
        assert metrics.total_videos == 15
        assert metrics.group_name == "Family"
        assert [c.id for c in metrics.channels] == ["P", "S1"]

    def test_windowed_totals(self, store, sample_group, add_video):
        add_video("P", 200, days_old=1, likes=20)
        add_video("S1", 300, days_old=2, comments=30)
        add_video("S1", 9999, days_old=40)

        metrics = group_metrics(store, "P", days_ago=30)

        assert metrics.total_views == 500
        assert metrics.total_videos == 2
        assert metrics.total_likes == 20
        assert metrics.total_comments == 30
        assert metrics.engagement_rate == pytest.approx(10.0)
        assert metrics.average_views_per_video == 250.0

    def test_subscribers_ignore_window(self, store, sample_group):
        lifetime = group_metrics(store, "P")
        windowed = group_metrics(store, "P", days_ago=7)

        assert lifetime.total_subscribers == windowed.total_subscribers == 150
        assert windowed.total_views == 0
        assert windowed.average_views_per_video == 0.0

    def test_large_group_is_queried_in_batches(self, store, add_channel, add_video):
        secondary_ids = [f"S{i:02d}" for i in range(24)]
        add_channel("P", secondary_channel_ids=secondary_ids)
        for channel_id in secondary_ids:
            add_channel(channel_id, parent_channel_id="P")
            add_video(channel_id, 10)

        with patch.object(store, "list_videos_for_channel_ids",
                          wraps=store.list_videos_for_channel_ids) as spy:
            metrics = group_metrics(store, "P", days_ago=30)

        batch_sizes = [len(call.args[0]) for call in spy.call_args_list]
        assert batch_sizes == [10, 10, 5]
        assert metrics.total_views == 240
        assert metrics.total_videos == 24

    def test_store_rejects_oversized_membership_query(self, store):
        with pytest.raises(ValueError):
            store.list_videos_for_channel_ids([f"c{i}" for i in range(11)])

    def test_unresolved_secondary_is_dropped(self, store, add_channel):
        add_channel("P", views=10, secondary_channel_ids=["S1", "ghost"])
        add_channel("S1", views=5, parent_channel_id="P")

        metrics = group_metrics(store, "P")

        assert [c.id for c in metrics.channels] == ["P", "S1"]
        assert metrics.total_views == 15

    def test_group_name_falls_back_to_title(self, store, add_channel):
        add_channel("P", title="Primary")
        add_channel("Q", title="")

        assert group_metrics(store, "P").group_name == "Primary"
        assert group_metrics(store, "Q").group_name == FALLBACK_GROUP_NAME

    def test_unknown_primary(self, store):
        with pytest.raises(ChannelNotFoundError):
            group_metrics(store, "nope")

    def test_rank_groups_lists_primaries_by_views(self, store, sample_group, add_channel):
        add_channel("Solo", views=9000)

        ranked = ChannelGroupAggregator(store).rank_groups()

        assert [g.primary_channel_id for g in ranked] == ["Solo", "P"]

    def test_rank_groups_uses_one_window(self, store, sample_group, add_channel):
        add_channel("Solo")
        now = datetime(2026, 10, 18, 12, tzinfo=timezone.utc)

        with patch.object(store, "list_videos_for_channel_ids",
                          wraps=store.list_videos_for_channel_ids) as spy:
            ChannelGroupAggregator(store).rank_groups(days_ago=7)

        windows = {call.args[1] for call in spy.call_args_list}
        assert len(windows) == 1

        with patch.object(store, "list_videos_for_channel_ids",
                          wraps=store.list_videos_for_channel_ids) as spy:
            ChannelGroupAggregator(store).rank_groups(days_ago=7, now=now)

        assert {call.args[1] for call in spy.call_args_list} == {datetime(2026, 10, 11, 12, tzinfo=timezone.utc)}

    def test_get_channel_group_from_secondary(self, store, sample_group):
        members = ChannelGroupAggregator(store).get_channel_group("S1")

        assert [c.id for c in members] == ["P", "S1"]


class TestAddSecondary:

    def test_links_both_channels(self, store, add_channel):
        add_channel("P", title="Primary")
        add_channel("S1")

        add_secondary_channel(store, "P", "S1")

        primary, secondary = store.get_channel("P"), store.get_channel("S1")
        assert primary.secondary_channel_ids == ["S1"]
        assert secondary.parent_channel_id == "P"
        assert primary.group_name == secondary.group_name == "Primary"

    def test_explicit_name_applies_to_both(self, store, sample_group, add_channel):
        add_channel("S2")

        add_secondary_channel(store, "P", "S2", group_name="Renamed")

        assert store.get_channel("P").group_name == "Renamed"
        assert store.get_channel("S2").group_name == "Renamed"
        assert store.get_channel("P").secondary_channel_ids == ["S1", "S2"]

    def test_adding_twice_is_idempotent(self, store, sample_group):
        add_secondary_channel(store, "P", "S1")
        add_secondary_channel(store, "P", "S1")

        assert store.get_channel("P").secondary_channel_ids == ["S1"]

    def test_self_reference_rejected(self, store, add_channel):
        add_channel("P")

        with pytest.raises(InvalidGroupError):
            add_secondary_channel(store, "P", "P")

    def test_missing_channels(self, store, add_channel):
        add_channel("P")

        with pytest.raises(ChannelNotFoundError):
            add_secondary_channel(store, "P", "ghost")
        with pytest.raises(ChannelNotFoundError):
            add_secondary_channel(store, "ghost", "P")

    def test_secondary_cannot_become_primary(self, store, sample_group, add_channel):
        add_channel("S2")

        with pytest.raises(InvalidGroupError):
            add_secondary_channel(store, "S1", "S2")

    def test_primary_cannot_become_secondary(self, store, sample_group, add_channel):
        add_channel("Q")

        with pytest.raises(InvalidGroupError):
            add_secondary_channel(store, "Q", "P")

    def test_member_of_other_group_rejected(self, store, sample_group, add_channel):
        add_channel("Q")

        with pytest.raises(InvalidGroupError):
            add_secondary_channel(store, "Q", "S1")
        assert store.get_channel("S1").parent_channel_id == "P"

    def test_failed_second_write_rolls_back_both(self, store, add_channel):
        add_channel("P")
        add_channel("S1")
        real_update = store.update_channel
        calls = []

        def flaky_update(channel_id, fields):
            calls.append(channel_id)
            if len(calls) == 2:
                raise RuntimeError("write failed")
            return real_update(channel_id, fields)

        with patch.object(store, "update_channel", side_effect=flaky_update):
            with pytest.raises(RuntimeError):
                add_secondary_channel(store, "P", "S1")

        assert not store.get_channel("P").secondary_channel_ids
        assert store.get_channel("S1").parent_channel_id is None

    def test_empty_primary_becomes_plain_secondary(self, store, add_channel):
        add_channel("P")
        add_channel("S", secondary_channel_ids=[])

        add_secondary_channel(store, "P", "S")

        secondary = store.get_channel("S")
        assert secondary.parent_channel_id == "P"
        assert secondary.secondary_channel_ids is None

    def test_former_primary_can_join_after_emptying(self, store, sample_group, add_channel):
        add_channel("Q")
        remove_secondary_channel(store, "P", "S1")

        add_secondary_channel(store, "Q", "P")

        assert store.get_channel("P").parent_channel_id == "Q"
        assert store.get_channel("P").secondary_channel_ids is None


class TestRemoveSecondary:

    def test_unlinks_both_channels(self, store, sample_group):
        remove_secondary_channel(store, "P", "S1")

        secondary = store.get_channel("S1")
        assert store.get_channel("P").secondary_channel_ids == []
        assert secondary.parent_channel_id is None
        assert secondary.group_name is None

    def test_absent_member_is_noop(self, store, sample_group, add_channel):
        add_channel("Other")

        remove_secondary_channel(store, "P", "Other")

        assert store.get_channel("P").secondary_channel_ids == ["S1"]

    def test_other_groups_link_is_kept(self, store, sample_group, add_channel):
        add_channel("Q", secondary_channel_ids=[])

        remove_secondary_channel(store, "Q", "S1")

        assert store.get_channel("S1").parent_channel_id == "P"

    def test_unknown_primary(self, store):
        with pytest.raises(ChannelNotFoundError):
            remove_secondary_channel(store, "ghost", "S1")


class TestReconcile:

    def test_consistent_groups_need_no_repairs(self, store, sample_group):
        assert reconcile_channel_groups(store) == []

    def test_repairs_one_sided_links(self, store, add_channel):
        # P lists S1 (no parent) and an unknown id; Orphan points at P without being listed
        add_channel("P", title="Primary", secondary_channel_ids=["S1", "ghost"])
        add_channel("S1")
        add_channel("Orphan", parent_channel_id="P", group_name="stale")

        repairs = reconcile_channel_groups(store)

        actions = {(r.channel_id, r.action) for r in repairs}
        assert actions == {
            ("ghost", "dropped_member"),
            ("S1", "set_parent"),
            ("Orphan", "cleared_parent"),
        }
        assert store.get_channel("P").secondary_channel_ids == ["S1"]
        assert store.get_channel("S1").parent_channel_id == "P"
        assert store.get_channel("S1").group_name == "Primary"
        assert store.get_channel("Orphan").parent_channel_id is None

    def test_member_listed_by_two_primaries_stays_with_its_parent(self, store, add_channel):
        add_channel("A", views=10, secondary_channel_ids=["S"])
        add_channel("B", views=5, secondary_channel_ids=["S"])
        add_channel("S", parent_channel_id="B")

        reconcile_channel_groups(store)

        assert store.get_channel("A").secondary_channel_ids == []
        assert store.get_channel("B").secondary_channel_ids == ["S"]
        assert store.get_channel("S").parent_channel_id == "B"

    def test_secondary_with_empty_member_list_is_cleared(self, store, add_channel):
        add_channel("P", secondary_channel_ids=["S"])
        add_channel("S", parent_channel_id="P", secondary_channel_ids=[])

        repairs = reconcile_channel_groups(store)

        assert [(r.channel_id, r.action) for r in repairs] == [("S", "cleared_members")]
        assert store.get_channel("S").secondary_channel_ids is None
        assert store.get_channel("S").parent_channel_id == "P"


def test_chunked():
    assert list(chunked(["a", "b", "c"], 2)) == [["a", "b"], ["c"]]
    assert list(chunked([], 10)) == []
    with pytest.raises(ValueError):
        list(chunked(["a"], 0))
