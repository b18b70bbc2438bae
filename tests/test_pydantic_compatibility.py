"""Tests for Pydantic compatibility and no deprecation warnings"""
import warnings
from datetime import datetime, timezone

import pytest

from analysis.schemas import ChannelRef, GroupMetrics, ViralLevel, ViralVideo
from service.dto import GroupChangeRequestDTO, ViralResponseDTO


def make_viral_video():
    return ViralVideo(
        id="v1",
        title="Hit",
        published_at=datetime(2026, 10, 1, tzinfo=timezone.utc),
        view_count=1000,
        channel_id="X",
        channel_title="Channel X",
        channel_average=280,
        z_score=2.0,
        multiplier=3.6,
        viral_level=ViralLevel.BRONZE,
        percentile=80.0,
    )


class TestPydanticCompatibility:
    """Test Pydantic models use current API without deprecation warnings"""

    def test_viral_video_model_dump(self):
        """Test ViralVideo uses model_dump() without warnings"""
        video = make_viral_video()

        with warnings.catch_warnings(record=True) as warning_list:
            warnings.simplefilter("always")

            data = video.model_dump(mode="json")

            deprecation_warnings = [w for w in warning_list
                                    if issubclass(w.category, DeprecationWarning)]
            assert len(deprecation_warnings) == 0, f"Deprecation warnings found: {deprecation_warnings}"

        assert data["viral_level"] == "bronze"
        assert data["channel_average"] == 280
        assert data["published_at"].startswith("2026-10-01")

    def test_group_metrics_dump_includes_computed_fields(self):
        """Test GroupMetrics serialises its derived rates"""
        metrics = GroupMetrics(
            primary_channel_id="P",
            group_name="Family",
            channels=[ChannelRef(id="P"), ChannelRef(id="S1", parent_channel_id="P")],
            total_views=400,
            total_videos=4,
            total_likes=30,
            total_comments=10,
        )

        with warnings.catch_warnings(record=True) as warning_list:
            warnings.simplefilter("always")

            data = metrics.model_dump()

            deprecation_warnings = [w for w in warning_list
                                    if issubclass(w.category, DeprecationWarning)]
            assert len(deprecation_warnings) == 0, f"Deprecation warnings found: {deprecation_warnings}"

        assert data["engagement_rate"] == pytest.approx(10.0)
        assert data["average_views_per_video"] == 100.0
        assert [c["id"] for c in data["channels"]] == ["P", "S1"]

    def test_percentile_is_bounded(self):
        with pytest.raises(ValueError):
            ViralVideo(**{**make_viral_video().model_dump(), "percentile": 120.0})

    def test_response_dto_round_trip(self):
        response = ViralResponseDTO(videos=[make_viral_video()], total=1)

        restored = ViralResponseDTO.model_validate_json(response.model_dump_json())

        assert restored.videos[0].viral_level == ViralLevel.BRONZE
        assert restored.detection_failed is False

    def test_group_change_request_defaults(self):
        request = GroupChangeRequestDTO(primary_channel_id="P", secondary_channel_id="S1")

        assert request.model_dump() == {
            "primary_channel_id": "P",
            "secondary_channel_id": "S1",
            "group_name": None,
        }
