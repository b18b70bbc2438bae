"""Unit tests for the YouTube Data API client using a mocked transport"""
from datetime import datetime, timezone

import httpx
import pytest

from collection.clients.youtube import (
    YouTubeClient,
    detect_video_type,
    extract_channel_identifier,
    parse_iso_duration,
)

CHANNEL_ID = "UC" + "a" * 22


def video_item(video_id, duration="PT10M", views="100", published="2026-10-10T12:00:00Z"):
    return {
        "id": video_id,
        "snippet": {"channelId": CHANNEL_ID, "title": f"Video {video_id}", "publishedAt": published,
                    "thumbnails": {"high": {"url": f"https://i.ytimg.com/{video_id}.jpg"}}},
        "statistics": {"viewCount": views, "likeCount": "5", "commentCount": "1"},
        "contentDetails": {"duration": duration},
    }


@pytest.fixture(autouse=True)
def no_retry_sleep(monkeypatch):
    monkeypatch.setattr(YouTubeClient._make_request.retry, "sleep", lambda seconds: None)


def make_client(handler):
    return YouTubeClient(api_key="test-key", transport=httpx.MockTransport(handler))


class TestParsing:

    @pytest.mark.parametrize("duration,seconds", [
        ("PT59S", 59),
        ("PT4M59S", 299),
        ("PT1H2M3S", 3723),
        ("P1DT1S", 86401),
        ("", None),
        ("garbage", None),
    ])
    def test_parse_iso_duration(self, duration, seconds):
        assert parse_iso_duration(duration) == seconds

    def test_video_type_threshold(self):
        assert detect_video_type("PT4M59S") == "shorts"
        assert detect_video_type("PT5M") == "normal"
        assert detect_video_type("P0D") == "normal"  # live streams report no duration

    @pytest.mark.parametrize("text,kind,value", [
        (CHANNEL_ID, "id", CHANNEL_ID),
        ("@somecreator", "handle", "somecreator"),
        ("https://www.youtube.com/@somecreator/videos", "handle", "somecreator"),
        ("youtube.com/c/SomeCreator", "custom", "SomeCreator"),
        (f"https://www.youtube.com/channel/{CHANNEL_ID}", "id", CHANNEL_ID),
    ])
    def test_extract_channel_identifier(self, text, kind, value):
        identifier = extract_channel_identifier(text)
        assert (identifier.kind, identifier.value) == (kind, value)

    def test_unrecognised_input(self):
        assert extract_channel_identifier("   ") is None
        assert extract_channel_identifier("https://example.com/about") is None


class TestYouTubeClient:

    def test_channel_details(self):
        def handler(request):
            assert request.url.params["key"] == "test-key"
            return httpx.Response(200, json={"items": [{
                "id": CHANNEL_ID,
                "snippet": {"title": "Creator", "customUrl": "@creator",
                            "publishedAt": "2015-01-01T00:00:00Z"},
                "statistics": {"subscriberCount": "1200", "videoCount": "40", "viewCount": "99000"},
            }]})

        with make_client(handler) as client:
            channel = client.get_channel_details(CHANNEL_ID)

        assert channel.title == "Creator"
        assert channel.subscriber_count == 1200
        assert channel.view_count == 99000
        assert channel.published_at == datetime(2015, 1, 1, tzinfo=timezone.utc)

    def test_unknown_channel(self):
        with make_client(lambda request: httpx.Response(200, json={"items": []})) as client:
            assert client.get_channel_details(CHANNEL_ID) is None

    def test_channel_videos_page_through_uploads(self):
        def handler(request):
            endpoint = request.url.path.rsplit("/", 1)[-1]
            if endpoint == "channels":
                return httpx.Response(200, json={"items": [
                    {"contentDetails": {"relatedPlaylists": {"uploads": "UU123"}}}
                ]})
            if endpoint == "playlistItems":
                page = request.url.params.get("pageToken")
                ids = ["v1", "v2"] if page is None else ["v3"]
                body = {"items": [{"snippet": {"resourceId": {"videoId": i}}} for i in ids]}
                if page is None:
                    body["nextPageToken"] = "next"
                return httpx.Response(200, json=body)
            if endpoint == "videos":
                ids = request.url.params["id"].split(",")
                return httpx.Response(200, json={"items": [
                    video_item(i, duration="PT30S" if i == "v2" else "PT12M") for i in ids
                ]})
            return httpx.Response(404)

        with make_client(handler) as client:
            videos = client.get_channel_videos(CHANNEL_ID)

        assert [v.id for v in videos] == ["v1", "v2", "v3"]
        assert [v.video_type for v in videos] == ["normal", "shorts", "normal"]
        assert videos[0].like_count == 5

    def test_published_after_filter(self):
        def handler(request):
            endpoint = request.url.path.rsplit("/", 1)[-1]
            if endpoint == "channels":
                return httpx.Response(200, json={"items": [
                    {"contentDetails": {"relatedPlaylists": {"uploads": "UU123"}}}
                ]})
            if endpoint == "playlistItems":
                return httpx.Response(200, json={"items": [
                    {"snippet": {"resourceId": {"videoId": i}}} for i in ("new", "old")
                ]})
            return httpx.Response(200, json={"items": [
                video_item("new", published="2026-10-10T00:00:00Z"),
                video_item("old", published="2025-01-01T00:00:00Z"),
            ]})

        with make_client(handler) as client:
            videos = client.get_channel_videos(
                CHANNEL_ID, published_after=datetime(2026, 9, 1, tzinfo=timezone.utc)
            )

        assert [v.id for v in videos] == ["new"]

    def test_handle_resolution_falls_back_to_search(self):
        def handler(request):
            endpoint = request.url.path.rsplit("/", 1)[-1]
            if endpoint == "channels" and "forHandle" in request.url.params:
                return httpx.Response(200, json={"items": []})
            if endpoint == "search":
                return httpx.Response(200, json={"items": [{"id": {"channelId": CHANNEL_ID}}]})
            return httpx.Response(200, json={"items": [{"id": CHANNEL_ID, "snippet": {"title": "Found"}}]})

        with make_client(handler) as client:
            channel = client.get_channel_by_input("@missing")

        assert channel.id == CHANNEL_ID
        assert channel.title == "Found"

    def test_server_errors_are_retried(self):
        attempts = []

        def handler(request):
            attempts.append(request)
            if len(attempts) < 3:
                return httpx.Response(503)
            return httpx.Response(200, json={"items": []})

        with make_client(handler) as client:
            assert client.get_channel_details(CHANNEL_ID) is None

        assert len(attempts) == 3

    def test_client_errors_are_not_retried(self):
        attempts = []

        def handler(request):
            attempts.append(request)
            return httpx.Response(404)

        with make_client(handler) as client:
            with pytest.raises(httpx.HTTPStatusError):
                client.get_channel_details(CHANNEL_ID)

        assert len(attempts) == 1

    def test_retries_give_up_after_five_attempts(self):
        attempts = []

        def handler(request):
            attempts.append(request)
            return httpx.Response(429)

        with make_client(handler) as client:
            with pytest.raises(httpx.HTTPStatusError):
                client.get_channel_details(CHANNEL_ID)

        assert len(attempts) == 5
