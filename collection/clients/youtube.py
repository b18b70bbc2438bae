import re
import httpx
import logging
from typing import List, Dict, Any, Optional
from datetime import datetime
from urllib.parse import urlparse
from pydantic import BaseModel
from pydantic_settings import BaseSettings, SettingsConfigDict
from tenacity import retry, retry_if_exception, stop_after_attempt, wait_exponential_jitter

logger = logging.getLogger(__name__)

# Videos shorter than this are classified as shorts
SHORTS_MAX_SECONDS = 300
PAGE_SIZE = 50

_DURATION_RE = re.compile(r"^P(?:(\d+)D)?T?(?:(\d+)H)?(?:(\d+)M)?(?:(\d+)S)?$")
_CHANNEL_ID_RE = re.compile(r"^UC[\w-]{22}$")


class YouTubeSettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    youtube_api_key: str = ""


class YouTubeChannel(BaseModel):
    id: str
    title: str
    description: str = ""
    thumbnail_url: str = ""
    subscriber_count: int = 0
    video_count: int = 0
    view_count: int = 0
    custom_url: Optional[str] = None
    published_at: Optional[datetime] = None


class YouTubeVideo(BaseModel):
    id: str
    channel_id: str
    title: str
    description: str = ""
    thumbnail_url: str = ""
    published_at: datetime
    view_count: int = 0
    like_count: int = 0
    comment_count: int = 0
    duration: str = ""
    video_type: str = "normal"


class ChannelIdentifier(BaseModel):
    kind: str  # "id" | "handle" | "custom"
    value: str


def parse_iso_duration(duration: str) -> Optional[int]:
    """Total seconds of an ISO-8601 duration such as PT1H2M3S, None if unparseable"""
    match = _DURATION_RE.match(duration or "")
    if not match or not any(match.groups()):
        return None
    days, hours, minutes, seconds = (int(part or 0) for part in match.groups())
    return days * 86400 + hours * 3600 + minutes * 60 + seconds


def detect_video_type(duration: str) -> str:
    """shorts when under five minutes, normal otherwise.

    Live and upcoming streams report a zero duration (P0D) and stay normal.
    """
    total = parse_iso_duration(duration)
    if total and total < SHORTS_MAX_SECONDS:
        return "shorts"
    return "normal"


def extract_channel_identifier(text: str) -> Optional[ChannelIdentifier]:
    """Channel id, @handle or custom name from a raw id, handle or channel URL"""
    cleaned = (text or "").strip()
    if not cleaned:
        return None
    if _CHANNEL_ID_RE.match(cleaned):
        return ChannelIdentifier(kind="id", value=cleaned)
    if cleaned.startswith("@"):
        return ChannelIdentifier(kind="handle", value=cleaned[1:].split("/")[0])

    url = urlparse(cleaned if cleaned.startswith("http") else f"https://{cleaned}")
    path = url.path
    if path.startswith("/@"):
        return ChannelIdentifier(kind="handle", value=path[2:].split("/")[0])
    if path.startswith("/c/"):
        return ChannelIdentifier(kind="custom", value=path[3:].split("/")[0])
    if path.startswith("/channel/"):
        return ChannelIdentifier(kind="id", value=path[9:].split("/")[0])
    return None


def _is_retryable(error: BaseException) -> bool:
    if isinstance(error, httpx.HTTPStatusError):
        return error.response.status_code == 429 or error.response.status_code >= 500
    return isinstance(error, httpx.TransportError)


def _thumbnail(snippet: Dict[str, Any]) -> str:
    thumbnails = snippet.get("thumbnails") or {}
    return (thumbnails.get("high") or thumbnails.get("default") or {}).get("url", "")


def _parse_timestamp(value: str) -> datetime:
    return datetime.fromisoformat(value.replace("Z", "+00:00"))


class YouTubeClient:
    def __init__(self, api_key: Optional[str] = None, transport: Optional[httpx.BaseTransport] = None):
        self.api_key = api_key if api_key is not None else YouTubeSettings().youtube_api_key
        self.base_url = "https://www.googleapis.com/youtube/v3"
        self.client = httpx.Client(
            timeout=10.0,
            limits=httpx.Limits(max_connections=5, max_keepalive_connections=2),
            transport=transport
        )

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.client.close()

    def get_channel_details(self, channel_id: str) -> Optional[YouTubeChannel]:
        """Fetch snippet and statistics for one channel"""
        data = self._make_request("channels", {
            "part": "snippet,statistics,contentDetails",
            "id": channel_id
        })
        items = data.get("items") or []
        if not items:
            logger.warning("Channel not found on YouTube", extra={"channel_id": channel_id})
            return None
        return self._parse_channel(items[0])

    def get_channel_videos(self, channel_id: str, max_results: int = 200,
                           published_after: Optional[datetime] = None) -> List[YouTubeVideo]:
        """Fetch up to `max_results` of the channel's latest uploads"""
        # Step 1: Resolve the uploads playlist
        data = self._make_request("channels", {"part": "contentDetails", "id": channel_id})
        items = data.get("items") or []
        if not items:
            return []
        uploads_playlist_id = items[0]["contentDetails"]["relatedPlaylists"]["uploads"]

        # Step 2: Page through the playlist collecting video ids
        video_ids = self._fetch_playlist_video_ids(uploads_playlist_id, max_results)
        if not video_ids:
            return []

        # Step 3: Fetch details in chunks of 50 ids
        videos = []
        for start in range(0, len(video_ids), PAGE_SIZE):
            chunk = video_ids[start:start + PAGE_SIZE]
            details = self._make_request("videos", {
                "part": "snippet,statistics,contentDetails",
                "id": ",".join(chunk)
            })
            for video in self._parse_videos(details):
                if published_after and video.published_at < published_after:
                    continue
                videos.append(video)

        logger.info(f"Fetched {len(videos)} videos", extra={"channel_id": channel_id})
        return videos

    def get_channel_id_by_handle(self, handle: str) -> Optional[str]:
        """Resolve a @handle or custom name, falling back to channel search"""
        data = self._make_request("channels", {"part": "id", "forHandle": handle})
        items = data.get("items") or []
        if items:
            return items[0]["id"]

        data = self._make_request("search", {
            "part": "snippet",
            "q": handle,
            "type": "channel",
            "maxResults": 1
        })
        items = data.get("items") or []
        if items:
            return items[0].get("id", {}).get("channelId") or items[0]["snippet"].get("channelId")
        return None

    def get_channel_by_input(self, text: str) -> Optional[YouTubeChannel]:
        """Channel details from an id, @handle or channel URL"""
        identifier = extract_channel_identifier(text)
        if identifier is None:
            logger.warning(f"Could not extract channel identifier from {text!r}")
            return None

        channel_id = identifier.value if identifier.kind == "id" else self.get_channel_id_by_handle(identifier.value)
        if not channel_id:
            logger.warning(f"Could not find channel id for {text!r}")
            return None
        return self.get_channel_details(channel_id)

    def _fetch_playlist_video_ids(self, playlist_id: str, max_results: int) -> List[str]:
        video_ids: List[str] = []
        page_token = None

        while len(video_ids) < max_results:
            params = {
                "part": "snippet",
                "playlistId": playlist_id,
                "maxResults": min(max_results - len(video_ids), PAGE_SIZE)
            }
            if page_token:
                params["pageToken"] = page_token

            data = self._make_request("playlistItems", params)
            page_ids = [
                item["snippet"]["resourceId"]["videoId"]
                for item in data.get("items", [])
                if item.get("snippet", {}).get("resourceId", {}).get("videoId")
            ]
            video_ids.extend(page_ids)

            page_token = data.get("nextPageToken")
            if not page_token or not page_ids:
                break

        return video_ids[:max_results]

    @retry(
        retry=retry_if_exception(_is_retryable),
        stop=stop_after_attempt(5),
        wait=wait_exponential_jitter(initial=1, max=30, jitter=0.2),
        before_sleep=lambda retry_state: logger.warning(
            f"Retry {retry_state.attempt_number}: {retry_state.outcome.exception()}"
        ),
        reraise=True
    )
    def _make_request(self, endpoint: str, params: Dict[str, Any]) -> Dict[str, Any]:
        """Make HTTP request with retry logic for 429/5xx errors"""
        params = {
            **params,
            "key": self.api_key
        }

        try:
            response = self.client.get(f"{self.base_url}/{endpoint}", params=params)
            response.raise_for_status()
            return response.json()

        except httpx.HTTPStatusError as e:
            logger.error(f"HTTP error {e.response.status_code}: {e}")
            raise
        except httpx.RequestError as e:
            logger.error(f"Request error: {e}")
            raise

    def _parse_channel(self, item: Dict[str, Any]) -> YouTubeChannel:
        snippet = item.get("snippet", {})
        statistics = item.get("statistics", {})
        return YouTubeChannel(
            id=item["id"],
            title=snippet.get("title", ""),
            description=snippet.get("description", ""),
            thumbnail_url=_thumbnail(snippet),
            subscriber_count=int(statistics.get("subscriberCount", 0)),
            video_count=int(statistics.get("videoCount", 0)),
            view_count=int(statistics.get("viewCount", 0)),
            custom_url=snippet.get("customUrl"),
            published_at=_parse_timestamp(snippet["publishedAt"]) if snippet.get("publishedAt") else None
        )

    def _parse_videos(self, videos_data: Dict[str, Any]) -> List[YouTubeVideo]:
        """Parse video data into YouTubeVideo models"""
        videos = []

        for item in videos_data.get("items", []):
            try:
                snippet = item["snippet"]
                statistics = item.get("statistics", {})
                duration = item.get("contentDetails", {}).get("duration", "")

                videos.append(YouTubeVideo(
                    id=item["id"],
                    channel_id=snippet["channelId"],
                    title=snippet.get("title", ""),
                    description=snippet.get("description", ""),
                    thumbnail_url=_thumbnail(snippet),
                    published_at=_parse_timestamp(snippet["publishedAt"]),
                    view_count=int(statistics.get("viewCount", 0)),
                    like_count=int(statistics.get("likeCount", 0)),
                    comment_count=int(statistics.get("commentCount", 0)),
                    duration=duration,
                    video_type=detect_video_type(duration)
                ))

            except (KeyError, ValueError, TypeError) as e:
                logger.warning(f"Failed to parse video {item.get('id', 'unknown')}: {e}")
                continue

        return videos
