"""Error taxonomy shared by the analysis and service layers"""


class ServiceError(Exception):
    """Base error carrying a stable machine-readable code"""
    code = "INTERNAL_ERROR"

    def __init__(self, message: str, code: str = None):
        self.message = message
        if code is not None:
            self.code = code
        super().__init__(message)


class ChannelNotFoundError(ServiceError):
    """A referenced channel id does not resolve"""
    code = "CHANNEL_NOT_FOUND"

    def __init__(self, channel_id: str):
        self.channel_id = channel_id
        super().__init__(f"Channel not found: {channel_id}")


class InvalidGroupError(ServiceError):
    """A group change would break the primary/secondary invariant"""
    code = "INVALID_GROUP"


class UpstreamError(ServiceError):
    """Reading from the record store or the YouTube API failed"""
    code = "UPSTREAM_UNAVAILABLE"
