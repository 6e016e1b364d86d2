"""Domain errors and failure typing."""


class WatchError(Exception):
    """Base class for watcher failures."""

    error_code = "WATCH_ERROR"


class ConfigError(WatchError):
    """Raised for invalid or missing configuration, including bad date ranges."""

    error_code = "CONFIG_ERROR"


class FetchError(WatchError):
    """Raised when a single date could not be fetched."""

    error_code = "FETCH_ERROR"

    def __init__(self, message: str, last_error: Exception | None = None) -> None:
        super().__init__(message)
        self.last_error = last_error


class ParseError(WatchError):
    """Raised when one API element does not match the location shape."""

    error_code = "PARSE_ERROR"


class SinkError(WatchError):
    """Raised when the chat post or the file export fails."""

    error_code = "SINK_ERROR"
