"""
Errors raised by a single fetch cycle.

Neither error ever reaches request processing: the scheduler and the lazy
fetch path catch them, log them, and carry on with whatever list they had.
"""


class TorBlockError(Exception):
    """Base class for all torblock errors."""


class FetchError(TorBlockError):
    """The exit-address listing could not be retrieved."""

    def __init__(self, url: str, cause: BaseException):
        super().__init__(f"Failed to retrieve Tor node list from {url}: {cause}")
        self.url = url
        self.cause = cause


class FormatError(TorBlockError):
    """The listing did not follow the 4-line record structure."""

    def __init__(self, line_number: int, message: str):
        super().__init__(f"line {line_number}: {message}")
        self.line_number = line_number
