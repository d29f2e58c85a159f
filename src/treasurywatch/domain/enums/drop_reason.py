from enum import Enum


class DropReason(str, Enum):
    """Why a raw log was left out of the returned transfer list."""

    UNKNOWN_TOKEN = "UnknownTokenError"
    MALFORMED_LOG = "MalformedLogError"
