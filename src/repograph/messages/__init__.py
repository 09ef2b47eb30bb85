"""Wire protocol between the UI surface and the backend controller."""

from repograph.messages.common import (
    UNCOMMITTED,
    ErrorInfo,
    GitConfigKey,
    GitConfigLocation,
    LoadTarget,
    ProtocolModel,
    RepoSet,
)
from repograph.messages.registry import FIRE_AND_FORGET, REQUEST_TYPES, parse_request
from repograph.messages.requests import RequestMessage
from repograph.messages.responses import ResponseMessage

__all__ = [
    "UNCOMMITTED",
    "ErrorInfo",
    "FIRE_AND_FORGET",
    "GitConfigKey",
    "GitConfigLocation",
    "LoadTarget",
    "ProtocolModel",
    "REQUEST_TYPES",
    "RepoSet",
    "RequestMessage",
    "ResponseMessage",
    "parse_request",
]
