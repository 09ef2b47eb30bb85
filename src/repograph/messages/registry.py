"""Command name to request type mapping and inbound message decoding."""

from __future__ import annotations

from typing import Any

from pydantic import ValidationError

from repograph.errors import ProtocolError
from repograph.messages.requests import ALL_REQUESTS, RequestMessage

REQUEST_TYPES: dict[str, type[RequestMessage]] = {
    cls.model_fields["command"].default: cls for cls in ALL_REQUESTS
}

# Requests that never receive a direct reply. fetchAvatar is answered later by
# a pushed fetchAvatar message once the image is available.
FIRE_AND_FORGET: frozenset[str] = frozenset(
    {"fetchAvatar", "rescanForRepos", "endCodeReview", "setRepoState", "showErrorMessage"}
)


def parse_request(data: Any) -> RequestMessage:
    """Decode an inbound wire message into its typed request.

    Raises:
        ProtocolError: If the message has no known command or fails validation.
    """
    if not isinstance(data, dict):
        raise ProtocolError(f"Expected a JSON object, got {type(data).__name__}")

    command = data.get("command")
    if not isinstance(command, str):
        raise ProtocolError("Message has no command")

    request_type = REQUEST_TYPES.get(command)
    if request_type is None:
        raise ProtocolError(f"Unknown command {command!r}", command=command)

    try:
        return request_type.model_validate(data)
    except ValidationError as e:
        raise ProtocolError(f"Malformed {command!r} message: {e}", command=command) from e
