"""Client-level errors and the request/response context they carry."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional, Union

DEFAULT_CLIENT_ID = "kafkaclient"
"""Client ID sent to brokers when the user does not specify one."""


@dataclass(frozen=True)
class TopicContext:
    """Error is specific to a topic."""

    topic: str


@dataclass(frozen=True)
class PartitionContext:
    """Error is specific to a partition of a topic."""

    topic: str
    partition: int


@dataclass(frozen=True)
class FetchContext:
    """Error is specific to a fetch request."""

    topic_name: str
    partition_id: int
    offset: int


RequestContext = Union[TopicContext, PartitionContext, FetchContext]


@dataclass(frozen=True)
class LeaderForward:
    """A broker thought to lead a partition pointed to another leader."""

    broker: int
    new_leader: int


@dataclass(frozen=True)
class PartitionFetchState:
    """Usable response data after a failed fetch request."""

    high_watermark: int
    last_stable_offset: Optional[int] = None


ServerErrorResponse = Union[LeaderForward, PartitionFetchState]


class ClientError(Exception):
    """Base class of all client errors."""


class RequestError(ClientError):
    """Sending a request or reading its response failed."""

    def __init__(self, cause: Any) -> None:
        self.cause = cause
        super().__init__(f"Request error: {cause}")


class InvalidResponseError(ClientError):
    """The broker sent a response the client cannot use."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(f"Invalid response: {message}")


class ServerError(ClientError):
    """The broker reported a protocol-level error."""

    def __init__(
        self,
        protocol_error: Any,
        request: RequestContext,
        *,
        error_message: Optional[str] = None,
        response: Optional[ServerErrorResponse] = None,
        is_virtual: bool = False,
    ) -> None:
        self.protocol_error = protocol_error
        self.request = request
        self.error_message = error_message
        self.response = response
        self.is_virtual = is_virtual
        message = error_message if error_message is not None else "n/a"
        super().__init__(
            f'Server error {protocol_error} with message "{message}", '
            f"request: {request!r}, response: {response!r}, "
            f"virtual: {str(is_virtual).lower()}"
        )


class ClientTimeoutError(ClientError):
    """An operation did not finish in time."""

    def __init__(self) -> None:
        super().__init__("Timeout")


def exactly_one_topic(length: int) -> InvalidResponseError:
    """Error for a response that did not hold exactly one topic."""
    return InvalidResponseError(
        f"Expected a single topic in response, got {length}"
    )


def exactly_one_partition(length: int) -> InvalidResponseError:
    """Error for a response that did not hold exactly one partition."""
    return InvalidResponseError(
        f"Expected a single partition in response, got {length}"
    )