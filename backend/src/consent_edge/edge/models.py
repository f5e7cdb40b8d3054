"""Per-request value types exchanged with the edge platform."""

from __future__ import annotations

import enum
from dataclasses import dataclass
from dataclasses import field
from typing import Any
from typing import Mapping
from typing import Optional
from typing import Union

from pydantic import BaseModel
from pydantic import ConfigDict
from pydantic import Field
from pydantic import ValidationError

from consent_edge.exceptions import InvalidEventError


class HeaderRecord(BaseModel):
    """A single header value with its original-case name."""

    model_config = ConfigDict(frozen=True)

    key: Optional[str] = None
    value: str


class IncomingRequest(BaseModel):
    """CloudFront request as delivered to a Lambda@Edge function.

    Header names are the lower-cased map keys; each record keeps the
    name as the viewer sent it.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    method: str
    uri: str
    querystring: str = ""
    headers: dict[str, list[HeaderRecord]] = Field(default_factory=dict)
    client_ip: Optional[str] = Field(default=None, alias="clientIp")
    body: Any = None

    @classmethod
    def from_event(cls, event: Mapping[str, Any]) -> "IncomingRequest":
        """Extract the request from a Lambda@Edge event.

        Raises:
            InvalidEventError: If the event has no CloudFront request.
        """
        return cls.from_cf_request(cf_request(event))

    @classmethod
    def from_cf_request(cls, request: Mapping[str, Any]) -> "IncomingRequest":
        try:
            return cls.model_validate(request)
        except ValidationError as exc:
            raise InvalidEventError(
                f"Malformed CloudFront request: {exc.error_count()} error(s)"
            ) from exc

    def first_header(self, name: str) -> Optional[str]:
        """Return the first value of a header, looked up case-insensitively."""
        wanted = name.lower()
        for header_name, records in self.headers.items():
            if header_name.lower() == wanted and records:
                return records[0].value
        return None


def cf_request(event: Mapping[str, Any]) -> dict[str, Any]:
    """Return the raw ``Records[0].cf.request`` dict of an edge event."""
    try:
        request = event["Records"][0]["cf"]["request"]
    except (KeyError, IndexError, TypeError) as exc:
        raise InvalidEventError() from exc
    if not isinstance(request, dict):
        raise InvalidEventError()
    return request


class Upstream(str, enum.Enum):
    """Upstream host family a rewritten request is directed to."""

    SDK = "sdk"
    API = "api"


@dataclass(frozen=True)
class NotFound:
    """Path falls outside the supported prefix."""

    path: str


@dataclass(frozen=True)
class Preflight:
    """CORS preflight to be answered at the edge."""


@dataclass(frozen=True)
class Rewritten:
    """Request accepted and rewritten to the upstream path."""

    path: str
    upstream: Upstream


RoutingDecision = Union[NotFound, Preflight, Rewritten]


@dataclass
class OutgoingResponse:
    """Response returned to the edge platform."""

    status: int
    status_description: str
    headers: dict[str, list[HeaderRecord]] = field(default_factory=dict)
    body: str = ""

    def header(self, name: str) -> Optional[str]:
        records = self.headers.get(name.lower())
        return records[0].value if records else None

    def to_edge(self) -> dict[str, Any]:
        """Serialize to the CloudFront response shape."""
        result: dict[str, Any] = {
            "status": str(self.status),
            "statusDescription": self.status_description,
            "body": self.body,
        }
        if self.headers:
            result["headers"] = {
                name: [record.model_dump(exclude_none=True) for record in records]
                for name, records in self.headers.items()
            }
        return result
