"""GraphQL error responses."""

from __future__ import annotations

import json

from subgateway.http.types import Response

_CONTENT_TYPE_JSON = "application/json"


def error_response_body(message: object) -> str:
    """Serialize ``message`` as the JSON body of a GraphQL error response."""
    return json.dumps({"errors": [{"message": str(message)}]}, separators=(",", ":"))


def error_response(err: object) -> Response:
    """Build a GraphQL error response for ``err``.

    GraphQL reports errors in the body, so the HTTP status is always 200.
    """
    return Response(
        status=200,
        headers={"content-type": _CONTENT_TYPE_JSON},
        body=error_response_body(err),
    )