"""JSON responses with extra headers."""

from __future__ import annotations

import json
from typing import Any, Iterable, Mapping, Optional, Tuple, Union

from subgateway.http.types import Response

HeadersInput = Union[Mapping[str, str], Iterable[Tuple[str, str]], None]


def json_response(headers: HeadersInput, payload: Any) -> Response:
    """A 200 response carrying ``payload`` as JSON, plus ``headers``.

    The content type is set to ``application/json`` before the extra headers
    are applied.
    """
    merged = [("content-type", "application/json")]
    if headers is not None:
        pairs: Optional[Iterable[Tuple[str, str]]] = (
            headers.items() if isinstance(headers, Mapping) else headers
        )
        merged.extend(pairs)
    return Response(
        status=200,
        headers=merged,  # type: ignore[arg-type]
        body=json.dumps(payload, separators=(",", ":")),
    )