# subgateway

Building blocks for a gateway that forwards GraphQL queries to indexers.

## What it provides

- `subgateway.blocks` has `Block`, `UnresolvedBlock` (a block named by hash or
  by number) and `BlockConstraint` with its `BlockConstraintKind`.
- `subgateway.chain.Chain` records which indexers reported which blocks, keeping
  at most 512 distinct blocks. `consensus_blocks()` yields, newest first, the
  blocks reported by more indexers than any competing block at the same height;
  `latest()`, `find()` and `blocks_per_minute()` work from those blocks.
- `subgateway.chains.Chains` keeps one `ChainReader` per chain name and resolves
  chain aliases. A reader queues reports with `notify()` and applies them on
  `flush()` or when the chain is opened with `read()`.
- `subgateway.budgets.Budgeter` revises the minimum indexer fee from the fees
  that queries actually paid, using an integral `Controller` over a
  `DecayBuffer` of past errors. `Budgeter.run()` revises it periodically.
- `subgateway.ttl_hash_map.TtlHashMap` is a mapping whose entries expire after a
  time-to-live.
- `subgateway.ptr.Ptr` is a handle that compares and hashes by identity.
- `subgateway.timeutil.unix_timestamp()` returns milliseconds since the epoch.
- `subgateway.errors` holds the gateway errors (`GatewayError` and its
  subclasses) and indexer errors (`IndexerError`, `UnavailableReason`,
  `MissingBlockError`, `IndexerErrors`). A `GatewayError` turns into a GraphQL
  error response with `to_response()`.
- `subgateway.graphql.error_response` and `subgateway.jsonresp.json_response`
  build `subgateway.http.types.Response` values.
- `subgateway.auth.common` checks subgraph and origin-domain authorization,
  with `*` wildcard domains.
- `subgateway.http.middleware` has request-id, request-tracing and
  rate-limiting middleware. Each wraps an async callable that takes a
  `subgateway.http.types.Request` and returns a `Response`.

## Installing

```
pip install subgateway
```

For running the tests:

```
pip install "subgateway[test]"
pytest
```

## Examples

Authorizing an origin:

```python
from subgateway.auth.common import is_domain_authorized

is_domain_authorized(["example.com", "*.d.e"], "z.d.e")   # True
is_domain_authorized(["example.com"], "sub.example.com")  # False
is_domain_authorized([], "anything")                      # True
```

Expiring entries:

```python
from subgateway.ttl_hash_map import TtlHashMap

cache = TtlHashMap(ttl=5.0)
cache.insert("item", 1337)
cache.get("item")   # 1337 until five seconds have passed, then None
cache.cleanup()     # drops the expired entries
```

Request ids and rate limits in a middleware stack:

```python
from subgateway.http.middleware.rate_limiter import RateLimitSettings
from subgateway.http.middleware.rate_limiter_layer import AddRateLimiterLayer
from subgateway.http.middleware.request_id import SetRequestIdLayer
from subgateway.http.types import Request, Response


async def my_handler(request: Request) -> Response:
    return Response(body="ok")


limits = AddRateLimiterLayer()          # counters reset every 60 seconds by run()
handler = SetRequestIdLayer("gateway-1").layer(limits.layer(my_handler))

request = Request()
request.insert_extension(RateLimitSettings(key="client-1", queries_per_minute=10))
```

Each request without a `cf-ray` header gets an id such as `gateway-1-0`,
`gateway-1-1`, ... in its extensions; with the header, the header's value is
used. Once a key's requests exceed its limit within an interval, the rate
limiter answers with a GraphQL error `auth error: rate limit exceeded`.
Schedule `limits.run()` as an asyncio task to have the counters reset.

## What it does not do

The package is a library of parts. It has no command-line program and no HTTP
server: the middleware wraps plain async callables and must be connected to a
server by the application. It does not parse or rewrite GraphQL queries, fetch
exchange rates, or export metrics.