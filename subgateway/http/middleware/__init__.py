"""Middleware wrapping request handlers: request ids, tracing and rate limits."""