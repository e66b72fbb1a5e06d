"""Building blocks for a GraphQL query gateway: chains, budgets, errors and HTTP middleware."""

__version__ = "0.1.0"