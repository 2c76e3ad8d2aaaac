"""
Shared utilities for the query cache.

This package aggregates the ambient building blocks used by every cache
component:

- config: Cache configuration via pydantic-settings
- logging: Structured logging with correlation context
- metrics: Prometheus metrics helpers
- errors: Canonical error types and responses
- test_helpers: Fake records, clock and executor for test suites

Only test_helpers may import the cache components; everything else here
stays dependency-free within the package.
"""
