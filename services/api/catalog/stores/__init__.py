"""Data stores for persistence and caching.

Stores handle:
- PostgreSQL: connection pool handle, sessions, query diagnostics
- Redis: caching with TTL policies

No business/ranking logic in stores - that belongs in services.
"""
