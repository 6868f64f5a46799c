"""redis_cleanup: TTL-based key cleanup and synthetic seeding for Redis."""

__version__ = "0.1.0"
