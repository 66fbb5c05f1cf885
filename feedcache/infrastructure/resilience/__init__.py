"""Resilience helpers (retries with backoff) for content-source calls."""
