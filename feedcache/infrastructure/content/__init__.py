"""Content sources: adapters that produce feed posts on a cache miss."""
