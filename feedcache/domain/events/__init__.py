"""Domain Event definitions.

Represents significant occurrences within the cache that other parts
of the system might react to (stats counters, logging listeners).
"""
