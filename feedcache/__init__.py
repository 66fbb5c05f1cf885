"""feedcache: a two-tier (memory + disk) content cache for a social feed client.

Provides a byte-bounded in-memory tier, a file-per-key disk tier with lazy
expiration, and an orchestrator that wires them together behind a small CLI.
"""

__version__ = "0.1.0"
