"""Caching Service Implementation.

Provides the memory tier, the disk tier, the JSON codec shared by both,
and the orchestrator that implements the CacheService interface.
Bounded Context: Cache Management
"""
