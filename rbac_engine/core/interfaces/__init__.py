"""
Backend protocols.
"""

from rbac_engine.core.interfaces.cache import CacheBackend

__all__ = ["CacheBackend"]
