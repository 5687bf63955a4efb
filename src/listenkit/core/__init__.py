"""
Concurrency primitives shared by the rest of the package.

ReadWriteLock:
    Guards Extender state. Request threads read concurrently,
    registration and configuration changes write exclusively.
"""

from .rwlock import ReadWriteLock

__all__ = ["ReadWriteLock"]
