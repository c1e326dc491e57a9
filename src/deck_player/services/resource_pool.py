"""Opaque resource handles for playable files.

Handles play the role of object URLs: the registry stores the handle, the
engine resolves it when attaching media, and removal releases it. Releases are
tracked so a double release is visible in logs and tests.
"""

from __future__ import annotations

import logging
from uuid import uuid4

logger = logging.getLogger(__name__)

REF_PREFIX = "res:"


class ResourcePool:
    def __init__(self) -> None:
        self._live: dict[str, str] = {}
        self._released: set[str] = set()

    def acquire(self, location: str) -> str:
        ref = f"{REF_PREFIX}{uuid4().hex}"
        self._live[ref] = location
        return ref

    def resolve(self, ref: str) -> str:
        """Return the location for a live handle; `KeyError` once released."""
        return self._live[ref]

    def release(self, ref: str) -> bool:
        location = self._live.pop(ref, None)
        if location is None:
            if ref in self._released:
                logger.warning("Resource handle %s released twice", ref)
            else:
                logger.warning("Release of unknown resource handle %s", ref)
            return False
        self._released.add(ref)
        logger.debug("Released resource handle %s (%s)", ref, location)
        return True

    def is_live(self, ref: str) -> bool:
        return ref in self._live

    @property
    def live_count(self) -> int:
        return len(self._live)
