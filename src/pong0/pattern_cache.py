"""
Compiled regular expression cache.

Extraction builds patterns from variable names at runtime; the cache keeps
one compiled object per (pattern, flags). Lookups are plain dict reads;
compiling and inserting happens once per key under a lock.
"""

import re
import threading


class PatternCache:
    """Thread-safe cache of compiled regular expressions."""

    def __init__(self) -> None:
        self._patterns: dict[tuple[str, int], re.Pattern] = {}
        self._lock = threading.Lock()

    def get(self, pattern: str, flags: int = 0) -> re.Pattern:
        """Return the compiled pattern, compiling it on first use."""
        key = (pattern, flags)
        compiled = self._patterns.get(key)
        if compiled is not None:
            return compiled

        with self._lock:
            compiled = self._patterns.get(key)
            if compiled is None:
                compiled = re.compile(pattern, flags)
                self._patterns[key] = compiled
        return compiled

    def __len__(self) -> int:
        return len(self._patterns)

    def __contains__(self, pattern: str) -> bool:
        return (pattern, 0) in self._patterns
