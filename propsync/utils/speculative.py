import copy
import logging

log = logging.getLogger(__name__)


class ViewCache:
    """Local copies of documents, with a stale flag per entry."""

    def __init__(self):
        self._entries = {}
        self._stale = set()

    def get(self, key):
        return self._entries.get(key)

    def put(self, key, value):
        self._entries[key] = value
        self._stale.discard(key)

    def remove(self, key):
        self._entries.pop(key, None)
        self._stale.discard(key)

    def mark_stale(self, key):
        if key in self._entries:
            self._stale.add(key)

    def is_stale(self, key) -> bool:
        return key in self._stale

    def __contains__(self, key):
        return key in self._entries

    def __len__(self):
        return len(self._entries)


def speculative_update(cache: ViewCache, key, patch: dict, write):
    """
    Applies `patch` to the cached entry straight away, then calls `write()`.
    If the write raises, the entry is restored to its previous value and the error
    propagates. If it succeeds, the entry is marked stale so the next read refetches it.
    Returns whatever `write()` returned.
    """
    had_entry = key in cache
    snapshot = copy.deepcopy(cache.get(key))
    cache.put(key, {**(snapshot or {}), **patch})
    try:
        result = write()
    except Exception:
        log.warning(f"Write for {key} failed, reverting local copy")
        if had_entry:
            cache.put(key, snapshot)
        else:
            cache.remove(key)
        raise
    cache.mark_stale(key)
    return result
