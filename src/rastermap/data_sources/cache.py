"""In-process memoisation of provider fetches.

The cache is keyed by ``(provider name, region, style)``. Concurrent
requests for the same key share one in-flight fetch: the first caller
downloads, the others wait on the same Future and get the same Mosaic
object. Failed fetches are not cached.
"""
import logging
import threading
from collections import OrderedDict
from concurrent.futures import Future

from .base import Mosaic, TileProvider

logger = logging.getLogger(__name__)


class TileCache:
    """Memoise :meth:`TileProvider.fetch` results.

    Parameters
    ----------
    maxsize : int, optional
        Keep at most this many Mosaics, dropping the least recently used.
        None (default) keeps everything for the life of the process.
    """

    def __init__(self, maxsize=None):
        self.maxsize = maxsize
        self.hits = 0
        self.misses = 0
        self._entries = OrderedDict()
        self._lock = threading.Lock()

    def __len__(self):
        with self._lock:
            return sum(1 for fut in self._entries.values()
                       if fut.done() and fut.exception() is None)

    @staticmethod
    def key(provider: TileProvider, region, style):
        style = provider.validate_style(style)
        return (provider.name, region, style.value)

    def fetch(self, provider: TileProvider, region, style) -> Mosaic:
        """Return the cached Mosaic or fetch it through ``provider``."""
        key = self.key(provider, region, style)
        with self._lock:
            future = self._entries.get(key)
            if future is not None:
                self.hits += 1
                self._entries.move_to_end(key)
                owner = False
            else:
                self.misses += 1
                future = Future()
                self._entries[key] = future
                owner = True

        if not owner:
            return future.result()

        try:
            mosaic = provider.fetch(region, style)
        except BaseException as err:
            with self._lock:
                if self._entries.get(key) is future:
                    del self._entries[key]
            logger.warning("fetch for %s failed, not cached: %s", key, err)
            future.set_exception(err)
            raise
        future.set_result(mosaic)
        self._evict()
        return mosaic

    def _evict(self):
        if self.maxsize is None:
            return
        with self._lock:
            done = [k for k, f in self._entries.items() if f.done()]
            while len(done) > self.maxsize:
                del self._entries[done.pop(0)]

    def clear(self):
        with self._lock:
            self._entries.clear()
            self.hits = 0
            self.misses = 0
