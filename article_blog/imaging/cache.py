"""
Derivative cache.

Derivatives live on the filesystem at a path derived from the cache key
(source identity, source last-modified marker, filter set name). A path that
exists is a finished derivative: files are written to a temporary name and
renamed into place only once fully encoded.

Builds for the same key are serialized by a per-key lock, so concurrent
requests for one derivative run the pipeline once. Different keys build in
parallel. Replacing a source changes its marker and therefore its keys; the
old derivatives are left on disk.
"""
import hashlib
import logging
import os
import tempfile
import threading
from contextlib import contextmanager
from functools import lru_cache
from pathlib import Path

from ..conf import article_settings
from ..exceptions import StorageWriteFailed
from .filters import get_filter_sets, render
from .primitives import extension_for

logger = logging.getLogger(__name__)


class KeyedLock:
    """A table of locks, one per key, dropped once nobody holds or waits."""

    def __init__(self):
        self._guard = threading.Lock()
        self._locks = {}

    def __len__(self):
        with self._guard:
            return len(self._locks)

    @contextmanager
    def hold(self, key):
        with self._guard:
            entry = self._locks.get(key)
            if entry is None:
                entry = self._locks[key] = [threading.Lock(), 0]
            entry[1] += 1
        try:
            with entry[0]:
                yield
        finally:
            with self._guard:
                entry[1] -= 1
                if not entry[1]:
                    del self._locks[key]


class DerivativeCache:
    """
    Resolve (source image, filter set) pairs to derivative files.

    Sources are duck-typed: they need ``identity`` (stable name, usually the
    stored file name), ``last_modified`` and ``read_bytes()``.
    """

    def __init__(self, root, filter_sets, base_url="", pipeline=render):
        self.root = Path(root)
        self.filter_sets = filter_sets
        self.base_url = base_url
        self.pipeline = pipeline
        self.locks = KeyedLock()

    def cache_key(self, source, filter_name):
        raw = "\0".join([str(source.identity), str(source.last_modified), filter_name])
        return hashlib.sha256(raw.encode()).hexdigest()

    def path_for(self, source, filter_name):
        filter_set = self.filter_sets.resolve(filter_name)
        # The registered name is a plain str; template args arrive as SafeString,
        # which pathlib rejects before Python 3.12
        key = self.cache_key(source, filter_set.name)
        return self.root / filter_set.name / key[:2] / f"{key}{_suffix(source, filter_set)}"

    def url_for(self, path):
        relative = Path(path).relative_to(self.root).as_posix()
        return f"{self.base_url.rstrip('/')}/{relative}"

    def is_cached(self, source, filter_name):
        return self.path_for(source, filter_name).exists()

    def get_or_create(self, source, filter_name):
        """
        Return the path of the derivative, building it if missing.

        Raises UnknownFilterSet, InvalidParams, OutOfBounds,
        UnsupportedConversion or StorageWriteFailed.
        """
        filter_set = self.filter_sets.resolve(filter_name)
        path = self.path_for(source, filter_name)
        if path.exists():
            logger.debug("Derivative cache hit: %s [%s]", source.identity, filter_name)
            return path

        with self.locks.hold(path.name):
            # Another caller may have finished the build while we waited
            if path.exists():
                logger.debug("Derivative built concurrently: %s [%s]", source.identity, filter_name)
                return path

            data = self.pipeline(source.read_bytes(), filter_set)
            self._write(path, data)

        logger.info(
            "Generated derivative %s [%s] -> %s (%d bytes)",
            source.identity,
            filter_name,
            path,
            len(data),
        )
        return path

    def remove(self, source, filter_names=None):
        """Delete the current derivatives of source. Returns the count removed."""
        removed = 0
        for name in filter_names or self.filter_sets.names():
            path = self.path_for(source, name)
            try:
                path.unlink()
            except FileNotFoundError:
                continue
            removed += 1
        if removed:
            logger.info("Removed %d derivatives of %s", removed, source.identity)
        return removed

    def _write(self, path, data):
        tmp_name = None
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            with tempfile.NamedTemporaryFile(
                dir=path.parent, prefix=".", suffix=".tmp", delete=False
            ) as tmp:
                tmp_name = tmp.name
                tmp.write(data)
            os.replace(tmp_name, path)
        except OSError as exc:
            logger.exception("Failed to write derivative %s", path)
            if tmp_name:
                try:
                    os.unlink(tmp_name)
                except FileNotFoundError:
                    pass
            raise StorageWriteFailed(f"Could not write derivative {path}: {exc}") from exc


def _suffix(source, filter_set):
    fmt = filter_set.output_format
    if fmt:
        return "." + extension_for(fmt)
    return os.path.splitext(str(source.identity))[1].lower()


@lru_cache(maxsize=None)
def get_derivative_cache():
    """Return the process-wide cache configured from settings."""
    return DerivativeCache(
        root=article_settings.CACHE_ROOT,
        filter_sets=get_filter_sets(),
        base_url=article_settings.CACHE_URL,
    )
