from pathlib import Path
from typing import Any


def pytest_ignore_collect(collection_path: Path, config: Any) -> bool:  # noqa: D401
    """Skip paths that cannot be stat'ed and numba's on-disk JIT cache.

    Broken symlinks (e.g. a ``lib64`` link created in another environment)
    make ``Path.is_dir()`` raise ``OSError`` during discovery, before the
    built-in ``norecursedirs`` filter runs. The ``__pycache__`` folders that
    ``@njit(cache=True)`` writes next to the kernels hold no tests either.
    """
    try:
        _ = collection_path.is_dir()
    except OSError:
        return True
    return collection_path.name == "__pycache__"
