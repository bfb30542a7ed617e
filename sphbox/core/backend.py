"""
Backend selection and dispatch system for the SPH solver.

Supports two backends:
1. CPU (NumPy) - batched, vectorized brute-force evaluation
2. Numba - JIT-compiled, particle loop parallelized with prange

The backend can be selected globally or per-function call. Implementations
register themselves with the @backend_function / @for_backend decorators
(see sphbox.api).
"""

import enum
import logging
import warnings
from dataclasses import dataclass
from typing import Callable, Dict, Optional

import numba

logger = logging.getLogger(__name__)

# Below this particle count the JIT warm-up dominates, NumPy is faster
NUMBA_MIN_PARTICLES = 256


class Backend(enum.Enum):
    """Available computation backends."""
    CPU = "cpu"      # NumPy
    NUMBA = "numba"  # Numba JIT


@dataclass
class BackendInfo:
    """Information about a backend."""
    backend: Backend
    available: bool
    device_name: str = "CPU"


class BackendManager:
    """Manages backend selection and dispatching."""

    def __init__(self):
        self._current_backend = Backend.CPU
        self._available_backends: Dict[Backend, BackendInfo] = {
            Backend.CPU: BackendInfo(Backend.CPU, True, "CPU (NumPy)"),
            Backend.NUMBA: BackendInfo(Backend.NUMBA, True,
                                       f"CPU (Numba {numba.__version__})"),
        }
        self._implementations: Dict[str, Dict[Backend, Callable]] = {}

    @property
    def current_backend(self) -> Backend:
        return self._current_backend

    @property
    def available_backends(self) -> list:
        return [b for b, info in self._available_backends.items() if info.available]

    def backend_info(self, backend: Backend) -> BackendInfo:
        return self._available_backends[backend]

    def set_backend(self, backend: Backend) -> bool:
        """Set the current backend.

        Args:
            backend: Backend to use

        Returns:
            True if backend was set successfully
        """
        if not self._available_backends[backend].available:
            warnings.warn(f"Backend {backend.value} not available, "
                          f"keeping {self._current_backend.value}")
            return False

        self._current_backend = backend
        logger.info("Backend set to: %s", self._available_backends[backend].device_name)
        return True

    def auto_select_backend(self, n_particles: int) -> Backend:
        """Pick the best backend for a problem size.

        Args:
            n_particles: Number of particles

        Returns:
            Selected backend
        """
        if self._available_backends[Backend.NUMBA].available and n_particles >= NUMBA_MIN_PARTICLES:
            return Backend.NUMBA
        return Backend.CPU

    def register_implementation(self, function_name: str, backend: Backend, func: Callable):
        """Register a backend-specific implementation of a function."""
        self._implementations.setdefault(function_name, {})[backend] = func

    def get_implementation(self, function_name: str,
                           backend: Optional[Backend] = None) -> Callable:
        """Look up the implementation for a function and backend.

        Falls back to the CPU implementation (with a warning) when the
        requested backend has none registered.

        Raises:
            ValueError: if no implementation of function_name exists at all
        """
        if backend is None:
            backend = self._current_backend

        impls = self._implementations.get(function_name, {})
        if backend in impls:
            return impls[backend]

        if Backend.CPU in impls:
            if backend != Backend.CPU:
                warnings.warn(f"No {backend.value} implementation for {function_name}, using CPU")
            return impls[Backend.CPU]

        raise ValueError(f"No implementation found for {function_name}")

    def dispatch(self, function_name: str, *args, backend: Optional[Backend] = None, **kwargs):
        """Dispatch a function call to the appropriate backend."""
        impl = self.get_implementation(function_name, backend)
        return impl(*args, **kwargs)

    def print_info(self):
        """Print information about available backends."""
        print("\nSPH Backend Information")
        print("=" * 60)

        for backend, info in self._available_backends.items():
            status = "+" if info.available else "-"
            print(f"{status} {backend.value:6s}: {info.device_name}")

        print(f"\nCurrent backend: {self._current_backend.value}")
        print("=" * 60)


# Global backend manager instance
_backend_manager = BackendManager()


def resolve_backend(backend) -> Optional[Backend]:
    """Normalise a backend given as None, a name, or a Backend member.

    Raises:
        ValueError: for an unknown backend name
    """
    if backend is None or isinstance(backend, Backend):
        return backend
    return Backend(str(backend).lower())


def set_backend(backend: str) -> bool:
    """Set the global backend.

    Args:
        backend: 'cpu' or 'numba'

    Returns:
        True if successful
    """
    try:
        backend_enum = resolve_backend(backend)
    except ValueError:
        warnings.warn(f"Invalid backend: {backend}. Choose from: "
                      f"{', '.join(b.value for b in Backend)}")
        return False
    return _backend_manager.set_backend(backend_enum)


def get_backend() -> str:
    """Get current backend name."""
    return _backend_manager.current_backend.value


def list_backends() -> Dict[str, bool]:
    """Get dictionary of backend availability."""
    return {
        b.value: info.available
        for b, info in _backend_manager._available_backends.items()
    }


def auto_select_backend(n_particles: int) -> str:
    """Auto-select (and activate) the best backend for a particle count."""
    backend = _backend_manager.auto_select_backend(n_particles)
    _backend_manager.set_backend(backend)
    return backend.value


def print_backend_info():
    _backend_manager.print_info()


def backend_function(function_name: str):
    """Decorator to register backend-specific implementations.

    Usage:
        @backend_function("compute_density")
        @for_backend(Backend.NUMBA)
        def _compute_density_numba(...):
            ...
    """
    def decorator(func):
        if hasattr(func, '_backend'):
            _backend_manager.register_implementation(function_name, func._backend, func)
        return func
    return decorator


def for_backend(backend: Backend):
    """Helper decorator to specify backend."""
    def decorator(func):
        func._backend = backend
        return func
    return decorator


def dispatch(function_name: str, *args, backend=None, **kwargs):
    """Dispatch function to appropriate backend.

    Args:
        function_name: Name of the registered function
        *args: Positional arguments
        backend: Override backend name or member (None for current)
        **kwargs: Keyword arguments

    Returns:
        Function result
    """
    return _backend_manager.dispatch(function_name, *args,
                                     backend=resolve_backend(backend), **kwargs)
