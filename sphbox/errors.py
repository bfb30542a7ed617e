"""Exception and warning types raised by the SPH box simulator."""


class SPHError(Exception):
    """Base class for all simulator errors."""


class ConfigurationError(SPHError, ValueError):
    """Invalid domain, grid, or step configuration.

    Raised at configuration time so that a bad setup (e.g. a zero smoothing
    radius) fails loudly instead of producing silently degenerate physics.
    """


class InvalidStateError(SPHError, RuntimeError):
    """Simulation state violates a structural precondition.

    Raised when the per-particle columns (positions, velocities, densities, ...)
    no longer have matching lengths, or when stepping a simulation that has no
    particles loaded. Not user-recoverable.
    """


class DegenerateGeometryWarning(RuntimeWarning):
    """Two particles occupy exactly the same position.

    The pressure solver substitutes a random unit direction for the pair, so
    the condition is reported but never propagated as a failure.
    """
