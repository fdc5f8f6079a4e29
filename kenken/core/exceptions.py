"""Exception hierarchy for the KenKen engine."""


class KenKenError(Exception):
    """Base exception for all engine failures."""


class InvalidConfigurationError(KenKenError, ValueError):
    """Raised for an unsupported grid size, difficulty or size/difficulty pairing."""


class InvalidSizeError(InvalidConfigurationError):
    """Raised when a grid size falls outside the supported range."""


class OutOfBoundsError(KenKenError, IndexError):
    """Raised when a (row, col) pair lies outside the grid."""


class StructuralViolationError(KenKenError):
    """Raised when a cage or grid breaks a structural invariant.

    Examples are a SUB cage without exactly two cells, a duplicate cell in a
    cage, or a cage constraint evaluated while one of its cells is empty.
    """


class GenerationFailedError(KenKenError, RuntimeError):
    """Raised when the generator exhausts its attempt budget."""
