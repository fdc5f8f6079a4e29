"""Generator module for creating KenKen puzzles."""

from .generator import (
    Difficulty,
    GeneratorConfig,
    PuzzleGenerator,
    VerificationResult,
    allowed_operations,
    cage_size_range,
    compute_target,
    generate_puzzle,
    highest_supported_difficulty,
)

__all__ = [
    "Difficulty",
    "GeneratorConfig",
    "PuzzleGenerator",
    "VerificationResult",
    "allowed_operations",
    "cage_size_range",
    "compute_target",
    "generate_puzzle",
    "highest_supported_difficulty",
]
