"""
Exception types raised by the deflection core

Quota exhaustion and eligibility denial are ordinary outcomes, not
exceptions; they travel as QuotaStatus / EligibilityResult values.
"""


class DeflectionError(Exception):
    """Base class for deflection engine errors"""


class GenerationError(DeflectionError):
    """Response generator failed or returned a non-conforming payload"""


class ClusteringInputError(DeflectionError):
    """Embeddings missing or of inconsistent dimensionality"""


class InsufficientDataError(DeflectionError):
    """Not enough tickets in the analysis window"""

    def __init__(self, message: str, current_count: int = 0):
        super().__init__(message)
        self.current_count = current_count


class RepositoryError(DeflectionError):
    """Persistence collaborator failed"""
