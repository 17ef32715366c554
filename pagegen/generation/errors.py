from __future__ import annotations

"""Errors raised inside the component generation pipeline."""


class GenerationError(RuntimeError):
    """Base class for component generation failures."""
    pass


class InvalidInputError(GenerationError):
    """Raised when the query or context fails validation."""
    pass


class GenerationFailedError(GenerationError):
    """Raised when the provider call fails during generation."""
    pass


class UnknownComponentError(GenerationError):
    """Raised when no generator is registered for a component type."""
    pass
