"""Exceptions raised by glinfer."""


class GLiNERError(Exception):
    """Base error for all glinfer failures."""


class ModelNotFoundError(GLiNERError):
    """A model file could not be found."""


class ConfigurationError(GLiNERError):
    """A collaborator broke its contract (missing output tensor, bad shape)."""


class ValidationError(GLiNERError):
    """Caller input was rejected before any batching work started."""
