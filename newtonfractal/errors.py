"""Exceptions raised while configuring a Newton fractal render."""


class ConfigurationError(ValueError):
    """Raised when a render is configured with values it cannot honor."""
