"""Configuration errors raised before any element loop runs."""


class InvalidConfiguration(ValueError):
    """Quadrature degree, exponent or grid size outside the supported range."""


class UnsupportedForcingSelector(ValueError):
    """Unknown problem type (forcing family) requested."""
