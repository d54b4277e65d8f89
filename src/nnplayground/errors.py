class ConfigurationError(ValueError):
    """Raised when a network, dataset or playground configuration is invalid.

    Nothing is built when this is raised, so callers never see a
    partially-constructed object.
    """


class DimensionMismatchError(ValueError):
    """Raised when an input or target vector does not fit the architecture.

    The network checks dimensions before doing any work, so the call that
    raised this left every weight and bias untouched.
    """
