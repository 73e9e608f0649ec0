"""
Exception types raised by the face recognition engine.

Configuration errors cover bad inputs to training and recognition (no
images, inconsistent image sizes, an untrained model, a wrong-sized query).
Persistence errors cover unreadable or inconsistent model artifacts.
Numerical problems such as a singular scatter matrix are never raised;
they are logged and handled where they occur.
"""


class FaceSpaceError(Exception):
    """Base class for all errors raised by facespace."""


class ConfigurationError(FaceSpaceError, ValueError):
    """Invalid training data, model state or query."""


class PersistenceError(FaceSpaceError, IOError):
    """Training artifacts are missing, corrupt or do not match each other."""
