"""Exceptions raised by chainscan."""


class ChainscanError(Exception):
    """Base class for chainscan errors."""


class InvalidConfigurationError(ChainscanError, ValueError):
    """An analysis configuration value is out of range."""


class InvalidProjectError(ChainscanError, ValueError):
    """The project directory does not look like a Maven module."""


class UnsupportedProjectError(ChainscanError):
    """The project is valid but cannot be analysed (e.g. multi-module builds)."""
