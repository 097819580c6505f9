"""Exception types raised inside dotboot stages."""


class DotbootError(Exception):
    """Base class for dotboot errors."""


class PreconditionError(DotbootError):
    """A required tool, directory or marker file is missing."""


class TransientNetworkError(DotbootError):
    """A download failed: timeout, unreachable host, bad status or empty body."""


class ConfigError(DotbootError):
    """The configuration file could not be read or is malformed."""
