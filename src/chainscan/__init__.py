"""chainscan - call chain reconstruction for side-effecting calls in Java projects."""

__version__ = "0.1.0"
