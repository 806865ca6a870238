"""Exceptions raised when the evolution engine is used against its contract."""
from __future__ import annotations


class FlapEvoError(Exception):
    """Base class for every error raised by flapevo."""


class InvalidTopologyWeights(FlapEvoError, ValueError):
    """Explicit weights do not fit the requested topology (or the topology is invalid)."""


class InputSizeMismatch(FlapEvoError, ValueError):
    pass


class WeightCountMismatch(FlapEvoError, ValueError):
    pass


class InvalidPopulationSize(FlapEvoError, ValueError):
    pass


class TopologyMismatch(FlapEvoError, ValueError):
    """Genomes of a single population disagree on their network topology."""


class InvalidConfiguration(FlapEvoError, ValueError):
    pass


class IndexOutOfRange(FlapEvoError, IndexError):
    pass
