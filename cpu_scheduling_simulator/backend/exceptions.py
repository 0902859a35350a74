"""
Error hierarchy for the scheduling backend.
"""


class SchedulerError(Exception):
    """Base class for all simulator errors."""


class InvalidProcessError(SchedulerError, ValueError):
    """A process was built (or edited) with an invalid id, arrival or burst."""


class InvalidConfigurationError(SchedulerError, ValueError):
    """The simulation parameters cannot drive the selected algorithm."""


class EmptyInputError(SchedulerError, ValueError):
    """A simulation or metrics calculation was requested with no processes."""


class ProcessNotFoundError(SchedulerError, KeyError):
    """No process with the given id is registered."""
