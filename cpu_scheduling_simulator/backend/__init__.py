"""
Simulation backend: process model, schedulers, metrics and orchestration.
"""

from .core import Process, ProcessIdGenerator, ProcessState, ReadyQueue, TraceEvent
from .exceptions import (
    SchedulerError,
    InvalidProcessError,
    InvalidConfigurationError,
    EmptyInputError,
    ProcessNotFoundError,
)
from .simulator import Scheduler, SimulationConfig, SimulationResult, simulate
from .orchestrator import SimulationOrchestrator

__all__ = [
    'Process', 'ProcessIdGenerator', 'ProcessState', 'ReadyQueue', 'TraceEvent',
    'SchedulerError', 'InvalidProcessError', 'InvalidConfigurationError',
    'EmptyInputError', 'ProcessNotFoundError',
    'Scheduler', 'SimulationConfig', 'SimulationResult', 'simulate',
    'SimulationOrchestrator',
]
