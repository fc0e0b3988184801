"""raceway: race redundant outbound requests, keep the first answer.

Two coordinators share one executor abstraction:
- Racer fans a batch out at once, with an optional overall deadline
- StagedRacer gives a primary a warm-up head start before hedging

Usage:
    from raceway import race, race_staged

    response = await race(["https://a.example.com/x", "https://b.example.com/x"], timeout=2.0)
    response = await race_staged("https://a.example.com/x", 0.2, ["https://b.example.com/x"])
"""

from raceway.cancellation import CancellationToken
from raceway.errors import (
    AggregateError,
    EmptyBatchError,
    OperationCancelledError,
    OperationError,
    RaceError,
    RaceTimeoutError,
)
from raceway.executor import CallableExecutor, Executor, HttpxExecutor
from raceway.racer import Racer, race
from raceway.staged import StagedRacer, race_staged

__version__ = "0.1.0"

__all__ = [
    "AggregateError",
    "CallableExecutor",
    "CancellationToken",
    "EmptyBatchError",
    "Executor",
    "HttpxExecutor",
    "OperationCancelledError",
    "OperationError",
    "RaceError",
    "RaceTimeoutError",
    "Racer",
    "StagedRacer",
    "race",
    "race_staged",
]
