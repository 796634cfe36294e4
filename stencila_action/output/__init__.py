"""Output abstraction layer."""

from .console import (
    ConsoleProtocol,
    MockConsole,
    RichConsole,
    Style,
)
from .job import JobOutputs

__all__ = [
    "ConsoleProtocol",
    "JobOutputs",
    "MockConsole",
    "RichConsole",
    "Style",
]
