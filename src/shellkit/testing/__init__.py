"""Test doubles for code that depends on a ``Shell``."""

from shellkit.testing.configurable import ConfigurableMockShell, MatchMode, MockCommand
from shellkit.testing.mock_shell import MockShell
from shellkit.testing.recorder import CommandLog, RecordingShell

__all__ = [
    "CommandLog",
    "ConfigurableMockShell",
    "MatchMode",
    "MockCommand",
    "MockShell",
    "RecordingShell",
]
