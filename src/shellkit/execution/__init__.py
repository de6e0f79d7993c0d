"""Execution engine package."""

from shellkit.execution.base import DEFAULT_SHELL, Shell, format_invocation
from shellkit.execution.local_exec import LocalShell

__all__ = ["DEFAULT_SHELL", "LocalShell", "Shell", "format_invocation"]
