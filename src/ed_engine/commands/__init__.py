"""Command parsing and execution."""

from .executor import CommandExecutor, CommandHandler
from .globals import run_global
from .models import ADDRESS_FREE, GLOBAL_KINDS, CommandKind, ParsedCommand
from .parser import expand_shell_command, parse_command, parse_filename, parse_suffix

__all__ = [
    "ADDRESS_FREE",
    "CommandExecutor",
    "CommandHandler",
    "CommandKind",
    "GLOBAL_KINDS",
    "ParsedCommand",
    "expand_shell_command",
    "parse_command",
    "parse_filename",
    "parse_suffix",
    "run_global",
]
