"""File, shell, and input-line collaborators."""

from .files import FileIO, ReadResult, WriteResult, decode_lines, encode_lines, is_shell_target
from .readers import LineReader, QueueReader, StreamReader
from .shell import ShellRunner

__all__ = [
    "FileIO",
    "LineReader",
    "QueueReader",
    "ReadResult",
    "ShellRunner",
    "StreamReader",
    "WriteResult",
    "decode_lines",
    "encode_lines",
    "is_shell_target",
]
