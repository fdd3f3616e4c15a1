"""Line storage, marks, yank register, and the undo journal."""

from .buffer import LineBuffer, LineObserver, Mutation
from .marks import MARK_KEYS, MarkTable
from .registers import YankRegister
from .state import BufferState, UndoSnapshot
from .undo import LineAdded, LineChanged, LineDeleted, UndoJournal
from .validation import ensure_address, ensure_range

__all__ = [
    "BufferState",
    "LineAdded",
    "LineBuffer",
    "LineChanged",
    "LineDeleted",
    "LineObserver",
    "MARK_KEYS",
    "MarkTable",
    "Mutation",
    "UndoJournal",
    "UndoSnapshot",
    "YankRegister",
    "ensure_address",
    "ensure_range",
]
