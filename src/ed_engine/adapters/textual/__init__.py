"""Textual front end for the line editor."""

from .controller import TextualEdAdapter, TextualUIHooks

__all__ = ["TextualEdAdapter", "TextualUIHooks"]
