"""
scankey.buffer
==============
The text being composed and the word-boundary rules that prediction,
auto-capitalisation and auto-learning hang off.
"""

from __future__ import annotations

import re
from typing import Callable

_LAST_WORD = re.compile(r"\S+\s*$")

# (word, context) for each word finished by typing a space.
WordHook = Callable[[str, str], None]


class InputBuffer:
    """
    Append-only-at-the-end text buffer.

    ``on_change`` fires after every mutation with the new text.
    ``on_word`` fires when a typed space completes a word.
    """

    def __init__(
        self,
        autocap_i: bool = True,
        on_change: Callable[[str], None] | None = None,
        on_word: WordHook | None = None,
    ) -> None:
        self.text = ""
        self.autocap_i = autocap_i
        self.on_change = on_change
        self.on_word = on_word

    # ── Derived ───────────────────────────────────────────────────────────────

    @property
    def ends_with_space(self) -> bool:
        return self.text[-1:].isspace()

    @property
    def current_word(self) -> str:
        """The partial word at the end of the buffer; empty after whitespace."""
        if not self.text or self.ends_with_space:
            return ""
        return self.text.split()[-1]

    @property
    def context(self) -> str:
        """Everything before the partial word, whitespace-normalised."""
        words = self.text.split()
        if self.current_word:
            words = words[:-1]
        return " ".join(words)

    # ── Mutation ──────────────────────────────────────────────────────────────

    def set(self, text: str) -> None:
        self.text = text
        if self.on_change:
            self.on_change(self.text)

    def insert(self, key: str) -> None:
        """Insert one key's text, upper-casing a lone "i" at a word start."""
        if self.autocap_i and key in ("i", "I"):
            prev = self.text[-1:]
            if not prev or prev.isspace():
                key = "I"
        self.set(self.text + key)

    def space(self) -> None:
        word = self.current_word
        if word and self.on_word:
            self.on_word(word, self.context)
        self.set(self.text + " ")

    def delete_letter(self) -> None:
        self.set(self.text[:-1])

    def delete_word(self) -> None:
        self.set(_LAST_WORD.sub("", self.text.rstrip()))

    def clear(self) -> None:
        self.set("")

    def commit_word(self, word: str) -> str:
        """
        Put ``word`` in place of the partial word (or after a separating space)
        and follow it with a space.  Returns the context the word followed.
        """
        context = self.context
        partial = self.current_word
        head = self.text[: -len(partial)] if partial else self.text
        self.set(head + word + " ")
        return context
