"""
Error types raised while generating guard code.

Every fatal condition has its own class so callers can tell a broken
expression from an unsupported one, or from a bad selection list.
Unknown identifiers are not errors: they map to themselves.
"""

from __future__ import annotations
from typing import Iterable, Optional


class GuardGenError(Exception):
    """Base class; carries the mnemonic and field/value being processed."""

    def __init__(self, message: str, *, mnemonic: Optional[str] = None,
                 subject: Optional[str] = None):
        self.message = message
        self.mnemonic = mnemonic
        self.subject = subject
        super().__init__(message)

    def attach(self, *, mnemonic: Optional[str] = None,
               subject: Optional[str] = None) -> GuardGenError:
        """Fill in context that was unknown where the error was raised."""
        if self.mnemonic is None:
            self.mnemonic = mnemonic
        if self.subject is None:
            self.subject = subject
        return self

    def __str__(self) -> str:
        loc = ""
        if self.mnemonic is not None:
            loc += f"'{self.mnemonic}'"
        if self.subject is not None:
            loc += f" ({self.subject})" if loc else f"({self.subject})"
        if loc:
            return f"{loc}: {self.message}"
        return self.message


class MalformedExpressionError(GuardGenError):
    """Postfix stream does not reduce to exactly one tree."""
    pass


class UnsupportedValueKindError(GuardGenError):
    """Disassembly value kind that has no rendering rule."""

    def __init__(self, kind: str, **kwargs):
        self.kind = kind
        super().__init__(f"unsupported value kind: {kind}", **kwargs)


class SelectionMismatchError(GuardGenError):
    """Requested mnemonics do not match the constructors found."""

    def __init__(self, requested: int, matched: int,
                 missing: Iterable[str] = (), duplicated: Iterable[str] = ()):
        self.requested = requested
        self.matched = matched
        self.missing = sorted(missing)
        self.duplicated = sorted(duplicated)
        msg = f"selected {requested} mnemonics but matched {matched} constructors"
        if self.missing:
            msg += f"; missing: {', '.join(self.missing)}"
        if self.duplicated:
            msg += f"; duplicated: {', '.join(self.duplicated)}"
        super().__init__(msg)


class ModelError(GuardGenError):
    """Serialized instruction-set model could not be loaded."""
    pass
