from __future__ import annotations
from typing import Optional


class TranslationError(Exception):
    kind = "translation error"

    def __init__(self, message: str, line: Optional[int] = None, text: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.line = line
        self.text = text

    def at(self, line: int, text: str) -> "TranslationError":
        # parser attaches the position once the failing line is known
        if self.line is None:
            self.line = line
        if self.text is None:
            self.text = text
        return self

    def __str__(self) -> str:
        if self.line is None:
            return f"[{self.kind}] {self.message}"
        return f"[{self.kind}] line={self.line}: {self.message}"


class UnknownSegmentError(TranslationError):
    kind = "unknown segment"


class UnknownOperatorError(TranslationError):
    kind = "unknown operator"


class MalformedOperandError(TranslationError):
    kind = "malformed operand"


class ArityError(TranslationError):
    kind = "arity mismatch"


class UnknownCommandError(TranslationError):
    kind = "unknown command"


class SyntaxVMError(TranslationError):
    kind = "syntax error"
