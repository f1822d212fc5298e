"""
Diagnostic accumulators shared by every phase of the pipeline.

Each phase (scanning, parsing, resolving, interpreting) creates its own
Diagnostics instance and hands it back to the caller alongside its result.
Nothing here prints; rendering a diagnostic is the driver's job.
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterator, Protocol, runtime_checkable

from treelox.exceptions import LoxRuntimeError
from treelox.tokens import Token, TokenType


Kind = Enum("Kind", ["LEXICAL", "SYNTAX", "RESOLUTION", "RUNTIME"])


@dataclass(frozen=True)
class Diagnostic:
    kind: Kind
    line: int
    message: str
    where: str = ""
    error: LoxRuntimeError | None = field(default=None, compare=False)

    def __str__(self) -> str:
        if self.kind == Kind.RUNTIME:
            return f"{self.message}\n[line {self.line}]"
        where = f" {self.where}" if self.where else ""
        return f"[line {self.line}] Error{where}: {self.message}"


@runtime_checkable
class DiagnosticSink(Protocol):
    def report_at(self, line: int, where: str, message: str) -> None:
        ...

    def runtime_error(self, error: LoxRuntimeError) -> None:
        ...


class Diagnostics:
    kind: Kind
    entries: list[Diagnostic]

    def __init__(self, kind: Kind) -> None:
        self.kind = kind
        self.entries = []

    def report_at(self, line: int, where: str, message: str) -> None:
        self.entries.append(Diagnostic(self.kind, line, message, where))

    def runtime_error(self, error: LoxRuntimeError) -> None:
        self.entries.append(
            Diagnostic(Kind.RUNTIME, error.token.line, error.message, error=error)
        )

    def messages(self) -> list[str]:
        return [entry.message for entry in self.entries]

    def __iter__(self) -> Iterator[Diagnostic]:
        return iter(self.entries)

    def __len__(self) -> int:
        return len(self.entries)

    def __bool__(self) -> bool:
        return bool(self.entries)

    def __repr__(self) -> str:
        return f"Diagnostics({self.kind.name}, {[str(e) for e in self.entries]})"


def error_at(sink: DiagnosticSink, token: Token, message: str) -> None:
    """
    Reports an error located at the given token, naming the lexeme (or the
    end of input) in the rendered message.
    """
    if token.typ == TokenType.EOF:
        sink.report_at(token.line, "at end", message)
    else:
        sink.report_at(token.line, f"at '{token.lexeme}'", message)
