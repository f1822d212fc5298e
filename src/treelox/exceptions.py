import sys
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from treelox.tokens import Token


# Nested source and Lox calls both recurse in Python; a Lox call costs
# about six Python frames.
RECURSION_LIMIT = 10_000


def raise_recursion_limit() -> None:
    if sys.getrecursionlimit() < RECURSION_LIMIT:
        sys.setrecursionlimit(RECURSION_LIMIT)


class LoxError(Exception):
    pass


class LoxRuntimeError(LoxError):
    token: "Token"
    message: str

    def __init__(self, token: "Token", message: str) -> None:
        self.token = token
        self.message = message
        super().__init__(message)
