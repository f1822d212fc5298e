from typing import TYPE_CHECKING

from treelox.exceptions import LoxRuntimeError
from treelox.tokens import Token

if TYPE_CHECKING:
    from treelox.value import LoxValue


class Environment:
    """
    A single scope of name bindings, chained to its enclosing scope. Closures
    hold on to the environment they were declared in, so an environment lives
    as long as the longest-lived function referencing it.
    """

    values: "dict[str, LoxValue]"
    enclosing: "Environment | None"

    def __init__(self, enclosing: "Environment | None" = None) -> None:
        self.values = {}
        self.enclosing = enclosing

    def define(self, name: str, value: "LoxValue"):
        # Redefinition is allowed; the resolver rejects it in local scopes.
        self.values[name] = value

    def ancestor(self, distance: int) -> "Environment":
        env: Environment = self
        for _ in range(distance):
            assert env.enclosing is not None, "resolved distance exceeds scope chain"
            env = env.enclosing
        return env

    def get(self, name: Token) -> "LoxValue":
        env: Environment | None = self
        while env is not None:
            if name.lexeme in env.values:
                return env.values[name.lexeme]
            env = env.enclosing
        raise LoxRuntimeError(name, f"Undefined variable '{name.lexeme}'.")

    def assign(self, name: Token, value: "LoxValue"):
        env: Environment | None = self
        while env is not None:
            if name.lexeme in env.values:
                env.values[name.lexeme] = value
                return
            env = env.enclosing
        raise LoxRuntimeError(name, f"Undefined variable '{name.lexeme}'.")

    def get_at(self, distance: int, name: str) -> "LoxValue":
        return self.ancestor(distance).values[name]

    def assign_at(self, distance: int, name: str, value: "LoxValue"):
        self.ancestor(distance).values[name] = value

    def __str__(self) -> str:
        stacks: list[str] = []
        env: Environment | None = self
        depth = 0
        while env is not None:
            stacks.append(f"Frame {depth:2}: {set(env.values.keys())}")
            env = env.enclosing
            depth += 1
        return "\n".join(stacks)
