from dataclasses import dataclass

from treelox import expr
from treelox.tokens import Token


@dataclass(frozen=True, eq=False)
class Stmt:
    pass


@dataclass(frozen=True, eq=False)
class Expression(Stmt):
    expr: expr.Expr


@dataclass(frozen=True, eq=False)
class Print(Stmt):
    expr: expr.Expr


@dataclass(frozen=True, eq=False)
class Var(Stmt):
    name: Token
    initializer: expr.Expr | None


@dataclass(frozen=True, eq=False)
class Block(Stmt):
    statements: list[Stmt]


@dataclass(frozen=True, eq=False)
class If(Stmt):
    condition: expr.Expr
    then_branch: Stmt
    else_branch: Stmt | None


@dataclass(frozen=True, eq=False)
class While(Stmt):
    condition: expr.Expr
    body: Stmt


@dataclass(frozen=True, eq=False)
class Function(Stmt):
    name: Token
    params: list[Token]
    body: list[Stmt]


@dataclass(frozen=True, eq=False)
class Return(Stmt):
    keyword: Token
    value: expr.Expr | None


@dataclass(frozen=True, eq=False)
class Class(Stmt):
    name: Token
    superclass: expr.Variable | None
    methods: list[Function]
