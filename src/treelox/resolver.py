from enum import auto, Enum
from typing import Iterable

from treelox.diagnostics import Diagnostics, Kind, error_at
from treelox.expr import (
    Assign,
    Binary,
    Call,
    Expr,
    Get,
    Grouping,
    Literal,
    Logical,
    Set,
    Super,
    This,
    Unary,
    Variable,
)
from treelox.stmt import (
    Block,
    Class,
    Expression,
    Function,
    If,
    Print,
    Return,
    Stmt,
    Var,
    While,
)
from treelox.tokens import Token


class FunctionType(Enum):
    NONE = auto()
    FUNCTION = auto()
    INITIALIZER = auto()
    METHOD = auto()


class ClassType(Enum):
    NONE = auto()
    CLASS = auto()
    SUBCLASS = auto()


class Resolver:
    """
    Static pass that records, for every variable use, how many scopes lie
    between the use and the declaration it refers to. Uses with no entry in
    `locals` are globals.

    Each scope maps a name to whether its declaration is complete. A name
    that is declared but not yet defined is inside its own initializer.
    """

    scopes: list[dict[str, bool]]
    globals: set[str]
    locals: dict[Expr, int]
    diagnostics: Diagnostics
    current_function: FunctionType = FunctionType.NONE
    current_class: ClassType = ClassType.NONE

    def __init__(self, globals_: Iterable[str] = ()):
        """
        `globals_` names globals defined before this program, such as natives
        and earlier REPL lines.
        """
        self.scopes = []
        self.globals = set(globals_)
        self.locals = {}
        self.diagnostics = Diagnostics(Kind.RESOLUTION)

    def resolve_program(
        self, statements: list[Stmt]
    ) -> tuple[dict[Expr, int], Diagnostics]:
        self.resolve_statements(statements)
        return self.locals, self.diagnostics

    def resolve_statements(self, statements: list[Stmt]) -> None:
        for statement in statements:
            self.resolve(statement)

    def resolve(self, node: Stmt | Expr | None):
        match node:
            case None:
                pass
            case Stmt():
                self.resolve_stmt(node)
            case Expr():
                self.resolve_expr(node)

    def resolve_stmt(self, stmt: Stmt) -> None:
        match stmt:
            case Block(statements):
                self.begin_scope()
                self.resolve_statements(statements)
                self.end_scope()
            case Var(name, initializer):
                self.declare(name)
                self.resolve(initializer)
                self.define(name)
            case Function(name):
                self.declare(name)
                self.define(name)
                self.resolve_function(stmt, FunctionType.FUNCTION)
            case Class():
                self.resolve_class(stmt)
            case Expression(expr) | Print(expr):
                self.resolve(expr)
            case If(condition, then_branch, else_branch):
                self.resolve(condition)
                self.resolve(then_branch)
                self.resolve(else_branch)
            case While(condition, body):
                self.resolve(condition)
                self.resolve(body)
            case Return(keyword, value):
                if self.current_function == FunctionType.NONE:
                    self.error(keyword, "Can't return from top-level code.")
                self.resolve(value)
            case _:
                raise NotImplementedError(f"Cannot resolve {stmt!r}")

    def resolve_expr(self, expr: Expr) -> None:
        match expr:
            case Variable():
                self.resolve_read(expr)
            case Assign(name, value):
                self.resolve(value)
                self.resolve_local(expr, name)
            case Binary(left, _, right) | Logical(left, _, right):
                self.resolve(left)
                self.resolve(right)
            case Call(callee, _, arguments):
                self.resolve(callee)
                for arg in arguments:
                    self.resolve(arg)
            case Get(obj):
                self.resolve(obj)
            case Set(obj, _, value):
                self.resolve(value)
                self.resolve(obj)
            case Grouping(inner):
                self.resolve(inner)
            case Unary(_, right):
                self.resolve(right)
            case Literal():
                pass
            case This(keyword):
                if self.current_class == ClassType.NONE:
                    self.error(keyword, "Can't use 'this' outside of a class.")
                    return
                self.resolve_local(expr, keyword)
            case Super(keyword):
                if self.current_class == ClassType.NONE:
                    self.error(keyword, "Can't use 'super' outside of a class.")
                elif self.current_class != ClassType.SUBCLASS:
                    self.error(
                        keyword, "Can't use 'super' in a class with no superclass."
                    )
                self.resolve_local(expr, keyword)
            case _:
                raise NotImplementedError(f"Cannot resolve {expr!r}")

    def resolve_local(self, expr: Expr, name: Token):
        for steps, scope in enumerate(reversed(self.scopes)):
            if name.lexeme in scope:
                self.locals[expr] = steps
                return

    def resolve_read(self, expr: Variable):
        """
        Resolves a variable read. A declaration whose initializer is still
        being resolved is not visible to that initializer, so `var a = a + 1;`
        reads the next enclosing `a`. It is an error only when there is no
        such enclosing binding.
        """
        name = expr.name
        in_initializer = False
        for steps, scope in enumerate(reversed(self.scopes)):
            match scope.get(name.lexeme):
                case True:
                    self.locals[expr] = steps
                    return
                case False:
                    in_initializer = True
        if in_initializer and name.lexeme not in self.globals:
            self.error(name, "Can't read local variable in its own initializer.")

    def resolve_function(self, func: Function, typ: FunctionType):
        restore = self.current_function
        self.current_function = typ
        self.begin_scope()
        for param in func.params:
            self.declare(param)
            self.define(param)
        self.resolve_statements(func.body)
        self.end_scope()
        self.current_function = restore

    def resolve_class(self, stmt: Class):
        self.declare(stmt.name)
        self.define(stmt.name)

        if stmt.superclass is not None:
            if stmt.superclass.name.lexeme == stmt.name.lexeme:
                self.error(stmt.superclass.name, "A class can't inherit from itself.")
                return

        enclosing_class = self.current_class
        self.current_class = ClassType.CLASS

        if stmt.superclass is not None:
            self.current_class = ClassType.SUBCLASS
            self.resolve(stmt.superclass)
            self.begin_scope()
            self.scopes[-1]["super"] = True

        self.begin_scope()
        self.scopes[-1]["this"] = True
        for method in stmt.methods:
            typ = FunctionType.METHOD
            if method.name.lexeme == "init":
                typ = FunctionType.INITIALIZER
            self.resolve_function(method, typ)
        self.end_scope()

        if stmt.superclass is not None:
            self.end_scope()

        self.current_class = enclosing_class

    def declare(self, name: Token):
        if not self.scopes:
            self.globals.add(name.lexeme)
        else:
            if name.lexeme in self.scopes[-1]:
                self.error(name, "Already a variable with this name in this scope.")
            self.scopes[-1][name.lexeme] = False

    def define(self, name: Token):
        if self.scopes:
            self.scopes[-1][name.lexeme] = True

    def begin_scope(self):
        self.scopes.append({})

    def end_scope(self):
        self.scopes.pop()

    def error(self, token: Token, message: str):
        error_at(self.diagnostics, token, message)


def resolve(
    statements: list[Stmt], globals_: Iterable[str] = ()
) -> tuple[dict[Expr, int], Diagnostics]:
    return Resolver(globals_).resolve_program(statements)
