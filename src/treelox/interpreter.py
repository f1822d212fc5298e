import math
import sys
import time
from dataclasses import dataclass
from typing import Callable, TextIO

import treelox.expr
import treelox.stmt
from treelox.diagnostics import Diagnostics, Kind
from treelox.environment import Environment
from treelox.exceptions import LoxRuntimeError, raise_recursion_limit
from treelox.tokens import Token, TokenType
from treelox.value import (
    LoxCallable,
    LoxClass,
    LoxInstance,
    LoxValue,
    is_equal,
    is_truthy,
    stringify,
)

raise_recursion_limit()


@dataclass(frozen=True)
class Returned:
    """Outcome of a statement that executed `return`."""

    value: LoxValue


# Executing a statement yields None when control falls through to the next one.
Outcome = Returned | None


@dataclass
class NativeFunction(LoxCallable):
    arity: int
    name: str
    func: Callable[..., LoxValue]

    def call(self, intr: "Interpreter", args: list[LoxValue]) -> LoxValue:
        return self.func(intr, *args)

    def __str__(self) -> str:
        return "<native fn>"


class LoxFunction(LoxCallable):
    arity: int
    declaration: treelox.stmt.Function
    closure: Environment
    is_initializer: bool

    def __init__(
        self,
        declaration: treelox.stmt.Function,
        closure: Environment,
        is_initializer: bool = False,
    ) -> None:
        self.arity = len(declaration.params)
        self.declaration = declaration
        self.closure = closure
        self.is_initializer = is_initializer

    def call(self, intr: "Interpreter", args: list[LoxValue]) -> LoxValue:
        env = Environment(self.closure)
        for param, arg in zip(self.declaration.params, args):
            env.define(param.lexeme, arg)
        outcome = intr.execute_block(self.declaration.body, env)
        # An initializer always produces its instance, whatever it returns.
        if self.is_initializer:
            return self.closure.get_at(0, "this")
        if outcome is not None:
            return outcome.value
        return None

    def bind(self, instance: LoxInstance) -> "LoxFunction":
        env = Environment(self.closure)
        env.define("this", instance)
        return LoxFunction(self.declaration, env, self.is_initializer)

    def __str__(self) -> str:
        return f"<fn {self.declaration.name.lexeme}>"


def divide(left: float, right: float) -> float:
    """IEEE-754 division: dividing by zero gives an infinity or NaN."""
    if right == 0:
        if left == 0 or math.isnan(left):
            return math.nan
        return math.copysign(math.inf, left) * math.copysign(1.0, right)
    return left / right


class Interpreter:
    globals: Environment
    env: Environment
    locals: dict[treelox.expr.Expr, int]
    out: TextIO | None

    def __init__(self, out: TextIO | None = None) -> None:
        """
        `out` is where print statements write; None means whatever
        sys.stdout is at the time of printing.
        """
        self.out = out
        self.globals = Environment()
        self.env = self.globals
        self.locals = {}
        self.globals.define(
            "clock", NativeFunction(0, "clock", lambda _: time.time())
        )

    def interpret(
        self,
        statements: list[treelox.stmt.Stmt],
        locals_: dict[treelox.expr.Expr, int] | None = None,
    ) -> Diagnostics:
        """
        Executes statements in order. The first runtime error stops execution
        and is the only diagnostic returned; output printed before it stays.
        """
        diagnostics = Diagnostics(Kind.RUNTIME)
        if locals_:
            self.locals.update(locals_)
        try:
            for stmt in statements:
                self.execute(stmt)
        except LoxRuntimeError as error:
            diagnostics.runtime_error(error)
        return diagnostics

    def execute_block(
        self, statements: list[treelox.stmt.Stmt], env: Environment
    ) -> Outcome:
        env_restore = self.env
        try:
            self.env = env
            for stmt in statements:
                if (outcome := self.execute(stmt)) is not None:
                    return outcome
            return None
        finally:
            self.env = env_restore

    def execute(self, stmt: treelox.stmt.Stmt) -> Outcome:
        match stmt:
            case treelox.stmt.Expression(expr):
                self.evaluate(expr)
            case treelox.stmt.Print(expr):
                self.print(stringify(self.evaluate(expr)))
            case treelox.stmt.Var(name, initializer):
                val: LoxValue = None
                if initializer is not None:
                    val = self.evaluate(initializer)
                self.env.define(name.lexeme, val)
            case treelox.stmt.Block(statements):
                return self.execute_block(statements, Environment(self.env))
            case treelox.stmt.If(condition, then_branch, else_branch):
                if is_truthy(self.evaluate(condition)):
                    return self.execute(then_branch)
                if else_branch is not None:
                    return self.execute(else_branch)
            case treelox.stmt.While(condition, body):
                while is_truthy(self.evaluate(condition)):
                    if (outcome := self.execute(body)) is not None:
                        return outcome
            case treelox.stmt.Function(name):
                self.env.define(name.lexeme, LoxFunction(stmt, self.env))
            case treelox.stmt.Return(_, value):
                return Returned(None if value is None else self.evaluate(value))
            case treelox.stmt.Class():
                self.execute_class(stmt)
            case _:
                raise NotImplementedError(f"Cannot execute {stmt!r}")
        return None

    def execute_class(self, stmt: treelox.stmt.Class) -> None:
        superclass: LoxClass | None = None
        if stmt.superclass is not None:
            val = self.evaluate(stmt.superclass)
            if not isinstance(val, LoxClass):
                raise LoxRuntimeError(
                    stmt.superclass.name, "Superclass must be a class."
                )
            superclass = val

        self.env.define(stmt.name.lexeme, None)

        closure = self.env
        if superclass is not None:
            closure = Environment(closure)
            closure.define("super", superclass)

        methods: dict[str, LoxFunction] = {}
        for method in stmt.methods:
            methods[method.name.lexeme] = LoxFunction(
                method, closure, method.name.lexeme == "init"
            )
        klass = LoxClass(stmt.name.lexeme, superclass, methods)
        self.env.assign(stmt.name, klass)

    def print(self, text: str) -> None:
        print(text, file=self.out if self.out is not None else sys.stdout)

    def evaluate(self, expr: treelox.expr.Expr) -> LoxValue:
        match expr:
            case treelox.expr.Literal(value):
                return value
            case treelox.expr.Grouping(inner):
                return self.evaluate(inner)
            case treelox.expr.Unary():
                return self.evaluate_unary(expr)
            case treelox.expr.Binary():
                return self.evaluate_binary(expr)
            case treelox.expr.Logical(left, operator, right):
                val = self.evaluate(left)
                # Short circuit:
                if (is_truthy(val), operator.typ) in (
                    (True, TokenType.OR),
                    (False, TokenType.AND),
                ):
                    return val
                return self.evaluate(right)
            case treelox.expr.Variable(name):
                return self.lookup_variable(name, expr)
            case treelox.expr.Assign(name, value):
                val = self.evaluate(value)
                steps = self.locals.get(expr)
                if steps is None:
                    self.globals.assign(name, val)
                else:
                    self.env.assign_at(steps, name.lexeme, val)
                return val
            case treelox.expr.Call():
                return self.evaluate_call(expr)
            case treelox.expr.Get(obj, name):
                instance = self.evaluate(obj)
                if not isinstance(instance, LoxInstance):
                    raise LoxRuntimeError(name, "Only instances have properties.")
                return instance.get(name)
            case treelox.expr.Set(obj, name, value):
                instance = self.evaluate(obj)
                if not isinstance(instance, LoxInstance):
                    raise LoxRuntimeError(name, "Only instances have fields.")
                val = self.evaluate(value)
                instance.set(name, val)
                return val
            case treelox.expr.This(keyword):
                return self.lookup_variable(keyword, expr)
            case treelox.expr.Super():
                return self.evaluate_super(expr)
            case _:
                raise NotImplementedError(f"Cannot evaluate {expr!r}")

    def evaluate_unary(self, expr: treelox.expr.Unary) -> LoxValue:
        val = self.evaluate(expr.right)
        match expr.operator.typ:
            case TokenType.MINUS:
                if not isinstance(val, float):
                    raise LoxRuntimeError(expr.operator, "Operand must be a number.")
                return -val
            case TokenType.BANG:
                return not is_truthy(val)
        raise NotImplementedError(f"Unexpected unary operator {expr.operator}")

    def evaluate_binary(self, expr: treelox.expr.Binary) -> LoxValue:
        left = self.evaluate(expr.left)
        right = self.evaluate(expr.right)
        # Deal with equality, which has no type constraints.
        match expr.operator.typ:
            case TokenType.EQUAL_EQUAL:
                return is_equal(left, right)
            case TokenType.BANG_EQUAL:
                return not is_equal(left, right)
            case TokenType.PLUS:
                match (left, right):
                    case (float(), float()) | (str(), str()):
                        return left + right  # type: ignore[operator]
                raise LoxRuntimeError(
                    expr.operator, "Operands must be two numbers or two strings."
                )
        if not (isinstance(left, float) and isinstance(right, float)):
            raise LoxRuntimeError(expr.operator, "Operands must be numbers.")
        match expr.operator.typ:
            case TokenType.MINUS:
                return left - right
            case TokenType.SLASH:
                return divide(left, right)
            case TokenType.STAR:
                return left * right
            case TokenType.GREATER:
                return left > right
            case TokenType.GREATER_EQUAL:
                return left >= right
            case TokenType.LESS:
                return left < right
            case TokenType.LESS_EQUAL:
                return left <= right
        raise NotImplementedError(f"Unexpected binary operator {expr.operator}")

    def evaluate_call(self, expr: treelox.expr.Call) -> LoxValue:
        callee = self.evaluate(expr.callee)
        arguments: list[LoxValue] = [self.evaluate(arg) for arg in expr.arguments]
        if not isinstance(callee, LoxCallable):
            raise LoxRuntimeError(expr.paren, "Can only call functions and classes.")
        if len(arguments) != callee.arity:
            raise LoxRuntimeError(
                expr.paren,
                f"Expected {callee.arity} arguments but got {len(arguments)}.",
            )
        try:
            return callee.call(self, arguments)
        except RecursionError:
            raise LoxRuntimeError(expr.paren, "Stack overflow.") from None

    def evaluate_super(self, expr: treelox.expr.Super) -> LoxValue:
        """
        Looks the method up starting at the superclass of the class that
        lexically contains the running method, and binds it to the current
        `this`, which lives one scope inside the one holding `super`.
        """
        steps = self.locals[expr]
        superclass = self.env.get_at(steps, "super")
        this = self.env.get_at(steps - 1, "this")
        assert isinstance(superclass, LoxClass)
        assert isinstance(this, LoxInstance)
        method = superclass.find_method(expr.method.lexeme)
        if method is None:
            raise LoxRuntimeError(
                expr.method, f"Undefined property '{expr.method.lexeme}'."
            )
        return method.bind(this)

    def lookup_variable(self, name: Token, expr: treelox.expr.Expr) -> LoxValue:
        steps = self.locals.get(expr)
        if steps is None:
            return self.globals.get(name)
        return self.env.get_at(steps, name.lexeme)
