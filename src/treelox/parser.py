from typing import Callable, Optional

import treelox.expr
import treelox.stmt
from treelox.diagnostics import Diagnostics, Kind, error_at
from treelox.exceptions import raise_recursion_limit
from treelox.tokens import Token, TokenType


TT = TokenType

MAX_ARGUMENTS = 255

raise_recursion_limit()


class LoxParseError(Exception):
    pass


class Parser:
    tokens: list[Token]
    current: int = 0
    diagnostics: Diagnostics

    def __init__(self, tokens: list[Token]) -> None:
        self.tokens = tokens
        self.diagnostics = Diagnostics(Kind.SYNTAX)

    def parse(self) -> tuple[list[treelox.stmt.Stmt], Diagnostics]:
        return self.program(), self.diagnostics

    def program(self) -> list[treelox.stmt.Stmt]:
        statements: list[treelox.stmt.Stmt] = []
        while not self.is_at_end():
            if stmt := self.declaration():
                statements.append(stmt)
        return statements

    def declaration(self) -> Optional[treelox.stmt.Stmt]:
        try:
            if self.match(TT.VAR):
                return self.var_declaration()
            if self.match(TT.FUN):
                return self.fun_declaration("function")
            if self.match(TT.CLASS):
                return self.class_declaration()
            return self.statement()
        except LoxParseError:
            self.synchronize()
            return None
        except RecursionError:
            self.error(self.peek(), "Expression nesting too deep.")
            self.synchronize()
            return None

    def var_declaration(self) -> treelox.stmt.Stmt:
        name = self.consume(TT.IDENTIFIER, "Expect variable name.")
        initializer: Optional[treelox.expr.Expr] = None
        if self.match(TT.EQUAL):
            initializer = self.expression()
        self.consume(TT.SEMICOLON, "Expect ';' after variable declaration.")
        return treelox.stmt.Var(name, initializer)

    def fun_declaration(self, kind: str) -> treelox.stmt.Function:
        name = self.consume(TT.IDENTIFIER, f"Expect {kind} name.")
        self.consume(TT.LEFT_PAREN, f"Expect '(' after {kind} name.")
        params: list[Token] = []
        if not self.check(TT.RIGHT_PAREN):
            count = 0
            while True:
                if count == MAX_ARGUMENTS:
                    self.error(self.peek(), "Can't have more than 255 parameters.")
                param = self.consume(TT.IDENTIFIER, "Expect parameter name.")
                count += 1
                # Parameters past the limit are reported once and dropped.
                if count <= MAX_ARGUMENTS:
                    params.append(param)
                if not self.match(TT.COMMA):
                    break
        self.consume(TT.RIGHT_PAREN, "Expect ')' after parameters.")
        self.consume(TT.LEFT_BRACE, f"Expect '{{' before {kind} body.")
        return treelox.stmt.Function(name, params, self.block_statement())

    def class_declaration(self) -> treelox.stmt.Stmt:
        name = self.consume(TT.IDENTIFIER, "Expect class name.")
        superclass: treelox.expr.Variable | None = None
        if self.match(TT.LESS):
            superclass = treelox.expr.Variable(
                self.consume(TT.IDENTIFIER, "Expect superclass name.")
            )
        self.consume(TT.LEFT_BRACE, "Expect '{' before class body.")
        methods: list[treelox.stmt.Function] = []
        while not self.check(TT.RIGHT_BRACE) and not self.is_at_end():
            methods.append(self.fun_declaration("method"))
        self.consume(TT.RIGHT_BRACE, "Expect '}' after class body.")
        return treelox.stmt.Class(name, superclass, methods)

    def statement(self) -> treelox.stmt.Stmt:
        if self.match(TT.PRINT):
            return self.print_statement()
        if self.match(TT.LEFT_BRACE):
            return treelox.stmt.Block(self.block_statement())
        if self.match(TT.IF):
            return self.if_statement()
        if self.match(TT.WHILE):
            return self.while_()
        if self.match(TT.FOR):
            return self.for_()
        if token := self.match(TT.RETURN):
            return self.return_(token)
        return self.expression_statement()

    def print_statement(self) -> treelox.stmt.Stmt:
        expr = self.expression()
        self.consume(TT.SEMICOLON, "Expect ';' after value.")
        return treelox.stmt.Print(expr)

    def block_statement(self) -> list[treelox.stmt.Stmt]:
        statements: list[treelox.stmt.Stmt] = []
        while not self.check(TT.RIGHT_BRACE) and not self.is_at_end():
            if stmt := self.declaration():
                statements.append(stmt)
        self.consume(TT.RIGHT_BRACE, "Expect '}' after block.")
        return statements

    def parse_condition(self, keyword: str) -> treelox.expr.Expr:
        self.consume(TT.LEFT_PAREN, f"Expect '(' after '{keyword}'.")
        cond = self.expression()
        self.consume(TT.RIGHT_PAREN, "Expect ')' after condition.")
        return cond

    def if_statement(self) -> treelox.stmt.Stmt:
        cond = self.parse_condition("if")
        then = self.statement()
        else_: treelox.stmt.Stmt | None = None
        if self.match(TT.ELSE):
            else_ = self.statement()
        return treelox.stmt.If(cond, then, else_)

    def while_(self) -> treelox.stmt.Stmt:
        cond = self.parse_condition("while")
        body = self.statement()
        return treelox.stmt.While(cond, body)

    def for_(self) -> treelox.stmt.Stmt:
        """
        Desugars a for loop into its initializer followed by a while loop,
        both wrapped in a block so the loop variable stays local.
        """
        self.consume(TT.LEFT_PAREN, "Expect '(' after 'for'.")
        statements: list[treelox.stmt.Stmt] = []
        if self.match(TT.VAR):
            statements.append(self.var_declaration())
        elif not self.match(TT.SEMICOLON):
            statements.append(self.expression_statement())
        cond: treelox.expr.Expr = treelox.expr.Literal(True)
        if not self.check(TT.SEMICOLON):
            cond = self.expression()
        self.consume(TT.SEMICOLON, "Expect ';' after loop condition.")
        increment: treelox.expr.Expr | None = None
        if not self.check(TT.RIGHT_PAREN):
            increment = self.expression()
        self.consume(TT.RIGHT_PAREN, "Expect ')' after for clauses.")
        body = self.statement()
        if increment is not None:
            body = treelox.stmt.Block([body, treelox.stmt.Expression(increment)])
        statements.append(treelox.stmt.While(cond, body))
        return treelox.stmt.Block(statements)

    def return_(self, token: Token) -> treelox.stmt.Stmt:
        value: treelox.expr.Expr | None = None
        if not self.check(TT.SEMICOLON):
            value = self.expression()
        self.consume(TT.SEMICOLON, "Expect ';' after return value.")
        return treelox.stmt.Return(token, value)

    def expression_statement(self) -> treelox.stmt.Stmt:
        expr = self.expression()
        self.consume(TT.SEMICOLON, "Expect ';' after expression.")
        return treelox.stmt.Expression(expr)

    def expression(self) -> treelox.expr.Expr:
        return self.assignment()

    def assignment(self) -> treelox.expr.Expr:
        expr = self.or_()
        if equals := self.match(TT.EQUAL):
            value = self.assignment()
            match expr:
                case treelox.expr.Variable(name):
                    return treelox.expr.Assign(name, value)
                case treelox.expr.Get(obj, name):
                    return treelox.expr.Set(obj, name, value)
            # Reported without unwinding, the parser is not confused.
            self.error(equals, "Invalid assignment target.")
        return expr

    def or_(self) -> treelox.expr.Expr:
        expr = self.and_()
        while operator := self.match(TT.OR):
            expr = treelox.expr.Logical(expr, operator, self.and_())
        return expr

    def and_(self) -> treelox.expr.Expr:
        expr = self.equality()
        while operator := self.match(TT.AND):
            expr = treelox.expr.Logical(expr, operator, self.equality())
        return expr

    def equality(self) -> treelox.expr.Expr:
        return self.parse_binary_operation(
            self.comparison,
            TT.BANG_EQUAL,
            TT.EQUAL_EQUAL,
        )

    def comparison(self) -> treelox.expr.Expr:
        return self.parse_binary_operation(
            self.term,
            TT.GREATER,
            TT.GREATER_EQUAL,
            TT.LESS,
            TT.LESS_EQUAL,
        )

    def term(self) -> treelox.expr.Expr:
        return self.parse_binary_operation(self.factor, TT.PLUS, TT.MINUS)

    def factor(self) -> treelox.expr.Expr:
        return self.parse_binary_operation(self.unary, TT.STAR, TT.SLASH)

    def unary(self) -> treelox.expr.Expr:
        if tok := self.match(TT.BANG, TT.MINUS):
            return treelox.expr.Unary(tok, self.unary())
        return self.call()

    def call(self) -> treelox.expr.Expr:
        expr = self.primary()
        while True:
            if self.match(TT.LEFT_PAREN):
                expr = self.finish_call(expr)
            elif self.match(TT.DOT):
                name = self.consume(TT.IDENTIFIER, "Expect property name after '.'.")
                expr = treelox.expr.Get(expr, name)
            else:
                break
        return expr

    def finish_call(self, callee: treelox.expr.Expr) -> treelox.expr.Expr:
        args: list[treelox.expr.Expr] = []
        if not self.check(TT.RIGHT_PAREN):
            args.append(self.expression())
            while self.match(TT.COMMA):
                if len(args) >= MAX_ARGUMENTS:
                    self.error(self.peek(), "Can't have more than 255 arguments.")
                args.append(self.expression())
        paren = self.consume(TT.RIGHT_PAREN, "Expect ')' after arguments.")
        return treelox.expr.Call(callee, paren, args)

    def primary(self) -> treelox.expr.Expr:
        if self.match(TT.FALSE):
            return treelox.expr.Literal(False)
        if self.match(TT.TRUE):
            return treelox.expr.Literal(True)
        if self.match(TT.NIL):
            return treelox.expr.Literal(None)
        if tok := self.match(TT.NUMBER, TT.STRING):
            return treelox.expr.Literal(tok.literal)
        if self.match(TT.LEFT_PAREN):
            expr = self.expression()
            self.consume(TT.RIGHT_PAREN, "Expect ')' after expression.")
            return treelox.expr.Grouping(expr)
        if tok := self.match(TT.IDENTIFIER):
            return treelox.expr.Variable(tok)
        if tok := self.match(TT.THIS):
            return treelox.expr.This(tok)
        if tok := self.match(TT.SUPER):
            self.consume(TT.DOT, "Expect '.' after 'super'.")
            method = self.consume(TT.IDENTIFIER, "Expect superclass method name.")
            return treelox.expr.Super(tok, method)
        raise self.error(self.peek(), "Expect expression.")

    def parse_binary_operation(
        self, next_expr: Callable[[], treelox.expr.Expr], *types: TT
    ) -> treelox.expr.Expr:
        expr = next_expr()
        while tok := self.match(*types):
            expr = treelox.expr.Binary(expr, tok, next_expr())
        return expr

    def synchronize(self):
        """
        Discards tokens until the next statement boundary: just past a
        semicolon, or just before a keyword that starts a declaration.
        """
        if not self.is_at_end():
            self.current += 1
        while not self.is_at_end():
            if self.tokens[self.current - 1].typ == TT.SEMICOLON:
                return
            if self.peek().typ in (
                TT.CLASS,
                TT.FUN,
                TT.VAR,
                TT.FOR,
                TT.IF,
                TT.WHILE,
                TT.PRINT,
                TT.RETURN,
            ):
                return
            self.current += 1

    def consume(self, typ: TT, message: str) -> Token:
        if tok := self.match(typ):
            return tok
        raise self.error(self.peek(), message)

    def error(self, token: Token, message: str) -> LoxParseError:
        """
        Records a syntax error. The returned exception is only raised by
        callers that need to unwind to the enclosing declaration.
        """
        error_at(self.diagnostics, token, message)
        return LoxParseError()

    def is_at_end(self) -> bool:
        return self.peek().typ == TT.EOF

    def peek(self) -> Token:
        return self.tokens[self.current]

    def check(self, *types: TT) -> Optional[Token]:
        """
        Returns the next token if it is one of the given types, without
        consuming it. Returns None if there is no match.
        """
        if (tok := self.peek()).typ in types:
            return tok
        return None

    def match(self, *types: TT) -> Optional[Token]:
        """
        Tries to match the next token to the given types. Consumes and returns
        the token on match, returns None if there is no match.
        """
        if tok := self.check(*types):
            self.current += 1
            return tok
        return None


def parse(tokens: list[Token]) -> tuple[list[treelox.stmt.Stmt], Diagnostics]:
    return Parser(tokens).parse()
