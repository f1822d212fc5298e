# pylint: disable=missing-function-docstring,missing-class-docstring,missing-module-docstring

from typing import Optional

from treelox.diagnostics import Diagnostics, Kind
from treelox.tokens import Token, TokenType, keywords


def is_digit(c: Optional[str]) -> bool:
    return c is not None and "0" <= c <= "9"


def is_alpha(c: Optional[str]) -> bool:
    return c is not None and ("a" <= c <= "z" or "A" <= c <= "Z" or c == "_")


def is_alphanumeric(c: Optional[str]) -> bool:
    return is_digit(c) or is_alpha(c)


class Scanner:
    source: str
    tokens: list[Token]

    diagnostics: Diagnostics
    start: int = 0
    current: int = 0
    line: int = 1

    def __init__(self, source: str):
        self.source = source
        self.tokens = []
        self.diagnostics = Diagnostics(Kind.LEXICAL)

    def is_at_end(self) -> bool:
        return self.current >= len(self.source)

    def scan_tokens(self) -> tuple[list[Token], Diagnostics]:
        while not self.is_at_end():
            self.start = self.current
            self.scan_token()

        self.tokens.append(Token(TokenType.EOF, "", None, self.line, self.current))
        return (self.tokens, self.diagnostics)

    def peek(self) -> Optional[str]:
        """
        Returns the next character, or None if we're at EOF
        """
        if self.is_at_end():
            return None
        return self.source[self.current]

    def peek_next(self) -> Optional[str]:
        """
        Returns the character after next, or None it's EOF
        """
        if self.current + 1 >= len(self.source):
            return None
        return self.source[self.current + 1]

    def advance(self) -> str:
        self.current += 1
        return self.source[self.current - 1]

    def add_token(self, typ: TokenType, literal: float | str | None = None):
        text = self.source[self.start : self.current]
        self.tokens.append(Token(typ, text, literal, self.line, self.start))

    def match(self, expected: str) -> bool:
        if self.peek() != expected:
            return False
        self.current += 1
        return True

    def advance_until_match(self, expected: str) -> bool:
        """
        Advances current pointer until expected character is matched (but
        not consumed) or EOF. Returns True if character is found before EOF.
        """
        while not self.is_at_end():
            p = self.peek()
            if p == expected:
                return True
            if p == "\n":
                self.line += 1
            self.advance()
        return False

    def string(self):
        if not self.advance_until_match('"'):
            self.report_error("Unterminated string.")
            return
        # Consume closing ".
        self.advance()

        # Trim the quotes.
        value = self.source[self.start + 1 : self.current - 1]
        self.add_token(TokenType.STRING, value)

    def number(self):
        while is_digit(self.peek()):
            self.advance()
        if self.peek() == "." and is_digit(self.peek_next()):
            self.advance()
            while is_digit(self.peek()):
                self.advance()
        # The letter is left in place and scanned as the start of an identifier.
        if is_alpha(self.peek()):
            self.report_error("Unexpected character in number.")
            return
        value = float(self.source[self.start : self.current])
        self.add_token(TokenType.NUMBER, value)

    def identifier(self):
        while is_alphanumeric(self.peek()):
            self.advance()

        text = self.source[self.start : self.current]
        typ = keywords.get(text, TokenType.IDENTIFIER)
        self.add_token(typ)

    def scan_token(self):
        c = self.advance()
        match c:
            case "(":
                self.add_token(TokenType.LEFT_PAREN)
            case ")":
                self.add_token(TokenType.RIGHT_PAREN)
            case "{":
                self.add_token(TokenType.LEFT_BRACE)
            case "}":
                self.add_token(TokenType.RIGHT_BRACE)
            case ",":
                self.add_token(TokenType.COMMA)
            case ".":
                self.add_token(TokenType.DOT)
            case "-":
                self.add_token(TokenType.MINUS)
            case "+":
                self.add_token(TokenType.PLUS)
            case ";":
                self.add_token(TokenType.SEMICOLON)
            case "*":
                self.add_token(TokenType.STAR)
            case "!":
                self.add_token(
                    TokenType.BANG_EQUAL if self.match("=") else TokenType.BANG
                )
            case "=":
                self.add_token(
                    TokenType.EQUAL_EQUAL if self.match("=") else TokenType.EQUAL
                )
            case "<":
                self.add_token(
                    TokenType.LESS_EQUAL if self.match("=") else TokenType.LESS
                )
            case ">":
                self.add_token(
                    TokenType.GREATER_EQUAL if self.match("=") else TokenType.GREATER
                )
            case "/":
                # Skip over line comments
                if self.match("/"):
                    self.advance_until_match("\n")
                else:
                    self.add_token(TokenType.SLASH)
            # Discard whitespace
            case "\n":
                self.line += 1
            case " " | "\r" | "\t":
                pass
            case '"':
                self.string()
            case c if is_digit(c):
                self.number()
            case c if is_alpha(c):
                self.identifier()
            case _:
                self.report_error("Unexpected character.")

    def report_error(self, message: str):
        self.diagnostics.report_at(self.line, "", message)


def scan(source: str) -> tuple[list[Token], Diagnostics]:
    return Scanner(source).scan_tokens()
