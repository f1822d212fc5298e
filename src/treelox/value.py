from typing import TYPE_CHECKING, Protocol, runtime_checkable

from treelox.exceptions import LoxRuntimeError

if TYPE_CHECKING:
    from treelox.interpreter import Interpreter, LoxFunction
    from treelox.tokens import Token


@runtime_checkable
class LoxCallable(Protocol):
    arity: int

    def call(self, intr: "Interpreter", args: "list[LoxValue]") -> "LoxValue":
        ...


class LoxInstance:
    klass: "LoxClass"
    fields: "dict[str, LoxValue]"

    def __init__(self, klass: "LoxClass") -> None:
        self.klass = klass
        self.fields = {}

    def get(self, name: "Token") -> "LoxValue":
        """
        Fields shadow methods. Methods are bound to this instance on access.
        """
        if name.lexeme in self.fields:
            return self.fields[name.lexeme]
        if method := self.klass.find_method(name.lexeme):
            return method.bind(self)
        raise LoxRuntimeError(name, f"Undefined property '{name.lexeme}'.")

    def set(self, name: "Token", value: "LoxValue") -> None:
        self.fields[name.lexeme] = value

    def __str__(self) -> str:
        return f"{self.klass.name} instance"


class LoxClass(LoxCallable):
    name: str
    superclass: "LoxClass | None"
    methods: "dict[str, LoxFunction]"

    def __init__(
        self,
        name: str,
        superclass: "LoxClass | None",
        methods: "dict[str, LoxFunction]",
    ) -> None:
        self.name = name
        self.superclass = superclass
        self.methods = methods

    @property
    def arity(self) -> int:  # type: ignore[override]
        if initializer := self.find_method("init"):
            return initializer.arity
        return 0

    def call(self, intr: "Interpreter", args: "list[LoxValue]") -> "LoxValue":
        instance = LoxInstance(self)
        if initializer := self.find_method("init"):
            initializer.bind(instance).call(intr, args)
        return instance

    def find_method(self, name: str) -> "LoxFunction | None":
        klass: LoxClass | None = self
        while klass is not None:
            if name in klass.methods:
                return klass.methods[name]
            klass = klass.superclass
        return None

    def __str__(self) -> str:
        return self.name


LoxValue = None | bool | float | str | LoxCallable | LoxClass | LoxInstance


def is_truthy(val: LoxValue) -> bool:
    match val:
        case None | False:
            return False
        case _:
            return True


def is_equal(left: LoxValue, right: LoxValue) -> bool:
    """
    Values of different kinds are never equal; there are no coercions, so
    `true == 1` is false. Functions, classes and instances compare by
    identity.
    """
    match (left, right):
        case (None, None):
            return True
        case (bool(), bool()) | (float(), float()) | (str(), str()):
            return left == right
        case _:
            return left is right


def stringify(val: LoxValue) -> str:
    match val:
        case None:
            return "nil"
        case bool():
            return "true" if val else "false"
        case float():
            text = str(val)
            if text.endswith(".0"):
                text = text[:-2]
            return text
        case _:
            return str(val)
