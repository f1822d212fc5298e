import os
import sys
import traceback

from treelox import interpreter
from treelox import parser
from treelox import resolver
from treelox import scanner
from treelox.diagnostics import Diagnostics, Kind


EX_USAGE = 64
EX_DATAERR = 65
EX_SOFTWARE = 70


def debug_from_env() -> bool:
    return os.environ.get("TREELOX_DEBUG", "") not in ("", "0")


def exit_code(results: list[Diagnostics]) -> int:
    """
    Maps the diagnostics of a run to a process exit code: 65 if the source
    never reached execution, 70 if execution hit a runtime error.
    """
    for diagnostics in results:
        if diagnostics and diagnostics.kind != Kind.RUNTIME:
            return EX_DATAERR
    for diagnostics in results:
        if diagnostics:
            return EX_SOFTWARE
    return 0


class Lox:
    intr: interpreter.Interpreter
    debug_enabled: bool

    def __init__(self, debug: bool | None = None):
        self.intr = interpreter.Interpreter()
        self.debug_enabled = debug_from_env() if debug is None else debug

    def run_file(self, path: str) -> int:
        source: str
        with open(path, encoding="utf-8") as source_file:
            source = source_file.read()
        return exit_code(self.run(source))

    def run_prompt(self):
        while True:
            try:
                line = input("> ")
            except EOFError:
                break
            self.run(line)

    def run(self, source: str) -> list[Diagnostics]:
        """
        Runs source through every phase, stopping before resolution or
        execution if an earlier phase reported anything. Returns the
        diagnostics of each phase that ran, after printing them.
        """
        results: list[Diagnostics] = []

        tokens, scan_diagnostics = scanner.scan(source)
        results.append(scan_diagnostics)
        self.debug("Scanned tokens:")
        for token in tokens:
            self.debug(token)

        statements, parse_diagnostics = parser.parse(tokens)
        results.append(parse_diagnostics)
        if not (scan_diagnostics or parse_diagnostics):
            locals_, resolve_diagnostics = resolver.resolve(
                statements, self.intr.globals.values.keys()
            )
            results.append(resolve_diagnostics)
            self.debug("Resolved locals:")
            for expr, steps in locals_.items():
                self.debug(f"{steps}: {expr}")
            if not resolve_diagnostics:
                results.append(self.intr.interpret(statements, locals_))

        for diagnostics in results:
            self.report(diagnostics)
        return results

    def report(self, diagnostics: Diagnostics):
        for diagnostic in diagnostics:
            print(diagnostic, file=sys.stderr)
            if diagnostic.error is not None:
                for line in traceback.format_exception(diagnostic.error):
                    self.debug(line, end="")

    def debug(self, *args, **kwargs):
        if self.debug_enabled:
            print(*args, **kwargs, file=sys.stderr)


def main():
    if len(sys.argv) > 2:
        print("Usage: treelox [script]")
        sys.exit(EX_USAGE)
    if len(sys.argv) == 2:
        sys.exit(Lox().run_file(sys.argv[1]))
    else:
        Lox().run_prompt()


if __name__ == "__main__":
    main()
