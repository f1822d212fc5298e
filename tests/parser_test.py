import unittest

from treelox import expr, stmt
from treelox.parser import parse
from treelox.scanner import scan
from treelox.tokens import TokenType as TT


def parse_source(source):
    tokens, diagnostics = scan(source)
    assert not diagnostics, diagnostics
    return parse(tokens)


class ParserTestCase(unittest.TestCase):

    def parse_expression(self, source):
        statements, diagnostics = parse_source(source)
        self.assertFalse(diagnostics)
        self.assertEqual(len(statements), 1)
        self.assertIsInstance(statements[0], stmt.Expression)
        return statements[0].expr

    def test_factor_binds_tighter_than_term(self):
        tree = self.parse_expression("1 + 2 * 3;")
        self.assertIsInstance(tree, expr.Binary)
        self.assertEqual(tree.operator.typ, TT.PLUS)
        self.assertEqual(tree.left.value, 1.0)
        self.assertIsInstance(tree.right, expr.Binary)
        self.assertEqual(tree.right.operator.typ, TT.STAR)

    def test_grouping(self):
        tree = self.parse_expression("(1 + 2) * 3;")
        self.assertEqual(tree.operator.typ, TT.STAR)
        self.assertIsInstance(tree.left, expr.Grouping)
        self.assertEqual(tree.right.value, 3.0)

    def test_binary_is_left_associative(self):
        tree = self.parse_expression("1 - 2 - 3;")
        self.assertIsInstance(tree.left, expr.Binary)
        self.assertEqual(tree.right.value, 3.0)

    def test_logical_precedence(self):
        tree = self.parse_expression("a or b and c;")
        self.assertIsInstance(tree, expr.Logical)
        self.assertEqual(tree.operator.typ, TT.OR)
        self.assertEqual(tree.right.operator.typ, TT.AND)

    def test_unary_and_comparison(self):
        tree = self.parse_expression("!-a == b < c;")
        self.assertEqual(tree.operator.typ, TT.EQUAL_EQUAL)
        self.assertIsInstance(tree.left, expr.Unary)
        self.assertIsInstance(tree.left.right, expr.Unary)
        self.assertEqual(tree.right.operator.typ, TT.LESS)

    def test_assignment_is_right_associative(self):
        tree = self.parse_expression("a = b = 1;")
        self.assertIsInstance(tree, expr.Assign)
        self.assertEqual(tree.name.lexeme, "a")
        self.assertIsInstance(tree.value, expr.Assign)

    def test_property_assignment_becomes_set(self):
        tree = self.parse_expression("a.b.c = 1;")
        self.assertIsInstance(tree, expr.Set)
        self.assertEqual(tree.name.lexeme, "c")
        self.assertIsInstance(tree.object, expr.Get)

    def test_invalid_assignment_target(self):
        statements, diagnostics = parse_source("1 = 2; print 3;")
        self.assertEqual(
            [str(d) for d in diagnostics],
            ["[line 1] Error at '=': Invalid assignment target."],
        )
        self.assertEqual(len(statements), 2)
        self.assertIsInstance(statements[1], stmt.Print)

    def test_call_chain(self):
        tree = self.parse_expression("a.b(1)(2).c;")
        self.assertIsInstance(tree, expr.Get)
        self.assertEqual(tree.name.lexeme, "c")
        outer_call = tree.object
        self.assertIsInstance(outer_call, expr.Call)
        self.assertEqual(outer_call.arguments[0].value, 2.0)
        self.assertEqual(outer_call.paren.typ, TT.RIGHT_PAREN)
        inner_call = outer_call.callee
        self.assertIsInstance(inner_call, expr.Call)
        self.assertIsInstance(inner_call.callee, expr.Get)

    def test_this_and_super(self):
        tree = self.parse_expression("super.method(this);")
        self.assertIsInstance(tree.callee, expr.Super)
        self.assertEqual(tree.callee.method.lexeme, "method")
        self.assertIsInstance(tree.arguments[0], expr.This)

    def test_var_declaration(self):
        statements, _ = parse_source("var a; var b = 1;")
        self.assertIsNone(statements[0].initializer)
        self.assertEqual(statements[1].initializer.value, 1.0)

    def test_if_else(self):
        statements, _ = parse_source("if (a) print 1; else print 2;")
        self.assertIsInstance(statements[0], stmt.If)
        self.assertIsInstance(statements[0].else_branch, stmt.Print)

    def test_for_desugars_to_while(self):
        statements, diagnostics = parse_source(
            "for (var i = 0; i < 3; i = i + 1) print i;"
        )
        self.assertFalse(diagnostics)
        block = statements[0]
        self.assertIsInstance(block, stmt.Block)
        initializer, loop = block.statements
        self.assertIsInstance(initializer, stmt.Var)
        self.assertIsInstance(loop, stmt.While)
        self.assertEqual(loop.condition.operator.typ, TT.LESS)
        body, increment = loop.body.statements
        self.assertIsInstance(body, stmt.Print)
        self.assertIsInstance(increment.expr, expr.Assign)

    def test_for_without_clauses(self):
        statements, _ = parse_source("for (;;) print 1;")
        (loop,) = statements[0].statements
        self.assertIsInstance(loop, stmt.While)
        self.assertIs(loop.condition.value, True)
        self.assertIsInstance(loop.body, stmt.Print)

    def test_function_declaration(self):
        statements, _ = parse_source("fun add(a, b) { return a + b; }")
        func = statements[0]
        self.assertIsInstance(func, stmt.Function)
        self.assertEqual([p.lexeme for p in func.params], ["a", "b"])
        self.assertIsInstance(func.body[0], stmt.Return)

    def test_bare_return(self):
        statements, _ = parse_source("fun f() { return; }")
        self.assertIsNone(statements[0].body[0].value)

    def test_class_declaration(self):
        statements, diagnostics = parse_source(
            "class B < A { init(x) { this.x = x; } get() { return this.x; } }"
        )
        self.assertFalse(diagnostics)
        klass = statements[0]
        self.assertIsInstance(klass, stmt.Class)
        self.assertEqual(klass.superclass.name.lexeme, "A")
        self.assertEqual([m.name.lexeme for m in klass.methods], ["init", "get"])

    def test_error_recovery_reports_each_statement(self):
        statements, diagnostics = parse_source("var = 1; print 2; var x 3; print 4;")
        self.assertEqual(
            diagnostics.messages(),
            ["Expect variable name.", "Expect ';' after variable declaration."],
        )
        self.assertEqual(len(statements), 2)
        self.assertTrue(all(isinstance(s, stmt.Print) for s in statements))

    def test_recovery_after_statement_starting_with_bad_token(self):
        statements, diagnostics = parse_source("print 1; ) print 2;")
        self.assertEqual(diagnostics.messages(), ["Expect expression."])
        self.assertEqual(len(statements), 2)

    def test_error_at_end(self):
        _, diagnostics = parse_source("print")
        self.assertEqual(
            [str(d) for d in diagnostics], ["[line 1] Error at end: Expect expression."]
        )

    def test_unclosed_block(self):
        _, diagnostics = parse_source("{ print 1;")
        self.assertEqual(diagnostics.messages(), ["Expect '}' after block."])

    def test_too_many_arguments(self):
        args = ", ".join(["1"] * 256)
        statements, diagnostics = parse_source(f"f({args});")
        self.assertEqual(diagnostics.messages(), ["Can't have more than 255 arguments."])
        self.assertEqual(len(statements), 1)

    def test_too_many_parameters(self):
        params = ", ".join(f"p{i}" for i in range(260))
        statements, diagnostics = parse_source(f"fun f({params}) {{}}")
        self.assertEqual(
            diagnostics.messages(), ["Can't have more than 255 parameters."]
        )
        self.assertEqual(len(statements[0].params), 255)

    def test_deep_nesting(self):
        tree = self.parse_expression("(" * 400 + "1" + ")" * 400 + ";")
        for _ in range(400):
            self.assertIsInstance(tree, expr.Grouping)
            tree = tree.expr
        self.assertEqual(tree.value, 1.0)

    def test_nesting_too_deep_is_reported(self):
        source = "(" * 5000 + "1" + ")" * 5000 + "; print 2;"
        statements, diagnostics = parse_source(source)
        self.assertEqual(diagnostics.messages(), ["Expression nesting too deep."])
        self.assertEqual(len(statements), 1)
        self.assertIsInstance(statements[0], stmt.Print)


if __name__ == '__main__':
    unittest.main()
