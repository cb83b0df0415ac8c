import contextlib
import io
import os
import unittest
from unittest import mock

from lambdaenv.lang.error import (ErrorHandler, GenericException, MissingLambdaParameter, RecursionLimitExceeded,
                                  UnboundVariable)
from lambdaenv.lang.session import Session


@mock.patch.dict(os.environ, {"NO_COLOR": "1"})
class ErrorHandlerTestCase(unittest.TestCase):

    def capture(self, func, *args, **kwargs):
        """Returns everything func printed."""
        out = io.StringIO()
        with contextlib.redirect_stdout(out):
            func(*args, **kwargs)
        return out.getvalue()

    def test_locate(self):
        handler = ErrorHandler()
        handler.register_source("f", "ab\ncd e")

        cases = {0: ("ab", 1, 1), 1: ("ab", 1, 2), 3: ("cd e", 2, 1), 6: ("cd e", 2, 4), 7: ("cd e", 2, 5)}
        for case, expected in cases.items():
            self.assertEqual(expected, handler.locate(case), case)

    def test_throw_not_fatal(self):
        def run():
            with ErrorHandler(fatal=False) as handler:
                sess = Session(handler, Session.EXPR_FILE)
                sess.add("(\\a a)\n  zz")
                sess.run()

        output = self.capture(run)
        self.assertIn("<expr>:2:3: eval error: variable not found: 'zz'", output)
        self.assertIn("    zz\n    ^~", output)

    def test_throw_fatal(self):
        def run():
            with ErrorHandler():
                raise MissingLambdaParameter("end of input", 0)

        with self.assertRaises(SystemExit) as context:
            self.capture(run)
        self.assertEqual(1, context.exception.code)

    def test_throw_resets_source(self):
        handler = ErrorHandler(fatal=False)
        handler.register_source("f", "x")
        self.capture(handler.throw, UnboundVariable("x"))
        self.assertIsNone(handler.path)
        self.assertEqual("", handler.source)

    def test_parse_error_message(self):
        def run():
            with ErrorHandler(fatal=False) as handler:
                sess = Session(handler, Session.EXPR_FILE)
                sess.add("x (\\ (y))")
                sess.run()

        output = self.capture(run)
        self.assertIn("<expr>:1:6: parse error: expected parameter name after '\\', found '('", output)

    def test_invalid_encoding_position(self):
        def run():
            with ErrorHandler(fatal=False) as handler:
                sess = Session(handler, Session.EXPR_FILE)
                sess.add("λ\nλλ ".encode("utf-8") + b"\xff")
                sess.run()

        output = self.capture(run)
        self.assertIn("<expr>:2:4: lex error: program text is not valid UTF-8", output)

    def test_recursion_error(self):
        def run():
            with ErrorHandler(fatal=False):
                raise RecursionError()

        self.assertIn("native recursion limit reached", self.capture(run))

    def test_unknown_error(self):
        def run():
            with ErrorHandler(fatal=False):
                raise ValueError("boom")

        out = io.StringIO()
        with self.assertRaises(ValueError), contextlib.redirect_stdout(out):
            run()
        self.assertIn("[internal] error: unknown error: 'ValueError: boom'", out.getvalue())

    def test_warn(self):
        handler = ErrorHandler()
        handler.register_source("f", "a b")
        output = self.capture(handler.warn, "'{}' looks odd", "b", start=2)
        self.assertIn("f:1:3: warning: 'b' looks odd", output)

    def test_register_step(self):
        self.assertEqual("", self.capture(ErrorHandler().register_step, "β", "(\\x x) (\\y y)"))
        output = self.capture(ErrorHandler(trace=True).register_step, "β", "(\\x x) (\\y y)")
        self.assertEqual("β (\\x x) (\\y y)\n", output)


class GenericExceptionTestCase(unittest.TestCase):

    def test_span(self):
        error = GenericException("'{}' is wrong", "abc", start=4)
        self.assertEqual((4, 7), (error.start, error.end))
        self.assertEqual("'abc' is wrong", str(error))

    def test_recursion_limit_exceeded(self):
        error = RecursionLimitExceeded("eval", 10)
        self.assertEqual("maximum eval depth of 10 exceeded", str(error))
        self.assertEqual(("eval", 10), (error.stage, error.limit))

    def test_stage(self):
        self.assertEqual("eval", UnboundVariable("x").stage)
        self.assertEqual("parse", MissingLambdaParameter("'('", 0).stage)
        self.assertIsNone(GenericException("oops").stage)


if __name__ == '__main__':
    unittest.main()
