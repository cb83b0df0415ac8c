import os
import tempfile
import unittest

from lambdaenv.lang.error import ErrorHandler, GenericException, InvalidEncoding, UnexpectedCloseBracket
from lambdaenv.lang.session import Session
from lambdaenv.pure.evaluation import Closure, Environment
from lambdaenv.pure.lexical import tokenize
from lambdaenv.pure.syntax import NameRef, parse


class SessionTestCase(unittest.TestCase):

    def setUp(self):
        self.tmp_dir = tempfile.TemporaryDirectory()

    def tearDown(self):
        self.tmp_dir.cleanup()

    def write(self, name, content):
        path = os.path.join(self.tmp_dir.name, name)
        with open(path, "wb") as file:
            file.write(content)
        return path

    def test_run_expr(self):
        sess = Session(ErrorHandler(), Session.EXPR_FILE)
        sess.add("(\\x x)(\\y y)")
        sess.run()

        result, = sess.results
        self.assertEqual(Closure(Environment.empty(), "y", NameRef("y")), result.value)
        self.assertEqual(tokenize("(\\x x)(\\y y)"), result.tokens)
        self.assertEqual(parse(tokenize("(\\x x)(\\y y)")), result.tree)
        self.assertEqual([], sess.to_run)

    def test_run_file(self):
        path = self.write("script.txt", "(\\x \\y x)\n  (\\p p)\n  (\\q q)\n".encode("utf-8"))
        sess = Session(ErrorHandler(), path)
        sess.run()
        self.assertEqual("\\p p", sess.pop())

    def test_missing_file(self):
        path = os.path.join(self.tmp_dir.name, "missing.txt")
        self.assertRaises(GenericException, Session, ErrorHandler(), path)

    def test_reserved_filename(self):
        self.assertRaises(GenericException, Session, ErrorHandler(), Session.SH_FILE, cmd_line=False)

    def test_cmd_line_not_fatal(self):
        sess = Session(ErrorHandler(), Session.SH_FILE, cmd_line=True)
        self.assertFalse(sess.error_handler.fatal)

    def test_invalid_encoding(self):
        sess = Session(ErrorHandler(), self.write("bad.txt", b"\\x \xff"))
        self.assertRaises(InvalidEncoding, sess.run)
        self.assertEqual([], sess.to_run)

    def test_error_clears_program(self):
        sess = Session(ErrorHandler(), Session.EXPR_FILE)
        sess.add("x)")
        self.assertRaises(UnexpectedCloseBracket, sess.run)
        self.assertEqual([], sess.to_run)
        self.assertEqual([], sess.results)

    def test_programs_run_independently(self):
        sess = Session(ErrorHandler(), Session.EXPR_FILE)
        sess.add("(\\x x)(\\a a)")
        sess.add("(\\x x)(\\b b)")
        sess.run()
        self.assertEqual(["\\a a", "\\b b"], [str(result.value) for result in sess.results])

    def test_max_depth(self):
        sess = Session(ErrorHandler(), Session.EXPR_FILE, max_depth=5)
        sess.add("(((((((x)))))))")
        self.assertRaises(GenericException, sess.run)

    def test_preprocess_line(self):
        cases = {
            ("(\\x x", ""): ("(\\x x", True),
            ("y)  ", "(\\x x"): ("(\\x x\ny)", False),
            ("(\\x x) y\n", ""): ("(\\x x) y", False),
            ("((a)", ""): ("((a)", True),
        }
        for (line, add_to_prev), expected in cases.items():
            self.assertEqual(expected, Session.preprocess_line(line, add_to_prev), line)


class ResultTestCase(unittest.TestCase):

    def run_program(self, program):
        sess = Session(ErrorHandler(), Session.EXPR_FILE)
        sess.add(program)
        sess.run()
        return sess.results[-1]

    def test_report(self):
        result = self.run_program("(\\x x)(\\y y)")
        self.assertEqual("\\y y", result.report(verbose=False))

        report = result.report()
        self.assertTrue(report.startswith("tokens: ( \\ x x ) ( \\ y y )\n\nast: Apply(expr='(\\x x) (\\y y)'"), report)
        self.assertTrue(report.endswith("result: \\y y\n"), report)

    def test_source(self):
        self.assertEqual("(\\x x) (\\q q)", self.run_program(b"(\\x x) (\\q q)").source)


if __name__ == '__main__':
    unittest.main()
