"""Session control for lambdaenv. Runs programs through the three stages (tokenize, parse, evaluate), either from a
file, from a string given on the command line, or line by line in command-line mode.
"""

from dataclasses import dataclass

from lambdaenv.lang.error import GenericException
from lambdaenv.pure.evaluation import Environment, Evaluator, Value
from lambdaenv.pure.lexical import decode, render, tokenize
from lambdaenv.pure.syntax import LambdaTerm, Parser


@dataclass
class Result:
    """Everything a program produced: its tokens, its syntax tree and its final value."""
    source: str
    tokens: list
    tree: LambdaTerm
    value: Value

    def report(self, verbose=True):
        """Returns the result as displayed to the user. If not verbose, only the value is shown."""
        if not verbose:
            return str(self.value)
        return f"tokens: {render(self.tokens)}\n\nast: {self.tree.display()}\n\nresult: {self.value}\n"


class Session:
    """Governs a lambdaenv session. Every program is run on its own, under an empty root environment."""
    SH_FILE = "<in>"      # command-line interpreter filename
    EXPR_FILE = "<expr>"  # filename for programs given with -e

    def __init__(self, error_handler, path, cmd_line=False, max_depth=None):
        self.error_handler = error_handler
        self.path = path            # used for error messages
        self.cmd_line = cmd_line    # whether or not in command-line mode
        self.max_depth = max_depth  # overrides Parser.MAX_DEPTH/Evaluator.MAX_DEPTH if not None

        self.to_run = []   # program sources waiting for run
        self.results = []  # Results of programs that ran successfully

        if self.cmd_line:
            self.error_handler.fatal = False

        if path not in (Session.SH_FILE, Session.EXPR_FILE):
            try:
                with open(path, "rb") as file:  # bytes, so that bad encodings are reported by the lexer
                    source = file.read()
            except OSError:
                raise GenericException("'{}' could not be opened", path, diagnosis=False)
            self.add(source)

        elif path == Session.SH_FILE and not cmd_line:
            raise GenericException("'{}' is a reserved filename", Session.SH_FILE, diagnosis=False)

    @staticmethod
    def preprocess_line(line, add_to_prev):
        """Preprocesses a line from command-line mode. Returns the line without trailing whitespace, and whether the
        program continues on the next line (it has more "(" than ")"). add_to_prev is the text of previous lines.
        """
        line = line.rstrip()
        if add_to_prev:
            line = add_to_prev + "\n" + line
        return line, line.count("(") > line.count(")")

    def add(self, source):
        """Adds a program to the current session. Nothing is evaluated until run is called."""
        self.to_run.append(source)

    def execute(self, source):
        """Runs source through every stage and returns its Result. Raises the first error encountered."""
        tokens = tokenize(source)
        tree = Parser(tokens, self.max_depth).parse()

        evaluator = Evaluator(self.max_depth, self.error_handler)
        value = evaluator.evaluate(tree, Environment.empty())

        return Result(decode(source), tokens, tree, value)

    def run(self):
        """Runs this session's programs in the order they were added. Will raise any errors that are encountered."""
        while self.to_run:
            source = self.to_run[0]
            self.error_handler.register_source(self.path, source)

            try:
                self.results.append(self.execute(source))
            finally:
                self.to_run.pop(0)

            self.error_handler.remove_source()  # error was not raised

    def pop(self, verbose=False):
        """Removes and returns the report of the most recent result."""
        return self.results.pop().report(verbose)
