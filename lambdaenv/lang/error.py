"""Error handling for lambdaenv. Every stage (lexing, parsing, evaluation) raises a subclass of GenericException: if
another type of error makes it all the way to ErrorHandler, it is assumed to be an internal issue.

Error taxonomy:

```
GenericException
 ├── LexError                   ; stage "lex"
 │    └── InvalidEncoding
 ├── ParseError                 ; stage "parse"
 │    ├── MissingLambdaParameter
 │    ├── UnterminatedGroup
 │    ├── UnexpectedCloseBracket
 │    └── EmptyExpression
 ├── EvalError                  ; stage "eval"
 │    ├── UnboundVariable
 │    └── NotCallable
 ├── RecursionLimitExceeded     ; stage of whichever guard tripped
 └── InternalError              ; impossible variant reached
```
"""

import sys

from termcolor import colored


class GenericException(Exception):
    """Templates an error/warning message so that it can be reported by ErrorHandler. start and end are character
    offsets into the source of the program (end is exclusive, -1 means "one character past start").
    """
    stage = None

    def __init__(self, msg, exprs=None, start=0, end=-1, diagnosis=True, internal=False):
        if exprs is None:
            exprs = ""
        if isinstance(exprs, str):
            exprs = [exprs]

        self.plain_msg = msg.format(*exprs)
        self.msg = msg.format(*(colored(expr, attrs=["bold"]) for expr in exprs))  # color expr snippets
        self.expr = exprs[0]  # exprs[0] should be the offending snippet that caused the error
        self.start = start
        self.end = end if end != -1 else start + max(len(self.expr), 1)

        self.diagnosis = diagnosis
        self.internal = internal

        super().__init__(self.plain_msg)


class LexError(GenericException):
    stage = "lex"


class InvalidEncoding(LexError):
    """Program bytes are not valid UTF-8."""

    def __init__(self, reason, start, end):
        super().__init__("program text is not valid UTF-8 ({})", reason, start=start, end=end, diagnosis=False)


class ParseError(GenericException):
    """Base of all parser errors. expected names the token the parser was looking for."""
    stage = "parse"

    def __init__(self, msg, found, expected, start, end=-1):
        self.found = found
        self.expected = expected
        super().__init__(msg, (found, expected), start=start, end=end if end != -1 else start + 1)


class MissingLambdaParameter(ParseError):

    def __init__(self, found, start):
        super().__init__("expected {1} after '\\', found {0}", found, "parameter name", start)


class UnterminatedGroup(ParseError):

    def __init__(self, start):
        super().__init__("'(' opened here is never closed: reached {0}, expected {1}", "end of input", "')'", start)


class UnexpectedCloseBracket(ParseError):

    def __init__(self, start):
        super().__init__("unmatched {0}, expected {1}", "')'", "a term or end of input", start)


class EmptyExpression(ParseError):

    def __init__(self, found, start):
        super().__init__("empty expression: found {0}, expected {1}", found, "a term", start)


class EvalError(GenericException):
    stage = "eval"


class UnboundVariable(EvalError):

    def __init__(self, name, start=0):
        self.name = name
        super().__init__("variable not found: '{}'", name, start=start)


class NotCallable(EvalError):

    def __init__(self, value, start=0):
        self.value = value
        super().__init__("'{}' is not callable", str(value), start=start, diagnosis=False)


class RecursionLimitExceeded(GenericException):
    """Explicit depth guard tripped in the parser or the evaluator."""

    def __init__(self, stage, limit, start=0):
        self.stage = stage
        self.limit = limit
        super().__init__("maximum {} depth of {} exceeded", (stage, str(limit)), start=start, diagnosis=False)


class InternalError(GenericException):
    """An impossible variant (unknown token, node or value kind) was reached."""

    def __init__(self, msg, *exprs):
        super().__init__(msg, [str(expr) for expr in exprs], diagnosis=False, internal=True)


class ErrorHandler:
    """Context manager that will silently suppress Python errors and report lambdaenv errors/warnings."""
    ERROR = "red"
    WARNING = "magenta"
    STEP = "cyan"

    def __init__(self, fatal=True, trace=False):
        self.fatal = fatal
        self.trace = trace
        self.path = None
        self.source = ""

    def register_source(self, path, source):
        """Registers the program currently being run. Should be called prior to Session run."""
        self.path = path
        self.source = source if isinstance(source, str) else source.decode("utf-8", "replace")

    def remove_source(self):
        """Forgets the registered program. Should be called after a successful Session run."""
        self.path = None
        self.source = ""

    def locate(self, offset):
        """Returns (line, line_num, col) of character offset in the registered source. line_num and col are 1-based."""
        offset = max(0, min(offset, len(self.source)))
        line_start = self.source.rfind("\n", 0, offset) + 1
        line_end = self.source.find("\n", offset)
        if line_end == -1:
            line_end = len(self.source)

        line_num = self.source.count("\n", 0, offset) + 1
        return self.source[line_start:line_end].rstrip("\r"), line_num, offset - line_start + 1

    def diagnose(self, error, warning=False):
        """Returns offending line of the source with error's span highlighted and bolded."""
        color = ErrorHandler.WARNING if warning else ErrorHandler.ERROR
        line, __, col = self.locate(error.start)
        start = col - 1
        end = max(start + 1, min(len(line), start + error.end - error.start))

        diagnosis = "  " + line[:start]
        diagnosis += colored(line[start:end], color, attrs=["bold"])
        diagnosis += line[end:] + "\n"

        diagnosis += "  " + " " * start
        diagnosis += colored("^" + "~" * (end - start - 1), color, attrs=["bold"])

        return diagnosis

    def header(self, error):
        """Returns 'path:line:col: ' for error, or '' if no source is registered."""
        if self.path is None:
            return ""
        __, line_num, col = self.locate(error.start)
        return colored(f"{self.path}:{line_num}:{col}: ", attrs=["bold"])

    def warn(self, *args, **kwargs):
        """Generates and prints warning message based on args."""
        error = GenericException(*args, **kwargs)

        error_msg = self.header(error)
        error_msg += colored("warning: ", ErrorHandler.WARNING, attrs=["bold"]) + error.msg
        print(error_msg)

        if not error.internal and self.source and error.diagnosis:
            print(self.diagnose(error, warning=True))

    def register_step(self, kind, text):
        """Prints a single evaluation step when tracing is enabled."""
        if self.trace:
            print(colored(f"{kind} ", ErrorHandler.STEP, attrs=["bold"]) + text)

    def throw(self, error):
        """Reports error, which must be a GenericException. Exits if this handler is fatal."""
        error_msg = self.header(error)

        if error.internal:
            error_msg += colored("[internal] ", ErrorHandler.ERROR, attrs=["bold"])

        kind = f"{error.stage} error: " if error.stage else "error: "
        error_msg += colored(kind, ErrorHandler.ERROR, attrs=["bold"]) + error.msg
        print(error_msg)

        if not error.internal and self.source and error.diagnosis:
            print(self.diagnose(error))

        if self.fatal:
            sys.exit(1)
        self.remove_source()  # if error occurred, reset source (no need if error is fatal)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        do_exit = False
        if exc_type is KeyboardInterrupt:
            self.throw(GenericException("keyboard interrupt", diagnosis=False))
        elif exc_type is SystemExit:
            do_exit = True
        elif exc_type is RecursionError:
            self.throw(GenericException("native recursion limit reached, try a lower --max-depth", diagnosis=False))
        elif exc_type is not None and issubclass(exc_type, GenericException):
            self.throw(exc_val)
        elif exc_type is not None:
            self.throw(GenericException("unknown error: '{}'", f"{exc_type.__name__}: {exc_val}", internal=True))
            do_exit = True

        return not do_exit
