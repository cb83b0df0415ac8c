r"""Abstract syntax tree and recursive-descent parser for lambdaenv.

Grammar, over the tokens produced by lambdaenv.pure.lexical:

```
<expr> ::= <term> <term>*           ; "application": associating by left, a b c = ((a b) c)
<term> ::= <name>                   ; "variable"
         | "(" <expr> ")"           ; "group"
         | "\" <name> <expr>        ; "abstraction"
                                    ; - abstraction bodies are greedy: x \y y z = x (\y (y z)) != (x \y y) z
```

Because an abstraction's body runs to the end of its enclosing <expr> (the matching ")" or end of input), nothing can
follow an abstraction at its own nesting level: once a "\" is read, the current left fold is finished.

A ")" ends the <expr> being parsed without being consumed; the "(" that opened it consumes it. A ")" that nothing
opened is reported as UnexpectedCloseBracket instead of being silently dropped.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field

from lambdaenv.lang.error import (EmptyExpression, InternalError, MissingLambdaParameter, RecursionLimitExceeded,
                                  UnexpectedCloseBracket, UnterminatedGroup)
from lambdaenv.pure.lexical import CloseBracket, LambdaMarker, Name, OpenBracket


class LambdaTerm(ABC):
    """Superclass of the three AST node kinds. Nodes are immutable; position (character offset of the node in the
    program) is only used for error messages and is ignored by ==.
    """

    @property
    @abstractmethod
    def expr(self):
        """Source text that parses back to this node."""

    @property
    @abstractmethod
    def nodes(self):
        """Child nodes, left to right."""

    def operands(self):
        """Children as shown by display. Same as nodes except for Apply."""
        return self.nodes

    def display(self, indents=0):
        """Recursively displays the tree with readable format. A chain of applications a b c is shown as one Apply
        with nodes a, b and c.

        Format:
        <LambdaTerm>(expr='<expr>', nodes=[
            <LambdaTerm>(expr='<expr>', nodes=[
                ...
                <LambdaTerm>(expr='<expr>')  # <-- if nodes is empty
            ])
        ])
        """
        result = f"{'    ' * indents}{type(self).__name__}(expr='{self.expr}'"
        operands = self.operands()
        if operands:
            result += ", nodes=["
            for node in operands:
                result += "\n" + node.display(indents + 1) + ","
            result = result[:-1] + f"\n{'    ' * indents}]"
        return result + ")"

    def __str__(self):
        return self.expr


@dataclass(frozen=True)
class NameRef(LambdaTerm):
    identifier: str
    position: int = field(default=0, compare=False, repr=False)

    @property
    def expr(self):
        return self.identifier

    @property
    def nodes(self):
        return []


@dataclass(frozen=True)
class LambdaAbs(LambdaTerm):
    parameter: str
    body: LambdaTerm
    position: int = field(default=0, compare=False, repr=False)

    @property
    def expr(self):
        return f"\\{self.parameter} {self.body.expr}"

    @property
    def nodes(self):
        return [NameRef(self.parameter, self.position + 1), self.body]


@dataclass(frozen=True)
class Apply(LambdaTerm):
    function: LambdaTerm
    argument: LambdaTerm
    position: int = field(default=0, compare=False, repr=False)

    def spine(self):
        """Returns (head, arguments) of the left-nested chain this node ends: a b c gives (a, [b, c]). Walked with a
        loop, since the parser builds arbitrarily long chains without recursing.
        """
        node, arguments = self, []
        while isinstance(node, Apply):
            arguments.append(node.argument)
            node = node.function
        return node, arguments[::-1]

    @property
    def expr(self):
        head, arguments = self.spine()

        parts = [f"({head.expr})" if isinstance(head, LambdaAbs) else head.expr]
        for argument in arguments:
            parts.append(f"({argument.expr})" if isinstance(argument, (Apply, LambdaAbs)) else argument.expr)
        return " ".join(parts)

    @property
    def nodes(self):
        return [self.function, self.argument]

    def operands(self):
        head, arguments = self.spine()
        return [head] + arguments


class Parser:
    """Recursive-descent parser with a single cursor shared by every recursive call."""
    MAX_DEPTH = 300  # each level costs two Python frames

    def __init__(self, tokens, max_depth=None):
        self.tokens = list(tokens)
        self.cursor = 0
        self.depth = 0
        self.max_depth = max_depth if max_depth is not None else Parser.MAX_DEPTH

    def parse(self):
        """Parses every token into a single LambdaTerm."""
        tree = self.parse_expression()
        token = self.peek()
        if isinstance(token, CloseBracket):
            raise UnexpectedCloseBracket(token.position)  # nothing opened it
        elif token is not None:
            raise InternalError("parsing stopped early at '{}'", token.expr)
        return tree

    def peek(self):
        """Returns the token under the cursor, or None at end of input."""
        if self.cursor < len(self.tokens):
            return self.tokens[self.cursor]
        return None

    def end_position(self):
        """Character offset just past the last token."""
        if not self.tokens:
            return 0
        last = self.tokens[-1]
        return last.position + len(last.expr)

    def parse_expression(self, opener=None):
        """Parses <expr>, stopping before a ")" or at end of input. opener is the token that started this <expr>
        ("(" or "\\"), if any.
        """
        self.depth += 1
        if self.depth > self.max_depth:
            raise RecursionLimitExceeded("parse", self.max_depth, self.peek().position if self.peek() else 0)

        try:
            result = None
            while self.peek() is not None and not isinstance(self.peek(), CloseBracket):
                greedy = isinstance(self.peek(), LambdaMarker)  # a bracketed abstraction is not greedy
                branch = self.parse_term(self.peek())
                result = branch if result is None else Apply(result, branch, result.position)

                if greedy:
                    break  # the body already ran to the end of this <expr>

            if result is None:
                token = self.peek()
                if token is None and isinstance(opener, OpenBracket):
                    raise UnterminatedGroup(opener.position)
                elif token is None:
                    raise EmptyExpression("end of input", self.end_position())
                elif opener is None:
                    raise UnexpectedCloseBracket(token.position)
                raise EmptyExpression(f"'{token.expr}'", token.position)

            return result
        finally:
            self.depth -= 1

    def parse_term(self, token):
        """Parses <term> starting at token, which must be under the cursor."""
        if isinstance(token, Name):
            self.cursor += 1
            return NameRef(token.text, token.position)

        elif isinstance(token, OpenBracket):
            self.cursor += 1
            inner = self.parse_expression(token)
            if self.peek() is None:
                raise UnterminatedGroup(token.position)
            self.cursor += 1  # consume matching ")"
            return inner

        elif isinstance(token, LambdaMarker):
            self.cursor += 1
            parameter = self.peek()
            if not isinstance(parameter, Name):
                if parameter is None:
                    raise MissingLambdaParameter("end of input", self.end_position())
                raise MissingLambdaParameter(f"'{parameter.expr}'", parameter.position)

            self.cursor += 1
            return LambdaAbs(parameter.text, self.parse_expression(token), token.position)

        raise InternalError("unknown token '{}'", repr(token))


def parse(tokens, max_depth=None):
    """Parses tokens into a LambdaTerm. Raises a ParseError subclass on malformed input."""
    return Parser(tokens, max_depth).parse()
