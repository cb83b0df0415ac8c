r"""Lexical analysis for lambdaenv: splits program text into tokens.

Every character belongs to exactly one of four classes:

```
<whitespace>  ::= " " | "\t" | "\r" | "\n"   ; pure separator, never emitted
<bracket>     ::= "(" | ")"                  ; one token per character, even in a run: "((" is two tokens
<lambda>      ::= "\"                        ; a run of markers is a single token: "\\x" is the same as "\x"
<name>        ::= any other character        ; a maximal run of name characters is one Name
```

Tokenizing is total over text: every character is classified, so the only way it can fail is when the program is given
as bytes that are not valid UTF-8.
"""

from abc import ABC
from dataclasses import dataclass, field

from lambdaenv.lang.error import InvalidEncoding, LexError


WHITESPACE = " \t\r\n"
BRACKETS = "()"
LAMBDA = "\\"


class Token(ABC):
    """Superclass of the four token kinds. position is the character offset of the token in the program; it is only
    used for error messages and is ignored by ==.
    """
    expr = None

    def __str__(self):
        return self.expr


@dataclass(frozen=True)
class Name(Token):
    text: str
    position: int = field(default=0, compare=False, repr=False)

    @property
    def expr(self):
        return self.text


@dataclass(frozen=True)
class OpenBracket(Token):
    position: int = field(default=0, compare=False, repr=False)
    expr = "("


@dataclass(frozen=True)
class CloseBracket(Token):
    position: int = field(default=0, compare=False, repr=False)
    expr = ")"


@dataclass(frozen=True)
class LambdaMarker(Token):
    position: int = field(default=0, compare=False, repr=False)
    expr = "\\"


def classify(char):
    """Returns the class of char: "whitespace", "bracket", "lambda" or "name"."""
    if char in WHITESPACE:
        return "whitespace"
    elif char in BRACKETS:
        return "bracket"
    elif char == LAMBDA:
        return "lambda"
    return "name"


def decode(text):
    """Returns text as str. bytes are decoded as UTF-8."""
    if isinstance(text, (bytes, bytearray)):
        try:
            return bytes(text).decode("utf-8")
        except UnicodeDecodeError as e:
            # e.start is a byte offset; everything before it decodes, so count the characters instead
            start = len(bytes(text)[:e.start].decode("utf-8"))
            raise InvalidEncoding(e.reason, start, start + 1) from e

    if not isinstance(text, str):
        raise LexError("cannot tokenize object of type '{}'", type(text).__name__, diagnosis=False)
    return text


def emit(run_class, run, start):
    """Returns the tokens for a maximal run of same-class characters beginning at offset start."""
    if run_class == "whitespace" or not run:
        return []
    elif run_class == "bracket":
        return [OpenBracket(start + idx) if char == "(" else CloseBracket(start + idx) for idx, char in enumerate(run)]
    elif run_class == "lambda":
        return [LambdaMarker(start)]
    return [Name(run, start)]


def tokenize(text):
    """Converts program text (str, or UTF-8 bytes) to a list of Tokens. Raises LexError if bytes can't be decoded."""
    text = decode(text)

    tokens = []
    run_class, run_start = "whitespace", 0

    for idx, char in enumerate(text + WHITESPACE[-1]):  # end of input flushes the final run like whitespace would
        char_class = classify(char)
        if char_class != run_class:
            tokens += emit(run_class, text[run_start:idx], run_start)
            run_class, run_start = char_class, idx

    return tokens


def render(tokens):
    """Returns tokens as a space-separated string, e.g. "\\ x x". Tokenizing the result gives back tokens."""
    return " ".join(str(token) for token in tokens)
