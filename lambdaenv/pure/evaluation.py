r"""Call-by-value evaluation of lambdaenv syntax trees under an environment (a chain of bindings), instead of textual
substitution into the tree.

Rules, where env is the environment the node is evaluated in:

```
x            ; look x up in env, innermost binding first
\x M         ; Closure(env, x, M): env is captured as-is, which gives lexical scoping
M N          ; evaluate M to a Closure(cenv, x, B), then N to a value v (once, eagerly), then evaluate B in
             ; cenv + {x: v}. The new binding extends the closure's captured chain, never the caller's env.
```

Environments are never mutated: binding a name creates a new node that points at its parent, so any number of
closures and pending evaluations can share the same ancestors.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass

from lambdaenv.lang.error import InternalError, NotCallable, RecursionLimitExceeded, UnboundVariable
from lambdaenv.pure.syntax import Apply, LambdaAbs, LambdaTerm, NameRef


class Value(ABC):
    """Superclass of runtime values. Closure is currently the only one."""

    @property
    @abstractmethod
    def expr(self):
        """Source-like rendering of the value."""


@dataclass(frozen=True)
class Environment:
    """One node of a binding chain. The empty root binds nothing (name is None)."""
    name: str = None
    value: object = None
    parent: "Environment" = None

    @classmethod
    def empty(cls):
        return cls()

    def bind(self, name, value):
        """Returns a new environment binding name to value, with self as parent."""
        return Environment(name, value, self)

    def lookup(self, name, position=0):
        """Returns the value of the innermost binding of name. Raises UnboundVariable if no node binds it."""
        env = self
        while env is not None:
            if env.name is not None and env.name == name:
                return env.value
            env = env.parent
        raise UnboundVariable(name, position)

    def bindings(self):
        """Yields (name, value) pairs from innermost to outermost, shadowed ones included."""
        env = self
        while env is not None:
            if env.name is not None:
                yield env.name, env.value
            env = env.parent


@dataclass(frozen=True)
class Closure(Value):
    environment: Environment
    parameter: str
    body: LambdaTerm

    @property
    def expr(self):
        return f"\\{self.parameter} {self.body.expr}"

    def __str__(self):
        visible = {}
        for name, value in self.environment.bindings():
            visible.setdefault(name, value)  # shadowed bindings are unreachable

        if not visible:
            return self.expr
        bound = ", ".join(f"{name} := {getattr(value, 'expr', value)}" for name, value in visible.items())
        return f"{self.expr} where {bound}"


class Evaluator:
    """Walks a syntax tree recursively. depth counts nested evaluate calls so that deep programs raise
    RecursionLimitExceeded instead of exhausting the Python stack. If error_handler is given, every application is
    reported to it as a step.
    """
    MAX_DEPTH = 400

    def __init__(self, max_depth=None, error_handler=None):
        self.max_depth = max_depth if max_depth is not None else Evaluator.MAX_DEPTH
        self.error_handler = error_handler
        self.depth = 0
        self.steps = 0

    def evaluate(self, node, environment):
        self.depth += 1
        if self.depth > self.max_depth:
            raise RecursionLimitExceeded("eval", self.max_depth, getattr(node, "position", 0))

        try:
            if isinstance(node, NameRef):
                return environment.lookup(node.identifier, node.position)

            elif isinstance(node, LambdaAbs):
                return Closure(environment, node.parameter, node.body)

            elif isinstance(node, Apply):
                function = self.evaluate(node.function, environment)
                if not isinstance(function, Closure):
                    raise NotCallable(function, node.function.position)

                argument = self.evaluate(node.argument, environment)

                self.steps += 1
                if self.error_handler is not None:
                    self.error_handler.register_step("β", f"({function.expr}) ({getattr(argument, 'expr', argument)})")

                return self.evaluate(function.body, function.environment.bind(function.parameter, argument))

            raise InternalError("unknown syntax tree node '{}'", repr(node))
        finally:
            self.depth -= 1


def evaluate(node, environment=None, max_depth=None, error_handler=None):
    """Evaluates node in environment (the empty root if None). Raises an EvalError subclass on failure."""
    if environment is None:
        environment = Environment.empty()
    return Evaluator(max_depth, error_handler).evaluate(node, environment)
