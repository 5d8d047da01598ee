"""
Formula Evaluator

Parses admission scoring formulas into a small expression tree and evaluates
them against a candidate's subject scores and priority points.

Grammar (closed on purpose):
    expr    := term (('+' | '-') term)*
    term    := unary (('*' | '/') unary)*
    unary   := ('+' | '-') unary | primary
    primary := NUMBER | IDENT | IDENT '(' expr (',' expr)* ')' | '(' expr ')'

Identifiers resolve to subject codes, ``priorityPoints`` and, when the quota
configures a cap, ``maxBonus``. Functions: ``max``, ``min`` and
``effective_score(total, priority)``. Numbers accept an exponent (``1e-3``).

Formulas are capped at ``MAX_FORMULA_TOKENS`` tokens and
``MAX_NESTING_DEPTH`` levels of parentheses, calls and unary signs; longer
or deeper input is a syntax error.
"""

import re
from dataclasses import dataclass
from functools import lru_cache
from typing import Callable, Dict, FrozenSet, Iterable, Mapping, Optional, Tuple, Union


PRIORITY_POINTS_VAR = "priorityPoints"
MAX_BONUS_VAR = "maxBonus"


class FormulaError(ValueError):
    """Base class for formula parse and evaluation failures."""
    pass


class FormulaSyntaxError(FormulaError):
    """Raised when a formula cannot be parsed."""

    def __init__(self, message: str, position: int):
        super().__init__(f"{message} at position {position}")
        self.position = position


class FormulaEvaluationError(FormulaError):
    """Raised when a parsed formula cannot be evaluated for one candidate."""
    pass


class UnknownVariableError(FormulaEvaluationError):
    """Raised when an identifier has no value in the evaluation context."""

    def __init__(self, name: str):
        super().__init__(f"Unknown variable '{name}'")
        self.name = name


class DivisionByZeroError(FormulaEvaluationError):
    """Raised when a divisor evaluates to zero."""

    def __init__(self):
        super().__init__("Division by zero")


# ============== Expression tree ==============

@dataclass(frozen=True)
class Number:
    value: float

    def __str__(self) -> str:
        return f"{self.value:g}"


@dataclass(frozen=True)
class Variable:
    name: str

    def __str__(self) -> str:
        return self.name


@dataclass(frozen=True)
class UnaryOp:
    op: str
    operand: "Expression"

    def __str__(self) -> str:
        return f"{self.op}{self.operand}"


@dataclass(frozen=True)
class BinaryOp:
    op: str
    left: "Expression"
    right: "Expression"

    def __str__(self) -> str:
        return f"({self.left} {self.op} {self.right})"


@dataclass(frozen=True)
class Call:
    name: str
    args: Tuple["Expression", ...]

    def __str__(self) -> str:
        return f"{self.name}({', '.join(str(a) for a in self.args)})"


Expression = Union[Number, Variable, UnaryOp, BinaryOp, Call]


def _effective_score(total: float, priority: float) -> float:
    """Regulation bonus taper: full bonus below 22.5, shrinking to 0 at 30."""
    if total < 22.5:
        return total + priority
    return total + max(0.0, (30 - total) / 7.5 * priority)


# name -> (min args, max args or None, implementation)
FUNCTIONS: Dict[str, Tuple[int, Optional[int], Callable[..., float]]] = {
    "max": (2, None, lambda *args: max(args)),
    "min": (2, None, lambda *args: min(args)),
    "effective_score": (2, 2, _effective_score),
}


# ============== Parser ==============

_TOKEN_RE = re.compile(
    r"\s*(?:(?P<number>(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?)"
    r"|(?P<ident>[A-Za-z_][A-Za-z0-9_]*)|(?P<op>[-+*/(),]))"
)

# Parsing and evaluation recurse per level; both stay well under the
# interpreter's recursion limit inside these bounds.
MAX_FORMULA_TOKENS = 400
MAX_NESTING_DEPTH = 32


def _tokenize(source: str) -> list[Tuple[str, str, int]]:
    tokens = []
    pos = 0
    length = len(source)
    while pos < length:
        if source[pos:].strip() == "":
            break
        match = _TOKEN_RE.match(source, pos)
        if not match:
            offset = length - len(source[pos:].lstrip())
            raise FormulaSyntaxError(f"Unexpected character '{source[offset]}'", offset)
        kind = match.lastgroup
        if len(tokens) >= MAX_FORMULA_TOKENS:
            raise FormulaSyntaxError(
                f"Formula is longer than {MAX_FORMULA_TOKENS} tokens", match.start(kind)
            )
        tokens.append((kind, match.group(kind), match.start(kind)))
        pos = match.end()
    tokens.append(("end", "", length))
    return tokens


class _Parser:
    """Recursive-descent parser over the token list."""

    def __init__(self, source: str):
        self._tokens = _tokenize(source)
        self._index = 0
        self._depth = 0

    def _enter(self, pos: int) -> None:
        self._depth += 1
        if self._depth > MAX_NESTING_DEPTH:
            raise FormulaSyntaxError(
                f"Formula nests deeper than {MAX_NESTING_DEPTH} levels", pos
            )

    def _leave(self) -> None:
        self._depth -= 1

    def parse(self) -> Expression:
        if self._peek()[0] == "end":
            raise FormulaSyntaxError("Empty formula", 0)
        expr = self._expr()
        kind, value, pos = self._peek()
        if kind != "end":
            raise FormulaSyntaxError(f"Unexpected token '{value}'", pos)
        return expr

    def _peek(self) -> Tuple[str, str, int]:
        return self._tokens[self._index]

    def _advance(self) -> Tuple[str, str, int]:
        token = self._tokens[self._index]
        self._index += 1
        return token

    def _expect(self, value: str) -> None:
        kind, actual, pos = self._advance()
        if kind != "op" or actual != value:
            found = actual or "end of formula"
            raise FormulaSyntaxError(f"Expected '{value}' but found '{found}'", pos)

    def _expr(self) -> Expression:
        node = self._term()
        while self._peek()[0] == "op" and self._peek()[1] in "+-":
            op = self._advance()[1]
            node = BinaryOp(op, node, self._term())
        return node

    def _term(self) -> Expression:
        node = self._unary()
        while self._peek()[0] == "op" and self._peek()[1] in "*/":
            op = self._advance()[1]
            node = BinaryOp(op, node, self._unary())
        return node

    def _unary(self) -> Expression:
        kind, value, pos = self._peek()
        if kind == "op" and value in "+-":
            self._advance()
            self._enter(pos)
            operand = self._unary()
            self._leave()
            return UnaryOp(value, operand)
        return self._primary()

    def _primary(self) -> Expression:
        kind, value, pos = self._advance()

        if kind == "number":
            return Number(float(value))

        if kind == "ident":
            if self._peek()[0] == "op" and self._peek()[1] == "(":
                return self._call(value, pos)
            return Variable(value)

        if kind == "op" and value == "(":
            self._enter(pos)
            node = self._expr()
            self._expect(")")
            self._leave()
            return node

        found = value or "end of formula"
        raise FormulaSyntaxError(f"Unexpected token '{found}'", pos)

    def _call(self, name: str, pos: int) -> Expression:
        if name not in FUNCTIONS:
            raise FormulaSyntaxError(f"Unknown function '{name}'", pos)
        self._expect("(")
        self._enter(pos)
        args = [self._expr()]
        while self._peek()[0] == "op" and self._peek()[1] == ",":
            self._advance()
            args.append(self._expr())
        self._expect(")")
        self._leave()

        min_args, max_args, _ = FUNCTIONS[name]
        if len(args) < min_args or (max_args is not None and len(args) > max_args):
            raise FormulaSyntaxError(
                f"Function '{name}' called with {len(args)} argument(s)", pos
            )
        return Call(name, tuple(args))


@lru_cache(maxsize=256)
def parse_formula(source: str) -> Expression:
    """Parse a formula string into an expression tree (cached, trees are immutable)."""
    return _Parser(source).parse()


def validate_formula(source: str) -> Optional[str]:
    """Return the syntax error message for ``source``, or None if it parses."""
    try:
        parse_formula(source)
    except FormulaSyntaxError as e:
        return str(e)
    return None


def referenced_variables(expr: Expression) -> FrozenSet[str]:
    """Collect every identifier the expression reads."""
    if isinstance(expr, Variable):
        return frozenset({expr.name})
    if isinstance(expr, UnaryOp):
        return referenced_variables(expr.operand)
    if isinstance(expr, BinaryOp):
        return referenced_variables(expr.left) | referenced_variables(expr.right)
    if isinstance(expr, Call):
        names: FrozenSet[str] = frozenset()
        for arg in expr.args:
            names |= referenced_variables(arg)
        return names
    return frozenset()


def default_formula(
    subjects: Iterable[str],
    bonus_enabled: bool = True,
    max_bonus: Optional[float] = None,
) -> Expression:
    """
    Build the fallback formula used when a quota configures none.

    ``sum(subjects) + min(priorityPoints, maxBonus)``; the bonus term is
    uncapped without ``max_bonus`` and dropped when the bonus is disabled.
    """
    terms: list[Expression] = [Variable(name) for name in sorted(subjects)]
    if bonus_enabled:
        if max_bonus is not None:
            terms.append(Call("min", (Variable(PRIORITY_POINTS_VAR), Variable(MAX_BONUS_VAR))))
        else:
            terms.append(Variable(PRIORITY_POINTS_VAR))

    if not terms:
        return Number(0.0)

    node = terms[0]
    for term in terms[1:]:
        node = BinaryOp("+", node, term)
    return node


# ============== Evaluation ==============

def _eval(expr: Expression, variables: Mapping[str, float]) -> float:
    if isinstance(expr, Number):
        return expr.value

    if isinstance(expr, Variable):
        value = variables.get(expr.name)
        if value is None:
            raise UnknownVariableError(expr.name)
        return float(value)

    if isinstance(expr, UnaryOp):
        operand = _eval(expr.operand, variables)
        return -operand if expr.op == "-" else operand

    if isinstance(expr, BinaryOp):
        left = _eval(expr.left, variables)
        right = _eval(expr.right, variables)
        if expr.op == "+":
            return left + right
        if expr.op == "-":
            return left - right
        if expr.op == "*":
            return left * right
        if right == 0:
            raise DivisionByZeroError()
        return left / right

    _, _, func = FUNCTIONS[expr.name]
    return func(*(_eval(arg, variables) for arg in expr.args))


class FormulaEvaluator:
    """
    Evaluates scoring formulas for one candidate preference.

    Stateless; a single instance is shared across scoring threads.
    """

    def build_context(
        self,
        scores: Mapping[str, Optional[float]],
        priority_points: float,
        max_bonus: Optional[float] = None,
    ) -> Dict[str, float]:
        """Variables visible to a formula: non-null scores, bonus inputs."""
        context = {name: float(value) for name, value in scores.items() if value is not None}
        context[PRIORITY_POINTS_VAR] = float(priority_points)
        if max_bonus is not None:
            context[MAX_BONUS_VAR] = float(max_bonus)
        return context

    def evaluate(
        self,
        formula: Union[Expression, str],
        scores: Mapping[str, Optional[float]],
        priority_points: float,
        max_bonus: Optional[float] = None,
    ) -> float:
        """
        Evaluate ``formula`` against the candidate's scores.

        Raises:
            FormulaSyntaxError: formula given as text does not parse
            UnknownVariableError: identifier missing from the context
            DivisionByZeroError: a divisor evaluated to zero
            FormulaEvaluationError: expression tree too deep to walk
        """
        expr = parse_formula(formula) if isinstance(formula, str) else formula
        context = self.build_context(scores, priority_points, max_bonus)
        try:
            return _eval(expr, context)
        except RecursionError as e:
            raise FormulaEvaluationError("Formula nests too deeply to evaluate") from e
