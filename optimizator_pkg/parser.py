"""Function text compilation.

This module handles:
- Tokenizing raw function text (numbers, x<digits> variables, operators, parentheses)
- Extracting the ordered variable list
- Infix to postfix conversion (shunting-yard)
- Building the immutable CompiledExpression used as the objective function
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass

from .config import (
    EXPONENT_RIGHT_ASSOCIATIVE,
    MAX_INPUT_LENGTH,
    NUMBER_REGEX,
    OPERATORS,
    PRECEDENCE,
    SEPARATOR_REGEX,
    VARIABLE_REGEX,
    WHITESPACE_REGEX,
)
from .evaluator import evaluate
from .logging_config import get_logger
from .types import LPAREN, NUMBER, OPERATOR, RPAREN, VARIABLE, ParseError, Token

logger = get_logger("parser")


def _classify(lexeme: str) -> Token:
    if lexeme in OPERATORS:
        return Token(OPERATOR, lexeme)
    if lexeme == "(":
        return Token(LPAREN)
    if lexeme == ")":
        return Token(RPAREN)
    if NUMBER_REGEX.match(lexeme):
        return Token(NUMBER, float(lexeme))
    if VARIABLE_REGEX.match(lexeme):
        return Token(VARIABLE, lexeme)
    raise ParseError(f"Unrecognized token: {lexeme!r}", "UNRECOGNIZED_TOKEN")


def tokenize(text: str) -> list[Token]:
    """Split function text into tokens.

    Whitespace is insignificant and identifiers are case-insensitive, so
    "X1 + 2" and "x1+2" produce the same tokens.

    Args:
        text: Function text (e.g., "x1^2 + x2^2")

    Returns:
        Tokens in source order

    Raises:
        ParseError: TOO_LONG, EMPTY_EXPRESSION or UNRECOGNIZED_TOKEN
    """
    if len(text) > MAX_INPUT_LENGTH:
        raise ParseError(
            f"Input too long (max {MAX_INPUT_LENGTH} characters)", "TOO_LONG"
        )
    compact = WHITESPACE_REGEX.sub("", text).lower()
    if not compact:
        raise ParseError("Empty expression", "EMPTY_EXPRESSION")
    spaced = SEPARATOR_REGEX.sub(r" \1 ", compact)
    return [_classify(lexeme) for lexeme in spaced.split(" ") if lexeme]


def extract_variables(tokens: Sequence[Token]) -> tuple[str, ...]:
    """Return distinct variable names in order of first appearance."""
    seen: dict[str, None] = {}
    for token in tokens:
        if token.kind == VARIABLE and token.value not in seen:
            seen[token.value] = None
    return tuple(seen)


def _pops_before(top: str, incoming: str) -> bool:
    """Whether operator `top` on the stack must be emitted before pushing `incoming`."""
    if PRECEDENCE[top] > PRECEDENCE[incoming]:
        return True
    if PRECEDENCE[top] < PRECEDENCE[incoming]:
        return False
    return not (incoming == "^" and EXPONENT_RIGHT_ASSOCIATIVE)


def to_postfix(tokens: Sequence[Token]) -> list[Token]:
    """Convert infix tokens to postfix order (shunting-yard).

    Raises:
        ParseError: UNBALANCED_PARENTHESES on an unmatched ")" or a leftover "("
    """
    output: list[Token] = []
    stack: list[Token] = []

    for token in tokens:
        if token.kind in (NUMBER, VARIABLE):
            output.append(token)
        elif token.kind == LPAREN:
            stack.append(token)
        elif token.kind == RPAREN:
            while stack and stack[-1].kind != LPAREN:
                output.append(stack.pop())
            if not stack:
                raise ParseError("Unmatched ')'", "UNBALANCED_PARENTHESES")
            stack.pop()
        else:
            while (
                stack
                and stack[-1].kind == OPERATOR
                and _pops_before(stack[-1].value, token.value)
            ):
                output.append(stack.pop())
            stack.append(token)

    while stack:
        token = stack.pop()
        if token.kind == LPAREN:
            raise ParseError("Unmatched '('", "UNBALANCED_PARENTHESES")
        output.append(token)

    return output


def _check_arity(postfix: Sequence[Token]) -> None:
    """Reject postfix sequences that would not leave exactly one value."""
    if not any(token.is_operand for token in postfix):
        raise ParseError("Empty expression", "EMPTY_EXPRESSION")
    depth = 0
    for token in postfix:
        if token.is_operand:
            depth += 1
        elif depth < 2:
            raise ParseError(
                f"Operator {token.value!r} is missing an operand", "INVALID_SYNTAX"
            )
        else:
            depth -= 1
    if depth != 1:
        raise ParseError("Missing operator between operands", "INVALID_SYNTAX")


@dataclass(frozen=True)
class CompiledExpression:
    """Postfix tokens plus the ordered variable list of one function.

    Instances hold no mutable state: every evaluation receives its variable
    values as an argument, so one instance may be evaluated from many threads.
    """

    source: str
    postfix: tuple[Token, ...]
    variables: tuple[str, ...]

    @property
    def dimension(self) -> int:
        return len(self.variables)

    def evaluate(self, assignment: Mapping[str, float]) -> float:
        return evaluate(self.postfix, assignment)

    def __call__(self, point: Sequence[float]) -> float:
        """Evaluate at a coordinate vector ordered like `variables`."""
        return evaluate(self.postfix, dict(zip(self.variables, point)))


def compile_expression(text: str, require_variables: bool = True) -> CompiledExpression:
    """Compile function text into a CompiledExpression.

    Args:
        text: Function text
        require_variables: If True, a function without variables is rejected
            with NO_VARIABLES (there is nothing to optimize)

    Returns:
        CompiledExpression ready to be evaluated

    Raises:
        ParseError: on any tokenizing, parenthesization or syntax problem
    """
    tokens = tokenize(text)
    variables = extract_variables(tokens)
    postfix = to_postfix(tokens)
    _check_arity(postfix)
    if require_variables and not variables:
        raise ParseError(
            "Function has no variables (expected names like x1, x2)", "NO_VARIABLES"
        )
    logger.debug(
        f"Compiled {text!r}: variables={list(variables)} "
        f"postfix={' '.join(str(t) for t in postfix)}"
    )
    return CompiledExpression(
        source=text, postfix=tuple(postfix), variables=variables
    )
