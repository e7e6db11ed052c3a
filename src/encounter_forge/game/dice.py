"""Dice expression engine used for treasure rolls."""

import math
import random
import re
from dataclasses import dataclass, field
from typing import Awaitable, Callable

RollEvaluator = Callable[[str], Awaitable[int]]


@dataclass
class DiceResult:
    """Result of evaluating a dice expression."""

    notation: str
    rolls: list[int] = field(default_factory=list)
    total: float = 0

    def __str__(self) -> str:
        """Human-readable representation of the roll."""
        if self.rolls:
            dice = ", ".join(str(r) for r in self.rolls)
            return f"{self.notation}: [{dice}] = {self.total:g}"
        return f"{self.notation} = {self.total:g}"


@dataclass
class DicePool:
    """Represents a pool of identical dice."""

    count: int
    sides: int


class DiceRoller:
    """Dice rolling engine for arithmetic dice expressions.

    Supports pools (``2d6``, ``d20``), integer constants, ``+ - * /`` and
    parentheses, e.g. ``"(3d6)*4"`` or ``"8d8 * 1000"``.
    """

    TOKEN_PATTERN = re.compile(r"\s*(?:(\d*)d(\d+)|(\d+)|(.))", re.IGNORECASE)
    MAX_DICE = 1000

    def __init__(self, rng: random.Random | None = None):
        """Initialize the dice roller.

        Args:
            rng: Random number generator instance. Uses default if not provided.
        """
        self.rng = rng or random.Random()

    def seed(self, seed: int) -> None:
        """Seed the random number generator for reproducible rolls.

        Args:
            seed: Seed value
        """
        self.rng.seed(seed)

    def tokenize(self, notation: str) -> list[tuple[str, object]]:
        """Split a dice expression into tokens.

        Raises:
            ValueError: If the expression contains unknown characters
        """
        tokens: list[tuple[str, object]] = []
        text = notation.strip()
        pos = 0
        while pos < len(text):
            match = self.TOKEN_PATTERN.match(text, pos)
            if not match or match.end() == pos:
                break
            pos = match.end()
            count, sides, number, op = match.groups()
            if sides is not None:
                pool = DicePool(count=int(count) if count else 1, sides=int(sides))
                if pool.sides < 1 or pool.count > self.MAX_DICE:
                    raise ValueError(f"Invalid dice notation: {notation}")
                tokens.append(("dice", pool))
            elif number is not None:
                tokens.append(("num", int(number)))
            elif op is not None and op.strip():
                if op not in "+-*/()":
                    raise ValueError(f"Invalid dice notation: {notation}")
                tokens.append(("op", op))
        return tokens

    def roll_pool(self, pool: DicePool) -> list[int]:
        """Roll every die in a pool."""
        return [self.rng.randint(1, pool.sides) for _ in range(pool.count)]

    def roll(self, notation: str) -> DiceResult:
        """Parse and evaluate a dice expression.

        Args:
            notation: Dice expression string

        Returns:
            DiceResult with the individual die results and the total

        Raises:
            ValueError: If notation is empty or malformed
        """
        if not notation or not notation.strip():
            raise ValueError("Formula cannot be empty")

        tokens = self.tokenize(notation)
        if not tokens:
            raise ValueError(f"Invalid dice notation: {notation}")

        result = DiceResult(notation=notation.strip())
        parser = _ExpressionParser(tokens, self, result, notation)
        result.total = parser.parse()
        return result


class _ExpressionParser:
    """Recursive-descent evaluator over roller tokens."""

    def __init__(self, tokens, roller: DiceRoller, result: DiceResult, notation: str):
        self.tokens = tokens
        self.pos = 0
        self.roller = roller
        self.result = result
        self.notation = notation

    def error(self) -> ValueError:
        return ValueError(f"Invalid dice notation: {self.notation}")

    def peek(self):
        return self.tokens[self.pos] if self.pos < len(self.tokens) else (None, None)

    def advance(self):
        token = self.peek()
        self.pos += 1
        return token

    def parse(self) -> float:
        value = self.expression()
        if self.pos != len(self.tokens):
            raise self.error()
        return value

    def expression(self) -> float:
        value = self.term()
        while self.peek() in (("op", "+"), ("op", "-")):
            _, op = self.advance()
            right = self.term()
            value = value + right if op == "+" else value - right
        return value

    def term(self) -> float:
        value = self.factor()
        while self.peek() in (("op", "*"), ("op", "/")):
            _, op = self.advance()
            right = self.factor()
            if op == "*":
                value = value * right
            else:
                if right == 0:
                    raise self.error()
                value = value / right
        return value

    def factor(self) -> float:
        kind, value = self.advance()
        if kind == "num":
            return value
        if kind == "dice":
            rolls = self.roller.roll_pool(value)
            self.result.rolls.extend(rolls)
            return sum(rolls)
        if (kind, value) == ("op", "-"):
            return -self.factor()
        if (kind, value) == ("op", "("):
            inner = self.expression()
            if self.advance() != ("op", ")"):
                raise self.error()
            return inner
        raise self.error()


def make_roll_evaluator(roller: DiceRoller | None = None) -> RollEvaluator:
    """Build an async evaluator returning floored, non-negative totals.

    Args:
        roller: Roller to use. A fresh unseeded roller if not provided.

    Returns:
        Coroutine function ``formula -> int``
    """
    roller = roller or DiceRoller()

    async def evaluate(formula: str) -> int:
        result = roller.roll(formula)
        return max(0, math.floor(result.total))

    return evaluate


# Convenience evaluator using a default roller
roll_evaluator = make_roll_evaluator()


def roll(notation: str) -> DiceResult:
    """Quick roll function using default roller.

    Args:
        notation: Dice expression string

    Returns:
        DiceResult with full roll details
    """
    return DiceRoller().roll(notation)
