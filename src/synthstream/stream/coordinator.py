"""Fan-in of per-symbol samples into combined formula results.

A FanInCoordinator belongs to exactly one session and is driven
sequentially by that session's upstream loop, so the SampleStore it owns
needs no locking.
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping

from synthstream.exceptions import SampleArithmeticError
from synthstream.formula.dependencies import dependency_set
from synthstream.formula.evaluator import ZeroDivisionPolicy, evaluate
from synthstream.formula.expression import FormulaRequest
from synthstream.logging import get_logger
from synthstream.models import OHLCSample

logger = get_logger(__name__)


class SampleStore(Mapping[str, OHLCSample]):
    """Latest sample per symbol. At most one entry per symbol; no history."""

    def __init__(self) -> None:
        self._samples: dict[str, OHLCSample] = {}

    def put(self, symbol: str, sample: OHLCSample) -> None:
        """Install ``sample`` for ``symbol``, replacing any previous one."""
        self._samples[symbol] = sample

    def clear(self) -> None:
        self._samples.clear()

    def __getitem__(self, symbol: str) -> OHLCSample:
        return self._samples[symbol]

    def __iter__(self) -> Iterator[str]:
        return iter(self._samples)

    def __len__(self) -> int:
        return len(self._samples)


class FanInCoordinator:
    """Applies inbound samples and runs an evaluation round when warm.

    Cold until every distinct dependency has been seen once. After that,
    every observed sample triggers a round that uses the newest value of
    each dependency, however old the other values are.
    """

    def __init__(
        self,
        request: FormulaRequest,
        zero_division: ZeroDivisionPolicy = "skip",
    ) -> None:
        self._request = request
        self._zero_division = zero_division
        self._dependencies = dependency_set(request.expression)
        self._required = frozenset(self._dependencies)
        self._store = SampleStore()
        self.rounds = 0
        self.skipped_rounds = 0

    @property
    def request(self) -> FormulaRequest:
        return self._request

    @property
    def dependencies(self) -> list[str]:
        """Distinct symbols of the formula, in first-occurrence order."""
        return list(self._dependencies)

    @property
    def store(self) -> SampleStore:
        return self._store

    @property
    def is_warm(self) -> bool:
        return len(self._store) >= len(self._dependencies)

    def observe(self, symbol: str, sample: OHLCSample) -> OHLCSample | None:
        """Install ``sample`` for ``symbol`` and attempt one evaluation round.

        Returns:
            The combined sample, or None while cold, when a dependency is
            missing, or when the round was skipped under the "skip" policy
            (zero divisor or decimal overflow).
        """
        if symbol not in self._required:
            logger.debug("sample_for_unknown_symbol_ignored", symbol=symbol)
            return None

        self._store.put(symbol, sample)

        if not self.is_warm:
            logger.debug(
                "store_warming",
                seen=len(self._store),
                required=len(self._dependencies),
            )
            return None

        try:
            result = evaluate(self._request.expression, self._store, self._zero_division)
        except SampleArithmeticError as e:
            self.skipped_rounds += 1
            logger.warning(
                "evaluation_round_degraded",
                reason=str(e),
                trigger=symbol,
                skipped_rounds=self.skipped_rounds,
            )
            return None

        if result is None:
            logger.warning("evaluation_incomplete", trigger=symbol)
            return None

        self.rounds += 1
        if result.degraded:
            logger.warning("evaluation_round_degraded", reason="nan_result", trigger=symbol)
        return result

    def close(self) -> None:
        """Discard all samples. Called when the owning session ends."""
        self._store.clear()
