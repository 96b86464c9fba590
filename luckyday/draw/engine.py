"""Draw engine: eligibility bookkeeping, weighted draws and prize resets."""

from __future__ import annotations

import logging
import threading
from datetime import datetime
from enum import Enum
from typing import Dict, List, Optional, Sequence, Tuple

import numpy as np

from luckyday.draw.sampler import make_rng, sample_uniform, sample_unique
from luckyday.draw.weights import compute_weights, scale_weights
from luckyday.models.schema import Participant, Prize

logger = logging.getLogger(__name__)

NO_CANDIDATES_NAME = "无候选人"


class DrawFailure(str, Enum):
    UNKNOWN_PRIZE = "unknown_prize"
    PRIZE_EXHAUSTED = "prize_exhausted"
    NO_ELIGIBLE_CANDIDATES = "no_eligible_candidates"


class DrawEngine:
    """Session state of a prize draw.

    The engine owns the eligibility pool and the winners of every prize.
    Participants leave the pool when they win and only come back through
    :meth:`reset_prize`. Nothing here is thread safe; see
    :class:`SynchronizedDrawEngine`.

    Parameters
    ----------
    participants : Sequence[Participant]
        Everyone taking part in the session.
    prizes : Sequence[Prize]
        Prizes in display order. The engine keeps its own copies.
    current_year : Optional[int], default: None
        Year used to age winning history; defaults to the current year.
    seed : Optional[int], default: None
        Seed for the random source when ``rng`` is not given.
    rng : Optional[numpy.random.Generator], default: None
        Random source shared by weighted draws and name rolling.
    """

    def __init__(
        self,
        participants: Sequence[Participant],
        prizes: Sequence[Prize],
        *,
        current_year: Optional[int] = None,
        seed: Optional[int] = None,
        rng: Optional[np.random.Generator] = None,
    ) -> None:
        self._participants: Tuple[Participant, ...] = tuple(participants)
        self._prizes: List[Prize] = [p.model_copy() for p in prizes]
        self._eligible: Dict[int, Participant] = {p.id: p for p in self._participants}
        self._winners: Dict[int, List[Participant]] = {}
        self._current_year = current_year if current_year is not None else datetime.now().year
        self._rng = make_rng(seed, rng)

    @property
    def current_year(self) -> int:
        return self._current_year

    def _find_prize(self, prize_id: int) -> Optional[Prize]:
        for prize in self._prizes:
            if prize.id == prize_id:
                return prize
        return None

    def check_draw(self, prize_id: int) -> Optional[DrawFailure]:
        """Return why :meth:`draw` would fail for ``prize_id``, or ``None``."""
        prize = self._find_prize(prize_id)
        if prize is None:
            return DrawFailure.UNKNOWN_PRIZE
        if prize.exhausted:
            return DrawFailure.PRIZE_EXHAUSTED
        if not self._eligible:
            return DrawFailure.NO_ELIGIBLE_CANDIDATES
        return None

    def _weighted_choices(self, prize: Prize) -> Tuple[List[Participant], np.ndarray]:
        candidates = list(self._eligible.values())
        weights = scale_weights(compute_weights(candidates, self._current_year), prize.probability)
        keep = weights > 0
        return [c for c, k in zip(candidates, keep) if k], weights[keep]

    def draw(self, prize_id: int) -> Tuple[List[Participant], bool]:
        """Fill the remaining slots of a prize.

        Returns
        -------
        tuple[list[Participant], bool]
            The winners of this call and whether the draw happened. A failed
            draw returns ``([], False)`` and changes nothing.
        """
        failure = self.check_draw(prize_id)
        if failure is not None:
            logger.warning("draw rejected for prize %s: %s", prize_id, failure.value)
            return [], False

        prize = self._find_prize(prize_id)
        slots = prize.count - prize.drawn_count
        candidates, weights = self._weighted_choices(prize)

        if len(candidates) <= slots:
            winners = candidates
        else:
            winners = sample_unique(candidates, weights.tolist(), slots, rng=self._rng)

        for winner in winners:
            del self._eligible[winner.id]
        self._winners.setdefault(prize.id, []).extend(winners)
        prize.drawn_count += len(winners)

        logger.info(
            "prize %s (%s): drew %d winner(s), %d/%d filled, %d still eligible",
            prize.id, prize.name, len(winners), prize.drawn_count, prize.count, len(self._eligible),
        )
        return list(winners), True

    def reset_prize(self, prize_id: int) -> None:
        """Return the winners of ``prize_id`` to the pool and clear its count."""
        winners = self._winners.pop(prize_id, [])
        for winner in winners:
            self._eligible[winner.id] = winner
        prize = self._find_prize(prize_id)
        if prize is not None:
            prize.drawn_count = 0
        if winners:
            logger.info("prize %s reset, %d participant(s) back in the pool", prize_id, len(winners))

    def eligible_participants(self) -> List[Participant]:
        return list(self._eligible.values())

    def participants(self) -> List[Participant]:
        return list(self._participants)

    def prizes(self) -> List[Prize]:
        return [p.model_copy() for p in self._prizes]

    def winners(self, prize_id: int) -> List[Participant]:
        return list(self._winners.get(prize_id, []))

    def all_winners(self) -> Dict[int, List[Participant]]:
        return {prize_id: list(ws) for prize_id, ws in self._winners.items()}

    def random_names(self, count: int, placeholder: str = NO_CANDIDATES_NAME) -> List[str]:
        """Names for the rolling animation, uniform and possibly repeated."""
        eligible = self.eligible_participants()
        if not eligible:
            return [placeholder]
        return [p.name for p in sample_uniform(eligible, count, rng=self._rng)]


class SynchronizedDrawEngine:
    """:class:`DrawEngine` guarded by one lock for all of its operations."""

    def __init__(self, engine: DrawEngine) -> None:
        self._engine = engine
        self._lock = threading.RLock()

    def __getattr__(self, name):
        attr = getattr(self._engine, name)
        if not callable(attr):
            return attr

        def locked(*args, **kwargs):
            with self._lock:
                return attr(*args, **kwargs)

        return locked
