
import itertools
import numpy as np
from typing import List, Optional, Sequence, TypeVar

T = TypeVar("T")


def build_alias(weights: Sequence[float]):
    n=len(weights)
    avg = sum(weights)/max(n,1)
    prob=[0.0]*n; alias=[0]*n
    small=[]; large=[]
    scaled=[(w/avg if avg>0 else 0) for w in weights]
    for i,w in enumerate(scaled):
        (small if w<1 else large).append(i)
    while small and large:
        s=small.pop(); l=large.pop()
        prob[s]=scaled[s]; alias[s]=l
        scaled[l]=scaled[l]-(1-prob[s])
        (small if scaled[l]<1 else large).append(l)
    for i in itertools.chain(small,large):
        prob[i]=1.0; alias[i]=i
    return prob, alias


def make_rng(seed: Optional[int] = None, rng: Optional[np.random.Generator] = None) -> np.random.Generator:
    return rng if rng is not None else np.random.default_rng(seed)


def sample_unique(items: Sequence[T], weights: Sequence[float], k: int,
                  rng: Optional[np.random.Generator] = None) -> List[T]:
    """Pick ``k`` distinct items, each with probability proportional to its weight.

    Picks are made with replacement from an alias table and repeats are
    rejected until ``k`` distinct items are chosen. Zero-weight items are
    never picked, so ``k`` is capped at the number of positive weights.
    """
    rng = make_rng(rng=rng)
    pairs = [(item, w) for item, w in zip(items, weights) if w > 0]
    n = min(k, len(pairs))
    if n <= 0:
        return []

    prob, alias = build_alias([w for _, w in pairs])
    chosen = {}
    while len(chosen) < n:
        i = int(rng.integers(len(pairs)))
        idx = i if rng.random() < prob[i] else alias[i]
        chosen.setdefault(idx, len(chosen))
    # dicts keep insertion order, i.e. pick order
    return [pairs[i][0] for i in chosen]


def sample_uniform(items: Sequence[T], n: int, rng: Optional[np.random.Generator] = None) -> List[T]:
    """``n`` items drawn uniformly with replacement; repeats are allowed."""
    if not items or n <= 0:
        return []
    rng = make_rng(rng=rng)
    return [items[int(i)] for i in rng.integers(len(items), size=n)]
