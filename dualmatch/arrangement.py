import random
from dataclasses import dataclass
from typing import List, Optional, Sequence, TypeVar

T = TypeVar("T")


@dataclass(frozen=True)
class SolutionCheck:
    solved_a: bool
    solved_b: bool
    solved: bool


def arrays_equal(a: Sequence, b: Sequence) -> bool:
    if len(a) != len(b):
        return False
    return all(x == y for x, y in zip(a, b))


def check_solution(current: Sequence[str], solution_a: Sequence[str],
                   solution_b: Sequence[str]) -> SolutionCheck:
    solved_a = arrays_equal(current, solution_a)
    solved_b = arrays_equal(current, solution_b)
    return SolutionCheck(solved_a, solved_b, solved_a or solved_b)


def swap_tiles(arrangement: Sequence[T], index_a: int, index_b: int) -> List[T]:
    # Returns a new list; the input is left untouched
    result = list(arrangement)
    result[index_a], result[index_b] = result[index_b], result[index_a]
    return result


def shuffle(items: Sequence[T], rng: Optional[random.Random] = None) -> List[T]:
    """Fisher-Yates shuffle of a copy of `items`."""
    rng = rng or random
    result = list(items)
    for i in range(len(result) - 1, 0, -1):
        j = rng.randint(0, i)
        result[i], result[j] = result[j], result[i]
    return result


def shuffle_until_unsolved(tile_ids: Sequence[str], solution_a: Sequence[str], solution_b: Sequence[str],
                           max_attempts: int = 100, rng: Optional[random.Random] = None) -> List[str]:
    """
    Shuffle until the arrangement matches neither solution. Gives up after
    max_attempts reshuffles and returns the last one, which matters only
    for puzzles with a single possible arrangement.
    """
    result = shuffle(tile_ids, rng)
    attempts = 0
    while attempts < max_attempts and check_solution(result, solution_a, solution_b).solved:
        result = shuffle(tile_ids, rng)
        attempts += 1
    return result
