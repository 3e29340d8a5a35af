import logging
import numpy as np
from scipy.optimize import linear_sum_assignment
from typing import List, Optional, Sequence

logger = logging.getLogger(__name__)


class AssignmentSolver:
    """Turns an N x N similarity matrix into a permutation: result[i] = j."""

    name = "base"

    def solve(self, similarity_matrix: np.ndarray) -> List[int]:
        raise NotImplementedError


class GreedySolver(AssignmentSolver):
    """
    Greedy approximation of maximum-weight matching.

    All (row, col) pairs are taken in descending score order and a pair is
    committed when both its row and column are still free. Equal scores are
    taken in row-major order (lower row first, then lower column). The
    result is always a bijection but not necessarily the optimum.
    """

    name = "greedy"

    def solve(self, similarity_matrix: np.ndarray) -> List[int]:
        N = similarity_matrix.shape[0]
        assignment = [-1] * N
        used_cols = set()

        # Stable sort on the row-major flattening gives the tie-break order
        order = np.argsort(-similarity_matrix.ravel(), kind="stable")
        for flat_idx in order:
            i, j = divmod(int(flat_idx), N)
            if assignment[i] == -1 and j not in used_cols:
                assignment[i] = j
                used_cols.add(j)
            if len(used_cols) == N:
                break

        return assignment


class HungarianSolver(AssignmentSolver):
    """Exact maximum-weight assignment (scipy's Jonker-Volgenant implementation)."""

    name = "hungarian"

    def solve(self, similarity_matrix: np.ndarray) -> List[int]:
        row_idx, col_idx = linear_sum_assignment(similarity_matrix, maximize=True)
        assignment = [-1] * similarity_matrix.shape[0]
        for tile, pos in zip(row_idx, col_idx):
            assignment[int(tile)] = int(pos)
        return assignment


SOLVERS = {
    GreedySolver.name: GreedySolver,
    HungarianSolver.name: HungarianSolver,
}


def get_solver(name: str) -> AssignmentSolver:
    try:
        return SOLVERS[name]()
    except KeyError:
        raise ValueError(f"Unknown solver {name!r}; expected one of {sorted(SOLVERS)}") from None


def is_permutation(values: Sequence[int], n: int) -> bool:
    return len(values) == n and sorted(int(v) for v in values) == list(range(n))


def assignment_score(similarity_matrix: np.ndarray, assignment: Sequence[int]) -> float:
    return float(sum(similarity_matrix[i, j] for i, j in enumerate(assignment)))


def solve_assignment(similarity_matrix, solver: Optional[AssignmentSolver] = None) -> List[int]:
    """
    Validate the matrix, run the solver (greedy by default) and check the
    result is a bijection over [0, N).
    """
    matrix = np.asarray(similarity_matrix, dtype=np.float64)
    if matrix.ndim != 2 or matrix.shape[0] != matrix.shape[1]:
        raise ValueError(f"Similarity matrix must be square, got shape {matrix.shape}")
    if not np.all(np.isfinite(matrix)):
        raise ValueError("Similarity matrix contains non-finite values")

    solver = solver or GreedySolver()
    assignment = solver.solve(matrix)
    if not is_permutation(assignment, matrix.shape[0]):
        raise RuntimeError(f"{solver.name} solver returned a non-bijective assignment: {assignment}")

    logger.debug("%s assignment score %.4f", solver.name, assignment_score(matrix, assignment))
    return assignment
