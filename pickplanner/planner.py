"""
Task-level A* planner.

Searches over world states (robot cell, held item, item locations) using
the successor generator for edges and the heuristic estimator for
priorities. Both call the grid pathfinder, so every expansion runs a
handful of low-level A* searches.
"""

import heapq
import logging
import math
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from .astar import PathCache, find_path
from .heuristic import DEFAULT_ITEM_PENALTY, estimate
from .successors import successors
from .warehouse import validate_problem
from .world import Action, Point, Shelf, WorldState, apply_action, canonical_key, is_goal

logger = logging.getLogger(__name__)

FOUND = "found"
NO_PLAN = "no_plan"
TIMEOUT = "timeout"

DEFAULT_MAX_ITERATIONS = 5000


@dataclass
class PlannerConfig:
    max_iterations: int = DEFAULT_MAX_ITERATIONS
    item_penalty: float = DEFAULT_ITEM_PENALTY
    cache_paths: bool = False


@dataclass
class PlannerResult:
    """
    Outcome of one planning call.

    status is FOUND, NO_PLAN (frontier exhausted) or TIMEOUT (iteration
    budget spent). actions is empty unless status is FOUND.
    """
    status: str
    actions: Tuple[Action, ...] = field(default_factory=tuple)
    iterations: int = 0
    nodes_generated: int = 0

    @property
    def found(self) -> bool:
        return self.status == FOUND

    @property
    def total_cost(self) -> float:
        if not self.found:
            return math.inf
        return sum(action.cost for action in self.actions)


def plan(
    initial: WorldState,
    goal_items: Sequence[str],
    shelves: Sequence[Shelf],
    collection_point: Point,
    obstacles: Iterable[Point],
    grid_size: int,
    config: Optional[PlannerConfig] = None
) -> PlannerResult:
    """
    Find a sequence of actions that delivers every goal item.

    Args:
        initial: Starting world state
        goal_items: Items that must end at the collection point
        shelves: Shelf layout
        collection_point: Drop-off cell
        obstacles: Blocked cells
        grid_size: Side length of the square grid
        config: Search limits and tuning; defaults to PlannerConfig()

    Returns:
        PlannerResult. Failure is reported through its status, not raised.

    Raises:
        ValueError: If the inputs are malformed (see validate_problem)
    """
    config = config or PlannerConfig()
    goal_items = list(goal_items)
    shelves = list(shelves)
    collection_point = Point(*collection_point)
    blocked = frozenset(Point(*o) for o in obstacles)

    validate_problem(initial, goal_items, shelves, collection_point, blocked, grid_size)

    if config.cache_paths:
        path_fn = PathCache(blocked, grid_size).find_path
    else:
        def path_fn(start, goal):
            return find_path(start, goal, blocked, grid_size)

    def heuristic(state: WorldState) -> float:
        return estimate(state, goal_items, collection_point, blocked, grid_size,
                        item_penalty=config.item_penalty, path_fn=path_fn)

    logger.debug("Planning for %s on %dx%d grid (max_iterations=%d)",
                 goal_items, grid_size, grid_size, config.max_iterations)

    # Call-scoped search memory
    start_key = canonical_key(initial)
    g_score: Dict[str, float] = {start_key: 0}
    f_score: Dict[str, float] = {start_key: heuristic(initial)}

    # Frontier entries: (f, counter, g, state, path-so-far)
    counter = 0
    frontier: List[Tuple[float, int, float, WorldState, Tuple[Action, ...]]] = [
        (f_score[start_key], counter, 0, initial, ())
    ]
    counter += 1

    iterations = 0

    while frontier:
        iterations += 1
        if iterations > config.max_iterations:
            logger.warning("Planner timed out: max iterations reached (%d)", config.max_iterations)
            return PlannerResult(TIMEOUT, iterations=config.max_iterations, nodes_generated=counter)

        _, _, g, state, path = heapq.heappop(frontier)
        key = canonical_key(state)

        if is_goal(state, goal_items):
            logger.debug("Plan found after %d iterations, cost %s", iterations, g)
            return PlannerResult(FOUND, actions=path, iterations=iterations, nodes_generated=counter)

        # Superseded by a cheaper route to the same state
        if g > g_score[key]:
            continue

        for action in successors(state, goal_items, shelves, collection_point, blocked,
                                 grid_size, path_fn=path_fn):
            next_state = apply_action(state, action)
            next_key = canonical_key(next_state)
            tentative_g = g + action.cost

            if tentative_g < g_score.get(next_key, math.inf):
                g_score[next_key] = tentative_g
                f = tentative_g + heuristic(next_state)
                f_score[next_key] = f
                # Carrying an item that can no longer be delivered
                if f == math.inf:
                    continue
                heapq.heappush(frontier, (f, counter, tentative_g, next_state, path + (action,)))
                counter += 1

    logger.info("No plan exists for %s after %d iterations", goal_items, iterations)
    return PlannerResult(NO_PLAN, iterations=iterations, nodes_generated=counter)
