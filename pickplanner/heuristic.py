"""
Cost-to-go estimate for the task planner.
"""

from typing import Callable, Iterable, List, Optional

from .astar import find_path, path_cost
from .world import COLLECTION_POINT, Point, WorldState

DEFAULT_ITEM_PENALTY = 20

PathFn = Callable[[Point, Point], Optional[List[Point]]]


def items_to_get(state: WorldState, goal_items: Iterable[str]) -> List[str]:
    """Goal items not yet at the collection point (including the one in hand)."""
    return [item for item in goal_items if state.location_of(item) != COLLECTION_POINT]


def estimate(
    state: WorldState,
    goal_items: Iterable[str],
    collection_point: Point,
    obstacles: Iterable[Point],
    grid_size: int,
    item_penalty: float = DEFAULT_ITEM_PENALTY,
    path_fn: Optional[PathFn] = None
) -> float:
    """
    Heuristic cost from state to a goal state.

    item_penalty per undelivered item, plus the real path length to the
    collection point while carrying. Returns math.inf when the carried
    item can no longer be delivered.

    Not admissible: the per-item penalty can exceed the true remaining
    cost, trading guaranteed optimality for fewer expansions.
    """
    h = item_penalty * len(items_to_get(state, goal_items))

    if state.holding is not None:
        if path_fn is None:
            path = find_path(state.robot_pos, collection_point, set(obstacles), grid_size)
        else:
            path = path_fn(state.robot_pos, collection_point)
        h += path_cost(path)

    return h
