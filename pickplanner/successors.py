"""
Successor generation for the task planner.

The operator set is deliberately narrow: with an item in hand the only
move is straight to the collection point (then drop); with an empty
hand the robot either picks a needed item at its current shelf or moves
to a shelf that stocks one.
"""

from typing import Callable, Iterable, List, Optional, Sequence

from .astar import find_path
from .world import (
    COLLECTION_POINT, ROBOT, Action, Drop, Move, Pick, Point, Shelf, WorldState
)

PathFn = Callable[[Point, Point], Optional[List[Point]]]


def needed_items(state: WorldState, goal_items: Iterable[str]) -> List[str]:
    """Goal items still sitting on a shelf (not delivered, not in hand)."""
    return [
        item for item in goal_items
        if state.location_of(item) not in (COLLECTION_POINT, ROBOT)
    ]


def successors(
    state: WorldState,
    goal_items: Sequence[str],
    shelves: Sequence[Shelf],
    collection_point: Point,
    obstacles: Iterable[Point],
    grid_size: int,
    path_fn: Optional[PathFn] = None
) -> List[Action]:
    """
    Legal next actions from state.

    Args:
        state: Current world state
        goal_items: Items that must end up at the collection point
        shelves: Shelf layout
        collection_point: Drop-off cell
        obstacles: Blocked cells
        grid_size: Side length of the square grid
        path_fn: Optional (start, goal) -> path lookup, e.g. a PathCache;
                 defaults to a fresh find_path call

    Returns:
        List of Move / Pick / Drop actions. Unreachable targets simply
        produce no action.
    """
    if path_fn is None:
        blocked = set(obstacles)

        def path_fn(start, goal):
            return find_path(start, goal, blocked, grid_size)

    actions: List[Action] = []
    needed = needed_items(state, goal_items)

    if state.holding is not None:
        path = path_fn(state.robot_pos, collection_point)
        if path:
            if len(path) > 1:
                actions.append(Move(state.robot_pos, collection_point, path))
            else:
                actions.append(Drop(state.holding))
        return actions

    # Hand empty: pick here if this shelf has something we need
    for shelf in shelves:
        if shelf.pos == state.robot_pos:
            item = next((i for i in shelf.items if i in needed), None)
            if item is not None:
                actions.append(Pick(item, shelf.id))
            break

    for shelf in shelves:
        if not any(i in needed for i in shelf.items):
            continue
        path = path_fn(state.robot_pos, shelf.pos)
        if path and len(path) > 1:
            actions.append(Move(state.robot_pos, shelf.pos, path))

    return actions
