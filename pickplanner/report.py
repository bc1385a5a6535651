"""
Helpers for consumers of a plan: summary metrics, a readable listing,
step-by-step replay and an independent plan checker.
"""

from typing import Dict, Iterable, List, Sequence

from .astar import in_bounds, manhattan
from .world import (
    ROBOT, Action, Drop, Move, Pick, Point, Shelf, WorldState,
    apply_action, is_goal
)


def plan_metrics(actions: Sequence[Action], iterations: int) -> Dict:
    """
    Summary numbers for a plan.

    Returns:
        dict with keys "total_actions", "total_distance" (sum of move
        costs), "pick_drop_actions" and "iterations"
    """
    return {
        "total_actions": len(actions),
        "total_distance": sum(a.cost for a in actions if isinstance(a, Move)),
        "pick_drop_actions": sum(1 for a in actions if isinstance(a, (Pick, Drop))),
        "iterations": iterations,
    }


def format_action(action: Action) -> str:
    if isinstance(action, Move):
        return (f"MOVE ({action.start.x},{action.start.y}) -> "
                f"({action.end.x},{action.end.y}) [Cost: {action.cost}]")
    if isinstance(action, Pick):
        return f"PICK {action.item} from {action.shelf_id}"
    return f"DROP {action.item} at Collection Point"


def format_plan(actions: Sequence[Action]) -> str:
    """Numbered, one action per line."""
    return "\n".join(f"{step}. {format_action(a)}" for step, a in enumerate(actions, start=1))


def replay(initial: WorldState, actions: Iterable[Action]) -> List[WorldState]:
    """States visited by the plan, starting with initial."""
    states = [initial]
    for action in actions:
        states.append(apply_action(states[-1], action))
    return states


def state_at(initial: WorldState, actions: Sequence[Action], step: int) -> WorldState:
    """
    State after the first step + 1 actions have run.

    step -1 is the initial state; steps past the end give the final state.
    """
    states = replay(initial, actions[:max(step + 1, 0)])
    return states[-1]


def validate_plan(
    initial: WorldState,
    actions: Sequence[Action],
    goal_items: Sequence[str],
    shelves: Sequence[Shelf],
    collection_point: Point,
    obstacles: Iterable[Point],
    grid_size: int
) -> bool:
    """
    Check a plan action by action against the move / pick / drop
    preconditions and confirm it ends in a goal state.
    """
    blocked = set(obstacles)
    shelf_by_id = {shelf.id: shelf for shelf in shelves}
    state = initial

    for action in actions:
        if isinstance(action, Move):
            path = list(action.path)
            if not path or path[0] != state.robot_pos or path[-1] != action.end:
                return False
            for a, b in zip(path, path[1:]):
                if manhattan(a, b) != 1:
                    return False
                if not in_bounds(grid_size, b) or b in blocked:
                    return False
        elif isinstance(action, Pick):
            shelf = shelf_by_id.get(action.shelf_id)
            if state.holding is not None or shelf is None:
                return False
            if shelf.pos != state.robot_pos or state.location_of(action.item) != shelf.id:
                return False
        elif isinstance(action, Drop):
            if state.holding != action.item or state.robot_pos != Point(*collection_point):
                return False
            if state.location_of(action.item) != ROBOT:
                return False
        else:
            return False
        state = apply_action(state, action)

    return is_goal(state, goal_items)
