"""
Warehouse layout definitions for the pick planner.
Defines the demo floor, random layout generation, reachability and
boundary validation of planning inputs.
"""

import random
from collections import deque
from typing import Dict, Iterable, List, Optional, Sequence, Set

from .astar import in_bounds
from .world import COLLECTION_POINT, ROBOT, Point, Shelf, WorldState, items_at


def demo_layout() -> Dict:
    """
    Create the demo warehouse.

    Returns:
        dict with keys:
            - "grid_size": side of the square grid
            - "shelves": list of Shelf
            - "obstacles": set of blocked Points
            - "robot_start": robot starting cell
            - "collection_point": drop-off cell
            - "default_items": goal items selected by default
    """
    shelves = [
        Shelf("S1", ("ItemA",), Point(1, 4)),
        Shelf("S2", ("ItemB",), Point(4, 1)),
        Shelf("S3", ("ItemC",), Point(6, 5)),
        Shelf("S4", ("ItemD",), Point(2, 7)),
    ]

    # L-shaped wall in the middle of the floor
    obstacles = {Point(3, 3), Point(4, 3), Point(5, 3), Point(3, 4), Point(3, 5)}

    return {
        "grid_size": 8,
        "shelves": shelves,
        "obstacles": obstacles,
        "robot_start": Point(0, 0),
        "collection_point": Point(0, 0),
        "default_items": ["ItemA", "ItemC"],
    }


def all_items(shelves: Iterable[Shelf]) -> List[str]:
    """Unique stocked items in shelf order."""
    seen = []
    for shelf in shelves:
        for item in shelf.items:
            if item not in seen:
                seen.append(item)
    return seen


def reachable_cells(start: Point, obstacles: Iterable[Point], grid_size: int) -> Set[Point]:
    """
    Find all free cells reachable from start using 4-neighbor BFS.

    Args:
        start: Starting cell (x, y)
        obstacles: Blocked cells
        grid_size: Side length of the square grid

    Returns:
        Set of all reachable cells, start included when it is free
    """
    blocked = set(obstacles)
    start = Point(*start)

    if not in_bounds(grid_size, start) or start in blocked:
        return set()

    reachable = {start}
    queue = deque([start])

    while queue:
        x, y = queue.popleft()

        for dx, dy in [(1, 0), (-1, 0), (0, 1), (0, -1)]:
            neighbor = Point(x + dx, y + dy)
            if in_bounds(grid_size, neighbor) and neighbor not in blocked and neighbor not in reachable:
                reachable.add(neighbor)
                queue.append(neighbor)

    return reachable


def validate_problem(
    state: WorldState,
    goal_items: Sequence[str],
    shelves: Sequence[Shelf],
    collection_point: Point,
    obstacles: Iterable[Point],
    grid_size: int
) -> None:
    """
    Reject malformed planning inputs before any search runs.

    Raises:
        ValueError: describing the first problem found

    Cells that are merely blocked (robot start, shelf or collection
    point inside the obstacle set) are not rejected here; the search
    decides what happens to them.
    """
    if grid_size < 1:
        raise ValueError(f"grid_size must be at least 1, got {grid_size}")

    if not in_bounds(grid_size, state.robot_pos):
        raise ValueError(f"Robot position {tuple(state.robot_pos)} is outside the {grid_size}x{grid_size} grid")

    if not in_bounds(grid_size, collection_point):
        raise ValueError(f"Collection point {tuple(collection_point)} is outside the {grid_size}x{grid_size} grid")

    for cell in obstacles:
        if not in_bounds(grid_size, cell):
            raise ValueError(f"Obstacle {tuple(cell)} is outside the {grid_size}x{grid_size} grid")

    shelf_ids: Set[str] = set()
    for shelf in shelves:
        if shelf.id in shelf_ids:
            raise ValueError(f"Duplicate shelf id: {shelf.id}")
        shelf_ids.add(shelf.id)
        if not in_bounds(grid_size, shelf.pos):
            raise ValueError(f"Shelf {shelf.id} at {tuple(shelf.pos)} is outside the {grid_size}x{grid_size} grid")

    on_robot = items_at(state, ROBOT)
    if state.holding is None and on_robot:
        raise ValueError(f"Items tagged '{ROBOT}' but the hand is empty: {on_robot}")
    if state.holding is not None and on_robot != [state.holding]:
        raise ValueError(f"Robot holds {state.holding!r} but items tagged '{ROBOT}' are {on_robot}")

    stock = {shelf.id: shelf.items for shelf in shelves}
    for item, location in state.locations().items():
        if location in (ROBOT, COLLECTION_POINT):
            continue
        if location not in stock:
            raise ValueError(f"Item {item} has unknown location {location!r}")
        if item not in stock[location]:
            raise ValueError(f"Item {item} is tagged on shelf {location}, which does not stock it")

    stocked = set(all_items(shelves))
    for item in goal_items:
        if item not in stocked and state.location_of(item) is None:
            raise ValueError(f"Unknown item: {item} is not stocked on any shelf")


def random_layout(
    grid_size: int,
    n_shelves: int,
    obstacle_prob: float,
    seed: Optional[int] = None,
    max_tries: int = 200
) -> Dict:
    """
    Generate a random feasible warehouse layout.

    Args:
        grid_size: Side length of the square grid
        n_shelves: Number of shelves, each stocking one item
        obstacle_prob: Probability of each cell being an obstacle (0.0 to 1.0)
        seed: Random seed for reproducibility
        max_tries: Maximum number of retry attempts

    Returns:
        dict with the same keys as demo_layout(). The robot starts on the
        collection point and every shelf is reachable from it.

    Raises:
        RuntimeError: If unable to generate a feasible layout after max_tries attempts
    """
    rng = random.Random(seed)

    for attempt in range(max_tries):
        obstacles = {
            Point(x, y)
            for x in range(grid_size)
            for y in range(grid_size)
            if rng.random() < obstacle_prob
        }

        free_cells = [
            Point(x, y)
            for x in range(grid_size)
            for y in range(grid_size)
            if Point(x, y) not in obstacles
        ]

        if len(free_cells) < 1 + n_shelves:
            continue

        start = rng.choice(free_cells)
        reachable = reachable_cells(start, obstacles, grid_size)
        candidates = sorted(cell for cell in reachable if cell != start)

        if len(candidates) < n_shelves:
            continue

        positions = rng.sample(candidates, n_shelves)
        shelves = [
            Shelf(f"S{i + 1}", (f"Item{i + 1}",), pos)
            for i, pos in enumerate(positions)
        ]

        return {
            "grid_size": grid_size,
            "shelves": shelves,
            "obstacles": obstacles,
            "robot_start": start,
            "collection_point": start,
            "default_items": all_items(shelves),
        }

    raise RuntimeError(
        f"Failed to generate feasible warehouse after {max_tries} attempts. "
        f"Try reducing obstacle_prob or n_shelves, or increasing max_tries."
    )
