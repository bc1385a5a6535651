"""
A* pathfinding on the warehouse floor.
Square grid, 4-connected moves, unit cost per step, Manhattan heuristic.
"""

import heapq
import math
from typing import Dict, Iterable, List, Optional, Set, Tuple

from .world import Point


def manhattan(a: Point, b: Point) -> int:
    """Compute Manhattan distance between two grid cells."""
    return abs(a[0] - b[0]) + abs(a[1] - b[1])


def in_bounds(grid_size: int, cell: Point) -> bool:
    """Check if cell is within the grid_size x grid_size square."""
    x, y = cell
    return 0 <= x < grid_size and 0 <= y < grid_size


def passable(obstacles: Set[Point], grid_size: int, cell: Point) -> bool:
    """Check if cell is passable (in bounds and not obstacle)."""
    return in_bounds(grid_size, cell) and cell not in obstacles


def neighbors(obstacles: Set[Point], grid_size: int, cell: Point) -> List[Point]:
    """Get valid 4-neighborhood neighbors (right, left, down, up)."""
    x, y = cell
    candidates = [
        Point(x + 1, y),
        Point(x - 1, y),
        Point(x, y + 1),
        Point(x, y - 1),
    ]
    return [n for n in candidates if passable(obstacles, grid_size, n)]


def find_path(
    start: Point,
    goal: Point,
    obstacles: Iterable[Point],
    grid_size: int
) -> Optional[List[Point]]:
    """
    A* shortest path between two cells.

    Args:
        start: Starting cell (x, y)
        goal: Goal cell (x, y)
        obstacles: Blocked cells
        grid_size: Side length of the square grid

    Returns:
        List of cells from start to goal (inclusive), or None if unreachable.

    Edge cases:
        - If start == goal: returns [start]
        - Only expanded neighbors are checked against bounds and obstacles.
          A start cell inside the obstacle set is still left from normally,
          and a blocked goal is never reached unless it is the start.
    """
    start = Point(*start)
    goal = Point(*goal)
    blocked = obstacles if isinstance(obstacles, (set, frozenset)) else set(obstacles)

    if start == goal:
        return [start]

    # Priority queue: (f, counter, cell)
    # Tie-break on counter so equal-f nodes come out in push order
    counter = 0
    g_score: Dict[Point, int] = {start: 0}
    came_from: Dict[Point, Point] = {}
    open_set: List[Tuple[int, int, Point]] = [(manhattan(start, goal), counter, start)]
    counter += 1

    while open_set:
        f, _, current = heapq.heappop(open_set)

        # Stale duplicate of a node that was later reached more cheaply
        if f - manhattan(current, goal) > g_score[current]:
            continue

        if current == goal:
            path = [current]
            while current in came_from:
                current = came_from[current]
                path.append(current)
            path.reverse()
            return path

        tentative_g = g_score[current] + 1
        for neighbor in neighbors(blocked, grid_size, current):
            if tentative_g < g_score.get(neighbor, math.inf):
                came_from[neighbor] = current
                g_score[neighbor] = tentative_g
                heapq.heappush(open_set, (tentative_g + manhattan(neighbor, goal), counter, neighbor))
                counter += 1

    return None


def path_cost(path: Optional[List[Point]]) -> float:
    """Number of steps along a path, or math.inf when there is none."""
    if path is None:
        return math.inf
    return len(path) - 1


class PathCache:
    """
    Memoizes find_path per (start, goal) for one fixed obstacle set and grid.

    Meant to live for a single planning call; obstacles are snapshotted
    on construction.
    """

    def __init__(self, obstacles: Iterable[Point], grid_size: int):
        self.obstacles = frozenset(Point(*o) for o in obstacles)
        self.grid_size = grid_size
        self.hits = 0
        self.misses = 0
        self._paths: Dict[Tuple[Point, Point], Optional[List[Point]]] = {}

    def find_path(self, start: Point, goal: Point) -> Optional[List[Point]]:
        key = (Point(*start), Point(*goal))
        if key in self._paths:
            self.hits += 1
        else:
            self.misses += 1
            self._paths[key] = find_path(key[0], key[1], self.obstacles, self.grid_size)
        path = self._paths[key]
        return list(path) if path is not None else None

    def __len__(self) -> int:
        return len(self._paths)
