"""
Pick Planner: warehouse robot item picking with two-level A*

A modular package that plans move / pick / drop sequences for a robot
collecting selected items from shelves and delivering them to a
collection point on a grid with obstacles.

Modules:
    astar: A* pathfinding on the square grid
    world: Points, shelves, world states and actions
    successors: Legal next actions from a world state
    heuristic: Cost-to-go estimate for world states
    planner: Task-level A* search over world states
    warehouse: Layout definitions, generation and input validation
    report: Plan metrics, formatting, replay and checking
"""

__version__ = "1.0.0"

__all__ = []
