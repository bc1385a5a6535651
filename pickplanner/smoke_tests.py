"""
Smoke tests for the pick planner.
Plain assert-based test functions; collected by pytest or run directly
with `python -m pickplanner.smoke_tests`.
"""

import math

from .astar import PathCache, find_path, manhattan, path_cost
from .heuristic import estimate, items_to_get
from .planner import FOUND, NO_PLAN, TIMEOUT, PlannerConfig, plan
from .report import format_plan, plan_metrics, replay, state_at, validate_plan
from .successors import needed_items, successors
from .warehouse import all_items, demo_layout, random_layout, reachable_cells, validate_problem
from .world import (
    COLLECTION_POINT, ROBOT, Drop, Move, Pick, Point, Shelf, WorldState,
    apply_action, canonical_key, initial_state, is_goal, items_at
)


def _plan_demo(goal_items, layout=None, **config):
    layout = layout or demo_layout()
    start = initial_state(layout["shelves"], layout["robot_start"])
    result = plan(
        start,
        goal_items,
        layout["shelves"],
        layout["collection_point"],
        layout["obstacles"],
        layout["grid_size"],
        config=PlannerConfig(**config)
    )
    return start, result


def _assert_contiguous(path, obstacles):
    for a, b in zip(path, path[1:]):
        assert manhattan(a, b) == 1, f"Path jumps from {a} to {b}"
    for cell in path[1:]:
        assert cell not in obstacles, f"Path crosses obstacle {cell}"


def test_find_path_edge_cases():
    """start == goal, blocked goal, walled-in goal."""
    print("Running test_find_path_edge_cases...", end=" ")

    obstacles = {Point(1, 2), Point(3, 2), Point(2, 1), Point(2, 3)}

    path = find_path(Point(0, 0), Point(0, 0), obstacles, 5)
    assert path == [Point(0, 0)], f"Expected single-cell path, got {path}"

    assert find_path(Point(0, 0), Point(1, 2), obstacles, 5) is None, \
        "Goal on an obstacle should be unreachable"
    assert find_path(Point(0, 0), Point(2, 2), obstacles, 5) is None, \
        "Goal enclosed by obstacles should be unreachable"
    assert find_path(Point(0, 0), Point(5, 0), set(), 5) is None, \
        "Goal outside the grid should be unreachable"

    print("PASS")


def test_find_path_leaves_obstructed_start():
    """A start cell inside the obstacle set is still left normally."""
    print("Running test_find_path_leaves_obstructed_start...", end=" ")

    obstacles = {Point(1, 1)}
    path = find_path(Point(1, 1), Point(1, 3), obstacles, 5)
    assert path is not None and len(path) == 3, f"Expected 2-step path, got {path}"
    assert path[0] == Point(1, 1)
    _assert_contiguous(path, obstacles)

    print("PASS")


def test_find_path_optimal_on_open_grid():
    print("Running test_find_path_optimal_on_open_grid...", end=" ")

    cells = [Point(x, y) for x in range(6) for y in range(6)]
    for start in cells[::5]:
        for goal in cells[::7]:
            path = find_path(start, goal, set(), 6)
            assert path is not None, f"No path {start} -> {goal} on open grid"
            assert len(path) - 1 == manhattan(start, goal), \
                f"Path {start} -> {goal} has {len(path) - 1} steps, expected {manhattan(start, goal)}"
            assert path[0] == start and path[-1] == goal
            _assert_contiguous(path, set())

    print("PASS")


def test_find_path_around_wall():
    print("Running test_find_path_around_wall...", end=" ")

    layout = demo_layout()
    obstacles = layout["obstacles"]

    path = find_path(Point(0, 0), Point(6, 5), obstacles, 8)
    assert path is not None
    assert len(path) - 1 == 11
    _assert_contiguous(path, obstacles)

    # From S1 to S3 the wall forces a detour past the Manhattan distance
    detour = find_path(Point(1, 4), Point(6, 5), obstacles, 8)
    assert detour is not None
    assert len(detour) - 1 > manhattan(Point(1, 4), Point(6, 5))
    _assert_contiguous(detour, obstacles)

    print("PASS")


def test_path_cache_matches_find_path():
    print("Running test_path_cache_matches_find_path...", end=" ")

    layout = demo_layout()
    cache = PathCache(layout["obstacles"], layout["grid_size"])

    for shelf in layout["shelves"]:
        direct = find_path(Point(0, 0), shelf.pos, layout["obstacles"], 8)
        cached = cache.find_path(Point(0, 0), shelf.pos)
        again = cache.find_path(Point(0, 0), shelf.pos)
        assert len(direct) == len(cached) == len(again)

    assert cache.misses == 4 and cache.hits == 4
    assert len(cache) == 4

    print("PASS")


def test_canonical_key_is_order_independent():
    print("Running test_canonical_key_is_order_independent...", end=" ")

    a = WorldState(Point(2, 3), None, {"ItemB": "S2", "ItemA": "S1"})
    b = WorldState(Point(2, 3), None, {"ItemA": "S1", "ItemB": "S2"})

    assert a == b and hash(a) == hash(b)
    assert canonical_key(a) == canonical_key(b) == "2,3|None|ItemA:S1,ItemB:S2"

    held = apply_action(a, Pick("ItemA", "S1"))
    assert canonical_key(held) == "2,3|ItemA|ItemA:robot,ItemB:S2"

    print("PASS")


def test_apply_action_is_immutable_and_keeps_invariants():
    print("Running test_apply_action_is_immutable_and_keeps_invariants...", end=" ")

    layout = demo_layout()
    start = initial_state(layout["shelves"], Point(1, 4))

    picked = apply_action(start, Pick("ItemA", "S1"))
    assert start.holding is None and start.location_of("ItemA") == "S1", "Original state was modified"
    assert picked.holding == "ItemA"
    assert picked.location_of("ItemA") == ROBOT

    path = find_path(Point(1, 4), Point(0, 0), layout["obstacles"], 8)
    moved = apply_action(picked, Move(Point(1, 4), Point(0, 0), path))
    assert moved.robot_pos == Point(0, 0) and picked.robot_pos == Point(1, 4)

    dropped = apply_action(moved, Drop("ItemA"))
    assert dropped.holding is None
    assert dropped.location_of("ItemA") == COLLECTION_POINT

    for state in [start, picked, moved, dropped]:
        at_robot = items_at(state, ROBOT)
        assert len(at_robot) <= 1, f"More than one item on the robot: {at_robot}"
        assert (state.holding is not None) == (len(at_robot) == 1)
        if state.holding is not None:
            assert at_robot == [state.holding]

    assert is_goal(dropped, ["ItemA"]) and not is_goal(dropped, ["ItemA", "ItemC"])

    print("PASS")


def test_action_costs():
    print("Running test_action_costs...", end=" ")

    path = [Point(0, 0), Point(0, 1), Point(0, 2)]
    assert Move(Point(0, 0), Point(0, 2), path).cost == 2
    assert Pick("ItemA", "S1").cost == 1
    assert Drop("ItemA").cost == 1

    print("PASS")


def test_successors_with_item_in_hand():
    print("Running test_successors_with_item_in_hand...", end=" ")

    layout = demo_layout()
    goal = ["ItemA", "ItemC"]
    args = (goal, layout["shelves"], layout["collection_point"], layout["obstacles"], 8)

    away = apply_action(initial_state(layout["shelves"], Point(1, 4)), Pick("ItemA", "S1"))
    actions = successors(away, *args)
    assert len(actions) == 1 and isinstance(actions[0], Move)
    assert actions[0].end == Point(0, 0)
    assert actions[0].cost == 5

    home = apply_action(away, actions[0])
    actions = successors(home, *args)
    assert actions == [Drop("ItemA")]

    print("PASS")


def test_successors_with_empty_hand():
    print("Running test_successors_with_empty_hand...", end=" ")

    layout = demo_layout()
    goal = ["ItemA", "ItemC"]
    args = (goal, layout["shelves"], layout["collection_point"], layout["obstacles"], 8)

    at_s1 = initial_state(layout["shelves"], Point(1, 4))
    actions = successors(at_s1, *args)
    assert actions[0] == Pick("ItemA", "S1"), f"Expected pick first, got {actions[0]}"
    moves = [a for a in actions[1:] if isinstance(a, Move)]
    assert [m.end for m in moves] == [Point(6, 5)], "Only S3 still needs a visit"

    at_start = initial_state(layout["shelves"], Point(0, 0))
    actions = successors(at_start, *args)
    assert all(isinstance(a, Move) for a in actions)
    assert [a.end for a in actions] == [Point(1, 4), Point(6, 5)]

    assert needed_items(apply_action(at_s1, Pick("ItemA", "S1")), goal) == ["ItemC"]

    print("PASS")


def test_successors_skip_unreachable_shelves():
    print("Running test_successors_skip_unreachable_shelves...", end=" ")

    layout = demo_layout()
    walled = set(layout["obstacles"]) | {Point(1, 7), Point(3, 7), Point(2, 6)}
    start = initial_state(layout["shelves"], Point(0, 0))

    actions = successors(start, ["ItemD"], layout["shelves"], Point(0, 0), walled, 8)
    assert actions == []

    print("PASS")


def test_heuristic_values():
    print("Running test_heuristic_values...", end=" ")

    layout = demo_layout()
    goal = ["ItemA", "ItemC"]
    start = initial_state(layout["shelves"], Point(0, 0))

    assert estimate(start, goal, Point(0, 0), layout["obstacles"], 8) == 40
    assert estimate(start, goal, Point(0, 0), layout["obstacles"], 8, item_penalty=5) == 10

    held = apply_action(initial_state(layout["shelves"], Point(1, 4)), Pick("ItemA", "S1"))
    assert items_to_get(held, goal) == ["ItemA", "ItemC"]
    assert estimate(held, goal, Point(0, 0), layout["obstacles"], 8) == 45

    # Carrying with no way back to the collection point
    boxed = {
        Point(1, 2),
        Point(0, 3), Point(2, 3),
        Point(0, 4), Point(2, 4),
        Point(0, 5), Point(2, 5),
        Point(1, 6),
    }
    stuck = apply_action(initial_state(layout["shelves"], Point(1, 4)), Pick("ItemA", "S1"))
    assert estimate(stuck, goal, Point(0, 0), boxed, 8) == math.inf

    print("PASS")


def test_demo_plan_alternates_fetch_and_deliver():
    print("Running test_demo_plan_alternates_fetch_and_deliver...", end=" ")

    layout = demo_layout()
    goal = ["ItemA", "ItemC"]
    start, result = _plan_demo(goal)

    assert result.status == FOUND and result.found
    assert result.actions, "Plan should not be empty"
    assert result.iterations >= 1

    kinds = [a.kind for a in result.actions]
    assert kinds == ["MOVE", "PICK", "MOVE", "DROP"] * 2, f"Unexpected action pattern {kinds}"

    final = replay(start, result.actions)[-1]
    assert final.location_of("ItemA") == COLLECTION_POINT
    assert final.location_of("ItemC") == COLLECTION_POINT
    assert final.holding is None

    assert result.total_cost == 36, f"Expected cost 36, got {result.total_cost}"
    assert validate_plan(start, result.actions, goal, layout["shelves"],
                         layout["collection_point"], layout["obstacles"], 8)

    for action in result.actions:
        if isinstance(action, Move):
            _assert_contiguous(list(action.path), layout["obstacles"])

    print("PASS")


def test_replanning_gives_same_cost():
    print("Running test_replanning_gives_same_cost...", end=" ")

    _, first = _plan_demo(["ItemA", "ItemC"])
    _, second = _plan_demo(["ItemA", "ItemC"])
    assert first.total_cost == second.total_cost

    print("PASS")


def test_adding_items_never_lowers_cost():
    print("Running test_adding_items_never_lowers_cost...", end=" ")

    items = all_items(demo_layout()["shelves"])
    base = ["ItemA"]
    _, base_result = _plan_demo(base)
    assert base_result.found

    for extra in items:
        if extra in base:
            continue
        _, result = _plan_demo(base + [extra])
        assert result.found, f"No plan for {base + [extra]}"
        assert result.total_cost >= base_result.total_cost, \
            f"Adding {extra} lowered cost {base_result.total_cost} -> {result.total_cost}"

    print("PASS")


def test_enclosed_shelf_has_no_plan():
    print("Running test_enclosed_shelf_has_no_plan...", end=" ")

    layout = demo_layout()
    layout["obstacles"] = set(layout["obstacles"]) | {Point(1, 7), Point(3, 7), Point(2, 6)}

    _, result = _plan_demo(["ItemD"], layout=layout)
    assert result.status == NO_PLAN
    assert not result.found
    assert result.actions == ()
    assert result.total_cost == math.inf

    print("PASS")


def test_tiny_budget_times_out():
    print("Running test_tiny_budget_times_out...", end=" ")

    _, result = _plan_demo(["ItemA", "ItemC"], max_iterations=1)
    assert result.status == TIMEOUT, f"Expected timeout, got {result.status}"
    assert result.status != NO_PLAN
    assert result.iterations == 1
    assert result.actions == ()

    print("PASS")


def test_empty_goal_is_already_satisfied():
    print("Running test_empty_goal_is_already_satisfied...", end=" ")

    _, result = _plan_demo([])
    assert result.status == FOUND
    assert result.actions == ()
    assert result.iterations == 1

    print("PASS")


def test_path_cache_does_not_change_cost():
    print("Running test_path_cache_does_not_change_cost...", end=" ")

    _, plain = _plan_demo(["ItemA", "ItemB", "ItemC"])
    _, cached = _plan_demo(["ItemA", "ItemB", "ItemC"], cache_paths=True)
    assert plain.found and cached.found
    assert plain.total_cost == cached.total_cost

    print("PASS")


def test_robot_may_start_inside_obstacle():
    print("Running test_robot_may_start_inside_obstacle...", end=" ")

    layout = demo_layout()
    layout["robot_start"] = Point(3, 3)

    _, result = _plan_demo(["ItemA"], layout=layout)
    assert result.found, "Robot on an obstacle cell should still be able to leave it"

    print("PASS")


def test_validate_problem_rejects_bad_input():
    print("Running test_validate_problem_rejects_bad_input...", end=" ")

    layout = demo_layout()
    shelves = layout["shelves"]
    start = initial_state(shelves, Point(0, 0))

    bad_cases = [
        (start, ["ItemA"], shelves, Point(0, 0), set(), 0),
        (initial_state(shelves, Point(8, 0)), ["ItemA"], shelves, Point(0, 0), set(), 8),
        (start, ["ItemA"], shelves, Point(0, -1), set(), 8),
        (start, ["ItemA"], shelves, Point(0, 0), {Point(9, 9)}, 8),
        (start, ["ItemZ"], shelves, Point(0, 0), set(), 8),
        (start, ["ItemA"], shelves + [Shelf("S1", ("ItemE",), Point(7, 7))], Point(0, 0), set(), 8),
        (start, ["ItemA"], shelves + [Shelf("S9", ("ItemE",), Point(7, 8))], Point(0, 0), set(), 8),
    ]

    for case in bad_cases:
        try:
            validate_problem(*case)
        except ValueError:
            continue
        raise AssertionError(f"Expected ValueError for {case[1]}, grid {case[5]}")

    try:
        _plan_demo(["ItemZ"])
    except ValueError as e:
        assert "ItemZ" in str(e)
    else:
        raise AssertionError("plan() should reject unknown items")

    print("PASS")


def test_validate_problem_rejects_inconsistent_states():
    print("Running test_validate_problem_rejects_inconsistent_states...", end=" ")

    layout = demo_layout()
    shelves = layout["shelves"]
    tags = {"ItemA": "S1", "ItemB": "S2", "ItemC": "S3", "ItemD": "S4"}

    def state(holding, **changes):
        return WorldState(Point(2, 0), holding, dict(tags, **changes))

    bad_states = [
        state("ItemA"),
        state(None, ItemA=ROBOT),
        state("ItemA", ItemA=ROBOT, ItemB=ROBOT),
        state("ItemA", ItemB=ROBOT),
        state(None, ItemA="S2"),
        state(None, ItemA="Floor"),
    ]

    for bad in bad_states:
        try:
            validate_problem(bad, ["ItemA"], shelves, Point(0, 0), layout["obstacles"], 8)
        except ValueError:
            continue
        raise AssertionError(f"Expected ValueError for {canonical_key(bad)}")

    # Holding an item that was never picked must not yield a delivery plan
    try:
        plan(state("ItemA"), ["ItemA"], shelves, Point(0, 0), layout["obstacles"], 8)
    except ValueError as e:
        assert "ItemA" in str(e)
    else:
        raise AssertionError("plan() should reject a held item not tagged on the robot")

    # A consistent mid-plan state is accepted and planned from
    carrying = state("ItemA", ItemA=ROBOT, ItemB=COLLECTION_POINT)
    validate_problem(carrying, ["ItemA", "ItemB"], shelves, Point(0, 0), layout["obstacles"], 8)
    result = plan(carrying, ["ItemA", "ItemB"], shelves, Point(0, 0), layout["obstacles"], 8)
    assert result.found
    assert [a.kind for a in result.actions] == ["MOVE", "DROP"]

    print("PASS")


def test_empty_item_id_counts_as_held():
    print("Running test_empty_item_id_counts_as_held...", end=" ")

    shelves = [Shelf("S1", ("",), Point(2, 0))]
    start = initial_state(shelves, Point(0, 0))

    held = apply_action(apply_action(start, Move(Point(0, 0), Point(2, 0),
                                                 [Point(0, 0), Point(1, 0), Point(2, 0)])),
                        Pick("", "S1"))
    actions = successors(held, [""], shelves, Point(0, 0), set(), 4)
    assert len(actions) == 1 and isinstance(actions[0], Move), actions
    assert estimate(held, [""], Point(0, 0), set(), 4) == 22

    result = plan(start, [""], shelves, Point(0, 0), set(), 4)
    assert result.found, result.status
    assert [a.kind for a in result.actions] == ["MOVE", "PICK", "MOVE", "DROP"]
    assert result.total_cost == 6

    print("PASS")


def test_path_cost():
    print("Running test_path_cost...", end=" ")

    assert path_cost(None) == math.inf
    assert path_cost([Point(3, 3)]) == 0
    assert path_cost(find_path(Point(0, 0), Point(6, 5), demo_layout()["obstacles"], 8)) == 11

    print("PASS")


def test_plan_metrics_and_format():
    print("Running test_plan_metrics_and_format...", end=" ")

    _, result = _plan_demo(["ItemA"])
    assert result.found

    metrics = plan_metrics(result.actions, result.iterations)
    assert metrics == {
        "total_actions": 4,
        "total_distance": 10,
        "pick_drop_actions": 2,
        "iterations": result.iterations,
    }

    lines = format_plan(result.actions).splitlines()
    assert lines == [
        "1. MOVE (0,0) -> (1,4) [Cost: 5]",
        "2. PICK ItemA from S1",
        "3. MOVE (1,4) -> (0,0) [Cost: 5]",
        "4. DROP ItemA at Collection Point",
    ], lines

    print("PASS")


def test_replay_and_state_at():
    print("Running test_replay_and_state_at...", end=" ")

    start, result = _plan_demo(["ItemA"])
    states = replay(start, result.actions)

    assert len(states) == len(result.actions) + 1
    assert states[0] == start
    assert state_at(start, result.actions, -1) == start
    assert state_at(start, result.actions, 1).holding == "ItemA"
    assert state_at(start, result.actions, 99) == states[-1]
    assert states[-1].location_of("ItemA") == COLLECTION_POINT

    print("PASS")


def test_validate_plan_rejects_broken_plans():
    print("Running test_validate_plan_rejects_broken_plans...", end=" ")

    layout = demo_layout()
    goal = ["ItemA"]
    start, result = _plan_demo(goal)
    args = (goal, layout["shelves"], layout["collection_point"], layout["obstacles"], 8)

    assert validate_plan(start, result.actions, *args)
    assert not validate_plan(start, result.actions[:-1], *args), "Undelivered item"
    assert not validate_plan(start, (Drop("ItemA"),) + result.actions, *args), "Drop before pick"
    assert not validate_plan(start, result.actions[1:], *args), "Pick away from shelf"

    through_wall = Move(Point(0, 0), Point(2, 0), [Point(0, 0), Point(2, 0)])
    assert not validate_plan(start, (through_wall,), *args), "Non-contiguous move"

    print("PASS")


def test_random_layouts_are_solvable():
    print("Running test_random_layouts_are_solvable...", end=" ")

    for seed in range(3):
        layout = random_layout(grid_size=8, n_shelves=3, obstacle_prob=0.2, seed=seed)
        reachable = reachable_cells(layout["robot_start"], layout["obstacles"], 8)
        for shelf in layout["shelves"]:
            assert shelf.pos in reachable, f"Shelf {shelf.id} unreachable (seed {seed})"

        start = initial_state(layout["shelves"], layout["robot_start"])
        result = plan(start, layout["default_items"], layout["shelves"],
                      layout["collection_point"], layout["obstacles"], 8)
        assert result.found, f"No plan on random layout (seed {seed}): {result.status}"
        assert validate_plan(start, result.actions, layout["default_items"], layout["shelves"],
                             layout["collection_point"], layout["obstacles"], 8)

    print("PASS")


def test_random_layout_gives_up():
    print("Running test_random_layout_gives_up...", end=" ")

    try:
        random_layout(grid_size=2, n_shelves=10, obstacle_prob=0.0, seed=0, max_tries=3)
    except RuntimeError:
        pass
    else:
        raise AssertionError("Expected RuntimeError for an impossible layout")

    print("PASS")


if __name__ == "__main__":
    print("=" * 60)
    print("PICK PLANNER SMOKE TESTS")
    print("=" * 60)
    print()

    tests = [obj for name, obj in sorted(globals().items())
             if name.startswith("test_") and callable(obj)]

    try:
        for test in tests:
            test()

        print()
        print("=" * 60)
        print(f"ALL {len(tests)} TESTS PASSED ✓")
        print("=" * 60)

    except AssertionError as e:
        print()
        print("=" * 60)
        print("TEST FAILED ✗")
        print("=" * 60)
        print(f"Error: {e}")
        raise
