"""
Evaluation and benchmarking for the pick planner.
Plans item selections on the demo warehouse and on random layouts,
reporting cost, iterations and runtime.
"""

import argparse
import csv
import itertools
import logging
import math
import statistics
import sys
import time
from typing import Dict, List, Optional, Sequence, Tuple

from .planner import PlannerConfig, plan
from .report import format_plan, plan_metrics, validate_plan
from .warehouse import all_items, demo_layout, random_layout
from .world import initial_state


def write_csv(rows: list, path: str) -> None:
    """
    Write list of dicts to CSV using DictWriter.

    Args:
        rows: List of dict, each dict is one row
        path: Output CSV file path
    """
    if not rows:
        print(f"Warning: No rows to write to {path}")
        return

    all_keys = set()
    for row in rows:
        all_keys.update(row.keys())
    headers = sorted(all_keys)

    with open(path, 'w', newline='') as f:
        writer = csv.DictWriter(f, fieldnames=headers)
        writer.writeheader()
        for row in rows:
            writer.writerow(row)

    print(f"✓ Exported {len(rows)} rows to {path}")


def plan_layout(layout: Dict, goal_items: Sequence[str], config: PlannerConfig) -> Tuple:
    """Plan a selection on a layout; returns (start_state, result, seconds)."""
    start_state = initial_state(layout["shelves"], layout["robot_start"])

    t0 = time.perf_counter()
    result = plan(
        start_state,
        goal_items,
        layout["shelves"],
        layout["collection_point"],
        layout["obstacles"],
        layout["grid_size"],
        config=config
    )
    return start_state, result, time.perf_counter() - t0


def evaluate_selection(layout: Dict, goal_items: Sequence[str], config: PlannerConfig) -> Dict:
    """
    Plan one item selection on a layout and collect its statistics.

    Returns:
        dict row with keys "goal_items", "status", "cost", "total_actions",
        "total_distance", "pick_drop_actions", "iterations",
        "nodes_generated", "valid" and "time"
    """
    start_state, result, elapsed = plan_layout(layout, goal_items, config)
    return result_row(layout, goal_items, start_state, result, elapsed)


def result_row(layout: Dict, goal_items: Sequence[str], start_state, result, elapsed: float) -> Dict:
    metrics = plan_metrics(result.actions, result.iterations)
    valid = result.found and validate_plan(
        start_state,
        result.actions,
        goal_items,
        layout["shelves"],
        layout["collection_point"],
        layout["obstacles"],
        layout["grid_size"]
    )

    return {
        "goal_items": " ".join(goal_items),
        "status": result.status,
        "cost": result.total_cost,
        "total_actions": metrics["total_actions"],
        "total_distance": metrics["total_distance"],
        "pick_drop_actions": metrics["pick_drop_actions"],
        "iterations": result.iterations,
        "nodes_generated": result.nodes_generated,
        "valid": valid,
        "time": elapsed,
    }


def run_demo(goal_items: Sequence[str], config: PlannerConfig) -> Dict:
    """
    Plan a selection on the demo warehouse and print the plan.

    Returns:
        Evaluation row (see evaluate_selection)
    """
    print("=" * 70)
    print("DEMO WAREHOUSE")
    print("=" * 70)

    layout = demo_layout()
    print(f"\nWarehouse: {layout['grid_size']}x{layout['grid_size']} grid")
    print(f"Shelves: {', '.join(f'{s.id}{tuple(s.pos)}={list(s.items)}' for s in layout['shelves'])}")
    print(f"Items to pick: {', '.join(goal_items)}")

    start_state, result, elapsed = plan_layout(layout, goal_items, config)

    print("\n" + "-" * 70)
    if result.found:
        print("PLAN")
        print("-" * 70)
        print(format_plan(result.actions))
        metrics = plan_metrics(result.actions, result.iterations)
        print(f"\nTotal actions:     {metrics['total_actions']}")
        print(f"Travel distance:   {metrics['total_distance']}")
        print(f"Pick/drop actions: {metrics['pick_drop_actions']}")
        print(f"Iterations:        {metrics['iterations']}")
    else:
        print(f"NO PLAN ({result.status}) after {result.iterations} iterations")

    return result_row(layout, goal_items, start_state, result, elapsed)


def run_subsets(config: PlannerConfig) -> List[Dict]:
    """Plan every non-empty item selection on the demo warehouse."""
    print("\n" + "=" * 70)
    print("EVALUATION: ALL ITEM SELECTIONS ON DEMO WAREHOUSE")
    print("=" * 70)

    layout = demo_layout()
    items = all_items(layout["shelves"])

    rows = []
    for k in range(1, len(items) + 1):
        for subset in itertools.combinations(items, k):
            rows.append(evaluate_selection(layout, list(subset), config))

    print(f"\n{'Items':<30} {'Status':<10} {'Cost':<8} {'Iters':<8} {'Time (ms)':<10}")
    print("-" * 70)
    for row in rows:
        print(f"{row['goal_items']:<30} {row['status']:<10} {row['cost']:<8} "
              f"{row['iterations']:<8} {row['time'] * 1000:>8.2f}")

    return rows


def run_random_trials(
    n_trials: int = 20,
    grid_size: int = 10,
    n_shelves: int = 3,
    obstacle_prob: float = 0.2,
    config: Optional[PlannerConfig] = None,
    seed: int = 0
) -> List[Dict]:
    """
    Plan all items on multiple randomly generated layouts.

    Args:
        n_trials: Number of random layouts to generate
        grid_size: Side length of each grid
        n_shelves: Shelves (one item each) per layout
        obstacle_prob: Obstacle probability (0.0 to 1.0)
        config: Planner configuration
        seed: Base random seed

    Returns:
        List of evaluation rows (one per trial)
    """
    config = config or PlannerConfig()

    print("\n" + "=" * 70)
    print(f"EVALUATION: {n_trials} RANDOM WAREHOUSE LAYOUTS")
    print("=" * 70)

    print(f"\nConfiguration:")
    print(f"  Grid size: {grid_size}x{grid_size}")
    print(f"  Obstacle probability: {obstacle_prob:.2f}")
    print(f"  Shelves per layout: {n_shelves}")
    print(f"  Max iterations: {config.max_iterations}")
    print(f"  Base seed: {seed}")

    rows = []
    skipped = 0

    print(f"\nRunning trials...", end="", flush=True)

    for trial in range(n_trials):
        if (trial + 1) % 5 == 0:
            print(f" {trial + 1}", end="", flush=True)

        try:
            layout = random_layout(
                grid_size=grid_size,
                n_shelves=n_shelves,
                obstacle_prob=obstacle_prob,
                seed=seed + trial
            )
        except RuntimeError:
            skipped += 1
            continue

        row = evaluate_selection(layout, layout["default_items"], config)
        row["trial"] = trial
        row["obstacle_prob"] = obstacle_prob
        rows.append(row)

    print(" Done!")

    if skipped > 0:
        print(f"\n⚠️  Skipped {skipped} trials (failed to generate feasible layout)")

    return rows


def summarize_results(rows: List[Dict]) -> Dict:
    """
    Compute summary statistics across evaluation rows.

    Returns:
        dict with counts per status and mean cost / iterations / time
        over the rows that found a plan
    """
    if not rows:
        print("\n⚠️  No results to summarize")
        return {}

    found = [r for r in rows if r["status"] == "found"]
    costs = [r["cost"] for r in found if r["cost"] != math.inf]
    iterations = [r["iterations"] for r in found]
    times = [r["time"] for r in rows]

    summary = {
        "n_rows": len(rows),
        "n_found": len(found),
        "n_no_plan": sum(1 for r in rows if r["status"] == "no_plan"),
        "n_timeout": sum(1 for r in rows if r["status"] == "timeout"),
        "n_valid": sum(1 for r in rows if r["valid"]),
        "cost_mean": statistics.mean(costs) if costs else 0,
        "cost_stdev": statistics.pstdev(costs) if len(costs) > 1 else 0,
        "iterations_mean": statistics.mean(iterations) if iterations else 0,
        "time_mean": statistics.mean(times) if times else 0,
    }

    print("\n" + "=" * 70)
    print("SUMMARY STATISTICS")
    print("=" * 70)
    print(f"\nRuns:      {summary['n_rows']}")
    print(f"Found:     {summary['n_found']} (valid: {summary['n_valid']})")
    print(f"No plan:   {summary['n_no_plan']}")
    print(f"Timed out: {summary['n_timeout']}")
    print(f"\nMean cost:       {summary['cost_mean']:>10.2f} (stdev {summary['cost_stdev']:.2f})")
    print(f"Mean iterations: {summary['iterations_mean']:>10.2f}")
    print(f"Mean time:       {summary['time_mean']:>10.4f} s")

    return summary


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description='Evaluate the warehouse pick planner')
    parser.add_argument('--items', nargs='*', default=None,
                        help='Items to pick on the demo warehouse (default: ItemA ItemC)')
    parser.add_argument('--subsets', action='store_true',
                        help='Plan every non-empty item selection on the demo warehouse')
    parser.add_argument('--random', type=int, default=0, metavar='N',
                        help='Run N random layout trials')
    parser.add_argument('--grid-size', type=int, default=10,
                        help='Grid size for random trials (default: 10)')
    parser.add_argument('--shelves', type=int, default=3,
                        help='Shelves per random layout (default: 3)')
    parser.add_argument('--obstacle', type=float, default=0.20,
                        help='Obstacle probability for random trials (default: 0.20)')
    parser.add_argument('--seed', type=int, default=42,
                        help='Random seed (default: 42)')
    parser.add_argument('--max-iterations', type=int, default=PlannerConfig.max_iterations,
                        help='Planner iteration budget (default: 5000)')
    parser.add_argument('--item-penalty', type=float, default=PlannerConfig.item_penalty,
                        help='Heuristic cost per undelivered item (default: 20)')
    parser.add_argument('--cache-paths', action='store_true',
                        help='Memoize grid paths within each planning call')
    parser.add_argument('--csv', type=str, default=None,
                        help='Export result rows to CSV')
    parser.add_argument('--verbose', action='store_true',
                        help='Show planner log messages')
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format='%(levelname)s %(name)s: %(message)s')

    config = PlannerConfig(
        max_iterations=args.max_iterations,
        item_penalty=args.item_penalty,
        cache_paths=args.cache_paths
    )

    if args.items is not None and not args.items:
        print("ERROR: Please select at least one item to pick.")
        return 1

    try:
        if args.subsets:
            rows = run_subsets(config)
        elif args.random:
            rows = run_random_trials(
                n_trials=args.random,
                grid_size=args.grid_size,
                n_shelves=args.shelves,
                obstacle_prob=args.obstacle,
                config=config,
                seed=args.seed
            )
        else:
            items = args.items or demo_layout()["default_items"]
            rows = [run_demo(items, config)]
    except ValueError as e:
        print(f"ERROR: {e}")
        return 1

    summarize_results(rows)

    if args.csv:
        write_csv(rows, args.csv)

    print("\n" + "=" * 70)
    print("EVALUATION COMPLETE")
    print("=" * 70)
    return 0


if __name__ == "__main__":
    sys.exit(main())
