"""
Visualization for the pick planner using matplotlib.
Draws the warehouse floor, shelves and collection point, and overlays
the sub-path of every move in a plan.
"""

import argparse
import sys
from typing import Dict, Iterable, List, Optional, Sequence

try:
    import matplotlib
    import matplotlib.pyplot as plt
    MATPLOTLIB_AVAILABLE = True
except ImportError:
    MATPLOTLIB_AVAILABLE = False

from .planner import PlannerConfig, plan
from .report import format_plan, plan_metrics
from .warehouse import demo_layout
from .world import Action, Move, Point, Shelf, initial_state

MOVE_COLORS = ["tab:blue", "tab:orange", "tab:green", "tab:red", "tab:purple", "tab:brown"]


def _require_matplotlib() -> None:
    if not MATPLOTLIB_AVAILABLE:
        raise RuntimeError("matplotlib is required for visualization (pip install matplotlib)")


def occupancy_grid(obstacles: Iterable[Point], grid_size: int) -> List[List[int]]:
    """Row-major grid, 1 for obstacle cells and 0 elsewhere."""
    grid = [[0] * grid_size for _ in range(grid_size)]
    for x, y in obstacles:
        grid[y][x] = 1
    return grid


def plot_floor(ax, obstacles: Iterable[Point], grid_size: int) -> None:
    """
    Plot the warehouse floor with obstacles and visible gridlines.

    Args:
        ax: Matplotlib axes object
        obstacles: Blocked cells
        grid_size: Side length of the square grid
    """
    grid = occupancy_grid(obstacles, grid_size)

    # Integer coordinates at cell centers
    ax.imshow(grid, cmap='gray_r', vmin=0, vmax=1, origin='upper',
              interpolation='none', extent=[-0.5, grid_size - 0.5, grid_size - 0.5, -0.5])
    ax.set_aspect('equal')

    ax.set_xticks([i - 0.5 for i in range(grid_size + 1)], minor=True)
    ax.set_yticks([i - 0.5 for i in range(grid_size + 1)], minor=True)
    ax.grid(which='minor', color='gray', linestyle='-', linewidth=0.5, alpha=0.4)

    ax.set_xticks(range(grid_size))
    ax.set_yticks(range(grid_size))
    ax.set_xlabel('x')
    ax.set_ylabel('y')


def plot_shelves(ax, shelves: Sequence[Shelf], collection_point: Point) -> None:
    """Mark shelves with their id and stock, and the collection point with a flag."""
    for shelf in shelves:
        x, y = shelf.pos
        ax.plot(x, y, marker='s', markersize=18, color='goldenrod', alpha=0.6, zorder=3)
        ax.text(x, y, f"{shelf.id}\n{', '.join(shelf.items)}", fontsize=6,
                ha='center', va='center', weight='bold', zorder=5)

    cx, cy = collection_point
    ax.plot(cx, cy, marker='P', markersize=14, color='green',
            markeredgecolor='darkgreen', label='Collection point', zorder=4)


def plot_moves(ax, actions: Sequence[Action]) -> None:
    """
    Overlay every move's path, one color per move, with an arrow on its
    last step.
    """
    moves = [a for a in actions if isinstance(a, Move)]
    for i, move in enumerate(moves):
        color = MOVE_COLORS[i % len(MOVE_COLORS)]
        # Small offset per move so overlapping out/back legs stay visible
        offset = 0.08 * ((i % 3) - 1)
        xs = [p.x + offset for p in move.path]
        ys = [p.y + offset for p in move.path]
        ax.plot(xs, ys, color=color, linewidth=2, alpha=0.7,
                label=f"Move {i + 1}: {tuple(move.start)} -> {tuple(move.end)}")
        if len(xs) > 1:
            ax.annotate('', xy=(xs[-1], ys[-1]), xytext=(xs[-2], ys[-2]),
                        arrowprops=dict(arrowstyle='->', color=color, lw=2))


def plot_plan(
    layout: Dict,
    actions: Sequence[Action],
    title: Optional[str] = None,
    save_path: Optional[str] = None
):
    """
    Render a layout and a plan on a single figure.

    Args:
        layout: dict as returned by demo_layout()
        actions: Plan to overlay (may be empty)
        title: Figure title
        save_path: Write the figure here instead of returning it for display

    Returns:
        The matplotlib Figure
    """
    _require_matplotlib()

    fig, ax = plt.subplots(figsize=(7, 7))
    plot_floor(ax, layout["obstacles"], layout["grid_size"])
    plot_shelves(ax, layout["shelves"], layout["collection_point"])
    plot_moves(ax, actions)

    ax.set_title(title or "Warehouse pick plan")
    ax.legend(loc='upper center', bbox_to_anchor=(0.5, -0.08), ncol=2, fontsize=7)
    fig.tight_layout()

    if save_path:
        fig.savefig(save_path, dpi=150, bbox_inches='tight')
        plt.close(fig)
        print(f"✓ Saved figure to {save_path}")

    return fig


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(description='Visualize a warehouse pick plan')
    parser.add_argument('--items', nargs='+', default=None,
                        help='Items to pick on the demo warehouse (default: ItemA ItemC)')
    parser.add_argument('--save', type=str, default=None,
                        help='Save figure to file instead of displaying (e.g., out.png)')
    parser.add_argument('--max-iterations', type=int, default=PlannerConfig.max_iterations,
                        help='Planner iteration budget (default: 5000)')
    args = parser.parse_args(argv)

    if not MATPLOTLIB_AVAILABLE:
        print("ERROR: matplotlib is not installed")
        return 1

    if args.save:
        matplotlib.use('Agg')

    layout = demo_layout()
    items = args.items or layout["default_items"]
    start_state = initial_state(layout["shelves"], layout["robot_start"])

    try:
        result = plan(
            start_state,
            items,
            layout["shelves"],
            layout["collection_point"],
            layout["obstacles"],
            layout["grid_size"],
            config=PlannerConfig(max_iterations=args.max_iterations)
        )
    except ValueError as e:
        print(f"ERROR: {e}")
        return 1

    if result.found:
        print(format_plan(result.actions))
        metrics = plan_metrics(result.actions, result.iterations)
        title = (f"Items: {', '.join(items)} | distance {metrics['total_distance']}, "
                 f"{metrics['total_actions']} actions, {metrics['iterations']} iterations")
    else:
        print(f"No plan found ({result.status})")
        title = f"Items: {', '.join(items)} | no plan ({result.status})"

    plot_plan(layout, result.actions, title=title, save_path=args.save)
    if not args.save:
        plt.show()

    print("\nVisualization complete!")
    return 0


if __name__ == "__main__":
    sys.exit(main())
