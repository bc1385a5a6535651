"""
World model for the pick planner.
Defines grid points, shelves, immutable world states and the
move / pick / drop actions that transform them.
"""

from dataclasses import dataclass, field, replace
from typing import Dict, Iterable, List, NamedTuple, Optional, Tuple, Union

# Location tags an item can have besides its origin shelf id
ROBOT = "robot"
COLLECTION_POINT = "collectionPoint"


class Point(NamedTuple):
    """Grid cell coordinate (x = column, y = row)."""
    x: int
    y: int


@dataclass(frozen=True)
class Shelf:
    id: str
    items: Tuple[str, ...]
    pos: Point

    def __post_init__(self):
        object.__setattr__(self, "items", tuple(self.items))
        object.__setattr__(self, "pos", Point(*self.pos))


@dataclass(frozen=True)
class WorldState:
    """
    Robot position, held item and where every item currently is.

    item_locations is kept as a tuple of (item, location) pairs sorted
    by item, so two states built from differently ordered mappings
    compare and hash equal. Use location_of() / locations() to read it.
    """
    robot_pos: Point
    holding: Optional[str] = None
    item_locations: Tuple[Tuple[str, str], ...] = field(default_factory=tuple)

    def __post_init__(self):
        locations = self.item_locations
        if isinstance(locations, dict):
            locations = locations.items()
        object.__setattr__(self, "robot_pos", Point(*self.robot_pos))
        object.__setattr__(self, "item_locations", tuple(sorted((str(i), str(l)) for i, l in locations)))

    def locations(self) -> Dict[str, str]:
        return dict(self.item_locations)

    def location_of(self, item: str) -> Optional[str]:
        for name, location in self.item_locations:
            if name == item:
                return location
        return None

    def with_location(self, item: str, location: str) -> Tuple[Tuple[str, str], ...]:
        """Item locations with one entry changed (or added); the other pairs are reused."""
        if self.location_of(item) is None:
            return self.item_locations + ((item, location),)
        return tuple((name, location if name == item else loc) for name, loc in self.item_locations)


@dataclass(frozen=True)
class Move:
    start: Point
    end: Point
    path: Tuple[Point, ...]

    kind = "MOVE"

    def __post_init__(self):
        object.__setattr__(self, "start", Point(*self.start))
        object.__setattr__(self, "end", Point(*self.end))
        object.__setattr__(self, "path", tuple(Point(*p) for p in self.path))

    @property
    def cost(self) -> int:
        return len(self.path) - 1


@dataclass(frozen=True)
class Pick:
    item: str
    shelf_id: str

    kind = "PICK"

    @property
    def cost(self) -> int:
        return 1


@dataclass(frozen=True)
class Drop:
    item: str

    kind = "DROP"

    @property
    def cost(self) -> int:
        return 1


Action = Union[Move, Pick, Drop]


def initial_state(shelves: Iterable[Shelf], robot_pos: Point) -> WorldState:
    """Start state: empty hand, every stocked item on its shelf."""
    locations = {}
    for shelf in shelves:
        for item in shelf.items:
            locations[item] = shelf.id
    return WorldState(robot_pos=Point(*robot_pos), holding=None, item_locations=locations)


def is_goal(state: WorldState, goal_items: Iterable[str]) -> bool:
    """True iff every goal item has been dropped at the collection point."""
    return all(state.location_of(item) == COLLECTION_POINT for item in goal_items)


def apply_action(state: WorldState, action: Action) -> WorldState:
    """
    Return the state that results from applying action to state.

    No precondition checks are made here; only actions produced by the
    successor generator are ever applied during search.
    """
    if isinstance(action, Move):
        return replace(state, robot_pos=action.end)
    if isinstance(action, Pick):
        return replace(state, holding=action.item,
                       item_locations=state.with_location(action.item, ROBOT))
    if isinstance(action, Drop):
        return replace(state, holding=None,
                       item_locations=state.with_location(action.item, COLLECTION_POINT))
    raise TypeError(f"Unknown action type: {type(action).__name__}")


def canonical_key(state: WorldState) -> str:
    """
    Deterministic string key for score-map lookups.

    Format: "x,y|holding|item:loc,item:loc" with items sorted by id;
    an empty hand is written as None.
    """
    items = ",".join(f"{item}:{loc}" for item, loc in sorted(state.item_locations))
    return f"{state.robot_pos.x},{state.robot_pos.y}|{state.holding}|{items}"


def items_at(state: WorldState, location: str) -> List[str]:
    """Items whose location tag equals location."""
    return [item for item, loc in state.item_locations if loc == location]
