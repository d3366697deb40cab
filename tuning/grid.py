# Hyperparameter grids
# Full cross-product of candidate values, in declaration order

import itertools
from typing import Any, Dict, List, Mapping, Sequence, Union

from .errors import InvalidArgument

GridSpec = Union[Mapping[str, Sequence[Any]], Sequence[Mapping[str, Any]]]


def expand_grid(grid: GridSpec) -> List[Dict[str, Any]]:
    """
    Expand a grid specification into a list of grid points.

    A mapping of name -> candidate values is expanded into the full
    cross-product; the last name varies fastest. A sequence of mappings is
    taken as an explicit list of grid points and returned in order.

    Raises:
        InvalidArgument: empty grid, empty candidate list, or malformed points
    """
    if isinstance(grid, Mapping):
        if not grid:
            raise InvalidArgument("Grid must define at least one hyperparameter")
        names = list(grid.keys())
        candidates = []
        for name in names:
            values = grid[name]
            if isinstance(values, (str, bytes)) or not isinstance(values, Sequence):
                raise InvalidArgument(f"Grid values for '{name}' must be a list, got {values!r}")
            if len(values) == 0:
                raise InvalidArgument(f"Grid values for '{name}' are empty")
            candidates.append(list(values))
        return [dict(zip(names, combo)) for combo in itertools.product(*candidates)]

    if isinstance(grid, (str, bytes)) or not isinstance(grid, Sequence):
        raise InvalidArgument(f"Grid must be a mapping or a list of mappings, got {type(grid).__name__}")
    if len(grid) == 0:
        raise InvalidArgument("Grid must contain at least one point")

    points = []
    for i, point in enumerate(grid):
        if not isinstance(point, Mapping):
            raise InvalidArgument(f"Grid point {i} is not a mapping: {point!r}")
        points.append(dict(point))
    return points


def format_point(point: Mapping[str, Any]) -> str:
    """Short label for a grid point, e.g. 'alpha=0.1, max_depth=3'."""
    if not point:
        return '(defaults)'
    return ', '.join(f"{name}={value}" for name, value in point.items())
