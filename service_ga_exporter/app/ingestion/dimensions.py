"""
Dimension lookup for configured metrics.
"""

from typing import List, Mapping, Sequence


class DimensionResolver:
    """Resolves the dimension expression requested for a metric."""

    def __init__(self, dimension_maps: Sequence[Mapping[str, List[str]]]):
        self.dimension_maps = list(dimension_maps)

    def dimensions_for(self, metric: str) -> str:
        """Comma-joined dimensions for ``metric``, or an empty string.

        Every entry is scanned; a later entry defining the metric overrides
        an earlier one.
        """
        dimensions = ""
        for dimension_map in self.dimension_maps:
            if metric in dimension_map:
                dimensions = ",".join(dimension_map[metric] or [])
        return dimensions
