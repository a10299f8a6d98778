from enum import Enum


class Algorithm(Enum):
    """
    Route-selection policies.

    DIJKSTRA / BELLMAN_FORD: direct link, else first 2-hop relay, else BFS.
    The two differ only in the metric multipliers they report.
    ADAPTIVE: cheapest direct or 2-hop path under the weighted cost model.
    COMPARE: run the three policies above and report each.
    """

    DIJKSTRA = "dijkstra"
    BELLMAN_FORD = "bellman-ford"
    ADAPTIVE = "adaptive"
    COMPARE = "compare"

    @classmethod
    def parse(cls, value):
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            names = ", ".join(a.value for a in cls)
            raise ValueError(f"Unknown algorithm {value!r} (expected one of: {names})")

    @property
    def uses_weights(self):
        return self in (Algorithm.ADAPTIVE, Algorithm.COMPARE)

    def expand(self):
        """Concrete policies to execute for this request."""
        if self is Algorithm.COMPARE:
            return [Algorithm.DIJKSTRA, Algorithm.BELLMAN_FORD, Algorithm.ADAPTIVE]
        return [self]

    def display_policy(self):
        """Policy whose path is highlighted: adaptive stands in for compare."""
        return Algorithm.ADAPTIVE if self is Algorithm.COMPARE else self
