"""
AisAB - AIS Abnormal Behaviour Analyzer
Feature Data Module

Sparse nested counters for one (feature name, grid cell) pair.

Each entry is keyed by a fixed-length tuple of integer bucket keys
(2 or 3 keys) and holds a mapping of named non-negative counters, e.g.
("shipCount" -> 17). A missing key combination means zero observations.

Features:
- Point lookups and sums over all entries of a counter
- Marginalization over the first key
- JSON friendly (de)serialization for the backing store
"""

import copy
from collections import defaultdict
from typing import Dict, Iterator, List, Optional, Tuple

Key = Tuple[int, ...]

SHIP_COUNT = "shipCount"


class FeatureData:
    """
    Counters of one feature in one grid cell.

    Instances published through the FeatureStore are shared between
    threads and must be treated as read-only; mutate a copy() instead.

    Example:
        >>> data = FeatureData(arity=2)
        >>> data.set_statistic(2, 3, "shipCount", 40)
        >>> data.get_value(2, 3, "shipCount")
        40
        >>> data.get_value(0, 0, "shipCount") is None
        True
    """

    def __init__(self, arity: int = 2):
        if arity not in (2, 3):
            raise ValueError(f"Feature data supports 2 or 3 keys, got {arity}")
        self._arity = arity
        self._entries: Dict[Key, Dict[str, int]] = {}

    @property
    def arity(self) -> int:
        return self._arity

    def _split(self, args: tuple) -> Tuple[Key, str]:
        if len(args) != self._arity + 1:
            raise TypeError(
                f"Expected {self._arity} keys and a counter name, got {len(args)} arguments"
            )
        *keys, counter = args
        return tuple(int(k) for k in keys), counter

    def set_statistic(self, *args) -> None:
        """
        Set a counter: set_statistic(k1, k2[, k3], counter, value).

        Raises:
            ValueError: If value is negative
        """
        *head, value = args
        keys, counter = self._split(tuple(head))
        if value < 0:
            raise ValueError(f"Counter {counter} cannot be negative ({value})")
        self._entries.setdefault(keys, {})[counter] = int(value)

    def increment_statistic(self, *args, amount: int = 1) -> int:
        """
        Increment a counter: increment_statistic(k1, k2[, k3], counter).

        Returns:
            The new counter value
        """
        keys, counter = self._split(args)
        if amount < 0:
            raise ValueError(f"Counters only grow, got increment {amount}")
        counters = self._entries.setdefault(keys, {})
        counters[counter] = counters.get(counter, 0) + amount
        return counters[counter]

    def get_value(self, *args) -> Optional[int]:
        """
        Look up one counter: get_value(k1, k2[, k3], counter).

        Returns:
            Counter value, None if the key combination or counter is absent
        """
        keys, counter = self._split(args)
        counters = self._entries.get(keys)
        if counters is None:
            return None
        return counters.get(counter)

    def sum_for(self, counter: str) -> int:
        """Sum of a counter over every key combination."""
        return sum(counters.get(counter, 0) for counters in self._entries.values())

    def aggregate_sum_over_key1(self, *args) -> int:
        """
        Sum a counter over all first keys: aggregate_sum_over_key1(k2[, k3], counter).

        Example:
            >>> data.aggregate_sum_over_key1(3, "shipCount")
        """
        if len(args) != self._arity:
            raise TypeError(
                f"Expected {self._arity - 1} keys and a counter name, got {len(args)} arguments"
            )
        *rest, counter = args
        rest = tuple(int(k) for k in rest)
        return sum(
            counters.get(counter, 0)
            for keys, counters in self._entries.items()
            if keys[1:] == rest
        )

    def number_of_level1_entries(self) -> int:
        """Number of distinct first keys."""
        return len({keys[0] for keys in self._entries})

    def get_counter_names(self) -> List[str]:
        names = set()
        for counters in self._entries.values():
            names.update(counters)
        return sorted(names)

    def keys(self) -> Iterator[Key]:
        return iter(sorted(self._entries))

    def is_empty(self) -> bool:
        return not self._entries

    def copy(self) -> "FeatureData":
        clone = FeatureData(self._arity)
        clone._entries = copy.deepcopy(self._entries)
        return clone

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "arity": self._arity,
            "entries": [
                {"keys": list(keys), "counters": dict(self._entries[keys])}
                for keys in sorted(self._entries)
            ],
        }

    @classmethod
    def from_dict(cls, payload: dict) -> "FeatureData":
        data = cls(payload.get("arity", 2))
        for entry in payload.get("entries", []):
            keys = tuple(int(k) for k in entry["keys"])
            if len(keys) != data.arity:
                raise ValueError(f"Entry keys {keys} do not match arity {data.arity}")
            data._entries[keys] = {name: int(v) for name, v in entry["counters"].items()}
        return data

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, FeatureData):
            return NotImplemented
        return self._arity == other._arity and self._entries == other._entries

    def __len__(self) -> int:
        return len(self._entries)

    def __repr__(self) -> str:
        totals = defaultdict(int)
        for counters in self._entries.values():
            for name, value in counters.items():
                totals[name] += value
        return f"FeatureData(arity={self._arity}, entries={len(self._entries)}, totals={dict(totals)})"
