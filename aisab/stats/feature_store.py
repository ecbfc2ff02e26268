"""
AisAB - AIS Abnormal Behaviour Analyzer
Feature Store Module

Read-mostly cache of FeatureData keyed by (feature name, cell id) in
front of an optional durable backing store.

Features:
- Lock-free reads of published values
- Writers of the same key serialized by a keyed lock
- Published values are private copies swapped in by reference
- None as the "no data" sentinel, never an exception for unknown keys
"""

import logging
from typing import Dict, List, Optional, Set, Tuple

from aisab.core.errors import FeatureStoreError
from aisab.core.locks import KeyedLock
from aisab.stats.feature_data import FeatureData

# Configure module logger
logger = logging.getLogger(__name__)

StoreKey = Tuple[str, int]

_MISSING = object()


class FeatureStore:
    """
    Feature statistics by (feature name, grid cell).

    Without a repository the store only lives in memory.

    Example:
        >>> store = FeatureStore(FeatureDataRepository(database))
        >>> store.put("SpeedOverGroundStatistic", 209183, data)
        >>> store.get("SpeedOverGroundStatistic", 209183).sum_for("shipCount")
    """

    def __init__(self, repository=None):
        """
        Initialize the feature store.

        Args:
            repository: Durable backing store with get/put/get_feature_names/
                get_cell_ids (e.g. FeatureDataRepository), or None
        """
        self._repository = repository
        self._cache: Dict[StoreKey, Optional[FeatureData]] = {}
        self._locks: KeyedLock[StoreKey] = KeyedLock()

        logger.info(
            f"FeatureStore initialized ({'persistent' if repository else 'in-memory'})"
        )

    @property
    def is_persistent(self) -> bool:
        return self._repository is not None

    def get(self, feature_name: str, cell_id: int) -> Optional[FeatureData]:
        """
        Get the statistics of one cell.

        The returned value is shared and must not be mutated.

        Returns:
            FeatureData, None if nothing is stored for the key

        Raises:
            FeatureStoreError: If the backing store fails
        """
        key = (feature_name, cell_id)
        data = self._cache.get(key, _MISSING)
        if data is not _MISSING:
            return data

        if self._repository is None:
            return None

        with self._locks.hold(key):
            # A writer may have published while we waited
            data = self._cache.get(key, _MISSING)
            if data is _MISSING:
                data = self._repository.get(feature_name, cell_id)
                self._cache[key] = data
        return data

    def put(self, feature_name: str, cell_id: int, data: FeatureData) -> None:
        """
        Replace the statistics of one cell.

        The value is copied, written through to the backing store and
        then published. A failed write leaves the previous value visible.

        Raises:
            FeatureStoreError: If the backing store rejects the write
        """
        key = (feature_name, cell_id)
        published = data.copy()

        with self._locks.hold(key):
            if self._repository is not None:
                try:
                    self._repository.put(feature_name, cell_id, published)
                except FeatureStoreError:
                    raise
                except Exception as e:
                    raise FeatureStoreError(f"Failed to store {feature_name}/{cell_id}: {e}") from e
            self._cache[key] = published

        logger.debug(f"Stored {feature_name}/{cell_id}: {published}")

    def get_feature_names(self) -> List[str]:
        names: Set[str] = {name for (name, _), data in list(self._cache.items()) if data is not None}
        if self._repository is not None:
            names.update(self._repository.get_feature_names())
        return sorted(names)

    def get_cell_ids(self, feature_name: str) -> List[int]:
        cells: Set[int] = {
            cell_id for (name, cell_id), data in list(self._cache.items())
            if name == feature_name and data is not None
        }
        if self._repository is not None:
            cells.update(self._repository.get_cell_ids(feature_name))
        return sorted(cells)

    def invalidate(self) -> None:
        """Forget cached values so the next reads go to the backing store."""
        self._cache.clear()

    def __len__(self) -> int:
        return sum(1 for data in list(self._cache.values()) if data is not None)

    def __repr__(self) -> str:
        return f"FeatureStore(cached={len(self)}, persistent={self.is_persistent})"
