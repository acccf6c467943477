import logging
from abc import ABC, abstractmethod
from typing import Dict, List, Optional, Sequence, Set

import numpy as np

from catalog import CatalogError, MetadataProvider, Throttle
from models import Group, ItemRecord, RuleKind

logger = logging.getLogger(__name__)


class BuildContext:
    """Per-generation state shared by every builder.

    Wraps the provider so that lookups are throttled and failures are
    absorbed: an item that cannot be described is treated as having no
    attributes and is not asked for again during this generation.
    """

    def __init__(self, provider: MetadataProvider, rng: Optional[np.random.Generator] = None,
                 throttle: Optional[Throttle] = None, max_samples: Optional[int] = None):
        self.provider = provider
        self.rng = rng if rng is not None else np.random.default_rng()
        self.throttle = throttle or Throttle()
        self.max_samples = max_samples
        self.records: Dict[str, ItemRecord] = {}
        self.unavailable: Set[str] = set()
        self.lookups = 0

    async def lookup(self, identifier: str) -> Optional[ItemRecord]:
        if identifier in self.records:
            return self.records[identifier]
        if identifier in self.unavailable:
            return None

        await self.throttle.wait()
        self.lookups += 1
        try:
            record = await self.provider.get_item(identifier)
        except CatalogError as e:
            logger.warning(f"Failed to fetch metadata for {identifier}: {e}")
            self.unavailable.add(identifier)
            return None

        self.records[identifier] = record
        return record

    def shuffled(self, items: Sequence[str]) -> List[str]:
        order = self.rng.permutation(len(items))
        return [items[i] for i in order]

    def sample_order(self, pool: Sequence[str]) -> List[str]:
        """Random visiting order over the pool, at most max_samples long."""
        order = self.shuffled(pool)
        if self.max_samples is not None:
            order = order[:self.max_samples]
        return order


class BaseBuilder(ABC):
    """Base class for all group-building strategies.

    A builder only reads the pool it is given; removing claimed items is
    the assembler's job.
    """

    rule: RuleKind

    @abstractmethod
    async def build(self, pool: Sequence[str], size: int, ctx: BuildContext) -> Optional[Group]:
        """
        Try to carve one group out of the pool.

        Args:
            pool: Items still available, read only
            size: Number of members the group must have
            ctx: Shared lookup context for this generation

        Returns:
            A group of exactly `size` distinct pool items, or None
        """
        pass

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"
