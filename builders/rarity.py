import logging
from typing import Iterable, List, Optional, Sequence

from .base import BaseBuilder, BuildContext
from models import Group, RuleKind

logger = logging.getLogger(__name__)


class RarityBuilder(BaseBuilder):
    """Groups rare items, padding with arbitrary pool items when short.

    Rarity comes from the catalog's rare flag unless a curated list is
    supplied, in which case membership in that list decides.
    """

    rule = RuleKind.RARITY
    min_matches = 2

    def __init__(self, rare_items: Optional[Iterable[str]] = None):
        self.rare_items = tuple(dict.fromkeys(i.strip().lower() for i in rare_items)) if rare_items else None

    async def find_rare(self, pool: Sequence[str], size: int, ctx: BuildContext) -> List[str]:
        if self.rare_items is not None:
            available = set(pool)
            return [i for i in self.rare_items if i in available][:size]

        matches = []
        for identifier in ctx.sample_order(pool):
            record = await ctx.lookup(identifier)
            if record is not None and record.rare:
                matches.append(identifier)
                if len(matches) >= size:
                    break
        return matches

    async def build(self, pool: Sequence[str], size: int, ctx: BuildContext) -> Optional[Group]:
        if len(pool) < size:
            return None

        rare = await self.find_rare(pool, size, ctx)
        if len(rare) < self.min_matches:
            logger.info(f"Only {len(rare)} rare items in pool, skipping rarity group")
            return None

        members = list(rare)
        for identifier in reversed(pool):
            if len(members) >= size:
                break
            if identifier not in members:
                members.append(identifier)

        reason = "All legendary" if len(rare) == size else f"Legendary ({len(rare)} of {size})"
        logger.info(f"Rarity group: {', '.join(members)}")
        return Group(members=members, rule=self.rule, reason=reason)
