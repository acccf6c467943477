import logging
from typing import Dict, List, Optional, Sequence

from .base import BaseBuilder, BuildContext
from .filler import fill_group
from models import Group, RuleKind

logger = logging.getLogger(__name__)


class LineageBuilder(BaseBuilder):
    """Groups items from the same family lineage.

    Uses the same streaming scan as CategoryBuilder. When no lineage reaches
    the target size, the largest lineage with at least `min_partial` members
    is completed by fill_group.
    """

    rule = RuleKind.LINEAGE
    min_partial = 2

    async def find_bucket(self, pool: Sequence[str], size: int, ctx: BuildContext) -> List[str]:
        buckets: Dict[str, List[str]] = {}
        for identifier in ctx.sample_order(pool):
            record = await ctx.lookup(identifier)
            # items without a category are not eligible for lineage matching
            if record is None or not record.categories or record.lineage is None:
                continue

            bucket = buckets.setdefault(record.lineage, [])
            bucket.append(identifier)
            if len(bucket) >= size:
                return bucket[:size]

        best = max(buckets.values(), key=len, default=[])
        return best if len(best) >= self.min_partial else []

    async def build(self, pool: Sequence[str], size: int, ctx: BuildContext) -> Optional[Group]:
        if len(pool) < size:
            return None

        bucket = await self.find_bucket(pool, size, ctx)
        if not bucket:
            logger.info("No lineage with enough members in pool")
            return None

        members = list(bucket)
        reason = "Same evolution family"
        if len(members) < size:
            filler = await fill_group(members, pool, size - len(members), ctx)
            logger.info(f"Lineage group of {len(members)} padded with {', '.join(filler)}")
            members.extend(filler)
            reason = f"Same evolution family ({len(bucket)} of {size})"

        if len(members) < size:
            return None

        logger.info(f"Lineage group: {', '.join(members)}")
        return Group(members=members, rule=self.rule, reason=reason)
