import logging
from typing import Dict, List, Optional, Sequence

from .base import BaseBuilder, BuildContext
from models import Group, RuleKind

logger = logging.getLogger(__name__)


class CategoryBuilder(BaseBuilder):
    """Groups items that share a primary category tag.

    Streams through the pool in random order, fetching metadata lazily, and
    returns the first bucket to reach the target size. No attempt is made to
    find the largest bucket.
    """

    rule = RuleKind.CATEGORY

    async def build(self, pool: Sequence[str], size: int, ctx: BuildContext) -> Optional[Group]:
        if len(pool) < size:
            return None

        buckets: Dict[str, List[str]] = {}
        for identifier in ctx.sample_order(pool):
            record = await ctx.lookup(identifier)
            if record is None or record.primary_category is None:
                continue

            category = record.primary_category
            bucket = buckets.setdefault(category, [])
            bucket.append(identifier)
            if len(bucket) >= size:
                logger.info(f"Category group '{category}': {', '.join(bucket[:size])}")
                return Group(members=bucket[:size], rule=self.rule, reason=f"All are {category} type")

        logger.info(f"No category reached {size} members across {len(buckets)} categories")
        return None
