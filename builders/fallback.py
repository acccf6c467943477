from typing import Optional, Sequence

from .base import BaseBuilder, BuildContext
from models import Group, RuleKind


class FallbackBuilder(BaseBuilder):
    """Uniformly random subset of whatever remains. Never needs metadata."""

    rule = RuleKind.FALLBACK

    async def build(self, pool: Sequence[str], size: int, ctx: BuildContext) -> Optional[Group]:
        if len(pool) < size:
            return None
        picks = ctx.rng.choice(len(pool), size=size, replace=False)
        return Group(members=[pool[i] for i in picks], rule=self.rule, reason="A shared connection")
