"""
Board assembly: turn a candidate pool into a hidden 4x4 partition.

Builders run strictly one after another because each one sees the pool left
behind by the previous one. Claimed items are removed here, after each
successful build, which keeps the four groups disjoint by construction.
"""

import asyncio
import logging
from typing import Dict, Iterable, List, Optional, Sequence

from builders import BaseBuilder, BuildContext, get_builder
from game import GameState
from models import Board, Group, ItemRecord, GROUP_SIZE, NUM_GROUPS
from pool import InsufficientPool

logger = logging.getLogger(__name__)


class BoardAssembler:
    """Fills four group slots from a pool using builders in priority order."""

    def __init__(self, ctx: BuildContext, rare_items: Optional[Iterable[str]] = None):
        """
        Args:
            ctx: Lookup context for this generation
            rare_items: Curated rare list; None uses the catalog's rare flag
        """
        self.ctx = ctx
        self.sequence: List[BaseBuilder] = [
            get_builder("category"),
            get_builder("lineage"),
            get_builder("rarity", rare_items=rare_items),
        ]
        self.category = self.sequence[0]
        self.fallback = get_builder("fallback")

    @staticmethod
    def claim(working: List[str], group: Group):
        claimed = set(group.members)
        working[:] = [item for item in working if item not in claimed]

    async def assemble(self, pool: Iterable[str]) -> Board:
        """
        Partition part of the pool into NUM_GROUPS disjoint groups.

        Raises:
            InsufficientPool: the pool cannot cover a whole board
        """
        # sorted first so a seeded generator reproduces the same board
        working = self.ctx.shuffled(sorted(set(pool)))
        required = GROUP_SIZE * NUM_GROUPS
        if len(working) < required:
            raise InsufficientPool(len(working), required)

        groups: List[Group] = []
        for builder in self.sequence:
            if len(groups) >= NUM_GROUPS:
                break
            group = await builder.build(tuple(working), GROUP_SIZE, self.ctx)
            if group is None:
                logger.info(f"{builder!r} produced no group")
                continue
            self.claim(working, group)
            groups.append(group)

        while len(groups) < NUM_GROUPS:
            snapshot = tuple(working)
            group = await self.category.build(snapshot, GROUP_SIZE, self.ctx)
            if group is None:
                group = await self.fallback.build(snapshot, GROUP_SIZE, self.ctx)
            if group is None:
                raise InsufficientPool(len(working) + GROUP_SIZE * len(groups), required)
            self.claim(working, group)
            groups.append(group)

        board = Board(groups=groups)
        logger.info(f"Assembled board with rules {[g.rule.value for g in board.groups]} "
                    f"after {self.ctx.lookups} lookups")
        return board

    def deal(self, board: Board) -> List[str]:
        """Uniformly random board order of the sixteen identifiers."""
        return self.ctx.shuffled(board.identifiers)

    async def fetch_records(self, identifiers: Sequence[str]) -> Dict[str, Optional[ItemRecord]]:
        """Fetch display metadata for every identifier concurrently."""
        records = await asyncio.gather(*(self.ctx.lookup(i) for i in identifiers))
        return dict(zip(identifiers, records))

    async def generate(self, pool: Iterable[str]) -> GameState:
        board = await self.assemble(pool)
        order = self.deal(board)
        records = await self.fetch_records(order)
        return GameState(board, order, records)
