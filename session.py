import logging
from typing import Optional

import numpy as np

from assemble import BoardAssembler
from builders import BuildContext
from catalog import MetadataProvider, PokeApiProvider, Throttle
from config import Settings
from game import GameState
from pool import PoolCache, Scope

logger = logging.getLogger(__name__)


class GameSession:
    """Everything one player's sequence of games shares.

    Owns the provider, the pool cache, the throttles and the random
    generator, and hands them explicitly to each generation. Each call to
    new_game starts a new generation; a board from a generation that was
    superseded while it was still being built is thrown away.
    """

    def __init__(self, settings: Optional[Settings] = None, provider: Optional[MetadataProvider] = None):
        self.settings = settings or Settings()
        self.provider = provider or PokeApiProvider(base_url=self.settings.base_url, timeout=self.settings.timeout)
        self.rng = np.random.default_rng(self.settings.seed)
        self.pools = PoolCache()
        self.item_throttle = Throttle(self.settings.item_interval)
        self.scope_throttle = Throttle(self.settings.scope_interval)
        self.generation = 0
        self.game: Optional[GameState] = None

    async def __aenter__(self) -> 'GameSession':
        return self

    async def __aexit__(self, *exc_info):
        await self.aclose()

    async def aclose(self):
        await self.provider.aclose()

    @property
    def scope(self) -> Scope:
        return Scope(from_era=self.settings.from_era, to_era=self.settings.to_era)

    async def new_game(self, refresh_pool: bool = False) -> Optional[GameState]:
        """
        Generate and publish a fresh board.

        Args:
            refresh_pool: Rebuild the candidate pool instead of reusing the cached one

        Returns:
            The new game, or None if another new_game call superseded this one

        Raises:
            InsufficientPool: the scope cannot fill a board
        """
        self.generation += 1
        generation = self.generation
        self.game = None

        pool = await self.pools.get(self.provider, self.scope, self.scope_throttle, force=refresh_pool)
        ctx = BuildContext(self.provider, rng=self.rng, throttle=self.item_throttle,
                           max_samples=self.settings.max_samples)
        assembler = BoardAssembler(ctx, rare_items=self.settings.rare_items or None)
        game = await assembler.generate(pool)

        if generation != self.generation:
            logger.info(f"Discarding board from superseded generation {generation}")
            return None

        self.game = game
        return game
