import logging
from typing import Dict, FrozenSet, List, Optional
from pydantic import BaseModel, ConfigDict, Field, model_validator

from models import BOARD_SIZE
from catalog import CatalogError, MetadataProvider, Throttle

logger = logging.getLogger(__name__)


class InsufficientPool(RuntimeError):
    """The scope yielded too few identifiers to fill a board."""

    def __init__(self, size: int, required: int = BOARD_SIZE):
        super().__init__(f"Not enough items in pool ({size}, need {required})")
        self.size = size
        self.required = required


class Scope(BaseModel):
    """An inclusive range of catalog eras eligible for a session."""
    model_config = ConfigDict(frozen=True)

    from_era: int = Field(default=1, ge=1)
    to_era: int = Field(default=7, ge=1)

    @model_validator(mode='after')
    def validate_range(self):
        if self.from_era > self.to_era:
            raise ValueError(f"Empty scope: era {self.from_era} > {self.to_era}")
        return self

    @property
    def units(self) -> List[int]:
        return list(range(self.from_era, self.to_era + 1))


async def build_pool(provider: MetadataProvider, scope: Scope, throttle: Optional[Throttle] = None,
                     required: int = BOARD_SIZE) -> FrozenSet[str]:
    """
    Collect every identifier listed under the scope's units.

    Units that fail to list are logged and skipped.

    Args:
        provider: Catalog to query
        scope: Eras to include
        throttle: Spacing applied between scope listings
        required: Minimum pool size for a board

    Returns:
        Deduplicated identifiers

    Raises:
        InsufficientPool: fewer than `required` identifiers were collected
    """
    pool = set()
    for unit in scope.units:
        if throttle:
            await throttle.wait()
        try:
            members = await provider.list_scope(unit)
        except CatalogError as e:
            logger.warning(f"Failed to list era {unit}: {e}")
            continue
        pool.update(m.strip().lower() for m in members if m)

    logger.info(f"Built pool of {len(pool)} items for eras {scope.from_era}-{scope.to_era}")
    if len(pool) < required:
        raise InsufficientPool(len(pool), required)
    return frozenset(pool)


class PoolCache:
    """Memoizes built pools per scope for the lifetime of a session context."""

    def __init__(self):
        self._pools: Dict[Scope, FrozenSet[str]] = {}

    def __contains__(self, scope: Scope) -> bool:
        return scope in self._pools

    async def get(self, provider: MetadataProvider, scope: Scope, throttle: Optional[Throttle] = None,
                  force: bool = False) -> FrozenSet[str]:
        if not force and scope in self._pools:
            return self._pools[scope]
        pool = await build_pool(provider, scope, throttle)
        self._pools[scope] = pool
        return pool

    def clear(self):
        self._pools.clear()
