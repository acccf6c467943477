from typing import Iterable, Optional
from .base import BaseBuilder, BuildContext
from .category import CategoryBuilder
from .lineage import LineageBuilder
from .rarity import RarityBuilder
from .fallback import FallbackBuilder
from .filler import fill_group
from models import Board, Group, ItemRecord, RuleKind, GROUP_SIZE, NUM_GROUPS, BOARD_SIZE

BUILDER_REGISTRY = {
    "category": CategoryBuilder,
    "lineage": LineageBuilder,
    "rarity": RarityBuilder,
    "fallback": FallbackBuilder,
}

def get_builder(builder_name: str, rare_items: Optional[Iterable[str]] = None) -> BaseBuilder:
    """Get a builder instance by name.
    
    Args:
        builder_name: Name of the builder to instantiate
        rare_items: Optional curated rare list for the rarity builder
    """
    if builder_name not in BUILDER_REGISTRY:
        available = ", ".join(BUILDER_REGISTRY.keys())
        raise ValueError(f"Unknown builder: {builder_name}. Available builders: {available}")
    
    builder_class = BUILDER_REGISTRY[builder_name]
    
    if builder_name == "rarity":
        return builder_class(rare_items=rare_items)
    else:
        return builder_class()
