from typing import List, Sequence

from .base import BuildContext


async def fill_group(members: Sequence[str], pool: Sequence[str], needed: int, ctx: BuildContext) -> List[str]:
    """
    Find extra pool items to complete a partial group.

    Items sharing the first member's primary category are preferred; any
    shortfall is padded with items taken from the tail of the pool.

    Args:
        members: The partial group, first member is the reference item
        pool: Items still available
        needed: Number of extra items wanted
        ctx: Shared lookup context

    Returns:
        Up to `needed` pool items not already in `members`
    """
    taken = set(members)
    candidates = [p for p in pool if p not in taken]
    fill: List[str] = []

    reference = await ctx.lookup(members[0]) if members else None
    target = reference.primary_category if reference else None
    if target:
        scanned = candidates if ctx.max_samples is None else candidates[:ctx.max_samples]
        for identifier in scanned:
            if len(fill) >= needed:
                break
            record = await ctx.lookup(identifier)
            if record is not None and record.primary_category == target:
                fill.append(identifier)

    for identifier in reversed(candidates):
        if len(fill) >= needed:
            break
        if identifier not in fill:
            fill.append(identifier)

    return fill
