from enum import Enum
from typing import List, Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator


GROUP_SIZE = 4
NUM_GROUPS = 4
BOARD_SIZE = GROUP_SIZE * NUM_GROUPS


class RuleKind(str, Enum):
    """The connection rule that justified forming a group."""
    CATEGORY = "category"
    LINEAGE = "lineage"
    RARITY = "rarity"
    FALLBACK = "fallback"


class ItemRecord(BaseModel):
    """Normalized catalog attributes for a single item."""
    model_config = ConfigDict(frozen=True)

    identifier: str = Field(description="Canonical lowercase hyphenated identifier")
    categories: List[str] = Field(default_factory=list, description="Category tags, most primary first")
    era: Optional[str] = Field(default=None, description="Origin era tag")
    rare: bool = Field(default=False, description="Rarity flag, false when unknown")
    lineage: Optional[str] = Field(default=None, description="Shared family/lineage identifier")
    catalog_id: Optional[int] = Field(default=None, description="Numeric id in the remote catalog")

    @field_validator('identifier')
    @classmethod
    def validate_identifier(cls, v):
        v = v.strip().lower()
        if not v:
            raise ValueError("Identifier must not be empty")
        return v

    @property
    def primary_category(self) -> Optional[str]:
        return self.categories[0] if self.categories else None


class Group(BaseModel):
    """A set of distinct items plus the rule that formed them."""
    members: List[str] = Field(description="Distinct item identifiers")
    rule: RuleKind = Field(description="Rule used when the group was assembled")
    reason: str = Field(default="", description="Human readable description of the rule")

    @field_validator('members')
    @classmethod
    def validate_members(cls, v):
        if len(v) != len(set(v)):
            raise ValueError(f"Group members must be distinct, got {v}")
        return v


class Board(BaseModel):
    """The hidden solution: exactly 4 disjoint groups of 4."""
    groups: List[Group] = Field(
        description="Exactly 4 groups of 4 items each",
        min_length=NUM_GROUPS,
        max_length=NUM_GROUPS
    )

    @field_validator('groups')
    @classmethod
    def validate_groups(cls, v):
        if len(v) != NUM_GROUPS:
            raise ValueError(f"Must have exactly {NUM_GROUPS} groups, got {len(v)}")

        for group in v:
            if len(group.members) != GROUP_SIZE:
                raise ValueError(f"Each group must have exactly {GROUP_SIZE} items, got {len(group.members)}")

        all_items = [item for group in v for item in group.members]
        if len(all_items) != len(set(all_items)):
            raise ValueError("Items must be unique across all groups")

        return v

    @property
    def identifiers(self) -> List[str]:
        return [item for group in self.groups for item in group.members]

    def group_index(self, identifier: str) -> int:
        for i, group in enumerate(self.groups):
            if identifier in group.members:
                return i
        raise KeyError(identifier)
