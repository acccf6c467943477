import os
from typing import List, Optional
from pydantic import BaseModel, Field, field_validator, model_validator

from catalog import DEFAULT_BASE_URL


ENV_PREFIX = "CONNECTIONS_"


class Settings(BaseModel):
    """Runtime configuration for generating boards."""
    base_url: str = Field(default=DEFAULT_BASE_URL, description="Root URL of the catalog API")
    from_era: int = Field(default=1, ge=1, description="First era (generation) in scope")
    to_era: int = Field(default=7, ge=1, description="Last era (generation) in scope")
    item_interval: float = Field(default=0.06, ge=0, description="Minimum seconds between item lookups")
    scope_interval: float = Field(default=0.12, ge=0, description="Minimum seconds between scope listings")
    timeout: float = Field(default=30.0, gt=0, description="HTTP timeout in seconds")
    max_samples: Optional[int] = Field(default=None, ge=1, description="Cap on items examined per strategy")
    seed: Optional[int] = Field(default=None, description="Seed for reproducible boards")
    rare_items: List[str] = Field(default_factory=list, description="Curated rare items; empty means use the catalog flag")

    @field_validator('rare_items')
    @classmethod
    def normalize_rare_items(cls, v):
        """Lowercase and drop repeats, keeping first-seen order."""
        return list(dict.fromkeys(item.strip().lower() for item in v if item.strip()))

    @model_validator(mode='after')
    def validate_era_range(self):
        if self.from_era > self.to_era:
            raise ValueError(f"from_era ({self.from_era}) must not exceed to_era ({self.to_era})")
        return self

    @classmethod
    def from_env(cls, **overrides) -> 'Settings':
        """
        Build settings from CONNECTIONS_* environment variables.

        Args:
            **overrides: Values that take precedence over the environment (None is ignored)
        """
        values = {}
        for name in cls.model_fields:
            raw = os.getenv(ENV_PREFIX + name.upper())
            if raw is None or raw == "":
                continue
            if name == "rare_items":
                values[name] = raw.split(",")
            else:
                values[name] = raw

        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)
