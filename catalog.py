"""
Remote catalog access for board generation.

The catalog is treated as an unreliable metadata provider: any per-item or
per-scope lookup may fail, and callers decide how to degrade. Providers never
retry. Callers space their requests with a Throttle.
"""

import asyncio
import logging
import re
import time
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Set

import httpx

from models import ItemRecord

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://pokeapi.co/api/v2"

# Artwork slugs used verbatim instead of going through the normalization rules
ARTWORK_EXCEPTIONS = {
    "nidoran-f": "nidoran-f",
    "nidoran-m": "nidoran-m",
    "mr-mime": "mr-mime",
    "mime-jr": "mime-jr",
    "mr-rime": "mr-rime",
    "farfetchd": "farfetchd",
    "type-null": "type-null",
    "jangmo-o": "jangmo-o",
    "hakamo-o": "hakamo-o",
    "kommo-o": "kommo-o",
    "tapu-koko": "tapu-koko",
    "tapu-lele": "tapu-lele",
    "tapu-bulu": "tapu-bulu",
    "tapu-fini": "tapu-fini",
}


class CatalogError(Exception):
    """Base class for catalog lookup failures."""


class NotFound(CatalogError):
    """The identifier or scope does not exist in the catalog."""


class TransientFetchError(CatalogError):
    """The lookup failed or timed out; it may succeed later."""


class Throttle:
    """Enforces a minimum spacing between successive calls.

    Slots are reserved before sleeping, so concurrent callers queue up
    behind each other instead of all firing after the same delay.
    """

    def __init__(self, min_interval: float = 0.0):
        self.min_interval = min_interval
        self._next_slot = 0.0

    async def wait(self):
        now = time.monotonic()
        slot = max(now, self._next_slot)
        self._next_slot = slot + self.min_interval
        delay = slot - now
        if delay > 0:
            logger.debug(f"Throttling catalog call for {delay:.3f}s")
            await asyncio.sleep(delay)


class MetadataProvider(ABC):
    """Contract for anything that can describe catalog items."""

    @abstractmethod
    async def get_item(self, identifier: str) -> ItemRecord:
        """
        Look up a single item.

        Raises:
            NotFound: the identifier is not in the catalog
            TransientFetchError: the lookup failed
        """
        pass

    @abstractmethod
    async def list_scope(self, unit: int) -> Set[str]:
        """
        List every identifier belonging to one scope unit (an era).

        Raises:
            NotFound: the scope unit does not exist
            TransientFetchError: the lookup failed
        """
        pass

    async def aclose(self):
        pass


class PokeApiProvider(MetadataProvider):
    """MetadataProvider backed by the PokeAPI REST service."""

    def __init__(self, base_url: str = DEFAULT_BASE_URL, timeout: float = 30.0,
                 client: Optional[httpx.AsyncClient] = None):
        """
        Args:
            base_url: Root of the REST API
            timeout: Per-request timeout in seconds
            client: Pre-built client (tests pass one with a mock transport)
        """
        self.client = client or httpx.AsyncClient(base_url=base_url, timeout=timeout)
        self._records: Dict[str, ItemRecord] = {}

    async def __aenter__(self) -> 'PokeApiProvider':
        return self

    async def __aexit__(self, *exc_info):
        await self.aclose()

    async def aclose(self):
        await self.client.aclose()

    async def _get_json(self, url: str) -> Dict[str, Any]:
        try:
            response = await self.client.get(url)
        except httpx.HTTPError as e:
            raise TransientFetchError(f"Request for {url} failed: {e}") from e

        if response.status_code == 404:
            raise NotFound(url)
        if response.is_error:
            raise TransientFetchError(f"{url} returned HTTP {response.status_code}")

        try:
            return response.json()
        except ValueError as e:
            raise TransientFetchError(f"{url} returned malformed JSON") from e

    async def get_item(self, identifier: str) -> ItemRecord:
        identifier = identifier.strip().lower()
        if identifier in self._records:
            return self._records[identifier]

        species = None
        try:
            data = await self._get_json(f"pokemon/{identifier}")
        except NotFound:
            # Species with several forms have no entry under their bare name
            species = await self._get_json(f"pokemon-species/{identifier}")
            default = next((v["pokemon"] for v in species.get("varieties", []) if v.get("is_default")), None)
            if default is None:
                raise NotFound(identifier)
            data = await self._get_json(default["url"])

        if species is None:
            species_url = (data.get("species") or {}).get("url")
            if species_url:
                try:
                    species = await self._get_json(species_url)
                except CatalogError as e:
                    logger.warning(f"Species lookup failed for {identifier}: {e}")

        record = self._to_record(identifier, data, species)
        self._records[identifier] = record
        return record

    async def list_scope(self, unit: int) -> Set[str]:
        data = await self._get_json(f"generation/{unit}")
        return {s["name"].lower() for s in data.get("pokemon_species", []) if s and s.get("name")}

    @staticmethod
    def _to_record(identifier: str, data: Dict[str, Any], species: Optional[Dict[str, Any]]) -> ItemRecord:
        slots = sorted(data.get("types") or [], key=lambda t: t.get("slot", 0))
        categories = [t["type"]["name"] for t in slots if t.get("type")]

        era = None
        rare = False
        lineage = None
        if species:
            era = (species.get("generation") or {}).get("name")
            rare = bool(species.get("is_legendary") or species.get("is_mythical"))
            lineage = (species.get("evolution_chain") or {}).get("url")

        return ItemRecord(
            identifier=identifier,
            categories=categories,
            era=era,
            rare=rare,
            lineage=lineage,
            catalog_id=data.get("id"),
        )


def normalize_identifier(name: str) -> str:
    """Canonical lowercase hyphenated form used for asset lookup."""
    if not name:
        return name
    n = name.strip().lower()
    if n in ARTWORK_EXCEPTIONS:
        return ARTWORK_EXCEPTIONS[n]
    n = re.sub(r"\s+", "-", n)
    n = re.sub(r"['.]", "", n)
    return re.sub(r"_+", "-", n)


def artwork_sources(identifier: str, catalog_id: Optional[int] = None) -> List[str]:
    """Ordered image candidates; a renderer tries each until one loads."""
    slug = normalize_identifier(identifier)
    sources = [
        f"https://img.pokemondb.net/artwork/large/{slug}.jpg",
        f"https://img.pokemondb.net/sprites/home/normal/{slug}.png",
    ]
    if catalog_id:
        sources.append(
            "https://raw.githubusercontent.com/PokeAPI/sprites/master/sprites/pokemon/"
            f"other/official-artwork/{catalog_id}.png"
        )
    return sources
