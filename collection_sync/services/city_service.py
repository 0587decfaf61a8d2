"""City Service — example resource service composed from a CrudCoordinator.

Invariants:
    - Exposes only the operations cities need (no full PUT update)
    - Cities are kept sorted by population ascending unless the coordinator already
      has a sort configured
    - Every URL is built by the coordinator's resolver from the country id

Design Decisions:
    - Wraps a coordinator instead of subclassing it: the public surface stays small
      and named after what the UI does
"""

from collection_sync.config import Settings
from collection_sync.core.broadcast_channel import Subscription
from collection_sync.core.domain_types import Entity, Observer, SortDescriptor
from collection_sync.core.transport_protocols import TokenProvider, Transport
from collection_sync.factory import build_coordinator
from collection_sync.services.crud_coordinator import CrudCoordinator

CITIES_TEMPLATE = "countries/{country_id}/cities"


class CityService:
    """Cities of one country, cached and sorted for display."""

    def __init__(self, coordinator: CrudCoordinator):
        self._coordinator = coordinator
        if not coordinator.sort_descriptors:
            coordinator.sort_descriptors = [SortDescriptor("population")]

    @classmethod
    def from_settings(
        cls,
        settings: Settings | None = None,
        transport: Transport | None = None,
        token_provider: TokenProvider | None = None,
    ) -> "CityService":
        return cls(build_coordinator(
            CITIES_TEMPLATE, settings, transport, token_provider,
        ))

    @property
    def cities(self) -> tuple:
        return self._coordinator.snapshot

    def observe(self, observer: Observer) -> Subscription:
        return self._coordinator.subscribe(observer)

    async def load_cities(self, country_id) -> tuple:
        url = self._coordinator.resolve_url(country_id=country_id)
        return await self._coordinator.list(url)

    async def add_city(self, country_id, name: str, population: int) -> Entity:
        url = self._coordinator.resolve_url(country_id=country_id)
        return await self._coordinator.create(
            url, {"name": name, "population": population},
        )

    async def refresh_city(self, country_id, city_id) -> Entity:
        url = self._coordinator.resolve_url(city_id, country_id=country_id)
        return await self._coordinator.retrieve_item(url)

    async def rename_city(self, country_id, city_id, name: str) -> Entity:
        url = self._coordinator.resolve_url(city_id, country_id=country_id)
        return await self._coordinator.patch(url, {"name": name})

    async def remove_city(self, country_id, city_id) -> None:
        url = self._coordinator.resolve_url(city_id, country_id=country_id)
        await self._coordinator.delete(url, city_id)

    def reset(self) -> None:
        self._coordinator.clean()

    async def aclose(self) -> None:
        await self._coordinator.aclose()

    async def __aenter__(self) -> "CityService":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()
