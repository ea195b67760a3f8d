"""Asset catalog for the dashboard's asset pickers."""

from marketcorr.logging import get_logger
from marketcorr.models import Asset
from marketcorr.sources.client import PriceSource

logger = get_logger(__name__)


def sort_by_name(assets: list[Asset]) -> list[Asset]:
    """Order assets by display name, case-insensitively. Ties keep source order."""
    return sorted(assets, key=lambda asset: asset.name.casefold())


class AssetCatalog:
    """Fetches the asset list from a price source and presents it sorted by name.

    No other transformation is applied; the catalog is fetched fresh on each
    call so a source that adds assets shows up on the next page load.
    """

    def __init__(self, source: PriceSource) -> None:
        self._source = source

    async def list_assets(self) -> list[Asset]:
        assets = await self._source.fetch_assets()
        logger.debug("asset_catalog_loaded", count=len(assets))
        return sort_by_name(assets)
