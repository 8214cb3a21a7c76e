"""
Gallery session state.

Holds the capability vector (computed once) and the current catalog
snapshot, which is only ever replaced whole.
"""

from typing import Optional
from urllib.parse import urljoin
import httpx
from rich.console import Console

from catalog.loader import DEFAULT_MANIFEST_URL, CatalogFetchFailure, fetch_catalog
from utils.validation import Catalog, CatalogEntry

from .availability import AvailabilityResult, resolve_availability
from .environment import CapabilityVector, classify_environment
from .launch import LaunchTarget, build_launch_target
from .status import StatusMessage, build_status_message, focus_id_from_url

console = Console()


class GallerySession:
    """
    One visitor's view of the gallery.

    Args:
        user_agent: Browser user-agent string
        page_url: URL of the gallery page
        manifest_url: Catalog URL, relative to page_url
    """

    def __init__(
        self,
        user_agent: str,
        page_url: str,
        manifest_url: str = DEFAULT_MANIFEST_URL,
    ):
        self.env: CapabilityVector = classify_environment(user_agent)
        self.page_url = page_url
        self.manifest_url = manifest_url
        self.catalog = Catalog()
        self.loaded = False
        self.pending_focus_id = focus_id_from_url(page_url)
        self.status = StatusMessage("Loading models...")

    @property
    def catalog_url(self) -> str:
        return urljoin(self.page_url, self.manifest_url)

    async def load(
        self,
        force_reload: bool = False,
        client: Optional[httpx.AsyncClient] = None,
    ) -> StatusMessage:
        """
        Fetch the catalog and swap it in.

        On failure the previous catalog is kept and a warning status is
        returned instead of raising.
        """
        self.status = StatusMessage("Loading models...")
        try:
            if client is None:
                async with httpx.AsyncClient() as own_client:
                    catalog = await fetch_catalog(own_client, self.catalog_url, force_reload)
            else:
                catalog = await fetch_catalog(client, self.catalog_url, force_reload)
        except CatalogFetchFailure as e:
            console.print(f"[yellow]Failed to load the model catalog: {e}[/yellow]")
            self.status = StatusMessage("Could not load the models, please try again later.", "warning")
            return self.status

        self.catalog = catalog
        self.loaded = True
        self.status = build_status_message(len(catalog.items), catalog.generated_at, self.env)
        return self.status

    def take_focus_id(self) -> str:
        """Return the model requested through ?model= once, after a successful load."""
        if not self.loaded:
            return ""
        focus_id, self.pending_focus_id = self.pending_focus_id, ""
        if focus_id and self.catalog.find(focus_id) is None:
            return ""
        return focus_id

    def entry(self, model_id: str) -> CatalogEntry:
        entry = self.catalog.find(model_id)
        if entry is None:
            raise KeyError(model_id)
        return entry

    def availability(self, model_id: str) -> AvailabilityResult:
        return resolve_availability(self.entry(model_id), self.env)

    def launch(self, model_id: str) -> LaunchTarget:
        """Launch target for a model; raises CallerContractViolation if AR is unavailable."""
        entry = self.entry(model_id)
        result = resolve_availability(entry, self.env)
        return build_launch_target(result, entry, self.env, self.page_url, title=entry.display_name)
