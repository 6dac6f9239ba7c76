from typing import List, Optional

from witrium.core.models.base import WireModel


class BrowserSession(WireModel):
    """Remote browser instance that outlives individual runs.

    `is_busy` is advisory; the service, not the client, enforces that a
    session serves at most one run at a time.
    """

    uuid: str
    provider: str
    status: str  # "active" | "closed"
    is_busy: bool = False
    user_managed: bool = False
    current_run_type: Optional[str] = None
    current_run_id: Optional[str] = None
    created_at: str
    started_at: Optional[str] = None
    last_activity_at: Optional[str] = None
    proxy_country: Optional[str] = None
    proxy_city: Optional[str] = None


class ListBrowserSession(WireModel):
    sessions: List[BrowserSession]
    total_count: int


class CloseBrowserSession(WireModel):
    status: str
    message: str
