"""
Local web API for the MAL watch list.
Exposes one list view (buckets and the editable order) as JSON.
"""

import logging
from typing import Optional

from fastapi import FastAPI, HTTPException
from pydantic import BaseModel

from .constants import HTTP_BAD_GATEWAY, HTTP_CONFLICT, HTTP_UNAUTHORIZED
from .errors import (
    AuthenticationError,
    FetchError,
    ListNotReadyError,
    SaveError,
    SaveInProgressError,
)
from .models import WatchListBuckets
from .view import WatchListView

logger = logging.getLogger(__name__)


class ViewStatus(BaseModel):
    """View status response model"""
    loaded: bool
    import_status: Optional[str] = None
    pending: bool = False
    unsaved_changes: bool = False
    saving: bool = False


class OrderResponse(BaseModel):
    """Current order response model"""
    ids: list[int]
    unsaved_changes: bool


class MoveRequest(BaseModel):
    """Reorder request model"""
    moved_id: int
    target_id: int


class FrontRequest(BaseModel):
    """Bring-to-front request model"""
    anime_id: int


def create_app(view: WatchListView) -> FastAPI:
    """Create the FastAPI app bound to one list view."""
    app = FastAPI(title="MAL Watch-List", version="0.1.0")

    def _load() -> None:
        try:
            view.refresh()
        except AuthenticationError as e:
            raise HTTPException(status_code=HTTP_UNAUTHORIZED, detail=str(e))
        except FetchError as e:
            logger.error(f"Failed to fetch list: {e}")
            raise HTTPException(status_code=HTTP_BAD_GATEWAY, detail=str(e))

    def _ensure_loaded() -> None:
        if view.payload is None:
            _load()

    def _order() -> OrderResponse:
        return OrderResponse(ids=view.order, unsaved_changes=view.has_unsaved_changes)

    @app.get("/api/status")
    def get_status() -> ViewStatus:
        """Get current view status"""
        return ViewStatus(
            loaded=view.payload is not None,
            import_status=view.import_status.value if view.import_status else None,
            pending=view.pending,
            unsaved_changes=view.has_unsaved_changes,
            saving=view.saving,
        )

    @app.post("/api/refresh")
    def refresh() -> OrderResponse:
        """Re-fetch the list; local edits are kept while unsaved"""
        _load()
        return _order()

    @app.get("/api/buckets")
    def get_buckets() -> WatchListBuckets:
        """Get the classification buckets"""
        _ensure_loaded()
        return view.buckets

    @app.get("/api/order")
    def get_order() -> OrderResponse:
        """Get the current order"""
        _ensure_loaded()
        return _order()

    @app.post("/api/order/move")
    def move(data: MoveRequest) -> OrderResponse:
        """Move one anime into another's position"""
        _ensure_loaded()
        try:
            view.move(data.moved_id, data.target_id)
        except ListNotReadyError as e:
            raise HTTPException(status_code=HTTP_CONFLICT, detail=str(e))
        return _order()

    @app.post("/api/order/front")
    def front(data: FrontRequest) -> OrderResponse:
        """Bring one anime to the front"""
        _ensure_loaded()
        try:
            view.bring_to_front(data.anime_id)
        except ListNotReadyError as e:
            raise HTTPException(status_code=HTTP_CONFLICT, detail=str(e))
        return _order()

    @app.post("/api/order/discard")
    def discard() -> OrderResponse:
        """Drop unsaved edits"""
        _ensure_loaded()
        view.discard()
        return _order()

    @app.post("/api/order/save")
    def save() -> OrderResponse:
        """Persist the current order"""
        _ensure_loaded()
        try:
            view.save()
        except (SaveInProgressError, ListNotReadyError) as e:
            raise HTTPException(status_code=HTTP_CONFLICT, detail=str(e))
        except AuthenticationError as e:
            raise HTTPException(status_code=HTTP_UNAUTHORIZED, detail=str(e))
        except SaveError as e:
            raise HTTPException(status_code=HTTP_BAD_GATEWAY, detail=str(e))
        except FetchError as e:
            # Saved, but the re-fetch failed
            logger.error(f"Failed to refresh after save: {e}")
            raise HTTPException(status_code=HTTP_BAD_GATEWAY, detail=str(e))
        return _order()

    return app
