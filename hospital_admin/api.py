import logging
import os
from contextlib import asynccontextmanager
from typing import Any, Optional

from fastapi import Body, Depends, FastAPI, HTTPException, Query, Request

from .manager import ResourceManager, always, build_managers
from .notifications import NotificationChannel

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # one channel for the whole app, handed to every manager
    channel = NotificationChannel()
    app.state.channel = channel
    app.state.managers = build_managers(channel)
    app.state.current_view = None
    logger.info("Admin console ready (%s)", ", ".join(app.state.managers))
    yield
    channel.close()


app = FastAPI(title="HospitalConnect Admin", lifespan=lifespan)


def get_manager(resource: str, request: Request) -> ResourceManager:
    manager = request.app.state.managers.get(resource)
    if manager is None:
        raise HTTPException(status_code=404, detail=f"Unknown resource '{resource}'")
    return manager


def _view(manager: ResourceManager, request: Request) -> dict:
    current = manager.current_item
    return {
        "resource": manager.schema.plural,
        "search": manager.search_term,
        "rows": manager.rows(),
        "items": [i.model_dump(by_alias=True, mode="json") for i in manager.items],
        "empty_message": manager.empty_message(),
        "form": {
            "open": manager.is_form_open,
            "mode": "edit" if manager.editing else "create",
            "current_id": current.id if current is not None else None,
            "draft": manager.draft,
        },
        "notifications": _notifications(request),
    }


def _notifications(request: Request) -> list[dict]:
    return [n.model_dump(mode="json") for n in request.app.state.channel.active()]


@app.get("/health")
async def health():
    return {"status": "ok"}


@app.get("/notifications")
async def list_notifications(request: Request):
    return _notifications(request)


@app.delete("/notifications/{note_id}")
async def dismiss_notification(note_id: int, request: Request):
    if not request.app.state.channel.dismiss(note_id):
        raise HTTPException(status_code=404, detail="No active notification")
    return {"dismissed": note_id}


@app.get("/appointments/references")
async def appointment_references(request: Request):
    """Patient and doctor options for the appointment form pickers.

    Filled when the appointments view is entered; fetched here if that has not
    succeeded yet.
    """
    manager = get_manager("appointments", request)
    if not manager.references_loaded:
        await manager.load_references()
    return {
        kind: [{"id": ref_id, "label": label} for ref_id, label in options]
        for kind, options in manager.reference_options().items()
    }


@app.get("/{resource}")
async def view(
    request: Request,
    search: Optional[str] = Query(None, description="Free-text filter; omitted keeps the current one"),
    manager: ResourceManager = Depends(get_manager),
):
    """Filtered table for one resource.

    Entering a view (any visit after a different one) loads it from the API again.
    """
    if request.app.state.current_view != manager.schema.plural:
        request.app.state.current_view = manager.schema.plural
        await manager.activate()
    if search is not None:
        manager.search_term = search
    return _view(manager, request)


@app.post("/{resource}/reload")
async def reload(request: Request, manager: ResourceManager = Depends(get_manager)):
    ok = await manager.load()
    return {"ok": ok, **_view(manager, request)}


@app.post("/{resource}/form")
async def begin_create(request: Request, manager: ResourceManager = Depends(get_manager)):
    manager.begin_create()
    return _view(manager, request)


@app.post("/{resource}/form/submit")
async def submit(request: Request, manager: ResourceManager = Depends(get_manager)):
    ok = await manager.submit()
    return {"ok": ok, **_view(manager, request)}


@app.post("/{resource}/form/{item_id}")
async def begin_edit(item_id: str, request: Request, manager: ResourceManager = Depends(get_manager)):
    item = manager.select(item_id)
    if item is None:
        raise HTTPException(status_code=404, detail=f"No {manager.schema.noun} with id {item_id}")
    manager.begin_edit(item)
    return _view(manager, request)


@app.patch("/{resource}/form")
async def edit_draft(
    request: Request,
    values: dict[str, Any] = Body(...),
    manager: ResourceManager = Depends(get_manager),
):
    try:
        manager.set_draft(**values)
    except KeyError as exc:
        raise HTTPException(status_code=422, detail=f"Unknown field {exc}")
    except ValueError as exc:
        raise HTTPException(status_code=422, detail=str(exc))
    return _view(manager, request)


@app.delete("/{resource}/form")
async def cancel_form(request: Request, manager: ResourceManager = Depends(get_manager)):
    manager.cancel()
    return _view(manager, request)


@app.delete("/{resource}/{item_id}")
async def delete(
    item_id: str,
    request: Request,
    confirm: bool = Query(False, description="The user's answer to the delete prompt"),
    manager: ResourceManager = Depends(get_manager),
):
    ok = await manager.delete(item_id, confirm=always(confirm))
    return {"ok": ok, **_view(manager, request)}
