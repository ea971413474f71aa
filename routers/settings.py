# routers/settings.py

import asyncio

from fastapi import APIRouter, Depends, WebSocket, WebSocketDisconnect
from starlette.concurrency import run_in_threadpool

from core.logging_config import logger
from core.store import DocumentStore
from dependencies.auth import get_current_principal, get_store, open_session
from models.settings import SettingsPatch, UserSettings
from models.user import Principal
from services.settings_sync import SettingsSynchronizer


router = APIRouter(
    prefix="/settings",
    tags=["Settings"],
)

_CLOSED = object()


# -----------------------------------------------------
# READ (bootstraps defaults on first access)
# -----------------------------------------------------
@router.get("", response_model=UserSettings, summary="Current user's settings")
def read_settings(
    principal: Principal = Depends(get_current_principal),
    store: DocumentStore = Depends(get_store),
):
    with SettingsSynchronizer(store, principal.uid, principal.display_name) as sync:
        return sync.current


# -----------------------------------------------------
# UPDATE (partial merge)
# -----------------------------------------------------
@router.patch("", response_model=UserSettings, summary="Update current user's settings")
def update_settings(
    payload: SettingsPatch,
    principal: Principal = Depends(get_current_principal),
    store: DocumentStore = Depends(get_store),
):
    with SettingsSynchronizer(store, principal.uid, principal.display_name) as sync:
        sync.save_settings(payload)
        return sync.current


# -----------------------------------------------------
# LIVE (one JSON message per confirmed snapshot)
# -----------------------------------------------------
@router.websocket("/live")
async def live_settings(websocket: WebSocket, token: str):
    # Session restore and store subscriptions block on the network and on
    # the store lock; keep them off the event loop
    session = await run_in_threadpool(open_session, websocket.app.state.backends)
    await run_in_threadpool(session.restore, token)
    principal = session.principal

    if principal is None:
        await run_in_threadpool(session.close)
        await websocket.close(code=1008)
        return

    await websocket.accept()

    loop = asyncio.get_running_loop()
    queue: asyncio.Queue = asyncio.Queue()

    def push(value):
        # Store callbacks may run on the scheduler or a worker thread
        loop.call_soon_threadsafe(queue.put_nowait, value)

    async def wait_for_disconnect():
        try:
            while True:
                await websocket.receive_text()
        except WebSocketDisconnect:
            pass
        finally:
            queue.put_nowait(_CLOSED)

    sync = await run_in_threadpool(
        SettingsSynchronizer, session.store, principal.uid, principal.display_name
    )
    sync.add_listener(push)
    push(sync.current)
    watcher = asyncio.create_task(wait_for_disconnect())

    try:
        while True:
            value = await queue.get()
            if value is _CLOSED:
                break
            await websocket.send_json({
                "settings": value.to_document() if value else None,
                "error": sync.error.message if sync.error else None,
            })
    except WebSocketDisconnect:
        pass
    finally:
        watcher.cancel()
        await run_in_threadpool(sync.close)
        await run_in_threadpool(session.close)
        logger.info(f"Live settings closed for {principal.uid}")
