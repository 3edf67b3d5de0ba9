"""WebSocket handler streaming live query results to the app.

Client messages:
    {"type": "subscribe", "id": "s1", "target": "transactions",
     "family_id": "...", "child_id": "..."}
    {"type": "unsubscribe", "id": "s1"}
    {"type": "ping"}

Server messages:
    {"type": "snapshot", "id": "s1", "data": [...]}
    {"type": "access_revoked", "id": "s1"}
    {"type": "error", "id": "s1", "message": "..."}

Each stream is tied to the grant that authorized it: the caller's parent
membership, or its device registration for the child. When that grant
is deleted the stream is closed and ``access_revoked`` is sent; no
snapshot is delivered once the grant is gone. Every subscription opened
on a connection is released when it closes.
"""

import asyncio
import json
import logging
import threading
from typing import Any, Callable, Optional

from fastapi import WebSocket, WebSocketDisconnect

from fbop.errors import UnauthenticatedError
from fbop.services import child_service, device_service, family_service
from fbop.services.auth_service import Principal, principal_from_token
from fbop.store import DocumentStore, Subscription, paths

logger = logging.getLogger(__name__)

PARENT_TARGETS = ("children", "devices", "parents")
CHILD_TARGETS = ("transactions", "device_access")


def _dump(items) -> list[dict]:
    return [item.model_dump(mode="json") for item in items]


class _Stream:
    """One client subscription: its store listeners and whether access was lost."""

    def __init__(self, grant_path: str):
        self.grant_path = grant_path
        self.subscriptions: list[Subscription] = []
        self.revoked = False


class SyncConnection:
    """Subscriptions held by one WebSocket connection."""

    def __init__(self, ws: WebSocket, store: DocumentStore, principal: Principal):
        self.ws = ws
        self.store = store
        self.principal = principal
        self._loop = asyncio.get_running_loop()
        self._outbox: asyncio.Queue[dict] = asyncio.Queue()
        self._streams: dict[str, _Stream] = {}
        self._lock = threading.Lock()

    def _post(self, message: dict) -> None:
        """Queue a message from any thread."""
        self._loop.call_soon_threadsafe(self._outbox.put_nowait, message)

    async def pump(self) -> None:
        while True:
            message = await self._outbox.get()
            await self.ws.send_json(message)

    def _grant_path(self, target: str, family_id: str, child_id: Optional[str]) -> Optional[str]:
        """Path of the document granting access, or None if there is none."""
        if family_service.is_parent(self.store, family_id, self.principal):
            return paths.parent(family_id, self.principal.uid)
        if target in CHILD_TARGETS and child_id:
            if device_service.check_device_access(self.store, family_id, child_id, self.principal):
                return paths.device(family_id, child_id, self.principal.uid)
        return None

    def _lose_access(self, sub_id: str, stream: _Stream) -> None:
        # Called from store delivery threads; the teardown runs on the loop
        if not stream.revoked:
            stream.revoked = True
            self._loop.call_soon_threadsafe(self._revoke, sub_id, stream)

    def _revoke(self, sub_id: str, stream: _Stream) -> None:
        with self._lock:
            current = self._streams.get(sub_id) is stream
            if current:
                del self._streams[sub_id]
            for subscription in stream.subscriptions:
                subscription.unsubscribe()
        if current:
            logger.info("Stream %s for %s closed: access revoked", sub_id, self.principal.uid)
            self._post({"type": "access_revoked", "id": sub_id})

    def subscribe(self, msg: dict) -> None:
        sub_id = str(msg.get("id", ""))
        target = msg.get("target", "")
        family_id = msg.get("family_id", "")
        child_id = msg.get("child_id")

        if not sub_id or sub_id in self._streams:
            self._post({"type": "error", "id": sub_id, "message": "Missing or duplicate subscription id"})
            return
        if target not in PARENT_TARGETS + CHILD_TARGETS or not family_id:
            self._post({"type": "error", "id": sub_id, "message": f"Unknown target: {target}"})
            return
        if target != "children" and target != "parents" and not child_id:
            self._post({"type": "error", "id": sub_id, "message": "child_id is required"})
            return
        grant_path = self._grant_path(target, family_id, child_id)
        if grant_path is None:
            self._post({"type": "error", "id": sub_id, "message": "Permission denied"})
            return

        stream = _Stream(grant_path)

        def snapshot(data: Any) -> None:
            if stream.revoked:
                return
            if self.store.get(stream.grant_path) is None:
                self._lose_access(sub_id, stream)
                return
            self._post({"type": "snapshot", "id": sub_id, "data": data})

        def failed(error: Exception) -> None:
            self._post({"type": "error", "id": sub_id, "message": str(error)})

        def grant_changed(grant) -> None:
            if grant is None:
                self._lose_access(sub_id, stream)

        opener: Callable[[], Subscription]
        if target == "transactions":
            opener = lambda: child_service.observe_transactions(  # noqa: E731
                self.store, family_id, child_id, lambda txs: snapshot(_dump(txs)), failed
            )
        elif target == "children":
            opener = lambda: child_service.observe_children(  # noqa: E731
                self.store, family_id, lambda children: snapshot(_dump(children)), failed
            )
        elif target == "parents":
            opener = lambda: family_service.observe_parents(  # noqa: E731
                self.store, family_id, lambda parents: snapshot(_dump(parents)), failed
            )
        elif target == "devices":
            opener = lambda: device_service.observe_devices(  # noqa: E731
                self.store, family_id, child_id, lambda devices: snapshot(_dump(devices)), failed
            )
        else:
            opener = lambda: device_service.watch_device_access(  # noqa: E731
                self.store,
                family_id,
                child_id,
                self.principal,
                lambda: self._lose_access(sub_id, stream),
            )

        with self._lock:
            self._streams[sub_id] = stream
            if target != "device_access":
                stream.subscriptions.append(self.store.subscribe(grant_path, grant_changed))
            stream.subscriptions.append(opener())

    def unsubscribe(self, sub_id: str) -> None:
        with self._lock:
            stream = self._streams.pop(sub_id, None)
            if stream:
                for subscription in stream.subscriptions:
                    subscription.unsubscribe()

    def close(self) -> None:
        for sub_id in list(self._streams):
            self.unsubscribe(sub_id)

    @property
    def subscription_count(self) -> int:
        return len(self._streams)


async def websocket_sync(ws: WebSocket, store: DocumentStore, token: Optional[str] = None):
    """WebSocket endpoint for live updates."""
    # Authenticate
    if not token:
        await ws.close(code=4001, reason="Missing token")
        return

    try:
        principal = principal_from_token(token)
    except UnauthenticatedError:
        await ws.close(code=4001, reason="Invalid token")
        return

    await ws.accept()
    connection = SyncConnection(ws, store, principal)
    pump = asyncio.create_task(connection.pump())

    try:
        while True:
            data = await ws.receive_text()
            try:
                msg = json.loads(data)
            except json.JSONDecodeError:
                await ws.send_json({"type": "error", "message": "Invalid JSON"})
                continue

            msg_type = msg.get("type", "") if isinstance(msg, dict) else ""
            if msg_type == "ping":
                await ws.send_json({"type": "pong"})
            elif msg_type == "subscribe":
                # Store reads block; keep them off the event loop
                await asyncio.to_thread(connection.subscribe, msg)
            elif msg_type == "unsubscribe":
                connection.unsubscribe(str(msg.get("id", "")))
            else:
                await ws.send_json({"type": "error", "message": f"Unknown type: {msg_type}"})
    except WebSocketDisconnect:
        logger.debug("Sync connection for %s closed", principal.uid)
    finally:
        connection.close()
        pump.cancel()
        try:
            await pump
        except asyncio.CancelledError:
            pass
        except Exception as e:
            # A send can fail once the socket is gone
            logger.debug("Sync pump for %s stopped: %s", principal.uid, e)
