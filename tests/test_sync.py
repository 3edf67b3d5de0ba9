"""Sync socket teardown tests."""

import asyncio
import json
import logging

from fastapi import WebSocketDisconnect

from fbop.services import family_service
from fbop.services.auth_service import issue_session_token
from fbop.ws.sync import websocket_sync


class DroppedSocket:
    """Delivers one subscribe message, then the peer goes away."""

    def __init__(self, message: dict):
        self.messages = [json.dumps(message)]
        self.sent = []

    async def accept(self):
        pass

    async def close(self, code=1000, reason=None):
        pass

    async def receive_text(self) -> str:
        if self.messages:
            return self.messages.pop(0)
        # Let the pump try to send the snapshot first
        await asyncio.sleep(0.05)
        raise WebSocketDisconnect(code=1006)

    async def send_json(self, data):
        raise RuntimeError("Cannot call send once a close message has been sent")


def test_failed_send_after_disconnect_is_collected(store, owner, caplog):
    family = family_service.create_family(store, owner, "The Pigs")
    ws = DroppedSocket({"type": "subscribe", "id": "kids", "target": "children", "family_id": family.id})

    with caplog.at_level(logging.DEBUG, logger="fbop.ws.sync"):
        asyncio.run(websocket_sync(ws, store, issue_session_token(owner)))

    assert "Sync pump for owner-uid stopped" in caplog.text
    assert store.listener_count == 0
