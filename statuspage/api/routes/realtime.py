"""
api/routes/realtime.py
----------------------
WebSocket entry point of the real-time layer.

WS /ws?token=<jwt>  — token optional; public status pages connect anonymously
                      and join by slug, dashboards pass their access token and
                      join by organization id.
"""

from typing import Optional

from fastapi import APIRouter, Query, WebSocket

router = APIRouter(tags=["Realtime"])


@router.websocket("/ws")
async def realtime_socket(
    websocket: WebSocket,
    token: Optional[str] = Query(default=None),
) -> None:
    await websocket.app.state.realtime.serve(websocket, token)
