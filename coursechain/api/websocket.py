"""
WebSocket event feed.

A client sends "subscribe-events" (as plain text or as {"event":
"subscribe-events"}) and from then on receives every course event as
{"event": "course-created" | "course-purchased", "data": {...}}.
The connection's handlers are removed when the socket closes.
"""

import json

from aiohttp import WSMsgType, web
from loguru import logger

from coursechain.config.constants import (
    WS_EVENT_COURSE_CREATED,
    WS_EVENT_COURSE_PURCHASED,
    WS_SUBSCRIBE_MESSAGE,
)
from coursechain.services.blockchain.results import CourseEvent
from coursechain.services.blockchain.subscription_manager import Subscription

from .keys import SERVICE_KEY


def _message_name(data: str) -> str:
    text = data.strip()
    try:
        payload = json.loads(text)
    except json.JSONDecodeError:
        return text
    if isinstance(payload, dict):
        return str(payload.get("event", ""))
    if isinstance(payload, str):
        return payload
    return ""


def _forwarder(ws: web.WebSocketResponse, name: str):
    async def forward(event: CourseEvent) -> None:
        if ws.closed:
            return
        await ws.send_json({"event": name, "data": event.to_dict()})

    return forward


async def websocket_handler(request: web.Request) -> web.WebSocketResponse:
    """Serve one WebSocket client."""
    ws = web.WebSocketResponse(heartbeat=30.0)
    await ws.prepare(request)

    service = request.app[SERVICE_KEY]
    subscriptions: list[Subscription] = []
    peer = request.remote
    logger.info(f"WebSocket client connected: {peer}")

    try:
        async for msg in ws:
            if msg.type == WSMsgType.TEXT:
                name = _message_name(msg.data)
                if name != WS_SUBSCRIBE_MESSAGE:
                    await ws.send_json(
                        {"event": "error", "data": {"error": f"Unknown message: {name!r}"}}
                    )
                    continue
                if subscriptions:
                    continue

                subscriptions.append(
                    service.on_course_created(_forwarder(ws, WS_EVENT_COURSE_CREATED))
                )
                subscriptions.append(
                    service.on_course_purchased(_forwarder(ws, WS_EVENT_COURSE_PURCHASED))
                )
                logger.info(f"WebSocket client subscribed to course events: {peer}")
                await ws.send_json({"event": "subscribed", "data": {}})

            elif msg.type == WSMsgType.ERROR:
                logger.warning(f"WebSocket connection error: {ws.exception()}")
    finally:
        for subscription in subscriptions:
            subscription.cancel()
        logger.info(f"WebSocket client disconnected: {peer}")

    return ws
