"""
WebSocket client for communicating with the RuneLite plugin.

This module defines a WebSocketClient class that keeps a connection to the
RuneLite plugin open on a background thread and hands every decoded JSON
message to a callback, sending back whatever the callback returns.
"""

import asyncio
import concurrent.futures
import json
import os
import threading
from typing import Any, Callable, Dict, Optional, Union

import nest_asyncio
import websockets

from .logging_utils import get_logger

DEFAULT_WS_URL = "ws://localhost:43595"

MessageHandler = Callable[[Dict[str, Any]], Optional[Dict[str, Any]]]


class WebSocketClient:
    """Client for communicating with the RuneLite plugin via WebSocket."""

    def __init__(
        self,
        websocket_url: Optional[str] = None,
        on_message: Optional[MessageHandler] = None,
        reconnect_delay: float = 5.0,
        start: bool = True,
    ):
        """Initialize the WebSocket client.

        Args:
            websocket_url: The URL of the WebSocket server to connect to
            on_message: Called with each JSON object received; a returned dict is sent back
            reconnect_delay: Seconds to wait before reconnecting after a failure
            start: Whether to start the connection thread immediately
        """
        self.logger = get_logger()
        self.websocket_url = websocket_url or os.getenv("TOBBOT_WS_URL", DEFAULT_WS_URL)
        self.on_message = on_message
        self.reconnect_delay = reconnect_delay
        self.ws: Optional[Any] = None
        self.connected = False
        self.closing = False
        self.connection_event = threading.Event()
        self.loop = asyncio.new_event_loop()
        self.ws_thread = threading.Thread(
            target=self._run_websocket_loop, daemon=True)
        if start:
            self.ws_thread.start()

    def _run_websocket_loop(self) -> None:
        """Run the websocket event loop in a separate thread."""
        asyncio.set_event_loop(self.loop)
        nest_asyncio.apply(self.loop)
        self.loop.run_until_complete(self._websocket_client())

    async def _websocket_client(self) -> None:
        """Handle websocket connection and message processing, reconnecting on failure."""
        while not self.closing:
            try:
                async with websockets.connect(
                    self.websocket_url,
                    ping_interval=None,
                    ping_timeout=None,
                    close_timeout=5
                ) as websocket:
                    self.ws = websocket
                    self.connected = True
                    self.connection_event.set()
                    self.logger.info(f"WebSocket connection established with {self.websocket_url}")
                    async for message in websocket:
                        await self._process_message(message)
            except websockets.ConnectionClosed:
                self.logger.warning("WebSocket connection closed")
            except (OSError, websockets.WebSocketException) as e:
                self.logger.error(f"WebSocket connection error: {e}")

            self.ws = None
            self.connected = False
            self.connection_event.clear()
            if not self.closing:
                await asyncio.sleep(self.reconnect_delay)

    async def _process_message(self, message: Union[str, bytes]) -> None:
        """Decode one message, dispatch it and send any reply.

        The handler runs in a worker thread so a slow decision does not block
        the connection; messages are still answered one at a time.
        """
        data = self._parse_message(message)
        if data is None or self.on_message is None:
            return
        reply = await asyncio.to_thread(self.on_message, data)
        if reply is not None:
            await self._send_async(json.dumps(reply))

    def _parse_message(self, message: Union[str, bytes]) -> Optional[Dict[str, Any]]:
        """Parse a JSON object message, logging and dropping anything else."""
        if isinstance(message, bytes):
            self.logger.debug(f"Received binary message of {len(message)} bytes")
            message = message.decode("utf-8", errors="replace")
        if not message:
            return None

        try:
            result = json.loads(message)
        except json.JSONDecodeError as e:
            self.logger.error(f"Failed to parse message: {e}")
            return None
        if not isinstance(result, dict):
            self.logger.warning(f"Received non-dict data: {type(result)}")
            return None

        return result

    def wait_for_connection(self, timeout: float = 30.0) -> bool:
        """Wait for the WebSocket connection to be established.

        Args:
            timeout: Maximum time to wait in seconds

        Returns:
            bool: True if connected, False if timed out
        """
        return self.connection_event.wait(timeout=timeout)

    def send_command(self, command: Dict[str, Any]) -> bool:
        """Send a message to the RuneLite plugin.

        Args:
            command: The message to send

        Returns:
            bool: True if the message was sent, False otherwise
        """
        if not self.connected or not self.ws:
            self.logger.warning("Cannot send command: WebSocket not connected")
            return False
        future = asyncio.run_coroutine_threadsafe(
            self._send_async(json.dumps(command)), self.loop
        )
        return future.result(timeout=5.0)

    async def _send_async(self, payload: str) -> bool:
        if not self.connected or not self.ws:
            return False
        await self.ws.send(payload)
        return True

    def close(self) -> None:
        """Close the WebSocket connection."""
        self.closing = True
        if not self.connected or not self.ws:
            self.logger.debug("WebSocket already closed or never connected")
            return
        self.logger.info("Closing WebSocket connection...")
        try:
            close_task = asyncio.run_coroutine_threadsafe(
                self.ws.close(), self.loop
            )
            close_task.result(timeout=2.0)
        except concurrent.futures.TimeoutError:
            self.logger.warning("Timeout during WebSocket close operation")
        self.connected = False
        self.connection_event.clear()
        self.ws = None
        self.logger.info("WebSocket connection cleanup completed")
