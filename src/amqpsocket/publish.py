"""Publish response envelopes to the response exchange."""

from __future__ import annotations

import concurrent.futures
import logging
import queue
import threading
from typing import Any, Optional

import pika
import pika.exceptions

from .errors import PublishError
from .message import PublishContext, Response


logger = logging.getLogger(__name__)


class Publisher:
    """Build response envelopes and hand them to a pika channel.

    A pika channel may only be used from the thread driving its
    connection (the *owner*). Publishes requested from any other thread
    are queued, then drained on the owner thread via
    ``add_callback_threadsafe``; the requesting thread blocks until the
    channel has taken the message or refused it.
    """

    timeout = 60

    def __init__(self, channel, exchange: str, success_type: str, error_type: str):
        self.channel = channel
        self.exchange = exchange
        self.success_type = success_type
        self.error_type = error_type
        self.owner: Optional[int] = threading.get_ident()

        self._outbox: queue.Queue = queue.Queue()

    def publish_success(self, context: PublishContext, value: Any) -> Response:
        return self.publish(context, value, self.success_type)

    def publish_error(self, context: PublishContext, error: str) -> Response:
        return self.publish(context, {"error": error}, self.error_type)

    def publish(self, context: PublishContext, value: Any, type: str) -> Response:
        """Send *value* tagged with *type* to the session behind *context*.

        Raises :class:`PublishError` if the envelope cannot be encoded or
        the channel refuses it. Nothing is retried.
        """

        response = Response(value, type, context.call_id)

        try:
            body = response.encode()
        except TypeError as e:
            raise PublishError(f"cannot encode response to {context.call_id}: {e}") from e

        if threading.get_ident() == self.owner:
            self._send(context, body)
            return response

        pending: concurrent.futures.Future = concurrent.futures.Future()
        self._outbox.put((context, body, pending))

        try:
            self.channel.connection.add_callback_threadsafe(self._flush)
        except pika.exceptions.AMQPError as e:
            raise PublishError(f"connection unavailable: {e}") from e

        try:
            pending.result(timeout=self.timeout)
        except concurrent.futures.TimeoutError:
            raise PublishError(
                f"response to {context.call_id} not sent within {self.timeout} sec"
            )

        return response

    def _flush(self) -> None:
        """Drain all queued outgoing responses (called on the connection
        thread via add_callback_threadsafe)."""
        while True:
            try:
                context, body, pending = self._outbox.get_nowait()
            except queue.Empty:
                break

            try:
                self._send(context, body)
            except PublishError as e:
                pending.set_exception(e)
            except Exception as e:
                # Anything raised here would unwind the consumption loop.
                error = PublishError(
                    f"publish to {self.exchange}/{context.routing_key} failed: {e!r}"
                )
                error.__cause__ = e
                pending.set_exception(error)
            else:
                pending.set_result(None)

    def _send(self, context: PublishContext, body: bytes) -> None:
        properties = pika.BasicProperties(headers=context.headers)

        try:
            self.channel.basic_publish(
                exchange=self.exchange,
                routing_key=context.routing_key,
                body=body,
                properties=properties,
            )
        except pika.exceptions.AMQPError as e:
            raise PublishError(
                f"publish to {self.exchange}/{context.routing_key} failed: {e!r}"
            ) from e

        logger.debug(
            "published response to %s via %s", context.call_id, context.routing_key
        )
