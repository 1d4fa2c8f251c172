"""
gRPC client for the ordered message bus.

Publishes replication messages to the bus topic. Messages sharing an ordering
key (the document path) are delivered to subscribers in publish order.
"""

from typing import Optional, Protocol

import grpc

from common.constants import BUS_PUBLISH_METHOD, BUS_TIMEOUT_SECONDS
from common.logging_config import get_logger
from common.protocol import BusMessage, PublishResponse
from replicator.exceptions import BusUnavailableError

logger = get_logger(__name__)


class MessageBus(Protocol):
    """Capability the publish path needs from the message bus."""

    async def publish(self, message: BusMessage) -> str:
        ...

    async def close(self) -> None:
        ...


class GrpcBusClient:
    """
    Bus publisher over a single cached gRPC channel.

    Requests and responses are JSON bytes; the topic travels as call metadata.
    """

    def __init__(self, address: str, topic: str, timeout: float = BUS_TIMEOUT_SECONDS):
        self.address = address
        self.topic = topic
        self.timeout = timeout
        self._channel: Optional[grpc.aio.Channel] = None

    async def publish(self, message: BusMessage) -> str:
        """
        Publish a message and wait for the bus to acknowledge it.

        Args:
            message: Message to publish

        Returns:
            Message ID assigned by the bus

        Raises:
            BusUnavailableError: If the bus cannot be reached or rejects the message
        """
        try:
            multi_callable = self._get_channel().unary_unary(
                BUS_PUBLISH_METHOD,
                request_serializer=lambda x: x,
                response_deserializer=lambda x: x,
            )

            response_bytes = await multi_callable(
                message.to_json(),
                timeout=self.timeout,
                metadata=(('topic', self.topic),)
            )

            response = PublishResponse.from_json(response_bytes)

            logger.debug(
                f"Published message ID: {response.message_id} "
                f"[ordering_key={message.ordering_key}, topic={self.topic}]"
            )

            return response.message_id

        except grpc.RpcError as e:
            logger.error(f"Failed to publish to {self.address}: {e.code()} - {e.details()}")
            raise BusUnavailableError(f"Failed to publish to bus at {self.address}") from e
        except (ValueError, KeyError) as e:
            logger.error(f"Unreadable publish response from {self.address}: {e}")
            raise BusUnavailableError(f"Unreadable publish response from {self.address}") from e

    def _get_channel(self) -> grpc.aio.Channel:
        if self._channel is None:
            self._channel = grpc.aio.insecure_channel(self.address)
            logger.debug(f"Created gRPC channel to {self.address}")

        return self._channel

    async def close(self) -> None:
        """Close the gRPC channel, letting in-flight publishes finish."""
        if self._channel is not None:
            await self._channel.close(grace=self.timeout)
            logger.debug(f"Closed gRPC channel to {self.address}")
            self._channel = None
