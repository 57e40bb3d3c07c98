"""
RabbitMQ Event Publisher
"""
import json
import logging
import uuid
from datetime import datetime, timezone
from typing import Dict

import pika
from tenacity import retry, stop_after_attempt, wait_exponential, retry_if_exception_type

from pharmaflow.config import settings

logger = logging.getLogger(__name__)


class EventPublisher:
    """Publisher for sending domain events to RabbitMQ"""

    def __init__(self):
        self.rabbitmq_url = settings.RABBITMQ_URL
        self.exchange = settings.RABBITMQ_EXCHANGE
        self.enabled = settings.EVENTS_ENABLED

    def publish_order_status_changed(self, order_data: Dict) -> bool:
        """
        Publish OrderStatusChanged event

        Args:
            order_data: order_id, order_number, old_status, new_status, actor, ...

        Returns:
            True if published successfully, False otherwise
        """
        return self.publish("OrderStatusChanged", "order.status.changed", order_data)

    def publish_return_processed(self, return_data: Dict) -> bool:
        """
        Publish ReturnProcessed event

        Args:
            return_data: return_id, return_number, order_id, refund_amount, ...

        Returns:
            True if published successfully, False otherwise
        """
        return self.publish("ReturnProcessed", "return.processed", return_data)

    def publish(self, event_type: str, routing_key: str, data: Dict) -> bool:
        """
        Publish one event; failures are logged, never raised

        The business transaction has already committed when this runs.
        """
        if not self.enabled:
            logger.debug(f"Event publishing disabled, dropping {event_type}")
            return False

        event = self.build_event(event_type, data)
        try:
            self._send(routing_key, event)
        except pika.exceptions.UnroutableError:
            logger.warning(f"Event {event_type} ({event['event_id']}) could not be routed to any queue")
            return False
        except Exception as e:
            logger.warning(f"Failed to publish {event_type} ({event['event_id']}): {e}")
            return False

        logger.info(f"Event published: {event_type} (ID: {event['event_id']})")
        return True

    @staticmethod
    def build_event(event_type: str, data: Dict) -> Dict:
        """Wrap data in the event envelope"""
        return {
            "event_type": event_type,
            "event_id": str(uuid.uuid4()),
            "event_version": "1.0",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "source": settings.SERVICE_NAME,
            "data": data,
        }

    @retry(
        stop=stop_after_attempt(settings.MAX_RETRIES),
        wait=wait_exponential(multiplier=settings.RETRY_DELAY, min=1, max=10),
        retry=retry_if_exception_type(pika.exceptions.AMQPConnectionError),
        reraise=True
    )
    def _send(self, routing_key: str, event: Dict) -> None:
        connection = pika.BlockingConnection(pika.URLParameters(self.rabbitmq_url))
        try:
            channel = connection.channel()
            channel.exchange_declare(
                exchange=self.exchange,
                exchange_type='topic',
                durable=True
            )
            channel.confirm_delivery()
            channel.basic_publish(
                exchange=self.exchange,
                routing_key=routing_key,
                body=json.dumps(event, default=str),
                properties=pika.BasicProperties(
                    delivery_mode=2,  # Persistent message
                    content_type='application/json',
                    correlation_id=event["event_id"]
                ),
                mandatory=False
            )
        finally:
            connection.close()
