from __future__ import annotations

import json
import logging
from typing import Any

from confluent_kafka import KafkaError, Message, Producer

from .config import DispatchConfig
from .wire_models import AffectedPagesEventValue

logger = logging.getLogger(__name__)


class EventDeliveryError(RuntimeError):
    """Produced events were not acknowledged by the broker."""


class AffectedPagesProducer:
    def __init__(self, cfg: DispatchConfig) -> None:
        self.output_topic = cfg.affected_pages_topic
        self.dlq_topic = cfg.dlq_topic
        self.delivery_failures = 0
        self.producer = Producer(
            {
                "bootstrap.servers": cfg.bootstrap_servers,
                "enable.idempotence": True,
                "acks": "all",
            }
        )

    def _on_delivery(self, err: KafkaError | None, msg: Message) -> None:
        if err is not None:
            self.delivery_failures += 1
            logger.error("delivery failed topic=%s key=%s error=%s", msg.topic(), msg.key(), err)

    def publish_event(self, key: str, payload: AffectedPagesEventValue) -> None:
        self.producer.produce(
            topic=self.output_topic,
            key=key.encode("utf-8"),
            value=payload.model_dump_json().encode("utf-8"),
            on_delivery=self._on_delivery,
        )
        self.producer.poll(0)

    def publish_dlq(self, key: str, payload: dict[str, Any]) -> None:
        self.producer.produce(
            topic=self.dlq_topic,
            key=key.encode("utf-8"),
            value=json.dumps(payload).encode("utf-8"),
            on_delivery=self._on_delivery,
        )
        self.producer.poll(0)

    def flush(self, timeout: float = 5.0) -> int:
        """Waits for outstanding deliveries.

        Returns the number of messages still queued plus those the broker
        rejected since the previous flush; zero means everything was delivered.
        """
        remaining = self.producer.flush(timeout)
        failed, self.delivery_failures = self.delivery_failures, 0
        return remaining + failed

    def close(self, timeout: float = 5.0) -> None:
        self.producer.flush(timeout)
