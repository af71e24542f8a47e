from __future__ import annotations

from confluent_kafka import Consumer, Message

from .config import DispatchConfig


class EntityChangesConsumer:
    def __init__(self, cfg: DispatchConfig) -> None:
        self.topic = cfg.changes_topic
        self.consumer = Consumer(
            {
                "bootstrap.servers": cfg.bootstrap_servers,
                "group.id": cfg.group_id,
                "auto.offset.reset": cfg.auto_offset_reset,
                "enable.auto.commit": False,
            }
        )
        self.consumer.subscribe([self.topic])

    def poll_batch(self, batch_size: int, timeout: float) -> list[Message]:
        messages = self.consumer.consume(num_messages=batch_size, timeout=timeout)
        return [msg for msg in messages if msg is not None and msg.error() is None]

    def commit(self) -> None:
        self.consumer.commit(asynchronous=False)

    def close(self) -> None:
        self.consumer.close()
