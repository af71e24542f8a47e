from __future__ import annotations

import json
import logging
import signal
import time
import traceback
from typing import Any

from confluent_kafka import Message

from change_propagation.config import load_config as load_propagation_config
from change_propagation.db import SqlTitleResolver
from change_propagation.finder import AffectedPagesFinder
from usage_tracking.db import PostgresPool, SqlUsageLookup

from . import metrics
from .config import DispatchConfig, load_config
from .consumer import EntityChangesConsumer
from .handler import ChangeHandler
from .producer import AffectedPagesProducer, EventDeliveryError
from .wire_models import EntityChangeValue


class MetricsTracker:
    def __init__(self, interval_seconds: float) -> None:
        self.interval_seconds = interval_seconds
        self.window_start = time.time()
        self.processed_ok = 0
        self.failed = 0
        self.skipped = 0
        self.pages = 0
        self.total_latency_ms = 0.0

    def record_success(self, latency_ms: float, pages: int) -> None:
        self.processed_ok += 1
        self.pages += pages
        self.total_latency_ms += latency_ms
        metrics.PROCESSED_CHANGES.inc()
        metrics.AFFECTED_PAGES.inc(pages)
        metrics.HANDLE_LATENCY_SECONDS.observe(latency_ms / 1000.0)

    def record_failure(self) -> None:
        self.failed += 1
        metrics.FAILED_CHANGES.inc()

    def record_skipped(self, latency_ms: float) -> None:
        self.skipped += 1
        self.total_latency_ms += latency_ms
        metrics.PROCESSED_CHANGES.inc()
        metrics.SKIPPED_CHANGES.inc()
        metrics.HANDLE_LATENCY_SECONDS.observe(latency_ms / 1000.0)

    def maybe_emit(self, logger: logging.Logger) -> None:
        now = time.time()
        elapsed = now - self.window_start
        if elapsed < self.interval_seconds:
            return

        handled = self.processed_ok + self.skipped
        changes_per_second = handled / elapsed if elapsed > 0 else 0.0
        avg_latency = self.total_latency_ms / handled if handled > 0 else 0.0
        logger.info(
            "metrics changes_per_second=%.3f avg_latency_ms=%.2f dispatched=%d pages=%d skipped=%d failures=%d window_sec=%.2f",
            changes_per_second,
            avg_latency,
            self.processed_ok,
            self.pages,
            self.skipped,
            self.failed,
            elapsed,
        )

        self.window_start = now
        self.processed_ok = 0
        self.failed = 0
        self.skipped = 0
        self.pages = 0
        self.total_latency_ms = 0.0


class ChangeDispatchApp:
    """Consumes entity changes and publishes the pages each one invalidates.

    A change that cannot be parsed or processed goes to the DLQ; the loop
    never retries it.
    """

    def __init__(
        self,
        config: DispatchConfig,
        handler: ChangeHandler,
        consumer: EntityChangesConsumer,
        producer: AffectedPagesProducer,
    ) -> None:
        self.config = config
        self.handler = handler
        self.consumer = consumer
        self.producer = producer
        self.logger = logging.getLogger("change-dispatch")
        self.metrics = MetricsTracker(config.metrics_interval_seconds)
        self.running = True

    def _shutdown_handler(self, signum: int, _frame: Any) -> None:
        self.logger.info("received signal=%d; shutting down", signum)
        self.running = False

    @staticmethod
    def _safe_change_id(message: Message) -> str:
        try:
            raw = json.loads((message.value() or b"{}").decode("utf-8"))
            return str(raw.get("id", "unknown"))
        except (ValueError, AttributeError):
            return "unknown"

    def _publish_dlq(self, message: Message, error: Exception) -> None:
        change_id = self._safe_change_id(message)
        self.logger.exception(
            "change failed change_id=%s topic=%s partition=%s offset=%s",
            change_id,
            message.topic(),
            message.partition(),
            message.offset(),
        )
        dlq_payload = {
            "failed_at": int(time.time() * 1000),
            "source_topic": message.topic(),
            "source_partition": message.partition(),
            "source_offset": message.offset(),
            "change_id": change_id,
            "error_type": type(error).__name__,
            "error_message": str(error),
            "stack_trace": traceback.format_exc(),
            "raw_value": (message.value() or b"").decode("utf-8", errors="replace"),
        }
        self.producer.publish_dlq(key=change_id, payload=dlq_payload)
        self.metrics.record_failure()

    def process_message(self, message: Message) -> None:
        started = time.perf_counter()
        value = EntityChangeValue.model_validate_json((message.value() or b"{}").decode("utf-8"))
        event = self.handler.handle(value)
        latency_ms = (time.perf_counter() - started) * 1000

        if event is None:
            self.metrics.record_skipped(latency_ms)
            return

        self.producer.publish_event(key=event.entity_id, payload=event)
        self.metrics.record_success(latency_ms, pages=len(event.pages))

    def process_batch(self, batch: list[Message]) -> None:
        for message in batch:
            try:
                self.process_message(message)
            except Exception as item_error:
                self._publish_dlq(message, item_error)

        undelivered = self.producer.flush()
        if undelivered > 0:
            # Offsets stay uncommitted so the batch is consumed again after restart.
            raise EventDeliveryError(f"{undelivered} message(s) not delivered; offsets not committed")
        self.consumer.commit()

    def run(self) -> None:
        signal.signal(signal.SIGINT, self._shutdown_handler)
        signal.signal(signal.SIGTERM, self._shutdown_handler)

        self.logger.info("change dispatch started topic=%s", self.consumer.topic)

        try:
            while self.running:
                batch = self.consumer.poll_batch(
                    batch_size=self.config.batch_size,
                    timeout=self.config.poll_timeout_seconds,
                )
                if batch:
                    self.process_batch(batch)
                self.metrics.maybe_emit(self.logger)
        finally:
            self.consumer.close()
            self.producer.close()
            self.logger.info("change dispatch stopped")


def build_app(config: DispatchConfig | None = None) -> ChangeDispatchApp:
    config = config or load_config()
    db = PostgresPool.connect(config.postgres_dsn, config.pg_min_conn, config.pg_max_conn)
    finder = AffectedPagesFinder.from_config(
        load_propagation_config(),
        usage_lookup=SqlUsageLookup(db),
        title_resolver=SqlTitleResolver(db),
    )
    return ChangeDispatchApp(
        config=config,
        handler=ChangeHandler(finder),
        consumer=EntityChangesConsumer(config),
        producer=AffectedPagesProducer(config),
    )


def main() -> None:
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )
    app = build_app()
    app.run()


if __name__ == "__main__":
    main()
