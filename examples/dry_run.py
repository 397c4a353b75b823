"""Run the nozzle against in-memory backends and print what it would send.

Usage:
    NOZZLE_PROJECT_ID=demo NOZZLE_DRY_RUN=true NOZZLE_ENABLE_APP_METADATA=false \
        python examples/dry_run.py
"""

import json
import logging

from stackdriver_nozzle import (
    Envelope,
    EventType,
    InMemoryLogAdapter,
    InMemoryMetricClient,
    MessageType,
    NozzleConfig,
    create_nozzle,
)
from stackdriver_nozzle.core.envelope import Error, LogMessage

logging.basicConfig(level=logging.INFO)


def main() -> None:
    config = NozzleConfig.from_env()
    log_adapter = InMemoryLogAdapter()
    metric_client = InMemoryMetricClient()
    nozzle = create_nozzle(config, log_adapter=log_adapter, metric_client=metric_client)

    nozzle.start()
    nozzle.handle(
        Envelope(
            origin="rep",
            event_type=EventType.LogMessage,
            log_message=LogMessage(
                message=b'{"msg": "payment failed", "order": 17}',
                message_type=MessageType.ERR,
            ),
        )
    )
    nozzle.handle(
        Envelope(
            origin="doppler",
            event_type=EventType.Error,
            error=Error(source="doppler", code=1, message="slow consumer"),
        )
    )
    nozzle.stop()

    for record in log_adapter.records:
        print(record.severity.value, json.dumps(record.payload, sort_keys=True))
    for request in metric_client.posted:
        for point in request.time_series:
            print(point.metric_type, point.labels, point.value)


if __name__ == "__main__":
    main()
