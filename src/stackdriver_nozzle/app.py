"""Wiring for a complete nozzle instance.

``create_nozzle`` builds every component once from a NozzleConfig and
hands them to each other explicitly; the returned Nozzle is the only
long-lived object callers need to keep.
"""

import logging

import httpx

from stackdriver_nozzle.adapters.app_info import AppInfoCache, NullAppInfoRepository
from stackdriver_nozzle.adapters.cloudfoundry import CloudControllerClient
from stackdriver_nozzle.adapters.gce import GceMetadataClient, detect_monitored_resource
from stackdriver_nozzle.adapters.in_memory import InMemoryLogAdapter, InMemoryMetricClient
from stackdriver_nozzle.adapters.labels import LabelMaker
from stackdriver_nozzle.adapters.log_sink import EnvelopeTranslator, LogSink
from stackdriver_nozzle.adapters.logging import LogAdapterHandler
from stackdriver_nozzle.adapters.stackdriver import HttpLogAdapter, HttpMetricClient
from stackdriver_nozzle.adapters.telemetry_sink import MetricReporter
from stackdriver_nozzle.config import NozzleConfig
from stackdriver_nozzle.core.envelope import Envelope
from stackdriver_nozzle.core.models import MonitoredResource
from stackdriver_nozzle.core.ports import (
    AppInfoRepositoryPort,
    AppMetadataSourcePort,
    LogAdapterPort,
    MetricClientPort,
)
from stackdriver_nozzle.core.telemetry import PeriodicReporter, Registry

logger = logging.getLogger(__name__)

_METADATA_TIMEOUT = httpx.Timeout(1.0)


class Nozzle:
    """A running pipeline: envelopes in, logs and metrics out."""

    def __init__(
        self,
        log_sink: LogSink,
        reporter: PeriodicReporter,
        registry: Registry,
        log_handler: logging.Handler | None = None,
    ) -> None:
        self.log_sink = log_sink
        self.registry = registry
        self._reporter = reporter
        self._log_handler = log_handler

    def handle(self, envelope: Envelope | None) -> None:
        """Translate and post one envelope from the firehose."""
        self.log_sink.receive(envelope)

    def start(self) -> None:
        """Register metric descriptors and begin periodic reporting."""
        if self._log_handler is not None:
            logging.getLogger("stackdriver_nozzle").addHandler(self._log_handler)
        self._reporter.start()
        logger.info("nozzle started")

    def stop(self) -> None:
        """Flush a final telemetry report and stop reporting."""
        self._reporter.stop()
        logger.info("nozzle stopped")
        if self._log_handler is not None:
            logging.getLogger("stackdriver_nozzle").removeHandler(self._log_handler)


def _google_client(config: NozzleConfig) -> httpx.Client:
    headers = {}
    if config.access_token:
        headers["Authorization"] = f"Bearer {config.access_token}"
    return httpx.Client(headers=headers, timeout=httpx.Timeout(30.0))


def _app_info_repository(
    config: NozzleConfig, metadata_source: AppMetadataSourcePort | None
) -> AppInfoRepositoryPort:
    if not config.enable_app_metadata:
        return NullAppInfoRepository()
    if metadata_source is None:
        headers = {"Authorization": f"bearer {config.cf_token}"} if config.cf_token else {}
        metadata_source = CloudControllerClient(
            httpx.Client(base_url=config.cf_api_url, headers=headers, timeout=30.0)
        )
    return AppInfoCache(metadata_source, config.app_metadata_cache_seconds)


def create_nozzle(
    config: NozzleConfig,
    *,
    http_client: httpx.Client | None = None,
    metric_client: MetricClientPort | None = None,
    log_adapter: LogAdapterPort | None = None,
    metadata_source: AppMetadataSourcePort | None = None,
    resource: MonitoredResource | None = None,
) -> Nozzle:
    """Create a Nozzle from configuration.

    Args:
        config: Nozzle settings.
        http_client: Client for the Google APIs; built from the config's
            access token when omitted.
        metric_client: Overrides the monitoring backend.
        log_adapter: Overrides the logging backend.
        metadata_source: Overrides the Cloud Controller lookup.
        resource: Overrides monitored resource detection.

    Returns:
        A Nozzle ready to ``start()``.
    """
    if config.dry_run:
        metric_client = metric_client or InMemoryMetricClient()
        log_adapter = log_adapter or InMemoryLogAdapter()
        resource = resource or MonitoredResource()
    if resource is None:
        with httpx.Client(timeout=_METADATA_TIMEOUT) as metadata_http:
            resource = detect_monitored_resource(GceMetadataClient(metadata_http))
    if metric_client is None or log_adapter is None:
        client = http_client or _google_client(config)
        metric_client = metric_client or HttpMetricClient(client)
        log_adapter = log_adapter or HttpLogAdapter(
            client, config.project_id, config.log_id, resource
        )

    registry = Registry()
    label_maker = LabelMaker(_app_info_repository(config, metadata_source), config.foundation)
    log_sink = LogSink(
        EnvelopeTranslator(label_maker, config.newline_token), log_adapter, registry
    )
    metric_reporter = MetricReporter(
        metric_client,
        config.project_id,
        config.subscription_id,
        config.foundation,
        resource=resource,
        namespace=config.metric_namespace,
    )
    reporter = PeriodicReporter(registry, metric_reporter, config.report_interval_seconds)

    log_handler = None
    if config.forward_own_logs:
        log_handler = LogAdapterHandler(
            log_adapter, labels={"foundation": config.foundation}, level=logging.INFO
        )
    return Nozzle(log_sink, reporter, registry, log_handler)
