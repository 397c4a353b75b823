"""Label derivation for translated log records."""

import logging

from stackdriver_nozzle.core.encoding.payload import format_uuid
from stackdriver_nozzle.core.envelope import Envelope, EventType
from stackdriver_nozzle.core.errors import TranslationError
from stackdriver_nozzle.core.ports import AppInfoRepositoryPort

logger = logging.getLogger(__name__)


def application_id(envelope: Envelope) -> str:
    """Return the GUID of the app an envelope belongs to, or ''."""
    if envelope.event_type == EventType.LogMessage and envelope.log_message:
        return envelope.log_message.app_id or ""
    if envelope.event_type == EventType.HttpStartStop and envelope.http_start_stop:
        try:
            return format_uuid(envelope.http_start_stop.application_id)
        except TranslationError as e:
            logger.debug("ignoring malformed application id", extra={"error": str(e)})
            return ""
    if envelope.event_type == EventType.ContainerMetric and envelope.container_metric:
        return envelope.container_metric.application_id
    return ""


class LabelMaker:
    """Builds the labels attached to every log record.

    Platform placement comes straight from the envelope. Application
    envelopes are enriched with names from the app info repository and an
    ``applicationPath`` of the form ``/<org>/<space>/<app>``.
    """

    def __init__(self, app_info_repository: AppInfoRepositoryPort, foundation: str) -> None:
        self._app_info_repository = app_info_repository
        self._foundation = foundation

    def log_labels(self, envelope: Envelope) -> dict[str, str]:
        labels: dict[str, str] = {
            "foundation": self._foundation,
            "eventType": envelope.event_type.name,
        }
        for key, value in (
            ("origin", envelope.origin),
            ("deployment", envelope.deployment),
            ("job", envelope.job),
            ("index", envelope.index),
            ("ip", envelope.ip),
        ):
            if value:
                labels[key] = value

        app_id = application_id(envelope)
        if app_id:
            labels["applicationId"] = app_id
            self._add_app_labels(app_id, labels)
        return labels

    def _add_app_labels(self, app_id: str, labels: dict[str, str]) -> None:
        app = self._app_info_repository.get_app_info(app_id)
        if not app.app_name:
            return
        labels["appName"] = app.app_name
        labels["spaceName"] = app.space_name
        labels["orgName"] = app.org_name
        labels["applicationPath"] = f"/{app.org_name}/{app.space_name}/{app.app_name}"
