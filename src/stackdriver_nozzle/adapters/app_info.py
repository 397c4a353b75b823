"""Application metadata repositories.

AppInfoCache shields the slow Cloud Controller lookup behind a freshness
window; NullAppInfoRepository is used when enrichment is turned off.
"""

import logging
import threading
import time
from collections.abc import Callable

from stackdriver_nozzle.core.errors import MetadataLookupError
from stackdriver_nozzle.core.models import AppInfo
from stackdriver_nozzle.core.ports import AppMetadataSourcePort

logger = logging.getLogger(__name__)


class AppInfoCache:
    """Caches application metadata by app GUID.

    Args:
        source: The external metadata lookup.
        cache_period: Freshness window in seconds. 0 disables caching,
            a negative value caches forever, a positive value N serves a
            cached entry while it is less than N seconds old.
        clock: Time source in Unix seconds.
    """

    def __init__(
        self,
        source: AppMetadataSourcePort,
        cache_period: int,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._source = source
        self._cache_period = cache_period
        self._clock = clock
        self._cache: dict[str, AppInfo] = {}
        self._lock = threading.Lock()

    def get_app_info(self, guid: str) -> AppInfo:
        """Return metadata for an app, querying the source when stale."""
        if self._cache_period != 0:
            with self._lock:
                app_info = self._cache.get(guid)
            if app_info is not None and self._is_fresh(app_info):
                return app_info
        return self._query(guid)

    def _is_fresh(self, app_info: AppInfo) -> bool:
        if self._cache_period < 0:
            return True
        elapsed = self._clock() - app_info.last_queried
        return elapsed < self._cache_period

    def _query(self, guid: str) -> AppInfo:
        try:
            app = self._source.app_by_guid(guid)
        except MetadataLookupError as e:
            logger.error("app metadata lookup failed", extra={"guid": guid, "error": str(e)})
            return AppInfo()

        app_info = AppInfo(
            app_name=app.name,
            space_guid=app.space_guid,
            space_name=app.space_name,
            org_guid=app.org_guid,
            org_name=app.org_name,
            last_queried=self._clock(),
        )
        if self._cache_period != 0:
            with self._lock:
                self._cache[guid] = app_info
        return app_info


class NullAppInfoRepository:
    """Repository that knows nothing; never calls out."""

    def get_app_info(self, guid: str) -> AppInfo:
        return AppInfo()
