"""Guard test to ensure no import-time side effects.

Importing hexstats modules must not trigger:
- get_settings() calls
- Database engine creation
- Redis connections
- HTTP client creation

Each module is executed again from source while get_settings is patched to
raise. The fresh copies are never registered in sys.modules, so the rest of
the suite keeps using the originally imported modules.
"""

import importlib
import importlib.util
from unittest.mock import patch

import pytest

SERVICE_MODULES = [
    "hexstats.services.data.availability",
    "hexstats.services.data.dataset_status",
    "hexstats.services.data.graph_client",
    "hexstats.services.data.hex_market_client",
    "hexstats.services.data.normalizers",
    "hexstats.services.data.source_gate",
    "hexstats.services.data.sources",
    "hexstats.services.data.store_client",
    "hexstats.services.analysis.active_set",
    "hexstats.services.analysis.ending_soon",
    "hexstats.services.analysis.recommendation",
    "hexstats.services.analysis.risk_buckets",
    "hexstats.services.analysis.staker_history",
    "hexstats.services.analysis.staking_analytics",
]

API_MODULES = [
    "hexstats.core.scheduler",
    "hexstats.api.v1.health",
    "hexstats.api.v1.market",
    "hexstats.api.v1.recommendations",
    "hexstats.api.v1.staking",
    "hexstats.main",
]


def fresh_copy(name: str):
    """Execute a module's source into a new, unregistered module object."""
    importlib.import_module(name)
    spec = importlib.util.find_spec(name)
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


class TestNoImportSideEffects:
    """Verify that importing modules does not trigger side effects."""

    def test_no_get_settings_on_import(self):
        """Ensure get_settings() is not called while a module body runs."""
        call_tracker = {"called": False}

        def mock_get_settings():
            call_tracker["called"] = True
            raise RuntimeError("get_settings() was called during import!")

        # Load dependencies normally first so only module bodies run under the patch
        for name in SERVICE_MODULES + API_MODULES:
            importlib.import_module(name)

        with patch("hexstats.core.config.get_settings", mock_get_settings):
            for name in SERVICE_MODULES + API_MODULES:
                try:
                    fresh_copy(name)
                except RuntimeError as e:
                    if "get_settings() was called during import" in str(e):
                        pytest.fail(f"{name} import caused side effect: {e}")
                    raise

        assert not call_tracker["called"], "get_settings was called during import"

    def test_core_modules_remain_lazy(self):
        """Database and redis modules create nothing at import."""
        database = fresh_copy("hexstats.core.database")
        redis = fresh_copy("hexstats.core.redis")

        assert database._engine is None, "Database engine was created at import time"
        assert database._session_factory is None, "Session factory was created at import time"
        assert redis._redis_client is None, "Redis client was created at import time"

    def test_lazy_singletons_not_instantiated_on_import(self):
        """Service singletons stay None until their getter is called."""
        graph = fresh_copy("hexstats.services.data.graph_client")
        availability = fresh_copy("hexstats.services.data.availability")
        status = fresh_copy("hexstats.services.data.dataset_status")
        analytics = fresh_copy("hexstats.services.analysis.staking_analytics")
        scheduler = fresh_copy("hexstats.core.scheduler")

        assert graph._graph_client is None, "HexGraphClient was instantiated at import time"
        assert availability._store_availability is None, (
            "StoreAvailability was instantiated at import time"
        )
        assert status._status_map is None, "DatasetStatusMap was instantiated at import time"
        assert analytics._staking_analytics is None, (
            "StakingAnalyticsService was instantiated at import time"
        )
        assert scheduler._scheduler is None, "Scheduler was created at import time"
