import logging
import unittest

from utils import logging_utils
from utils.logging_utils import (
    EnsureTagFilter,
    MaxLevelFilter,
    build_logging_config,
    get_tagged_logger,
    mask_db_url,
)


class _ListHandler(logging.Handler):
    def __init__(self):
        super().__init__()
        self.records = []

    def emit(self, record: logging.LogRecord) -> None:  # type: ignore[override]
        self.records.append(record)


def _record(name: str = "sqlalchemy.engine.Engine", level: int = logging.INFO) -> logging.LogRecord:
    return logging.LogRecord(name, level, __file__, 1, "msg", None, None)


class TestLoggingUtils(unittest.TestCase):
    def test_build_logging_config_routes_levels(self):
        cfg = build_logging_config(job_name="nautic_api")
        self.assertEqual(set(cfg["handlers"]), {"stdout", "stderr"})
        self.assertEqual(cfg["filters"]["job_name"]["job_name"], "nautic_api")
        self.assertIn("stdout_max_info", cfg["handlers"]["stdout"]["filters"])
        self.assertEqual(cfg["handlers"]["stderr"]["level"], "WARNING")

    def test_build_logging_config_quiets_fetch_libraries(self):
        cfg = build_logging_config(level="DEBUG")
        self.assertEqual(cfg["loggers"]["urllib3"]["level"], "WARNING")
        self.assertEqual(cfg["loggers"]["requests_cache"]["level"], "WARNING")
        self.assertEqual(cfg["loggers"]["sqlalchemy.engine"]["level"], "WARNING")
        self.assertEqual(cfg["root"]["level"], "DEBUG")

    def test_build_logging_config_custom_quiet_list(self):
        cfg = build_logging_config(quiet_loggers=("redis",))
        self.assertIn("redis", cfg["loggers"])
        self.assertNotIn("urllib3", cfg["loggers"])

    def test_uvicorn_loggers_propagate_to_root(self):
        cfg = build_logging_config()
        for name in ("uvicorn", "uvicorn.error", "uvicorn.access"):
            self.assertEqual(cfg["loggers"][name], {"handlers": [], "propagate": True})

    def test_get_tagged_logger_injects_tag(self):
        handler = _ListHandler()
        logger = get_tagged_logger("nautic.forecast_service", tag="forecast_service")
        base_logger = logger.logger
        base_logger.setLevel(logging.DEBUG)
        base_logger.addHandler(handler)
        base_logger.propagate = False
        try:
            logger.info("Fetched spot samples", extra={"spots": 3})
            record = handler.records[-1]
            self.assertEqual(record.tag, "forecast_service")
            self.assertEqual(record.spots, 3)
        finally:
            base_logger.removeHandler(handler)
            base_logger.propagate = True

    def test_get_tagged_logger_defaults_tag_to_module(self):
        logger = get_tagged_logger("nautic.data_sources.factory")
        self.assertEqual(logger.extra["tag"], "factory")

    def test_ensure_tag_filter_uses_last_name_segment(self):
        record = _record()
        EnsureTagFilter().filter(record)
        self.assertEqual(record.tag, "Engine")

    def test_max_level_filter_blocks_warnings(self):
        f = MaxLevelFilter(logging.INFO)
        self.assertTrue(f.filter(_record(level=logging.INFO)))
        self.assertFalse(f.filter(_record(level=logging.WARNING)))

    def test_setup_logging_override_applies_filters(self):
        root = logging.getLogger()
        orig_handlers = root.handlers[:]
        orig_level = root.level
        urllib3_logger = logging.getLogger("urllib3")
        orig_urllib3_level = urllib3_logger.level
        try:
            logging_utils.setup_logging(level="INFO", job_name="nautic_seed", override_existing=True)
            self.assertTrue(root.handlers)
            self.assertEqual(logging.getLogger("urllib3").level, logging.WARNING)
            self.assertTrue(
                any(
                    any(f.__class__.__name__ == "JobNameFilter" for f in h.filters)
                    for h in root.handlers
                )
            )
        finally:
            root.handlers = orig_handlers
            root.setLevel(orig_level)
            urllib3_logger.setLevel(orig_urllib3_level)
            logging_utils._CONFIGURED = False


class TestMaskDbUrl(unittest.TestCase):
    def test_masks_username_and_password_in_netloc(self):
        masked = mask_db_url("postgresql://nautic:secret@db:5432/nautic")
        self.assertEqual(masked, "postgresql://***:***@db:5432/nautic")

    def test_leaves_sqlite_urls_alone(self):
        self.assertEqual(mask_db_url("sqlite:///./nautic.db"), "sqlite:///./nautic.db")

    def test_masks_only_sensitive_query_params(self):
        url = "postgresql://db/nautic?password=abc&sslmode=require&api_key=xyz"
        masked = mask_db_url(url)
        self.assertEqual(masked, "postgresql://db/nautic?password=%2A%2A%2A&sslmode=require&api_key=%2A%2A%2A")

    def test_masks_username_even_without_password(self):
        self.assertEqual(mask_db_url("postgresql://nautic@db/nautic"), "postgresql://***@db/nautic")

    def test_returns_original_on_unparseable_input(self):
        self.assertEqual(mask_db_url("not a url"), "not a url")


if __name__ == "__main__":
    unittest.main()
