"""Domain initialization and configuration."""

from protean.domain import Domain

from orderease.config import get_settings
from orderease.utils.logging import configure_logging, get_logger

configure_logging(log_dir="logs", log_file_prefix="orderease", sql_level=get_settings().database.log_level)

logger = get_logger(__name__)

# Domain Composition Root
orderease = Domain(name="orderease")
