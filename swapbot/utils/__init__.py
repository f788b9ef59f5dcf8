from .idgen import TaskIdGenerator
from .logging import get_logger, setup_logging

__all__ = ["TaskIdGenerator", "get_logger", "setup_logging"]
