import logging
import sys
import os
from pathlib import Path


def setup_logging(log_level: str = "INFO") -> logging.Logger:
    """
    Set up route-level logging: stdout, plus logs/app.log outside serverless runtimes
    """
    is_serverless = os.getenv("VERCEL") or os.getenv("AWS_LAMBDA_FUNCTION_NAME") or os.getenv("FUNCTIONS_WORKER_RUNTIME")

    handlers = [logging.StreamHandler(sys.stdout)]

    # Only add file handler in non-serverless, non-test environments
    if not is_serverless and os.getenv("NODE_ENV") != "test":
        try:
            log_dir = Path("logs")
            log_dir.mkdir(exist_ok=True)
            handlers.append(logging.FileHandler(log_dir / "app.log"))
        except (OSError, PermissionError):
            # If we can't create the logs directory, just use stdout
            pass

    logger = logging.getLogger("smart_tdah")
    logger.setLevel(getattr(logging, log_level.upper(), logging.INFO))
    formatter = logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")
    for handler in handlers:
        handler.setFormatter(formatter)
        logger.addHandler(handler)
    logger.propagate = False
    return logger


# Create a global logger instance
logger = setup_logging(os.getenv("LOG_LEVEL", "INFO"))
