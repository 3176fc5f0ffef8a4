import logging
import sys

def setup_logging():
    """
    Configure logging for the application.

    Logs go to stdout with timestamp, level and logger name so the output
    can be collected by the container runtime.
    """
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
        handlers=[logging.StreamHandler(sys.stdout)]
    )

    # Reduce SQLAlchemy noise in logs
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)

    return logging.getLogger("kyc_backoffice")


# Create global logger instance
logger = setup_logging()
