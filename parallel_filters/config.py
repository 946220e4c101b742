"""Default settings shared by the engine, the CLI and the benchmark."""
import logging
import multiprocessing

# ===== EXECUTION DEFAULTS =====
DEFAULT_WORKERS = multiprocessing.cpu_count()
DEFAULT_STRATEGY = "static"
DEFAULT_BACKEND = "threads"
DEFAULT_CHUNK_ROWS = 1

STRATEGIES = ("static", "dynamic")
BACKENDS = ("threads", "processes")

# ===== CLI DEFAULTS =====
DEFAULT_OUTPUT = "output.png"

LOG_FORMAT = "%(asctime)s - %(name)-25s - %(levelname)-8s - %(message)s"
LOG_DATEFMT = "%H:%M:%S"


def configure_logging(verbose=False):
    """Install the root handler. Only entry points call this, never the library."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format=LOG_FORMAT,
        datefmt=LOG_DATEFMT,
    )
