import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import Optional, TextIO

# Default log directory
DEFAULT_LOG_DIR = Path("var/log")

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
LOG_DATEFMT = "%Y-%m-%d %H:%M:%S"

# CLI verbosity (-v count) to logging level.
VERBOSITY_LEVELS = {0: logging.WARNING, 1: logging.INFO, 2: logging.DEBUG}


def get_log_file_path(
        module_name: str,
        log_dir: Optional[Path] = None,
        include_timestamp: bool = True
) -> Path:
    """
    Generates a standardized file path for a log file.

    Parameters
    ----------
    module_name : str
        The name of the module or logger (e.g., "rna_kinetics.scripts.ff_trajectory").
    log_dir : Optional[Path], optional
        The directory where the log file will be saved. Defaults to `DEFAULT_LOG_DIR`.
    include_timestamp : bool, optional
        If True, a timestamp is added to the filename to prevent overwrites.

    Returns
    -------
    Path
        The full path for the log file. The directory is created if missing.
    """
    if log_dir is None:
        log_dir = DEFAULT_LOG_DIR

    log_dir.mkdir(parents=True, exist_ok=True)

    safe_name = module_name.replace(".", "_")

    if include_timestamp:
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        filename = f"{safe_name}_{timestamp}.log"
    else:
        filename = f"{safe_name}.log"

    return log_dir / filename


def verbosity_to_level(verbosity: int, quiet: bool = False) -> int:
    """Map a `-v` count to a logging level; `quiet` forces ERROR."""
    if quiet:
        return logging.ERROR
    return VERBOSITY_LEVELS.get(min(max(verbosity, 0), 2), logging.WARNING)


def setup_logger(
    name: str,
    level: int = logging.INFO,
    log_file: Optional[str] = None,
    log_dir: Optional[Path] = None,
    enable_file_logging: bool = False,
    console_level: Optional[int] = None,
    file_level: Optional[int] = None,
    stream: Optional[TextIO] = None,
) -> logging.Logger:
    """
    Configures and returns a logger with console and optional file handlers.

    Existing handlers on the logger are cleared to prevent duplicate messages.
    Console output goes to stderr by default so that report output on stdout
    stays machine-readable.

    Parameters
    ----------
    name : str
        The name of the logger, typically the package name.
    level : int, optional
        Base logging level for the logger and its handlers.
    log_file : Optional[str], optional
        Explicit log file path. Overrides automatic path generation.
    log_dir : Optional[Path], optional
        Directory for the automatic log file when `log_file` is not given.
    enable_file_logging : bool, optional
        If True and `log_file` is not specified, a timestamped log file is
        created under `log_dir`.
    console_level, file_level : Optional[int], optional
        Per-handler level overrides.
    stream : Optional[TextIO], optional
        Console stream, defaults to `sys.stderr`.

    Returns
    -------
    logging.Logger
        The configured logger instance.
    """
    logger = logging.getLogger(name)
    logger.setLevel(level)
    if logger.hasHandlers():
        logger.handlers.clear()

    formatter = logging.Formatter(LOG_FORMAT, datefmt=LOG_DATEFMT)

    console_handler = logging.StreamHandler(stream if stream is not None else sys.stderr)
    console_handler.setFormatter(formatter)
    console_handler.setLevel(console_level if console_level is not None else level)
    logger.addHandler(console_handler)

    file_handler = None
    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_path, mode="a")
    elif enable_file_logging:
        log_path = get_log_file_path(name, log_dir=log_dir, include_timestamp=True)
        file_handler = logging.FileHandler(log_path, mode="a")
        logger.info("Logging to file: %s", log_path)

    if file_handler:
        file_handler.setFormatter(formatter)
        file_handler.setLevel(file_level if file_level is not None else level)
        logger.addHandler(file_handler)

    return logger
