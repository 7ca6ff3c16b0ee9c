"""Root logger setup for the desktop tool (the modules are top-level, no package)."""
import logging
import sys

from config import LOGGING, log_level, settings_dir


def setup_logging(level=None, log_file=None, to_settings_dir=False):
    """
    Send every module's log records to stdout and, optionally, to a file.

    level defaults to config.log_level(). With to_settings_dir the file is
    boxblank.log in the settings directory unless log_file is given.
    """
    root = logging.getLogger()
    level = level if level is not None else log_level()
    root.setLevel(level)

    # Calling this twice must not duplicate output
    for h in root.handlers[:]:
        root.removeHandler(h)

    formatter = logging.Formatter(LOGGING["format"], datefmt=LOGGING["datefmt"])
    handlers = [logging.StreamHandler(sys.stdout)]

    if log_file is None and to_settings_dir:
        directory = settings_dir()
        directory.mkdir(parents=True, exist_ok=True)
        log_file = directory / LOGGING["file_name"]
    if log_file:
        handlers.append(logging.FileHandler(log_file, mode="w", encoding="utf-8"))

    for h in handlers:
        h.setFormatter(formatter)
        root.addHandler(h)

    logging.getLogger(__name__).info("Logging at %s%s", logging.getLevelName(root.level),
                                     f" to {log_file}" if log_file else "")
    return root
