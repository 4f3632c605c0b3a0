import logging
import os
import sys
import pytest


def _ensure_project_root_on_sys_path() -> None:
    here = os.path.dirname(__file__)
    project_root = os.path.abspath(os.path.join(here, "..", ".."))
    if project_root not in sys.path:
        sys.path.insert(0, project_root)


_ensure_project_root_on_sys_path()


@pytest.fixture(autouse=True)
def _clear_jellyfin_env():
    """Ensure JELLYFIN_* credentials from the developer's shell never leak into tests."""
    backup = {k: v for k, v in os.environ.items() if k.startswith('JELLYFIN_')}
    for k in backup:
        os.environ.pop(k, None)
    try:
        yield
    finally:
        for k in [k for k in os.environ if k.startswith('JELLYFIN_')]:
            os.environ.pop(k, None)
        os.environ.update(backup)


@pytest.fixture(autouse=True)
def _restore_package_logger():
    """Commands under test install their own handlers on the package logger."""
    logger = logging.getLogger('jellyfin_mcp')
    handlers, level, propagate = list(logger.handlers), logger.level, logger.propagate
    try:
        yield
    finally:
        logger.handlers[:] = handlers
        logger.setLevel(level)
        logger.propagate = propagate
