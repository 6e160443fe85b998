# src/neuroshell/core/discovery.py
import importlib
import inspect
import logging
from pathlib import Path
from typing import Dict, Optional, Type

from neuroshell.core.handlers.base import Command
from neuroshell.core.utils.path_utils import PathUtils

logger = logging.getLogger(__name__)

HANDLERS_PACKAGE = "neuroshell.core.handlers"


def _module_path(handlers_dir: Path, file_path: Path, base_module_path: str) -> str:
    parts = list(file_path.relative_to(handlers_dir).parts)
    parts[-1] = file_path.stem
    return ".".join([base_module_path] + parts)


def discover_commands(
        handlers_dir: Optional[Path] = None,
        base_module_path: str = HANDLERS_PACKAGE,
) -> Dict[str, Type[Command]]:
    """
    Imports every `*_handler.py` module below the handlers directory and
    collects the concrete Command subclasses each one defines.

    Returns:
        A map of command name to Command class, in file order.
    """
    handlers_dir = handlers_dir or PathUtils.get_handlers_dir()
    discovered: Dict[str, Type[Command]] = {}
    logger.debug("Scanning for handlers in: '%s'", handlers_dir)

    if not handlers_dir.is_dir():
        logger.warning("Handlers directory not found, skipping: %s", handlers_dir)
        return discovered

    for file_path in sorted(handlers_dir.glob("**/*_handler.py")):
        module_name = _module_path(handlers_dir, file_path, base_module_path)
        try:
            module = importlib.import_module(module_name)
        except Exception as e:
            logger.error("Failed to load handler module %s: %s", file_path.name, e, exc_info=True)
            continue

        for _, obj in inspect.getmembers(module, inspect.isclass):
            if (
                issubclass(obj, Command)
                and obj is not Command
                and not inspect.isabstract(obj)
                and obj.__module__ == module.__name__
            ):
                discovered[obj.name] = obj
                logger.debug("Discovered command '%s' in %s", obj.name, module_name)

    return discovered
