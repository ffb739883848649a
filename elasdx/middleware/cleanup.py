import logging
from typing import Dict, List

from elasdx.models.admin_client import AdminClient
from elasdx.models.errors import CleanupError, ElasdxError
from elasdx.models.reporter import Action, Category, Reporter
from elasdx.models.utils import alias_from_path, list_template_files

logger = logging.getLogger(__name__)

DEFAULT_MAX_HISTORY = 2


def indices_to_delete(index_names: List[str], name: str, max_history: int) -> List[str]:
    """
    The indices prefixed by name that fall outside the newest max_history, oldest first. Index names end in a
    timestamp, so sorting them by name sorts them by age.

    Matching is a plain prefix match: the indices of a template named "logs-audit" also match "logs"
    and are counted in its history.
    """
    if max_history < 0:
        raise ValueError(f"max_history must be zero or more, got {max_history}")
    matches = sorted(index for index in index_names if index.startswith(name))
    return matches[:max(0, len(matches) - max_history)]


def cleanup_one(client: AdminClient, name: str, max_history: int, reporter: Reporter) -> List[str]:
    """Deletes all but the newest max_history indices of the template called name. Returns what was deleted."""
    to_delete = indices_to_delete(client.index_names(), name, max_history)
    logger.info(f"Deleting {len(to_delete)} indices for {name}, keeping up to {max_history}")

    for index in to_delete:
        client.delete_index(index)
        reporter.record(Category.INDEX, Action.DELETED, index)
    return to_delete


def cleanup_all(client: AdminClient, templates_dir: str, max_history: int, reporter: Reporter) -> Dict[str, List[str]]:
    try:
        files = list_template_files(templates_dir)
    except OSError as e:
        raise CleanupError(templates_dir, e) from e

    deleted: Dict[str, List[str]] = {}
    for file_path in files:
        name = alias_from_path(file_path)
        try:
            deleted[name] = cleanup_one(client, name, max_history, reporter)
        except ElasdxError as e:
            raise CleanupError(name, e) from e
    return deleted
