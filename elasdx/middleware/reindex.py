import logging
from typing import Dict, List, Optional

from elasdx.models.admin_client import AdminClient
from elasdx.models.cluster import Cluster
from elasdx.models.errors import ClusterOperationError, ElasdxError, NotFoundError, ReindexError
from elasdx.models.reporter import Action, Category, Reporter
from elasdx.models.template import TemplateDefinition

logger = logging.getLogger(__name__)

HOST_ALLOCATION_SETTING = "index.routing.allocation.require._name"


def current_indices(client: AdminClient, alias: str) -> Optional[List[str]]:
    """The indices currently behind the alias, or None when the alias doesn't exist yet."""
    try:
        return client.get_alias(alias)
    except NotFoundError:
        logger.info(f"Alias {alias} not found, provisioning from scratch")
        return None


def restore_settings(client: AdminClient, alias: str, index: str, reporter: Reporter) -> None:
    """Resets refresh_interval and number_of_replicas on index to the template's values or the cluster defaults."""
    try:
        response = client.get_template(alias)
    except NotFoundError as e:
        raise ClusterOperationError("retrieving index template", alias, e) from e
    settings = TemplateDefinition.settings_from_response(alias, response)
    client.put_settings(index, settings.steady_state())

    refresh_interval = settings.refresh_interval or "default"
    replicas = settings.number_of_replicas or "default"
    reporter.record(Category.SETTINGS, Action.UPDATED,
                    f"refresh_interval={refresh_interval} number_of_replicas={replicas} on {index}")


def swap_alias(client: AdminClient, alias: str, new_index: str, old_indices: Optional[List[str]],
               reporter: Reporter) -> None:
    if old_indices is None:
        logger.info(f"Alias {alias} doesn't exist yet, nothing to remove")
        old_indices = []
    to_remove = [index for index in old_indices if index != new_index]

    actions = [{"remove": {"index": index, "alias": alias}} for index in to_remove]
    actions.append({"add": {"index": new_index, "alias": alias}})
    client.update_aliases(actions)

    for index in to_remove:
        reporter.record(Category.ALIAS, Action.REMOVED, f"{index} from {alias}")
    reporter.record(Category.ALIAS, Action.ADDED, f"{new_index} to {alias}")


def reindex_one(client: AdminClient, alias: str, new_index: str, reporter: Reporter,
                version_external: bool = False, no_update_alias: bool = False, bulk_indexing: bool = False,
                remote: Optional[Cluster] = None) -> None:
    """
    Copies the documents currently behind alias into new_index, then points the alias at new_index.

    :param version_external: Only write documents that are missing from new_index or at a higher version.
    :param no_update_alias: Leave the alias, and the bulk indexing settings, as they are.
    :param bulk_indexing: new_index was provisioned for bulk indexing and needs its settings restored.
    :param remote: Copy from the index named after the alias on this cluster instead of the local alias.
    """
    old_indices = current_indices(client, alias)

    if remote is not None:
        sources = [alias]
    else:
        sources = [index for index in old_indices or [] if index != new_index]

    for source in sources:
        total = client.reindex(source, new_index, version_external=version_external, remote=remote)
        origin = f"{remote.endpoint}/{source}" if remote is not None else source
        reporter.record(Category.DOCUMENTS, Action.REINDEXED, f"{total} from {origin} to {new_index}")

    if no_update_alias:
        logger.info(f"Not updating alias {alias} or restoring settings on {new_index}")
        return

    if bulk_indexing:
        restore_settings(client, alias, new_index, reporter)

    swap_alias(client, alias, new_index, old_indices, reporter)


def reindex_all(client: AdminClient, alias_to_new_index: Dict[str, str], reporter: Reporter,
                version_external: bool = False, no_update_alias: bool = False, bulk_indexing: bool = False,
                remote: Optional[Cluster] = None) -> None:
    for alias, new_index in alias_to_new_index.items():
        try:
            reindex_one(client, alias, new_index, reporter, version_external=version_external,
                        no_update_alias=no_update_alias, bulk_indexing=bulk_indexing, remote=remote)
        except ElasdxError as e:
            raise ReindexError(alias, new_index, e) from e


def update_alias(client: AdminClient, alias: str, dest_index: str, reporter: Reporter) -> None:
    """Points alias at dest_index only, removing it from whatever indices it currently covers."""
    if not client.index_exists(dest_index):
        raise ClusterOperationError("adding to alias", dest_index, RuntimeError(f"index {dest_index} does not exist"))
    swap_alias(client, alias, dest_index, current_indices(client, alias), reporter)


def update_host_allocation(client: AdminClient, index: str, host_pattern: str, reporter: Reporter) -> None:
    """Requires the shards of index to live on nodes whose name matches host_pattern, e.g. 'es-data-*'."""
    client.put_settings(index, {HOST_ALLOCATION_SETTING: host_pattern})
    reporter.record(Category.SETTINGS, Action.UPDATED, f"{HOST_ALLOCATION_SETTING}={host_pattern} on {index}")
