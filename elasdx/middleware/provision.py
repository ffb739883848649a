from datetime import datetime
import logging
from typing import Dict, Optional

from elasdx.models.admin_client import AdminClient
from elasdx.models.errors import ElasdxError, ProvisioningError
from elasdx.models.reporter import Action, Category, Reporter
from elasdx.models.template import BULK_INDEXING_SETTINGS, TemplateDefinition
from elasdx.models.utils import alias_from_path, generate_index_name, list_template_files

logger = logging.getLogger(__name__)


def update_template_and_create_index(client: AdminClient, file_path: str, reporter: Reporter,
                                     dest_index: Optional[str] = None, bulk_indexing: bool = False,
                                     include_type_name: bool = False, extra_suffix: Optional[str] = None,
                                     now: Optional[datetime] = None) -> str:
    """
    Pushes the template in file_path to the cluster and creates the index that will hold its documents.

    :param dest_index: Use this index name instead of a generated, time-stamped one. extra_suffix is ignored.
    :param bulk_indexing: Disable refreshes and replicas on the new index until it's been reindexed.
    :param include_type_name: Pass include_type_name=true when updating the template.
    :param extra_suffix: Appended to generated index names, after the timestamp.
    :return: the name of the new index
    """
    template = TemplateDefinition.from_file(file_path)

    client.put_template(template.name, template.body, include_type_name=include_type_name)
    logger.info(f"Template {template.name} applies to index patterns {template.index_patterns}")
    reporter.record(Category.TEMPLATE, Action.UPDATED, template.name)

    index = dest_index or generate_index_name(template.name, now=now, extra_suffix=extra_suffix)
    if client.index_exists(index):
        logger.info(f"Index {index} already exists, not creating it")
        reporter.record(Category.INDEX, Action.EXISTS, index)
    else:
        client.create_index(index)
        reporter.record(Category.INDEX, Action.CREATED, index)

    if bulk_indexing:
        client.put_settings(index, BULK_INDEXING_SETTINGS)
        reporter.record(Category.SETTINGS, Action.UPDATED, f"refresh_interval=-1 number_of_replicas=0 on {index}")

    return index


def update_templates_and_create_indices(client: AdminClient, templates_dir: str, reporter: Reporter,
                                        bulk_indexing: bool = False, include_type_name: bool = False,
                                        extra_suffix: Optional[str] = None) -> Dict[str, str]:
    """Provisions every template in templates_dir and returns a mapping of alias to new index."""
    try:
        files = list_template_files(templates_dir)
    except OSError as e:
        raise ProvisioningError(templates_dir, e) from e
    logger.info(f"Found {len(files)} index templates in {templates_dir}")

    alias_to_new_index: Dict[str, str] = {}
    for file_path in files:
        try:
            new_index = update_template_and_create_index(client, file_path, reporter,
                                                         bulk_indexing=bulk_indexing,
                                                         include_type_name=include_type_name,
                                                         extra_suffix=extra_suffix)
        except ElasdxError as e:
            raise ProvisioningError(file_path, e) from e
        alias_to_new_index[alias_from_path(file_path)] = new_index

    return alias_to_new_index
