import logging
import sys
from importlib.metadata import PackageNotFoundError, version as package_version
from typing import Optional

import click

import elasdx.middleware.cleanup as cleanup_
import elasdx.middleware.provision as provision_
import elasdx.middleware.reindex as reindex_
from elasdx.environment import Environment, cluster_config_from_options
from elasdx.models.admin_client import AdminClient
from elasdx.models.cluster import DEFAULT_ENDPOINT
from elasdx.models.reporter import ConsoleReporter, Reporter
from elasdx.models.utils import ExitCode, alias_from_path, is_template_file

logger = logging.getLogger(__name__)

TEMPLATE_PATH_HELP = "This command requires a json index template file path or a directory of json index templates"

# ################### UNIVERSAL ####################


def get_version_str() -> str:
    try:
        return f"elasdx version {package_version('elasdx')}"
    except PackageNotFoundError:
        return "elasdx version unknown"


class Context(object):
    def __init__(self, config_file: Optional[str], url: Optional[str], username: Optional[str],
                 password: Optional[str], skip_verify: bool, reporter: Optional[Reporter] = None) -> None:
        self.config_file = config_file
        self.target_overrides = cluster_config_from_options(url, username, password, skip_verify or None)
        self.reporter = reporter if reporter is not None else ConsoleReporter(color=sys.stdout.isatty())
        self._env: Optional[Environment] = None

    def environment(self, source_overrides=None) -> Environment:
        if self._env is None:
            try:
                self._env = Environment(config_file=self.config_file, target_overrides=self.target_overrides,
                                        source_overrides=source_overrides)
            except Exception as e:
                raise click.ClickException(str(e))
        return self._env

    def client(self, source_overrides=None) -> AdminClient:
        return AdminClient(self.environment(source_overrides).target_cluster)


def require_template_path(ctx: click.Context, path: Optional[str]) -> str:
    if not path:
        click.echo(f"{TEMPLATE_PATH_HELP}\n")
        click.echo(ctx.get_help())
        ctx.exit(ExitCode.FAILURE.value)
    return path


@click.group(invoke_without_command=True)
@click.option("--url", envvar="ELASDX_URL", help=f"ElasticSearch URL to connect to [default: {DEFAULT_ENDPOINT}]")
@click.option("--username", envvar="ELASDX_USERNAME", help="ElasticSearch basic auth username")
@click.option("--password", envvar="ELASDX_PASSWORD", help="ElasticSearch basic auth password")
@click.option("--skip-verify", envvar="ELASDX_SKIP_VERIFY", is_flag=True, help="Skip TLS verification")
@click.option("--config-file", envvar="ELASDX_CONFIG_FILE", type=click.Path(exists=True, dir_okay=False),
              help="Optional YAML file defining target_cluster and source_cluster")
@click.option('-v', '--verbose', count=True, help="Verbosity level. Default is warn, -v is info, -vv is debug.")
@click.option("--version", is_flag=True, is_eager=True, help="Show the elasdx version.")
@click.pass_context
def cli(ctx, url, username, password, skip_verify, config_file, verbose, version):
    """An ElasticSearch index template updating, reindexing and cleanup tool"""
    if version:
        click.echo(get_version_str())
        ctx.exit(ExitCode.SUCCESS.value)

    if ctx.invoked_subcommand is None:
        click.echo("Error: Missing command.", err=True)
        click.echo(cli.get_help(ctx))
        ctx.exit(2)

    logging.basicConfig(level=logging.WARN - (10 * verbose))
    logger.info(f"Logging set to {logging.getLevelName(logger.getEffectiveLevel())}")
    if ctx.obj is None:
        ctx.obj = Context(config_file, url, username, password, skip_verify)


# ##################### REINDEX ###################


@cli.command(name="reindex")
@click.argument("path", required=False)
@click.option("--dest-index",
              help="Optionally specify destination index, otherwise one will be generated and created for you.")
@click.option("--bulk-indexing", is_flag=True,
              help="Set refresh_interval to -1 and number_of_replicas to 0 when reindexing and revert afterwards.")
@click.option("--version-external", is_flag=True,
              help="Set version_type to external. This will only index documents if they don't exist or the source "
                   "doc is at a higher version.")
@click.option("--no-update-alias", is_flag=True,
              help="Don't update the index alias. This will also not revert the refresh_interval and "
                   "number_of_replicas if --bulk-indexing is set.")
@click.option("--include-type-name", is_flag=True,
              help="Pass include_type_name=true on the put index template request (used for ES6->7 upgrades).")
@click.option("--reindex-host-allocation", help="Optional target host for the reindex to happen on. eg. 'es-reindex-*'")
@click.option("--dest-host-allocation", help="Optional target host once the reindex is complete. eg. 'es-data-*'")
@click.option("--extra-suffix",
              help="Optional extra suffix to add to the index name (after the date). Ignored if --dest-index is set.")
@click.option("--remote-url", help="Reindex from the index named after the template on this remote cluster.")
@click.option("--remote-username", help="Basic auth username for the remote cluster.")
@click.option("--remote-password", help="Basic auth password for the remote cluster.")
@click.pass_context
def reindex_cmd(ctx, path, dest_index, bulk_indexing, version_external, no_update_alias, include_type_name,
                reindex_host_allocation, dest_host_allocation, extra_suffix, remote_url, remote_username,
                remote_password):
    """Reindex from the current index of an alias to a new index created from an index template"""
    path = require_template_path(ctx, path)
    is_single = is_template_file(path)
    if not is_single and dest_index:
        raise click.UsageError("--dest-index not supported with multiple indexes, please only specify one index "
                               "template .json.", ctx)

    obj: Context = ctx.obj
    env = obj.environment(cluster_config_from_options(remote_url, remote_username, remote_password))
    client = AdminClient(env.target_cluster)
    reporter = obj.reporter
    options = dict(version_external=version_external, no_update_alias=no_update_alias, bulk_indexing=bulk_indexing,
                   remote=env.source_cluster)

    if is_single:
        alias_to_new_index = {
            alias_from_path(path): provision_.update_template_and_create_index(
                client, path, reporter, dest_index=dest_index, bulk_indexing=bulk_indexing,
                include_type_name=include_type_name, extra_suffix=extra_suffix)
        }
    else:
        alias_to_new_index = provision_.update_templates_and_create_indices(
            client, path, reporter, bulk_indexing=bulk_indexing, include_type_name=include_type_name,
            extra_suffix=extra_suffix)

    if reindex_host_allocation:
        for new_index in alias_to_new_index.values():
            reindex_.update_host_allocation(client, new_index, reindex_host_allocation, reporter)

    if is_single:
        alias, new_index = next(iter(alias_to_new_index.items()))
        reindex_.reindex_one(client, alias, new_index, reporter, **options)
    else:
        reindex_.reindex_all(client, alias_to_new_index, reporter, **options)

    if dest_host_allocation:
        for new_index in alias_to_new_index.values():
            reindex_.update_host_allocation(client, new_index, dest_host_allocation, reporter)


# ##################### CLEANUP ###################


@cli.command(name="cleanup")
@click.argument("path", required=False)
@click.option("--max-history", type=click.IntRange(min=0), default=cleanup_.DEFAULT_MAX_HISTORY, show_default=True,
              help="Maximum number of index versions to keep (including current version)")
@click.pass_context
def cleanup_cmd(ctx, path, max_history):
    """Clean up old indices leaving only the specified maximum index history"""
    path = require_template_path(ctx, path)
    obj: Context = ctx.obj
    client = obj.client()

    if is_template_file(path):
        cleanup_.cleanup_one(client, alias_from_path(path), max_history, obj.reporter)
    else:
        cleanup_.cleanup_all(client, path, max_history, obj.reporter)


# ##################### ALIASES ###################


@cli.command(name="update-alias")
@click.option("--alias", required=True, help="Name of the alias.")
@click.option("--dest-index", required=True, help="Name of the destination index.")
@click.pass_obj
def update_alias_cmd(obj: Context, alias, dest_index):
    """Swap an index alias to another index"""
    reindex_.update_alias(obj.client(), alias, dest_index, obj.reporter)


def main():
    try:
        cli()
    except Exception as e:
        # Verbose mode sets logging level to INFO (20) or DEBUG (10), default is WARN (30)
        root_logger = logging.getLogger()
        if root_logger.getEffectiveLevel() <= logging.INFO:
            import traceback
            click.echo("Error occurred with verbose mode enabled, showing full traceback:", err=True)
            click.echo(traceback.format_exc(), err=True)
        else:
            click.echo(f"Error: {str(e)}", err=True)
        sys.exit(ExitCode.FAILURE.value)


if __name__ == "__main__":
    main()
