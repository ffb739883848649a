import logging
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml
from cerberus import Validator

from elasdx.models.cluster import DEFAULT_ENDPOINT, Cluster

logger = logging.getLogger(__name__)


SCHEMA = {
    "target_cluster": {"type": "dict", "required": False},
    "source_cluster": {"type": "dict", "required": False},
}


def cluster_config_from_options(url: Optional[str], username: Optional[str] = None,
                                password: Optional[str] = None,
                                skip_verify: Optional[bool] = None) -> Optional[Dict[str, Any]]:
    """
    Builds a cluster config dict out of command line style connection options. Returns None if no option is set.
    """
    if url is None and username is None and password is None and skip_verify is None:
        return None
    config: Dict[str, Any] = {}
    if url is not None:
        config["endpoint"] = url
    if skip_verify is not None:
        config["allow_insecure"] = skip_verify
    if username:
        config["basic_auth"] = {"username": username, "password": password or ""}
    return config


def _merge(base: Optional[Dict[str, Any]], overrides: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    if base is None or overrides is None:
        remaining = base if base is not None else overrides
        return dict(remaining) if remaining is not None else None
    merged = dict(base)
    if "basic_auth" in overrides:
        merged.pop("no_auth", None)
    merged.update(overrides)
    return merged


class Environment:
    """
    The clusters a run talks to: the target cluster that receives templates, indices and aliases, and optionally
    a source cluster to reindex documents from remotely.
    """
    target_cluster: Cluster
    source_cluster: Optional[Cluster] = None
    config: Dict

    def __init__(self, config: Optional[Dict] = None, config_file: Optional[Union[str, Path]] = None,
                 target_overrides: Optional[Dict[str, Any]] = None,
                 source_overrides: Optional[Dict[str, Any]] = None):
        """
        :param config: Direct configuration object (overrides config_file).
        :param config_file: Path to the YAML config file.
        :param target_overrides: Cluster options taking precedence over the target_cluster section.
        :param source_overrides: Cluster options taking precedence over the source_cluster section.
        """
        if isinstance(config, Dict):
            self.config = config
            logger.info("Using provided config")
        elif config_file:
            logger.info(f"Loading config file: {config_file}")
            with open(config_file) as f:
                self.config = yaml.safe_load(f) or {}
        else:
            self.config = {}

        v = Validator(SCHEMA)
        if not v.validate(self.config):
            logger.error(f"Config file validation errors: {v.errors}")
            raise ValueError("Invalid config file", v.errors)

        target_config = _merge(self.config.get("target_cluster"), target_overrides) or {}
        target_config.setdefault("endpoint", DEFAULT_ENDPOINT)
        if "basic_auth" not in target_config:
            target_config.setdefault("no_auth", None)
        self.target_cluster = Cluster(config=target_config)
        logger.info(f"Target cluster initialized: {self.target_cluster.endpoint}")

        source_config = _merge(self.config.get("source_cluster"), source_overrides)
        if source_config is not None:
            if "basic_auth" not in source_config:
                source_config.setdefault("no_auth", None)
            self.source_cluster = Cluster(config=source_config)
            logger.info(f"Source cluster initialized: {self.source_cluster.endpoint}")
        else:
            logger.info("No source cluster provided")
