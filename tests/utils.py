import json
from typing import Any, Dict, List, Optional

from elasdx.models.cluster import AuthMethod, Cluster
from elasdx.models.errors import ClusterOperationError, NotFoundError


def create_valid_cluster(endpoint: str = "https://opensearchtarget:9200",
                         allow_insecure: bool = True,
                         auth_type: AuthMethod = AuthMethod.BASIC_AUTH,
                         details: Optional[Dict] = None):

    if details is None and auth_type == AuthMethod.BASIC_AUTH:
        details = {"username": "admin", "password": "myStrongPassword123!"}

    custom_cluster_config = {
        "endpoint": endpoint,
        "allow_insecure": allow_insecure,
        auth_type.name.lower(): details if details else {}
    }
    return Cluster(custom_cluster_config)


class FakeAdminClient:
    """
    An in-memory stand-in for AdminClient that keeps enough cluster state (templates, indices with a document
    count, aliases) to run whole provision -> reindex -> cleanup cycles. Every call is recorded in `calls`.
    """

    def __init__(self, remote_documents: Optional[Dict[str, int]] = None) -> None:
        self.templates: Dict[str, str] = {}
        self.indices: Dict[str, Dict[str, Any]] = {}
        self.aliases: Dict[str, List[str]] = {}
        self.remote_documents = remote_documents or {}
        self.calls: List[tuple] = []
        self.failures: Dict[str, Exception] = {}

    def _record(self, operation: str, *args) -> None:
        self.calls.append((operation, *args))
        if operation in self.failures:
            raise self.failures[operation]

    def operations(self) -> List[str]:
        return [call[0] for call in self.calls]

    def add_index(self, index: str, documents: int = 0, alias: Optional[str] = None) -> None:
        self.indices[index] = {"settings": {}, "documents": documents}
        if alias is not None:
            self.aliases.setdefault(alias, []).append(index)

    def put_template(self, name: str, body: str, include_type_name: bool = False) -> None:
        self._record("put_template", name, include_type_name)
        self.templates[name] = body

    def get_template(self, name: str) -> Dict[str, Any]:
        self._record("get_template", name)
        if name not in self.templates:
            raise NotFoundError("retrieving index template", name)
        return {name: {"settings": json.loads(self.templates[name]).get("settings", {})}}

    def index_exists(self, index: str) -> bool:
        self._record("index_exists", index)
        return index in self.indices

    def create_index(self, index: str) -> None:
        self._record("create_index", index)
        if index in self.indices:
            raise ClusterOperationError("creating index", index, RuntimeError("resource_already_exists_exception"))
        self.indices[index] = {"settings": {}, "documents": 0}

    def delete_index(self, index: str) -> None:
        self._record("delete_index", index)
        if index not in self.indices:
            raise ClusterOperationError("deleting index", index, RuntimeError("index_not_found_exception"))
        del self.indices[index]
        for members in self.aliases.values():
            if index in members:
                members.remove(index)

    def put_settings(self, index: str, settings: Dict[str, Any]) -> None:
        self._record("put_settings", index, settings)
        self.indices[index]["settings"].update(settings)

    def index_names(self) -> List[str]:
        self._record("index_names")
        return list(self.indices)

    def get_alias(self, alias: str) -> List[str]:
        self._record("get_alias", alias)
        if not self.aliases.get(alias):
            raise NotFoundError("looking up alias", alias)
        return sorted(self.aliases[alias])

    def update_aliases(self, actions: List[Dict[str, Dict[str, str]]]) -> None:
        self._record("update_aliases", actions)
        for action in actions:
            for kind, details in action.items():
                members = self.aliases.setdefault(details["alias"], [])
                if kind == "remove":
                    members.remove(details["index"])
                elif details["index"] not in members:
                    members.append(details["index"])

    def reindex(self, source_index: str, dest_index: str, version_external: bool = False, remote=None) -> int:
        self._record("reindex", source_index, dest_index, version_external, remote)
        if remote is not None:
            total = self.remote_documents.get(source_index, 0)
        else:
            total = self.indices[source_index]["documents"]
        self.indices[dest_index]["documents"] += total
        return total
