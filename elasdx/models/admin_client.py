import json
import logging
from typing import Any, Dict, List, Optional

import requests
from requests.exceptions import HTTPError, RequestException

from elasdx.models.cluster import Cluster, HttpMethod
from elasdx.models.errors import ClusterOperationError, NotFoundError

logger = logging.getLogger(__name__)

JSON_HEADERS = {'Content-Type': 'application/json'}

REMOTE_SOCKET_TIMEOUT = "5m"
REMOTE_CONNECT_TIMEOUT = "30s"


def _is_not_found(e: RequestException) -> bool:
    return isinstance(e, HTTPError) and e.response is not None and e.response.status_code == 404


class AdminClient:
    """
    The administrative endpoints of a cluster, as used for template, index and alias management.

    Every call either returns the decoded response or raises: NotFoundError for the lookups where a 404 is an
    expected answer, ClusterOperationError (naming the operation and its target) for anything else.
    """

    def __init__(self, cluster: Cluster, session: Optional[requests.Session] = None) -> None:
        self.cluster = cluster
        self.session = session if session is not None else requests.Session()

    def _call(self, operation: str, target: str, path: str, method: HttpMethod = HttpMethod.GET,
              body: Any = None, params: Optional[Dict[str, str]] = None,
              not_found_ok: bool = False) -> requests.Response:
        headers = None
        if body is not None:
            headers = JSON_HEADERS
            if not isinstance(body, (str, bytes)):
                body = json.dumps(body)
        try:
            return self.cluster.call_api(path, method=method, data=body, headers=headers,
                                         session=self.session, params=params or {})
        except RequestException as e:
            if not_found_ok and _is_not_found(e):
                raise NotFoundError(operation, target) from e
            raise ClusterOperationError(operation, target, e) from e

    def _check_acknowledged(self, operation: str, target: str, response: requests.Response) -> None:
        try:
            acknowledged = response.json().get("acknowledged", True)
        except ValueError:
            return
        if not acknowledged:
            logger.warning(f"{operation} {target} not acknowledged")

    def put_template(self, name: str, body: str, include_type_name: bool = False) -> None:
        params = {"include_type_name": "true"} if include_type_name else None
        r = self._call("updating index template", name, f"/_template/{name}", HttpMethod.PUT, body=body,
                       params=params)
        self._check_acknowledged("updating index template", name, r)

    def get_template(self, name: str) -> Dict[str, Any]:
        r = self._call("retrieving index template", name, f"/_template/{name}", not_found_ok=True)
        return r.json()

    def index_exists(self, index: str) -> bool:
        try:
            self._call("checking existence of index", index, f"/{index}", HttpMethod.HEAD, not_found_ok=True)
        except NotFoundError:
            return False
        return True

    def create_index(self, index: str) -> None:
        r = self._call("creating index", index, f"/{index}", HttpMethod.PUT)
        self._check_acknowledged("creating index", index, r)

    def delete_index(self, index: str) -> None:
        r = self._call("deleting index", index, f"/{index}", HttpMethod.DELETE)
        self._check_acknowledged("deleting index", index, r)

    def put_settings(self, index: str, settings: Dict[str, Any]) -> None:
        r = self._call("updating settings for index", index, f"/{index}/_settings", HttpMethod.PUT, body=settings)
        self._check_acknowledged("updating settings for index", index, r)

    def index_names(self) -> List[str]:
        r = self._call("listing", "index names", "/_cat/indices", params={"format": "json", "h": "index"})
        return [entry["index"] for entry in r.json()]

    def get_alias(self, alias: str) -> List[str]:
        """Names of the indices behind the alias, sorted. Raises NotFoundError if the alias doesn't exist."""
        r = self._call("looking up alias", alias, f"/_alias/{alias}", not_found_ok=True)
        return sorted(index for index, details in r.json().items() if alias in details.get("aliases", {}))

    def update_aliases(self, actions: List[Dict[str, Dict[str, str]]]) -> None:
        """Applies all alias actions in one request, which the cluster performs atomically."""
        target = ", ".join(sorted({details["alias"] for action in actions for details in action.values()}))
        r = self._call("updating alias", target, "/_aliases", HttpMethod.POST, body={"actions": actions})
        self._check_acknowledged("updating alias", target, r)

    def reindex(self, source_index: str, dest_index: str, version_external: bool = False,
                remote: Optional[Cluster] = None) -> int:
        """
        Copies every document of source_index into dest_index and returns how many were processed.
        Version conflicts don't stop the copy. With a remote cluster, source_index is read from that cluster.
        """
        source: Dict[str, Any] = {"index": source_index}
        if remote is not None:
            source["remote"] = remote.remote_source(REMOTE_SOCKET_TIMEOUT, REMOTE_CONNECT_TIMEOUT)
        dest: Dict[str, Any] = {"index": dest_index}
        if version_external:
            dest["version_type"] = "external"
        body = {"conflicts": "proceed", "source": source, "dest": dest}

        r = self._call("reindexing from", f"{source_index} to {dest_index}", "/_reindex", HttpMethod.POST,
                       body=body, params={"refresh": "true", "wait_for_completion": "true"})
        result = r.json()
        failures = result.get("failures") or []
        if failures:
            raise ClusterOperationError("reindexing from", f"{source_index} to {dest_index}",
                                        RuntimeError(f"{len(failures)} failures, first: {failures[0]}"))
        return result.get("total", 0)
