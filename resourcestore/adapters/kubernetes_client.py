"""
Adapter for the Kubernetes Python client.

Maps StoredObject onto ConfigMaps and Opaque Secrets in one namespace.
Secret payloads are written through ``string_data`` and base64-decoded on
read so callers always see text.
"""
import base64
import binascii
import logging
from typing import Dict, List, Optional

from kubernetes import client, config
from kubernetes.client.exceptions import ApiException
from urllib3.exceptions import HTTPError

from resourcestore.adapters.base import (
    KIND_CONFIG_MAP,
    KIND_SECRET,
    ClientCallError,
    MetadataObjectClient,
    ObjectExistsError,
    ObjectNotFoundError,
    StoredObject,
)

logger = logging.getLogger(__name__)


def _translate(e: Exception, operation: str, kind: str, name: str) -> Exception:
    status = getattr(e, "status", None)
    if status == 404:
        return ObjectNotFoundError(f"{kind} {name} not found", original_error=e)
    if status == 409:
        return ObjectExistsError(f"{kind} {name} already exists", original_error=e)
    return ClientCallError(f"failed to {operation} {kind} {name}: {e}", original_error=e)


class KubernetesMetadataClient(MetadataObjectClient):
    """MetadataObjectClient backed by CoreV1Api."""

    def __init__(self, api: client.CoreV1Api, namespace: str):
        self.api = api
        self.namespace = namespace

    @classmethod
    def from_config(cls, namespace: str, kubeconfig: Optional[str] = None) -> "KubernetesMetadataClient":
        """
        Build a client from a kubeconfig file or the in-cluster service account.

        Args:
            namespace: Namespace every object lives in
            kubeconfig: Path to a kubeconfig; in-cluster config when None
        """
        if kubeconfig:
            config.load_kube_config(config_file=kubeconfig)
        else:
            config.load_incluster_config()
        return cls(client.CoreV1Api(), namespace)

    def _body(self, obj: StoredObject):
        metadata = client.V1ObjectMeta(
            name=obj.name,
            namespace=self.namespace,
            labels=dict(obj.labels),
            annotations=dict(obj.annotations) or None,
        )
        if obj.kind == KIND_SECRET:
            return client.V1Secret(metadata=metadata, type="Opaque", string_data=dict(obj.data))
        return client.V1ConfigMap(metadata=metadata, data=dict(obj.data))

    @staticmethod
    def _secret_data(data: Optional[Dict[str, str]]) -> Dict[str, str]:
        return {k: base64.b64decode(v).decode("utf-8") for k, v in (data or {}).items()}

    def _to_stored(self, kind: str, item) -> StoredObject:
        meta = item.metadata
        if kind == KIND_SECRET:
            data = self._secret_data(item.data)
        else:
            data = dict(item.data or {})
        return StoredObject(
            kind=kind,
            name=meta.name,
            labels=dict(meta.labels or {}),
            annotations=dict(meta.annotations or {}),
            data=data,
        )

    def create(self, obj: StoredObject) -> None:
        try:
            if obj.kind == KIND_SECRET:
                self.api.create_namespaced_secret(self.namespace, self._body(obj))
            else:
                self.api.create_namespaced_config_map(self.namespace, self._body(obj))
        except (ApiException, HTTPError) as e:
            raise _translate(e, "create", obj.kind, obj.name) from e

    def read(self, kind: str, name: str) -> StoredObject:
        try:
            if kind == KIND_SECRET:
                item = self.api.read_namespaced_secret(name, self.namespace)
            else:
                item = self.api.read_namespaced_config_map(name, self.namespace)
        except (ApiException, HTTPError) as e:
            raise _translate(e, "get", kind, name) from e
        try:
            return self._to_stored(kind, item)
        except (binascii.Error, UnicodeDecodeError) as e:
            raise ClientCallError(f"failed to decode {kind} {name}: {e}", original_error=e) from e

    def replace(self, obj: StoredObject) -> None:
        try:
            if obj.kind == KIND_SECRET:
                self.api.replace_namespaced_secret(obj.name, self.namespace, self._body(obj))
            else:
                self.api.replace_namespaced_config_map(obj.name, self.namespace, self._body(obj))
        except (ApiException, HTTPError) as e:
            raise _translate(e, "update", obj.kind, obj.name) from e

    def delete(self, kind: str, name: str) -> None:
        try:
            if kind == KIND_SECRET:
                self.api.delete_namespaced_secret(name, self.namespace)
            else:
                self.api.delete_namespaced_config_map(name, self.namespace)
        except (ApiException, HTTPError) as e:
            raise _translate(e, "delete", kind, name) from e

    def list(self, kind: str, label_selector: str) -> List[StoredObject]:
        try:
            if kind == KIND_SECRET:
                result = self.api.list_namespaced_secret(self.namespace, label_selector=label_selector)
            else:
                result = self.api.list_namespaced_config_map(self.namespace, label_selector=label_selector)
        except (ApiException, HTTPError) as e:
            raise _translate(e, "list", kind, label_selector) from e
        logger.debug(f"Listed {len(result.items)} {kind}s for selector {label_selector}")
        objects = []
        for item in result.items:
            try:
                objects.append(self._to_stored(kind, item))
            except (binascii.Error, UnicodeDecodeError) as e:
                logger.warning(f"Skipping {kind} {item.metadata.name}: undecodable data: {e}")
        return objects
