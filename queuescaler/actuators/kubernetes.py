import logging

from kubernetes import client, config
from kubernetes.client.rest import ApiException
from urllib3.exceptions import HTTPError

from queuescaler.exceptions import ActuationError

DEFAULT_TIMEOUT = 10.0


def load_kubernetes_config():
    """Load in-cluster credentials, falling back to the local kubeconfig."""
    try:
        config.load_incluster_config()
        logging.debug("Loaded in-cluster Kubernetes configuration")
    except config.ConfigException:
        config.load_kube_config()
        logging.debug("Loaded Kubernetes configuration from kubeconfig")


class KubernetesDeploymentBackend:
    """
    Reads and writes the replica count of a Deployment through its scale subresource.
    """

    def __init__(self, name: str, namespace: str = 'default', apps_api=None,
                 request_timeout: float = DEFAULT_TIMEOUT):
        self.name = name
        self.namespace = namespace
        self._request_timeout = request_timeout
        if apps_api is None:
            load_kubernetes_config()
            apps_api = client.AppsV1Api()
        self._apps_api = apps_api

    def get_replicas(self) -> int:
        """
        Get the desired replica count of the deployment.

        Raises:
            ActuationError: If the deployment scale cannot be read
        """
        try:
            scale = self._apps_api.read_namespaced_deployment_scale(
                self.name, self.namespace, _request_timeout=self._request_timeout)
        except (ApiException, HTTPError) as e:
            raise ActuationError(f"Failed to get deployment {self.namespace}/{self.name}: {e}") from e

        if scale.spec is None:
            raise ActuationError(f"Deployment {self.namespace}/{self.name} scale has no spec")
        return scale.spec.replicas or 0

    def set_replicas(self, count: int) -> None:
        """
        Patch the desired replica count of the deployment.

        Raises:
            ActuationError: If the patch is rejected or the API is unreachable
        """
        body = {'spec': {'replicas': count}}
        try:
            self._apps_api.patch_namespaced_deployment_scale(
                self.name, self.namespace, body, _request_timeout=self._request_timeout)
        except (ApiException, HTTPError) as e:
            raise ActuationError(f"Failed to scale deployment {self.namespace}/{self.name}: {e}") from e

        logging.info(f"Updated deployment {self.namespace}/{self.name} to {count} replicas")
