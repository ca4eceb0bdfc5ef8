import logging

from queuescaler.exceptions import ActuationError


class EcsServiceBackend:
    """Reads and writes the desired count of an ECS service."""

    def __init__(self, aws_wrapper, cluster: str, service_name: str):
        self._aws_wrapper = aws_wrapper
        self.cluster = cluster
        self.service_name = service_name

    def get_replicas(self) -> int:
        """
        Get the current desired count of the service.

        Raises:
            ActuationError: If the service cannot be described or does not exist
        """
        try:
            ecs_client = self._aws_wrapper.create_aws_client('ecs')
            service_response = ecs_client.describe_services(
                cluster=self.cluster,
                services=[self.service_name]
            )
        except Exception as e:
            raise ActuationError(f"Failed to describe service {self.service_name}: {e}") from e

        if not service_response.get('services'):
            raise ActuationError(f"Service {self.service_name} not found in cluster {self.cluster}")

        service = service_response['services'][0]
        desired_count = service.get('desiredCount', 0)
        logging.debug(f"Current ECS state - desired: {desired_count}, running: {service.get('runningCount', 0)}")
        return desired_count

    def set_replicas(self, count: int) -> None:
        """
        Update the ECS service with a new desired count.

        Raises:
            ActuationError: If the service update fails
        """
        try:
            ecs_client = self._aws_wrapper.create_aws_client('ecs')
            ecs_client.update_service(
                cluster=self.cluster,
                service=self.service_name,
                desiredCount=count
            )
        except Exception as e:
            raise ActuationError(f"Failed to update service {self.service_name}: {e}") from e

        logging.info(f"Updated service {self.service_name} to {count} tasks")
