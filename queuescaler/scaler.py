import logging


def calculate_scale_up_count(current_replicas, scale_up_pods, max_replicas):
    """Return the replica count after a scale up, clamped to max_replicas."""
    return min(current_replicas + scale_up_pods, max_replicas)


def calculate_scale_down_count(current_replicas, scale_down_pods, min_replicas):
    """Return the replica count after a scale down, clamped to min_replicas."""
    return max(current_replicas - scale_down_pods, min_replicas)


class ScaleActuator:
    """
    Applies bounded replica adjustments to a workload.

    The backend is the orchestrator adapter and must provide get_replicas()
    and set_replicas(count). The live replica count is read before every
    write since another actor may have changed it since the last tick.
    Backend errors propagate to the caller unchanged; nothing is retried here.
    """

    def __init__(self, backend, min_replicas: int, max_replicas: int, scale_up_pods: int = 1,
                 scale_down_pods: int = 1):
        self._backend = backend
        self.min_replicas = min_replicas
        self.max_replicas = max_replicas
        self.scale_up_pods = scale_up_pods
        self.scale_down_pods = scale_down_pods

    @classmethod
    def from_config(cls, backend, scaling_config):
        return cls(
            backend,
            min_replicas=scaling_config.min_replicas,
            max_replicas=scaling_config.max_replicas,
            scale_up_pods=scaling_config.scale_up_pods,
            scale_down_pods=scaling_config.scale_down_pods
        )

    def scale_up(self) -> int:
        """
        Add scale_up_pods replicas, never exceeding max_replicas.

        Returns:
            int: The replica count after the call

        Raises:
            ActuationError: If the replica count cannot be read or written
        """
        current = self._backend.get_replicas()

        if current >= self.max_replicas:
            logging.info(f"Already at max replicas, no scale up. Replicas: {current}, max: {self.max_replicas}")
            return current

        new_count = calculate_scale_up_count(current, self.scale_up_pods, self.max_replicas)
        self._backend.set_replicas(new_count)

        logging.info(f"Scale up successful. Replicas: {current} -> {new_count}")
        return new_count

    def scale_down(self) -> int:
        """
        Remove scale_down_pods replicas, never going below min_replicas.

        Returns:
            int: The replica count after the call

        Raises:
            ActuationError: If the replica count cannot be read or written
        """
        current = self._backend.get_replicas()

        if current <= self.min_replicas:
            logging.info(f"Already at min replicas, no scale down. Replicas: {current}, min: {self.min_replicas}")
            return current

        new_count = calculate_scale_down_count(current, self.scale_down_pods, self.min_replicas)
        self._backend.set_replicas(new_count)

        logging.info(f"Scale down successful. Replicas: {current} -> {new_count}")
        return new_count
