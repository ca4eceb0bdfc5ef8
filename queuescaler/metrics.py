import logging
from typing import Dict, Any, Iterable

from queuescaler.exceptions import MetricUnavailableError
from queuescaler.queue_metrics import sqs, redis

# Map queue types to their respective modules.
# Each provider implements get_queue_metrics(aws_wrapper, queue_config, counter_names).
QUEUE_PROVIDERS = {
    'sqs': sqs,
    'redis': redis,
}


class QueueMetricSource:
    """
    Produces the current backlog size of a queue.

    The backlog is the sum of the allow-listed counters reported by the
    queue provider. Counters the provider did not report count as zero.
    """

    def __init__(self, provider, queue_config: Dict[str, Any], counter_names: Iterable[str], aws_wrapper=None):
        self._provider = provider
        self._queue_config = queue_config
        self._counter_names = tuple(counter_names)
        self._aws_wrapper = aws_wrapper

    @property
    def counter_names(self):
        return self._counter_names

    def sample(self) -> int:
        """
        Read the current backlog size.

        Returns:
            int: Sum of the allow-listed counters

        Raises:
            MetricUnavailableError: If the provider failed or reported an invalid counter
        """
        try:
            counters = self._provider.get_queue_metrics(self._aws_wrapper, self._queue_config,
                                                        self._counter_names)
        except Exception as e:
            raise MetricUnavailableError(f"Failed to get queue metrics: {e}") from e

        total = 0
        for name in self._counter_names:
            value = counters.get(name, 0)
            if isinstance(value, bool) or not isinstance(value, int) or value < 0:
                raise MetricUnavailableError(f"Invalid value for queue counter {name}: {value!r}")
            total += value

        logging.debug(f"Queue counters {counters} sum to {total}")
        return total


def create_metric_source(config, aws_wrapper=None) -> QueueMetricSource:
    """
    Build the metric source for the configured queue type.

    Args:
        config: Configuration object
        aws_wrapper: AWS wrapper instance, required for AWS-backed queues

    Raises:
        ValueError: If queue type is not supported
    """
    queue_type = config.queue_type.lower()

    if queue_type not in QUEUE_PROVIDERS:
        supported = ', '.join(QUEUE_PROVIDERS.keys())
        raise ValueError(f"Unsupported queue type: {queue_type}. Supported types: {supported}")

    queue_config = dict(config.queue_config)
    if queue_type == 'redis':
        queue_config.setdefault('timeout', config.request_timeout)

    return QueueMetricSource(QUEUE_PROVIDERS[queue_type], queue_config, config.counter_names, aws_wrapper)
