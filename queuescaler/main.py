import logging
import signal
import sys

from queuescaler.aws.wrapper import AWSWrapper
from queuescaler.common.logger import setup_logging
from queuescaler.config import load_config, Config
from queuescaler.control_loop import ControlLoop
from queuescaler.exceptions import ConfigurationError, ShutdownRequested
from queuescaler.metrics import create_metric_source
from queuescaler.scaler import ScaleActuator


def create_scale_backend(config: Config, aws_wrapper: AWSWrapper = None):
    """
    Build the orchestrator backend for the configured workload.

    Raises:
        ValueError: If the orchestrator is not supported
    """
    orchestrator = config.orchestrator.lower()

    if orchestrator == 'kubernetes':
        from queuescaler.actuators.kubernetes import KubernetesDeploymentBackend
        return KubernetesDeploymentBackend(config.workload_name, config.workload_namespace,
                                           request_timeout=config.request_timeout)
    if orchestrator == 'ecs':
        from queuescaler.actuators.ecs import EcsServiceBackend
        return EcsServiceBackend(aws_wrapper, cluster=config.workload_namespace,
                                 service_name=config.workload_name)

    raise ValueError(f"Unsupported orchestrator: {config.orchestrator}")


def build_control_loop(config: Config) -> ControlLoop:
    """Wire the metric source, actuator and control loop from configuration."""
    aws_wrapper = None
    if config.queue_type == 'sqs' or config.orchestrator == 'ecs':
        aws_wrapper = AWSWrapper(
            sso_profile_name=config.sso_profile,
            region_name=config.region,
            timeout=config.request_timeout
        )

    metric_source = create_metric_source(config, aws_wrapper)
    actuator = ScaleActuator.from_config(create_scale_backend(config, aws_wrapper), config.scaling)
    return ControlLoop(config.scaling, metric_source, actuator)


def _request_shutdown(signum, frame):
    logging.info(f"Received signal {signal.Signals(signum).name}, shutting down")
    raise ShutdownRequested()


def main() -> int:
    """
    Process entry point: load configuration, then run the control loop until signalled.

    Returns:
        int: Process exit status
    """
    setup_logging()

    try:
        config = load_config()
    except ConfigurationError as e:
        logging.error(f"Invalid configuration: {e}")
        return 1

    logging.info(f"Starting queue autoscaler for {config.orchestrator} workload "
                 f"{config.workload_namespace}/{config.workload_name} "
                 f"(replicas {config.scaling.min_replicas}-{config.scaling.max_replicas}, "
                 f"queue type {config.queue_type}, counters {', '.join(config.counter_names)})")

    try:
        loop = build_control_loop(config)
    except Exception as e:
        logging.error(f"Failed to initialize autoscaler: {e}", exc_info=True)
        return 1

    # Raising from the handler interrupts an in-flight network call as well as the sleep
    signal.signal(signal.SIGTERM, _request_shutdown)
    signal.signal(signal.SIGINT, _request_shutdown)

    try:
        loop.run()
    except ShutdownRequested:
        logging.info("Queue autoscaler stopped")
    return 0


if __name__ == '__main__':
    sys.exit(main())
