import math
import os
import re
import logging
from typing import Dict, Any, Optional, NamedTuple, Tuple

from queuescaler.exceptions import ConfigurationError

DEFAULT_COUNTER_NAMES = {
    'sqs': (
        'ApproximateNumberOfMessages',
        'ApproximateNumberOfMessagesDelayed',
        'ApproximateNumberOfMessagesNotVisible',
    ),
    'redis': ('pending', 'in_flight'),
}

SUPPORTED_ORCHESTRATORS = ('kubernetes', 'ecs')

_DURATION_UNITS = {'ms': 0.001, 's': 1.0, 'm': 60.0, 'h': 3600.0}
_DURATION_PART = re.compile(r'(\d+(?:\.\d+)?)(ms|s|m|h)')


class ScalingConfig(NamedTuple):
    """Decision policy settings consumed by the control loop."""
    poll_interval: float
    scale_up_messages: int
    scale_down_messages: int
    scale_up_cooldown: float
    scale_down_cooldown: float
    scale_up_pods: int
    scale_down_pods: int
    min_replicas: int
    max_replicas: int


class Config(NamedTuple):
    """Configuration for the autoscaler process."""
    scaling: ScalingConfig

    # Workload configuration
    orchestrator: str
    workload_name: str
    workload_namespace: str

    # Queue configuration
    queue_type: str
    queue_config: Dict[str, Any]
    counter_names: Tuple[str, ...]

    # AWS configuration
    region: str
    sso_profile: Optional[str]

    # Upper bound for every call to the queue or orchestrator
    request_timeout: float


def _finite(seconds: float, value) -> float:
    if not math.isfinite(seconds):
        raise ConfigurationError(f"Duration must be finite: {value!r}")
    return seconds


def parse_duration(value) -> float:
    """
    Parse a duration into seconds.

    Accepts plain numbers of seconds ("30", "2.5") as well as suffixed
    values like "500ms", "30s", "2m", "1h" or "1m30s".

    Raises:
        ConfigurationError: If the value cannot be parsed or is not finite
    """
    if isinstance(value, (int, float)):
        return _finite(float(value), value)

    text = str(value).strip().lower()
    try:
        seconds = float(text)
    except ValueError:
        seconds = None
    if seconds is not None:
        return _finite(seconds, value)

    position = 0
    seconds = 0.0
    for match in _DURATION_PART.finditer(text):
        if match.start() != position:
            break
        seconds += float(match.group(1)) * _DURATION_UNITS[match.group(2)]
        position = match.end()

    if position == 0 or position != len(text):
        raise ConfigurationError(f"Invalid duration: {value!r}")
    return _finite(seconds, value)


def parse_counter_names(value) -> Tuple[str, ...]:
    """Split a comma separated counter allow-list, dropping blanks."""
    if isinstance(value, (list, tuple)):
        names = [str(name).strip() for name in value]
    else:
        names = [name.strip() for name in str(value).split(',')]
    return tuple(name for name in names if name)


def _int(value, name: str) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ConfigurationError(f"{name} must be an integer, got {value!r}")


def _duration(value, name: str) -> float:
    try:
        return parse_duration(value)
    except ConfigurationError:
        raise ConfigurationError(f"{name} must be a duration, got {value!r}")


def _load_queue_config(queue_type: str) -> Dict[str, Any]:
    if queue_type == 'sqs':
        queue_config = {'queue_url': os.environ.get('SQS_QUEUE_URL')}
    elif queue_type == 'redis':
        queue_config = {
            'host': os.environ.get('REDIS_HOST'),
            'port': os.environ.get('REDIS_PORT'),
            'password': os.environ.get('REDIS_PASSWORD'),
            'queue_key': os.environ.get('REDIS_QUEUE_KEY'),
            'queue_type': os.environ.get('REDIS_QUEUE_TYPE', 'list'),
            'processing_key': os.environ.get('REDIS_PROCESSING_KEY'),
            'consumer_group': os.environ.get('REDIS_CONSUMER_GROUP'),
        }
        use_ssl = os.environ.get('REDIS_USE_SSL')
        if use_ssl is not None:
            queue_config['use_ssl'] = use_ssl.lower() in ('true', '1', 't', 'yes')
    else:
        supported = ', '.join(DEFAULT_COUNTER_NAMES)
        raise ConfigurationError(f"Unsupported queue type: {queue_type}. Supported types: {supported}")

    # Clean None values from queue_config
    return {k: v for k, v in queue_config.items() if v is not None}


def load_config(overrides: Dict[str, Any] = None) -> Config:
    """
    Load configuration from environment variables and optional overrides.

    Override values win over environment variables when present. Override
    keys are the field names of Config and ScalingConfig.

    Args:
        overrides: Optional mapping of field name to value

    Returns:
        Config: Validated configuration object

    Raises:
        ConfigurationError: If a value is malformed or the bounds are inconsistent
    """
    overrides = overrides or {}

    def setting(field, env_name, default=None):
        value = overrides.get(field)
        if value is None:
            value = os.environ.get(env_name, default)
        return value

    scaling = ScalingConfig(
        poll_interval=_duration(setting('poll_interval', 'POLL_PERIOD', '5s'), 'poll_interval'),
        scale_up_messages=_int(setting('scale_up_messages', 'SCALE_UP_MESSAGES', '100'), 'scale_up_messages'),
        scale_down_messages=_int(setting('scale_down_messages', 'SCALE_DOWN_MESSAGES', '10'),
                                 'scale_down_messages'),
        scale_up_cooldown=_duration(setting('scale_up_cooldown', 'SCALE_UP_COOL_DOWN', '10s'),
                                    'scale_up_cooldown'),
        scale_down_cooldown=_duration(setting('scale_down_cooldown', 'SCALE_DOWN_COOL_DOWN', '30s'),
                                      'scale_down_cooldown'),
        scale_up_pods=_int(setting('scale_up_pods', 'SCALE_UP_PODS', '1'), 'scale_up_pods'),
        scale_down_pods=_int(setting('scale_down_pods', 'SCALE_DOWN_PODS', '1'), 'scale_down_pods'),
        min_replicas=_int(setting('min_replicas', 'MIN_PODS', '1'), 'min_replicas'),
        max_replicas=_int(setting('max_replicas', 'MAX_PODS', '5'), 'max_replicas'),
    )

    # Workload configuration
    orchestrator = str(setting('orchestrator', 'ORCHESTRATOR', 'kubernetes')).lower()
    if orchestrator == 'ecs':
        workload_name = setting('workload_name', 'ECS_SERVICE')
        workload_namespace = setting('workload_namespace', 'ECS_CLUSTER')
    else:
        workload_name = setting('workload_name', 'KUBERNETES_DEPLOYMENT')
        workload_namespace = setting('workload_namespace', 'KUBERNETES_NAMESPACE', 'default')

    # Queue configuration
    queue_type = str(setting('queue_type', 'QUEUE_TYPE', 'sqs')).lower()
    queue_config = overrides.get('queue_config') or _load_queue_config(queue_type)

    counter_names = setting('counter_names', 'ATTRIBUTE_NAMES')
    if counter_names is None:
        counter_names = DEFAULT_COUNTER_NAMES.get(queue_type, ())
    counter_names = parse_counter_names(counter_names)

    config = Config(
        scaling=scaling,
        orchestrator=orchestrator,
        workload_name=workload_name,
        workload_namespace=workload_namespace,
        queue_type=queue_type,
        queue_config=dict(queue_config),
        counter_names=counter_names,
        region=setting('region', 'AWS_REGION', 'us-east-1'),
        sso_profile=setting('sso_profile', 'SSO_PROFILE'),
        request_timeout=_duration(setting('request_timeout', 'REQUEST_TIMEOUT', '10s'), 'request_timeout'),
    )

    validate_config(config)
    return config


def validate_config(config: Config) -> None:
    """
    Check the startup invariants of a configuration.

    An inverted threshold pair (scale down threshold at or above the scale
    up threshold) is accepted and only logged, since both directions may
    then fire in the same tick.

    Raises:
        ConfigurationError: On the first violated invariant
    """
    scaling = config.scaling

    if scaling.poll_interval <= 0:
        raise ConfigurationError("poll_interval must be positive")
    if scaling.scale_up_cooldown < 0 or scaling.scale_down_cooldown < 0:
        raise ConfigurationError("cooldowns must not be negative")
    if scaling.scale_up_pods <= 0 or scaling.scale_down_pods <= 0:
        raise ConfigurationError("scale_up_pods and scale_down_pods must be greater than zero")
    if scaling.min_replicas < 0:
        raise ConfigurationError("min_replicas must not be negative")
    if scaling.min_replicas > scaling.max_replicas:
        raise ConfigurationError(
            f"min_replicas ({scaling.min_replicas}) must not exceed max_replicas ({scaling.max_replicas})")
    if config.request_timeout <= 0:
        raise ConfigurationError("request_timeout must be positive")

    if config.orchestrator not in SUPPORTED_ORCHESTRATORS:
        supported = ', '.join(SUPPORTED_ORCHESTRATORS)
        raise ConfigurationError(f"Unsupported orchestrator: {config.orchestrator}. Supported: {supported}")
    if not config.workload_name:
        raise ConfigurationError("A workload name (KUBERNETES_DEPLOYMENT or ECS_SERVICE) must be configured")
    if not config.workload_namespace:
        raise ConfigurationError("A workload namespace (KUBERNETES_NAMESPACE or ECS_CLUSTER) must be configured")

    if config.queue_type not in DEFAULT_COUNTER_NAMES:
        supported = ', '.join(DEFAULT_COUNTER_NAMES)
        raise ConfigurationError(f"Unsupported queue type: {config.queue_type}. Supported types: {supported}")
    if config.queue_type == 'sqs' and not config.queue_config.get('queue_url'):
        raise ConfigurationError("SQS_QUEUE_URL must be configured")
    if config.queue_type == 'redis' and not (config.queue_config.get('host') and
                                             config.queue_config.get('queue_key')):
        raise ConfigurationError("REDIS_HOST and REDIS_QUEUE_KEY must be configured")
    if not config.counter_names:
        raise ConfigurationError("At least one queue counter name must be configured")

    if scaling.scale_down_messages >= scaling.scale_up_messages:
        logging.warning(
            f"Scale down threshold ({scaling.scale_down_messages}) is not below scale up threshold "
            f"({scaling.scale_up_messages}); both directions may fire in the same tick")
