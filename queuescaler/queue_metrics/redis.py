import logging
import redis


def _connect(redis_config):
    timeout = float(redis_config.get('timeout', 10.0))
    return redis.Redis(
        host=redis_config['host'],
        port=int(redis_config.get('port', 6379)),
        password=redis_config.get('password'),
        ssl=redis_config.get('use_ssl', True),
        socket_timeout=timeout,
        socket_connect_timeout=timeout,
        decode_responses=True
    )


def _processing_count(r, processing_key):
    # Check if it's a set, list, or hash
    key_type = r.type(processing_key)
    if key_type == 'set':
        return r.scard(processing_key)
    elif key_type == 'list':
        return r.llen(processing_key)
    elif key_type == 'hash':
        return r.hlen(processing_key)
    return 0


def get_queue_metrics(aws_wrapper, redis_config, counter_names):
    """
    Get the backlog counters for a Redis-based queue.

    Supports both Redis Lists and Redis Streams as queue implementations.

    Args:
        aws_wrapper: Unused, kept for the common provider signature
        redis_config: Dict containing Redis configuration with:
                     - host: Redis host
                     - port: Redis port
                     - password: Redis password
                     - queue_key: Key name for the queue
                     - queue_type: 'list' or 'stream'
                     - processing_key: Key used to track processing items (for list-based queues)
                     - consumer_group: Consumer group name (for stream-based queues)
                     - use_ssl: Whether to connect over TLS (default True)
                     - timeout: Socket timeout in seconds (default 10)
        counter_names: Counters the caller will sum; 'in_flight' is only queried when requested

    Returns:
        dict: 'pending' and 'in_flight' message counts

    Raises:
        ValueError: If the Redis queue type is not supported
        redis.exceptions.RedisError: If Redis cannot be queried
    """
    queue_type = redis_config.get('queue_type', 'list')
    queue_key = redis_config['queue_key']

    if queue_type not in ('list', 'stream'):
        raise ValueError(f"Unsupported Redis queue type: {queue_type}")

    r = _connect(redis_config)
    try:
        in_flight = 0

        if queue_type == 'list':
            pending = r.llen(queue_key)

            processing_key = redis_config.get('processing_key')
            if processing_key and 'in_flight' in counter_names:
                in_flight = _processing_count(r, processing_key)
        else:
            stream_info = r.xinfo_stream(queue_key)
            total_messages = stream_info['length']

            consumer_group = redis_config.get('consumer_group')
            if consumer_group:
                try:
                    for group in r.xinfo_groups(queue_key):
                        if group['name'] == consumer_group:
                            # Delivered but not yet acknowledged
                            in_flight = group['pending']
                            break
                except redis.exceptions.ResponseError:
                    # Consumer group might not exist yet
                    logging.debug(f"No consumer groups found for Redis stream {queue_key}")

            pending = max(0, total_messages - in_flight)
    finally:
        r.close()

    logging.debug(f"Redis {queue_type} queue {queue_key} has {pending} pending messages "
                  f"and {in_flight} in-flight messages")

    return {
        'pending': pending,
        'in_flight': in_flight
    }
