import logging


def get_queue_metrics(aws_wrapper, sqs_config, counter_names):
    """
    Get the requested attribute counters for an SQS queue.

    Args:
        aws_wrapper: AWS wrapper instance
        sqs_config: Dict containing 'queue_url'
        counter_names: Queue attribute names to fetch, e.g. ApproximateNumberOfMessages

    Returns:
        dict: Attribute name to integer count, for every attribute SQS reported

    Raises:
        botocore.exceptions.ClientError: If the attributes cannot be read
    """
    sqs_client = aws_wrapper.create_aws_client('sqs')

    response = sqs_client.get_queue_attributes(
        QueueUrl=sqs_config['queue_url'],
        AttributeNames=list(counter_names)
    )

    attributes = response.get('Attributes', {})
    metrics = {name: int(value) for name, value in attributes.items() if name in counter_names}

    logging.debug(f"SQS queue {sqs_config['queue_url']} attributes: {metrics}")
    return metrics
