import logging
import boto3
from botocore.exceptions import ClientError
from botocore.config import Config
from retry import retry

RETRIES_NUMBER = 3
REGION = 'us-east-1'
DEFAULT_TIMEOUT = 10.0


class AWSWrapper:
    """
    Wrapper class for creating boto3 clients with bounded network calls.

    Session and client creation are retried; the API calls made through the
    clients are not, since the control loop's next tick is the retry.
    """

    def __init__(self, aws_access_key_id: str = None, aws_secret_access_key: str = None,
                 aws_session_token: str = None, sso_profile_name: str = None,
                 region_name: str = REGION, timeout: float = DEFAULT_TIMEOUT):
        self._region_name = region_name
        self._timeout = timeout
        self._clients = {}
        self._session = self._create_boto_session(aws_access_key_id, aws_secret_access_key,
                                                  aws_session_token, sso_profile_name)

    @retry(exceptions=ClientError, tries=RETRIES_NUMBER, delay=3)
    def _create_boto_session(self, aws_access_key_id: str = None, aws_secret_access_key: str = None,
                             aws_session_token: str = None, sso_profile_name: str = None):
        logging.debug("Creating boto3 session via " + ("SSO profile name" if sso_profile_name else "AWS access key"))
        return boto3.session.Session(profile_name=sso_profile_name, region_name=self._region_name) \
            if sso_profile_name else boto3.session.Session(aws_access_key_id, aws_secret_access_key,
                                                           aws_session_token, region_name=self._region_name)

    @retry(exceptions=ClientError, tries=RETRIES_NUMBER, delay=3)
    def create_aws_client(self, service_name: str, region_name: str = None, config=None):
        """
        Create (or reuse) a boto3 client with bounded timeouts.

        Args:
            service_name: AWS service name ('ecs', 'sqs', etc.)
            region_name: Optional AWS region override
            config: Optional boto3 configuration

        Returns:
            Boto3 client for the requested service
        """
        cache_key = (service_name, region_name)
        if config is None and cache_key in self._clients:
            return self._clients[cache_key]

        logging.debug(f'creating aws client for: {service_name}')

        # Botocore retries are disabled so a single call never outlives the timeout by much
        default_config = Config(
            connect_timeout=self._timeout,
            read_timeout=self._timeout,
            retries={'max_attempts': 1, 'mode': 'standard'}
        )
        client = self._session.client(service_name=service_name, region_name=region_name,
                                      config=config or default_config)
        if config is None:
            self._clients[cache_key] = client
        return client
