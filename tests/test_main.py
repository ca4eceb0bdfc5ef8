import json
import logging
import os
import signal
import threading
import time
import unittest
from unittest import mock

from queuescaler import main
from queuescaler.common.logger import JsonFormatter, setup_logging
from queuescaler.config import Config, ScalingConfig
from queuescaler.control_loop import ControlLoop
from queuescaler.exceptions import ShutdownRequested

SCALING = ScalingConfig(poll_interval=5.0, scale_up_messages=100, scale_down_messages=10,
                        scale_up_cooldown=10.0, scale_down_cooldown=30.0, scale_up_pods=1,
                        scale_down_pods=1, min_replicas=1, max_replicas=5)


def make_config(**overrides):
    values = dict(scaling=SCALING, orchestrator='kubernetes', workload_name='worker',
                  workload_namespace='jobs', queue_type='sqs',
                  queue_config={'queue_url': 'https://sqs.example/jobs'},
                  counter_names=('ApproximateNumberOfMessages',), region='us-east-1',
                  sso_profile=None, request_timeout=5.0)
    values.update(overrides)
    return Config(**values)


class TestBuildControlLoop(unittest.TestCase):

    @mock.patch('queuescaler.actuators.kubernetes.KubernetesDeploymentBackend')
    @mock.patch('queuescaler.main.AWSWrapper')
    def test_kubernetes_with_sqs(self, mock_wrapper, mock_backend):
        loop = main.build_control_loop(make_config())

        self.assertIsInstance(loop, ControlLoop)
        mock_wrapper.assert_called_once_with(sso_profile_name=None, region_name='us-east-1', timeout=5.0)
        mock_backend.assert_called_once_with('worker', 'jobs', request_timeout=5.0)

    @mock.patch('queuescaler.actuators.ecs.EcsServiceBackend')
    @mock.patch('queuescaler.main.AWSWrapper')
    def test_ecs_backend_shares_aws_wrapper(self, mock_wrapper, mock_backend):
        main.build_control_loop(make_config(orchestrator='ecs', workload_namespace='prod'))

        mock_backend.assert_called_once_with(mock_wrapper.return_value, cluster='prod', service_name='worker')

    @mock.patch('queuescaler.actuators.kubernetes.KubernetesDeploymentBackend')
    @mock.patch('queuescaler.main.AWSWrapper')
    def test_redis_with_kubernetes_needs_no_aws(self, mock_wrapper, mock_backend):
        main.build_control_loop(make_config(queue_type='redis', queue_config={'host': 'h', 'queue_key': 'k'},
                                            counter_names=('pending',)))

        mock_wrapper.assert_not_called()

    def test_unsupported_orchestrator(self):
        with self.assertRaises(ValueError):
            main.create_scale_backend(make_config(orchestrator='nomad'))


class TestMain(unittest.TestCase):

    @mock.patch('queuescaler.main.setup_logging')
    @mock.patch.dict('os.environ', {}, clear=True)
    def test_invalid_configuration_exits_nonzero(self, mock_setup_logging):
        self.assertEqual(main.main(), 1)

    @mock.patch('queuescaler.main.signal.signal')
    @mock.patch('queuescaler.main.build_control_loop')
    @mock.patch('queuescaler.main.load_config')
    @mock.patch('queuescaler.main.setup_logging')
    def test_shutdown_exits_cleanly(self, mock_setup_logging, mock_load_config, mock_build, mock_signal):
        mock_load_config.return_value = make_config()
        mock_build.return_value.run.side_effect = ShutdownRequested()

        self.assertEqual(main.main(), 0)
        self.assertEqual(mock_signal.call_count, 2)

    @mock.patch('queuescaler.main.signal.signal')
    @mock.patch('queuescaler.main.build_control_loop')
    @mock.patch('queuescaler.main.load_config')
    @mock.patch('queuescaler.main.setup_logging')
    def test_initialization_failure_exits_nonzero(self, mock_setup_logging, mock_load_config, mock_build,
                                                  mock_signal):
        mock_load_config.return_value = make_config()
        mock_build.side_effect = RuntimeError("no kubeconfig")

        self.assertEqual(main.main(), 1)
        mock_signal.assert_not_called()

    @mock.patch('queuescaler.main.build_control_loop')
    @mock.patch('queuescaler.main.load_config')
    @mock.patch('queuescaler.main.setup_logging')
    def test_sigterm_interrupts_sleeping_loop(self, mock_setup_logging, mock_load_config, mock_build):
        """Test that SIGTERM stops a loop sleeping on a long poll interval at once."""
        self.addCleanup(signal.signal, signal.SIGTERM, signal.getsignal(signal.SIGTERM))
        self.addCleanup(signal.signal, signal.SIGINT, signal.getsignal(signal.SIGINT))

        metric_source = mock.MagicMock()
        metric_source.sample.return_value = 50
        mock_load_config.return_value = make_config()
        mock_build.return_value = ControlLoop(SCALING._replace(poll_interval=60.0), metric_source, mock.MagicMock())

        timer = threading.Timer(0.3, os.kill, args=(os.getpid(), signal.SIGTERM))
        self.addCleanup(timer.cancel)
        started = time.monotonic()
        timer.start()

        self.assertEqual(main.main(), 0)
        self.assertLess(time.monotonic() - started, 10.0)
        metric_source.sample.assert_not_called()

    def test_shutdown_handler_raises(self):
        with self.assertRaises(ShutdownRequested):
            main._request_shutdown(15, None)


class TestJsonFormatter(unittest.TestCase):

    @mock.patch.dict('os.environ', {'LOG_FORMAT': 'json', 'LOG_LEVEL': 'debug'}, clear=True)
    @mock.patch('queuescaler.common.logger.logging.basicConfig')
    def test_setup_logging_json_mode(self, mock_basic_config):
        handler = logging.StreamHandler()
        root_logger = logging.getLogger()
        root_logger.addHandler(handler)
        self.addCleanup(root_logger.removeHandler, handler)

        setup_logging()

        self.assertEqual(mock_basic_config.call_args.kwargs['level'], logging.DEBUG)
        self.assertIsInstance(handler.formatter, JsonFormatter)
        self.assertEqual(logging.getLogger('kubernetes').level, logging.WARNING)

    def test_formats_record_with_extras(self):
        record = logging.LogRecord('queuescaler', logging.INFO, __file__, 10, 'Found %d messages', (5,), None)
        record.workload = 'jobs/worker'

        payload = json.loads(JsonFormatter().format(record))

        self.assertEqual(payload['message'], 'Found 5 messages')
        self.assertEqual(payload['level'], 'INFO')
        self.assertEqual(payload['workload'], 'jobs/worker')


if __name__ == '__main__':
    unittest.main()
