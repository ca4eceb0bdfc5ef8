import logging
import threading
import time
from typing import Dict, Any

from queuescaler.config import ScalingConfig

UP = 'up'
DOWN = 'down'


def cooldown_elapsed(now: float, last_action_time: float, cooldown: float) -> bool:
    """Return True once the cooldown since the last action has fully elapsed."""
    return now >= last_action_time + cooldown


class CooldownState:
    """Timestamps of the last successful scale action in each direction."""

    def __init__(self, started_at: float):
        self.last_scale_up_at = started_at
        self.last_scale_down_at = started_at

    def last_action_at(self, direction: str) -> float:
        return self.last_scale_up_at if direction == UP else self.last_scale_down_at

    def stamp(self, direction: str, now: float) -> None:
        if direction == UP:
            self.last_scale_up_at = now
        else:
            self.last_scale_down_at = now


class ControlLoop:
    """
    Polls the queue backlog and scales the workload with per-direction cooldowns.

    Each tick samples the metric source once, then evaluates the scale up
    and scale down conditions independently. A direction only acts when its
    cooldown has elapsed, and its cooldown is restarted only after a
    successful action. Dependency errors are logged and the loop carries on;
    the next tick is the retry.

    Args:
        config: Decision policy settings
        metric_source: Object with sample() -> int
        actuator: Object with scale_up() and scale_down()
        clock: Monotonic time source in seconds
    """

    def __init__(self, config: ScalingConfig, metric_source, actuator, clock=time.monotonic):
        self._config = config
        self._metric_source = metric_source
        self._actuator = actuator
        self._clock = clock
        self._stop_event = threading.Event()
        self.cooldowns = CooldownState(clock())

    def _cooldown_for(self, direction: str) -> float:
        return self._config.scale_up_cooldown if direction == UP else self._config.scale_down_cooldown

    def _try_scale(self, direction: str) -> bool:
        now = self._clock()
        last_action_at = self.cooldowns.last_action_at(direction)
        cooldown = self._cooldown_for(direction)

        if not cooldown_elapsed(now, last_action_at, cooldown):
            remaining = last_action_at + cooldown - now
            logging.info(f"Waiting for cool down, skipping scale {direction} ({remaining:.1f}s remaining)",
                         extra={'direction': direction})
            return False

        action = self._actuator.scale_up if direction == UP else self._actuator.scale_down
        try:
            action()
        except Exception as e:
            logging.error(f"Failed scaling {direction}: {e}", exc_info=True, extra={'direction': direction})
            return False

        self.cooldowns.stamp(direction, self._clock())
        return True

    def tick(self) -> Dict[str, Any]:
        """
        Run one sample-decide-act iteration without sleeping.

        Returns:
            dict: Sampled message count, whether each direction scaled, and
                  the sampling error if there was one
        """
        result = {'messages': None, 'scaled_up': False, 'scaled_down': False, 'error': None}

        try:
            num_messages = self._metric_source.sample()
        except Exception as e:
            logging.error(f"Failed to get queue messages: {e}", exc_info=True)
            result['error'] = str(e)
            return result

        result['messages'] = num_messages
        logging.info(f"Found {num_messages} messages in the queue", extra={'queue_messages': num_messages})

        # Both directions are evaluated every tick; with inverted thresholds both can fire
        if num_messages >= self._config.scale_up_messages:
            result['scaled_up'] = self._try_scale(UP)

        if num_messages <= self._config.scale_down_messages:
            result['scaled_down'] = self._try_scale(DOWN)

        return result

    def run(self, stop_event: threading.Event = None) -> None:
        """
        Tick forever, sleeping poll_interval after each completed tick.

        Both cooldowns restart when run() is entered, so neither direction
        acts before its cooldown has elapsed from loop start.

        Returns once the stop event is set. The event is checked at the
        sleep point, so an in-progress tick always completes first.
        """
        if stop_event is not None:
            self._stop_event = stop_event
        stop_event = self._stop_event
        self.cooldowns = CooldownState(self._clock())
        logging.info(f"Starting control loop with poll interval {self._config.poll_interval}s")

        while not stop_event.wait(self._config.poll_interval):
            self.tick()

        logging.info("Control loop stopped")

    def stop(self) -> None:
        """Ask run() to return at its next sleep point."""
        self._stop_event.set()
