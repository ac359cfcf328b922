"""Wait until running instances meet freshly applied scaling rules."""
import logging
import time
from typing import Callable, Dict, Mapping

from deploy_scale.args import AUTO, ScalingIntent, ScalingRule
from deploy_scale.errors import VerificationTimeoutError

logger = logging.getLogger(__name__)


def rule_satisfied(count: int, rule: ScalingRule) -> bool:
    """Whether ``count`` running instances fall within the rule's bounds."""
    lower = 0 if rule.min == AUTO else rule.min
    if count < lower:
        return False
    return rule.max == AUTO or count <= rule.max


def is_satisfied(counts: Mapping[str, int], intent: ScalingIntent) -> bool:
    """Regions missing from ``counts`` are treated as running zero instances."""
    return all(
        rule_satisfied(counts.get(region, 0), rule)
        for region, rule in intent.rules
    )


class ScaleVerifier:
    """Polls the instance counts of a deployment until the rules hold."""

    def __init__(self, client, timeout: float = 120.0, interval: float = 2.0,
                 clock: Callable[[], float] = time.monotonic,
                 sleep: Callable[[float], None] = time.sleep):
        self.client = client
        self.timeout = timeout
        self.interval = interval
        self._clock = clock
        self._sleep = sleep

    def wait(self, deployment_id: str, intent: ScalingIntent) -> Dict[str, int]:
        """Block until every region of ``intent`` runs an acceptable count.

        Returns:
            The last observed counts per region

        Raises:
            VerificationTimeoutError: the rules did not hold within ``timeout``
        """
        deadline = self._clock() + self.timeout

        while True:
            counts = self.client.get_instance_counts(deployment_id)
            logger.debug(f"Instance counts for {deployment_id}: {counts}")
            if is_satisfied(counts, intent):
                return counts

            if self._clock() >= deadline:
                pending = [
                    region for region, rule in intent.rules
                    if not rule_satisfied(counts.get(region, 0), rule)
                ]
                raise VerificationTimeoutError(
                    f"Timed out after {self.timeout:.0f}s waiting for instance counts "
                    f"to meet the scale rules in {', '.join(pending)}",
                    meta={"counts": counts, "pending": pending}
                )
            self._sleep(self.interval)
