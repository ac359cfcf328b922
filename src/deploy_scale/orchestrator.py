"""
Apply a resolved scaling intent to a deployment.

Resolves the deployment (id or alias), refuses deployments that cannot be
scaled, submits the per-region rules in a single update request and
optionally waits for the running instances to match.
"""
import json
import logging
import time
from dataclasses import dataclass
from typing import Dict, Optional

from deploy_scale.args import ScalingIntent
from deploy_scale.client import Deployment
from deploy_scale.errors import NotFoundError, ValidationError
from deploy_scale.output import Output, bold, elapsed
from deploy_scale.verify import ScaleVerifier

logger = logging.getLogger(__name__)


def _elapsed_ms(start: float) -> int:
    return int((time.monotonic() - start) * 1000)


@dataclass
class ScaleResult:
    """Outcome of a successful scale run."""
    deployment: Deployment
    lookup_ms: int
    update_ms: int
    verify_ms: Optional[int] = None
    instance_counts: Optional[Dict[str, int]] = None


class ScaleOrchestrator:
    """Runs lookup, eligibility checks and the update for one invocation."""

    def __init__(self, client, output: Optional[Output] = None,
                 verifier: Optional[ScaleVerifier] = None):
        self.client = client
        self.output = output or Output()
        self.verifier = verifier

    def find_deployment(self, identifier: str) -> Deployment:
        start = time.monotonic()
        try:
            with self.output.wait(f'Fetching deployment "{identifier}"'):
                deployment = self.client.find_deployment(identifier)
        except NotFoundError as err:
            raise NotFoundError(
                f'Failed to find deployment "{identifier}"',
                meta={"identifier": identifier}
            ) from err

        self.output.log(f'Fetched deployment "{deployment.url}" {elapsed(_elapsed_ms(start))}')
        return deployment

    @staticmethod
    def check_eligible(deployment: Deployment) -> None:
        """Raise ValidationError if the deployment cannot take scaling rules."""
        if deployment.is_static:
            raise ValidationError(
                "Scaling rules cannot be set on static deployments",
                meta={"deployment": deployment.id, "type": deployment.type}
            )
        if deployment.is_errored:
            raise ValidationError(
                "Cannot scale a deployment in the ERROR state",
                meta={"deployment": deployment.id, "state": deployment.state}
            )

    def apply(self, deployment: Deployment, intent: ScalingIntent) -> int:
        """Submit every region's rule in one request. Returns elapsed ms."""
        payload = intent.as_payload()
        self.output.debug(f"scale args: {json.dumps(payload)}")
        logger.debug(f"Scaling {deployment.id}: {payload}")

        rules = {rule for _, rule in intent.rules}
        if len(rules) == 1:
            rule = next(iter(rules))
            summary = f"(min: {bold(rule.min)}, max: {bold(rule.max)})"
        else:
            summary = "(per-region rules)"
        regions = ", ".join(bold(region) for region in intent.regions)

        start = time.monotonic()
        with self.output.wait(f"Setting scale rules for {regions} {summary}"):
            self.client.set_scale(deployment.id, payload)
        update_ms = _elapsed_ms(start)

        self.output.success(f"Deployment scale settings updated {elapsed(update_ms)}")
        return update_ms

    def verify(self, deployment: Deployment, intent: ScalingIntent):
        start = time.monotonic()
        with self.output.wait("Waiting for instance counts to meet the new rules"):
            counts = self.verifier.wait(deployment.id, intent)
        verify_ms = _elapsed_ms(start)
        self.output.success(f"Instance counts verified {elapsed(verify_ms)}")
        return counts, verify_ms

    def run(self, identifier: str, intent: ScalingIntent) -> ScaleResult:
        """Scale the deployment named by ``identifier``.

        Args:
            identifier: Deployment id, URL or alias
            intent: Resolved per-region scaling rules

        Returns:
            ScaleResult with the resolved deployment and step timings

        Raises:
            NotFoundError: the identifier did not resolve
            ValidationError: the deployment is static or in the ERROR state
            RemoteError: any other failure of the lookup or update call
        """
        start = time.monotonic()
        deployment = self.find_deployment(identifier)
        lookup_ms = _elapsed_ms(start)

        self.check_eligible(deployment)

        update_ms = self.apply(deployment, intent)
        result = ScaleResult(deployment=deployment, lookup_ms=lookup_ms, update_ms=update_ms)

        if self.verifier is not None:
            result.instance_counts, result.verify_ms = self.verify(deployment, intent)

        logger.debug(f"Scaled {deployment.id} in {_elapsed_ms(start)}ms")
        return result
