"""HTTP client for the platform control plane."""
import logging
import requests
from typing import Any, Dict, Optional
from urllib.parse import quote

from pydantic import BaseModel, ConfigDict, Field

from deploy_scale.errors import NotFoundError, RemoteError
from deploy_scale.utils.decorators import retry

logger = logging.getLogger(__name__)

# deployment type
TYPE_STATIC = "STATIC"

# states
STATE_ERROR = "ERROR"


class Deployment(BaseModel):
    """The subset of a deployment record the scale command needs."""
    id: str = Field(alias="uid", description="Deployment identifier")
    url: str = Field(description="Host the deployment is served from")
    type: Optional[str] = Field(default=None, description="Workload type, e.g. STATIC, NPM or DOCKER")
    state: Optional[str] = Field(default=None, description="Deployment state, e.g. READY or ERROR")

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    @property
    def is_static(self) -> bool:
        return (self.type or "").upper() == TYPE_STATIC

    @property
    def is_errored(self) -> bool:
        return (self.state or "").upper() == STATE_ERROR


def _is_transient(error: Exception) -> bool:
    """Transport failures and 5xx answers are worth another attempt."""
    return isinstance(error, RemoteError) and (error.status is None or error.status >= 500)


def _host_from_identifier(identifier: str) -> str:
    host = identifier.strip()
    for scheme in ("https://", "http://"):
        if host.lower().startswith(scheme):
            host = host[len(scheme):]
    return host.rstrip("/")


class PlatformClient:
    """Thin client over the deployments API."""

    def __init__(self, api_url: str, token: str, team: Optional[str] = None,
                 timeout: float = 30, max_retries: int = 3,
                 session: Optional[requests.Session] = None):
        """Initialize the client.

        Args:
            api_url: Base URL of the platform API
            token: Bearer token used for every request
            team: Optional team scope, sent as the teamId query parameter
            timeout: Request timeout in seconds
            max_retries: Attempts for idempotent requests
            session: Optional pre-built session (tests)
        """
        self.base_url = api_url.rstrip("/")
        self.team = team
        self.timeout = timeout
        self.max_retries = max_retries
        self.session = session or requests.Session()
        self.session.headers.update({"Authorization": f"Bearer {token}"})

        logger.debug(f"PlatformClient initialized for {self.base_url} (team: {team or 'personal'})")

    def _send(self, method: str, path: str, params: Optional[Dict[str, Any]] = None,
              body: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """Send one request and decode the JSON answer."""
        params = dict(params or {})
        if self.team:
            params["teamId"] = self.team

        url = f"{self.base_url}{path}"
        logger.debug(f"{method} {url}")

        try:
            response = self.session.request(
                method,
                url,
                params=params or None,
                json=body,
                timeout=self.timeout
            )
        except requests.RequestException as e:
            logger.error(f"{method} {path} failed: {e}")
            raise RemoteError(f"Request to {url} failed: {e}") from e

        if not response.ok:
            raise self._error_from_response(response)

        if not response.content:
            return {}
        try:
            return response.json()
        except ValueError as e:
            raise RemoteError(
                f"Unexpected response from {url}: {e}",
                status=response.status_code
            ) from e

    def _error_from_response(self, response: requests.Response) -> RemoteError:
        server_code = None
        message = response.text or response.reason
        try:
            error = response.json().get("error") or {}
            server_code = error.get("code")
            message = error.get("message") or message
        except (ValueError, AttributeError):
            pass

        status = response.status_code
        detail = f"{message} ({status})"
        return RemoteError(detail, status=status, server_code=server_code,
                           meta={"url": response.url})

    def _get(self, path: str, params: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        send = retry(
            max_attempts=self.max_retries,
            exceptions=(RemoteError,),
            when=_is_transient,
            logger_name=__name__
        )(self._send)
        return send("GET", path, params=params)

    def find_deployment(self, identifier: str) -> Deployment:
        """Resolve a deployment id, URL or alias to its deployment record.

        Raises:
            NotFoundError: nothing matches the identifier
            RemoteError: any other failure
        """
        try:
            if "." in identifier:
                host = _host_from_identifier(identifier)
                data = self._get(f"/v3/now/hosts/{quote(host, safe='')}", params={"resolve": 1})
                data = data.get("deployment", data)
            else:
                data = self._get(f"/v3/now/deployments/{quote(identifier, safe='')}")
        except RemoteError as e:
            if e.status != 404:
                raise
            raise NotFoundError(
                e.message,
                meta={**e.meta, "status": e.status, "server_code": e.server_code}
            ) from e

        deployment = Deployment.model_validate(data)
        logger.debug(f"Resolved {identifier} to {deployment.id} ({deployment.url})")
        return deployment

    def set_scale(self, deployment_id: str, scale: Dict[str, Dict[str, Any]]) -> Dict[str, Any]:
        """Replace the scaling rules of the given regions in one request."""
        return self._send(
            "PATCH",
            f"/v3/now/deployments/{quote(deployment_id, safe='')}/instances",
            body=scale
        )

    def get_instance_counts(self, deployment_id: str) -> Dict[str, int]:
        """Running instances per region.

        The endpoint answers ``{"instances": {"<region>": [instance, ...]}}``.
        """
        data = self._get(f"/v3/now/deployments/{quote(deployment_id, safe='')}/instances")
        instances = data.get("instances") or {}
        return {region: len(items or []) for region, items in instances.items()}

    def close(self) -> None:
        """Close the HTTP session."""
        if self.session:
            self.session.close()
            logger.debug("PlatformClient session closed")

    def __enter__(self):
        """Context manager entry."""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit."""
        self.close()
