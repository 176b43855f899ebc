"""WAFv2 client for managing IP sets.

Uses boto3 for API operations and converts botocore errors into the
package's exception hierarchy.
"""

import logging
from typing import Any

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from waf_ipset_sync.exceptions import APIError, ConcurrencyError, DirectoryError
from waf_ipset_sync.models import IPSet
from waf_ipset_sync.settings import IPSetSyncSettings, get_settings

logger = logging.getLogger(__name__)

IP_ADDRESS_VERSION = "IPV4"
LIST_PAGE_SIZE = 100

# Error codes WAFv2 returns when the presented lock token is stale
STALE_TOKEN_ERROR_CODES = frozenset({"WAFOptimisticLockException"})


class WAFv2Client:
    """Client for WAFv2 IP set operations.

    Every call is made in the scope configured in settings. Methods are
    blocking; the sync pipeline runs them in worker threads.

    Example:
        ```python
        client = WAFv2Client()

        ip_sets = client.list_ip_sets()
        current = client.get_ip_set(ip_sets[0].id, ip_sets[0].name)
        client.update_ip_set(
            current.id, current.name, ["192.0.2.0/24"], "Updated", current.lock_token
        )
        ```
    """

    def __init__(
        self,
        settings: IPSetSyncSettings | None = None,
        client: Any = None,
    ) -> None:
        """Initialize the WAFv2 client.

        Args:
            settings: Optional settings. If not provided, reads from environment.
            client: Optional boto3 ``wafv2`` client. Created from settings if omitted.
        """
        self.settings = settings or get_settings()
        self.scope = self.settings.waf_scope
        self._client = client or boto3.client(
            "wafv2", region_name=self.settings.aws_region
        )

        logger.debug("Initialized WAFv2 client for scope %s", self.scope)

    def _handle_api_error(
        self,
        error: Exception,
        operation: str,
        error_class: type[APIError] = APIError,
    ) -> None:
        """Convert botocore exceptions to our custom exceptions.

        Args:
            error: Exception raised by boto3.
            operation: WAFv2 operation name, for context.
            error_class: Exception type for non-token failures.

        Raises:
            ConcurrencyError: When the lock token was stale.
            APIError: For every other backend rejection (or ``error_class``).
        """
        if isinstance(error, ClientError):
            response = error.response
            metadata = response.get("ResponseMetadata", {})
            error_info = response.get("Error", {})
            error_type = error_info.get("Code")
            detail = error_info.get("Message") or str(error)
            context: dict[str, Any] = {
                "status_code": metadata.get("HTTPStatusCode"),
                "error_type": error_type,
                "request_id": metadata.get("RequestId"),
                "operation": operation,
            }

            if error_type in STALE_TOKEN_ERROR_CODES:
                msg = f"{operation} rejected a stale lock token: {detail}"
                raise ConcurrencyError(msg, **context) from error

            msg = f"{operation} failed: {detail}"
            raise error_class(msg, **context) from error

        msg = f"{operation} failed: {error}"
        raise error_class(
            msg, error_type=type(error).__name__, operation=operation
        ) from error

    # =========================================================================
    # IP Set Operations
    # =========================================================================

    def list_ip_sets(self) -> list[IPSet]:
        """List all IP sets in the configured scope.

        Follows ``NextMarker`` until every page has been read.

        Returns:
            List of IPSet summaries (no addresses).

        Raises:
            DirectoryError: If the listing request fails.
        """
        ip_sets: list[IPSet] = []
        params: dict[str, Any] = {"Scope": self.scope, "Limit": LIST_PAGE_SIZE}

        try:
            while True:
                response = self._client.list_ip_sets(**params)
                for summary in response.get("IPSets", []):
                    ip_sets.append(IPSet.from_api(summary))

                marker = response.get("NextMarker")
                if not marker:
                    break
                params["NextMarker"] = marker
        except (ClientError, BotoCoreError) as e:
            self._handle_api_error(e, "ListIPSets", DirectoryError)
            raise  # Unreachable but satisfies type checker

        logger.debug("Listed %d IP sets in scope %s", len(ip_sets), self.scope)
        return ip_sets

    def get_ip_set(self, ip_set_id: str, name: str) -> IPSet:
        """Read an IP set together with its current lock token.

        Args:
            ip_set_id: The IP set identifier.
            name: The IP set name.

        Returns:
            IPSet with addresses and lock token populated.

        Raises:
            APIError: If the API request fails.
        """
        try:
            response = self._client.get_ip_set(
                Name=name,
                Scope=self.scope,
                Id=ip_set_id,
            )
        except (ClientError, BotoCoreError) as e:
            self._handle_api_error(e, "GetIPSet")
            raise

        ip_set = IPSet.from_api(response["IPSet"], lock_token=response.get("LockToken"))
        logger.info("LockToken for %s: %s", name, ip_set.lock_token)
        return ip_set

    def create_ip_set(
        self,
        name: str,
        addresses: list[str],
        description: str | None = None,
    ) -> IPSet:
        """Create a new IPv4 IP set.

        Args:
            name: IP set name.
            addresses: CIDR ranges the set should hold.
            description: Optional description.

        Returns:
            The created IPSet (summary plus the submitted addresses).

        Raises:
            APIError: If the backend rejects the request (name collision,
                invalid address, quota).
        """
        params: dict[str, Any] = {
            "Name": name,
            "Scope": self.scope,
            "IPAddressVersion": IP_ADDRESS_VERSION,
            "Addresses": addresses,
        }
        if description:
            params["Description"] = description

        try:
            response = self._client.create_ip_set(**params)
        except (ClientError, BotoCoreError) as e:
            self._handle_api_error(e, "CreateIPSet")
            raise

        summary = response["Summary"]
        logger.info("Created IP set '%s' with ID %s", name, summary["Id"])
        logger.debug("CreateIPSet response: %s", response)
        ip_set = IPSet.from_api(summary)
        ip_set.addresses = list(addresses)
        return ip_set

    def update_ip_set(
        self,
        ip_set_id: str,
        name: str,
        addresses: list[str],
        description: str | None,
        lock_token: str,
    ) -> str:
        """Replace the addresses of an IP set.

        Args:
            ip_set_id: The IP set identifier.
            name: The IP set name.
            addresses: Complete new list of CIDR ranges.
            description: New description.
            lock_token: Token from the read that preceded this update.

        Returns:
            The next lock token.

        Raises:
            ConcurrencyError: If the lock token is stale.
            APIError: If the API request fails for another reason.
        """
        params: dict[str, Any] = {
            "Name": name,
            "Scope": self.scope,
            "Id": ip_set_id,
            "Addresses": addresses,
            "LockToken": lock_token,
        }
        if description:
            params["Description"] = description

        try:
            response = self._client.update_ip_set(**params)
        except (ClientError, BotoCoreError) as e:
            self._handle_api_error(e, "UpdateIPSet")
            raise

        next_token = response["NextLockToken"]
        logger.info("Updated IP set '%s' with %d addresses", name, len(addresses))
        logger.debug("Next LockToken for %s: %s", name, next_token)
        return next_token
