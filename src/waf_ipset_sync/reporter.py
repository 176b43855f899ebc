"""Outcome records for sync runs.

A run ends in exactly one of two results: ``Ok`` with the write summary or
``Err`` with the first error encountered. ``build_outcome`` turns either into
the record the notifier consumes and never raises.
"""

from dataclasses import dataclass, field
from typing import Union

from waf_ipset_sync.exceptions import APIError, NetworkError
from waf_ipset_sync.models import OutcomeStatus, SyncOutcome, TriggerMetadata
from waf_ipset_sync.writer import WriteResult

SUCCESS_STATUS_CODE = 200
FALLBACK_STATUS_CODE = 500
FALLBACK_REQUEST_ID = "N/A"

SUCCESS_COLOR = "#00DD00"
FAILURE_COLOR = "#DD0000"
SUCCESS_TITLE = "Successfully updated WAF IP Set of CloudFront"
FAILURE_TITLE = "Failed to update WAF IP Set of CloudFront"


@dataclass(frozen=True)
class SyncSummary:
    """What a successful run applied."""

    global_count: int
    regional_count: int
    writes: tuple[WriteResult, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class ErrorDetail:
    """Reportable fields of a failed run.

    Attributes:
        status_code: Backend HTTP status, or a fallback
        error_type: Backend error code, or the exception class name
        request_id: Backend request id, or a fallback
        message: Human-readable description
    """

    status_code: int
    error_type: str
    request_id: str
    message: str

    @classmethod
    def from_exception(cls, error: BaseException) -> "ErrorDetail":
        """Extract reportable fields from any exception.

        Errors without backend metadata (a range download that timed out, an
        unexpected bug) get the fallback status code and request id and
        report their class name as the error type.

        Args:
            error: The first error of the run.

        Returns:
            ErrorDetail with no missing fields.
        """
        status_code: int | None = None
        error_type: str | None = None
        request_id: str | None = None

        if isinstance(error, APIError):
            status_code = error.status_code
            error_type = error.error_type
            request_id = error.request_id
        elif isinstance(error, NetworkError):
            status_code = error.status_code

        return cls(
            status_code=int(status_code) if status_code else FALLBACK_STATUS_CODE,
            error_type=error_type or type(error).__name__,
            request_id=request_id or FALLBACK_REQUEST_ID,
            message=str(error) or type(error).__name__,
        )


@dataclass(frozen=True)
class Ok:
    """The run succeeded."""

    summary: SyncSummary


@dataclass(frozen=True)
class Err:
    """The run failed."""

    detail: ErrorDetail


SyncResult = Union[Ok, Err]


def build_outcome(
    result: SyncResult,
    trigger: TriggerMetadata,
    synced_at: str,
    source: str,
) -> SyncOutcome:
    """Build the outcome record for a run.

    Args:
        result: Ok or Err from the run.
        trigger: Metadata echoed from the triggering event.
        synced_at: ISO timestamp of the run.
        source: Job identifier.

    Returns:
        SyncOutcome for the notifier.
    """
    if isinstance(result, Ok):
        summary = result.summary
        message = (
            f"*Status Code* : {SUCCESS_STATUS_CODE}\n"
            f"*Global IP* : {summary.global_count}\n"
            f"*Regional IP* : {summary.regional_count}\n"
            f"*Changed at* : {trigger.changed_at}\n"
            f"*Update IP Set at* : {synced_at}"
        )
        return SyncOutcome(
            source=source,
            status_code=SUCCESS_STATUS_CODE,
            status=OutcomeStatus.SUCCESS,
            color=SUCCESS_COLOR,
            title=SUCCESS_TITLE,
            message=message,
            changed_at=trigger.changed_at,
            update_ip_set_at=synced_at,
            url=trigger.url,
            global_ip_num=summary.global_count,
            regional_ip_num=summary.regional_count,
        )

    detail = result.detail
    message = (
        f"*Status Code* : {detail.status_code}\n"
        f"*Error* : {detail.error_type}\n"
        f"*Request ID* : {detail.request_id}\n"
        f"*Changed at* : {trigger.changed_at}"
    )
    return SyncOutcome(
        source=source,
        status_code=detail.status_code,
        status=OutcomeStatus.FAILED,
        color=FAILURE_COLOR,
        title=FAILURE_TITLE,
        message=message,
        changed_at=trigger.changed_at,
        update_ip_set_at=synced_at,
        url=trigger.url,
        error_type=detail.error_type,
        request_id=detail.request_id,
    )
