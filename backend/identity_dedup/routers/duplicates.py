"""Admin routes for duplicate detection and account merges."""

from typing import Literal

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from identity_dedup.db.dependencies import get_db
from identity_dedup.errors import InvalidArgument, NotFound, TransactionFailure
from identity_dedup.models.duplicate_detection_log import DetectionType
from identity_dedup.schemas.common import ERROR_RESPONSES, ApiResponse
from identity_dedup.schemas.detection import (
    DetectionLogRead,
    DetectionResult,
    DuplicateCandidate,
    DuplicateCheckRequest,
    DuplicateStats,
)
from identity_dedup.schemas.merge import MergeApiRequest, MergePreview, MergeResult
from identity_dedup.services.audit import AuditSink, get_audit_sink
from identity_dedup.services.duplicates import (
    check_for_duplicate_user,
    find_existing_duplicates,
    get_duplicate_stats,
    get_pending_merges,
)
from identity_dedup.services.merge import merge_accounts, preview_account_merge

router = APIRouter(prefix="/admin/duplicates")


def _http_error(exc: Exception) -> HTTPException:
    if isinstance(exc, NotFound):
        return HTTPException(status_code=404, detail=str(exc))
    if isinstance(exc, InvalidArgument):
        return HTTPException(status_code=400, detail=str(exc))
    return HTTPException(status_code=500, detail=str(exc))


@router.get(
    "",
    response_model=ApiResponse[
        list[DetectionLogRead] | DuplicateStats | list[DuplicateCandidate]
    ],
)
def get_duplicates(
    action: Literal["list", "stats", "pending", "scan"] = Query(default="list"),
    db: Session = Depends(get_db),
    audit_sink: AuditSink = Depends(get_audit_sink),
) -> ApiResponse[list[DetectionLogRead] | DuplicateStats | list[DuplicateCandidate]]:
    """List unresolved detections, stats, pending merges, or run a full scan."""

    if action == "stats":
        return ApiResponse(data=get_duplicate_stats(audit_sink))
    if action == "pending":
        return ApiResponse(data=get_pending_merges(audit_sink=audit_sink))
    if action == "scan":
        return ApiResponse(data=find_existing_duplicates(db, audit_sink=audit_sink))
    return ApiResponse(data=audit_sink.unresolved_detections())


@router.post("/check", response_model=ApiResponse[DetectionResult])
def post_duplicate_check(
    payload: DuplicateCheckRequest,
    db: Session = Depends(get_db),
    audit_sink: AuditSink = Depends(get_audit_sink),
) -> ApiResponse[DetectionResult]:
    """Run a manual duplicate check for an identity."""

    result = check_for_duplicate_user(
        db,
        payload.email,
        payload.name,
        payload.phone,
        detection_type=DetectionType.MANUAL_CHECK,
        audit_sink=audit_sink,
    )
    return ApiResponse(data=result)


@router.get("/merge/preview", response_model=ApiResponse[MergePreview], responses=ERROR_RESPONSES)
def get_merge_preview(
    primary_user_id: str = Query(..., min_length=1),
    merged_user_id: str = Query(..., min_length=1),
    db: Session = Depends(get_db),
) -> ApiResponse[MergePreview]:
    """Preview a merge without changing anything."""

    try:
        return ApiResponse(data=preview_account_merge(db, primary_user_id, merged_user_id))
    except NotFound as exc:
        raise _http_error(exc) from exc


@router.post("/merge", response_model=ApiResponse[MergeResult | MergePreview], responses=ERROR_RESPONSES)
def post_merge(
    payload: MergeApiRequest,
    db: Session = Depends(get_db),
    audit_sink: AuditSink = Depends(get_audit_sink),
) -> ApiResponse[MergeResult | MergePreview]:
    """Merge two accounts, or return the preview when ``preview`` is set."""

    try:
        if payload.primary_user_id == payload.merged_user_id:
            raise InvalidArgument("Cannot merge a user with itself")
        if payload.preview:
            return ApiResponse(data=preview_account_merge(db, payload.primary_user_id, payload.merged_user_id))
        merged_data = merge_accounts(db, payload, audit_sink=audit_sink)
    except (NotFound, InvalidArgument, TransactionFailure) as exc:
        raise _http_error(exc) from exc
    return ApiResponse(
        data=MergeResult(
            primary_user_id=payload.primary_user_id,
            merged_user_id=payload.merged_user_id,
            merged_data=merged_data,
        )
    )
