"""
Audit endpoints.
"""
from uuid import UUID

from fastapi import APIRouter, Query, status

from webaudit.core.deps import AuditServiceDep, CurrentOwner, OptionalOwner
from webaudit.core.errors import InsufficientCreditsError, InvalidUrlError, OrchestrationError
from webaudit.core.exceptions import (
    BadRequestError,
    InternalError,
    NotFoundError,
    PaymentRequiredError,
)
from webaudit.schemas.audit import (
    AuditCreate,
    AuditDetailResponse,
    AuditListResponse,
    AuditOverview,
)

router = APIRouter(prefix="/audits", tags=["Audits"])


@router.post(
    "",
    response_model=AuditDetailResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_audit(
    data: AuditCreate,
    owner_id: OptionalOwner,
    service: AuditServiceDep,
):
    """Audit a URL and store the result."""
    try:
        record = await service.create_audit(data.url, owner_id=owner_id)
    except InvalidUrlError as e:
        raise BadRequestError(str(e))
    except InsufficientCreditsError as e:
        raise PaymentRequiredError(str(e))
    except OrchestrationError:
        raise InternalError()

    return AuditDetailResponse.from_record(record)


@router.get("", response_model=AuditListResponse)
async def list_audits(
    owner_id: CurrentOwner,
    service: AuditServiceDep,
    page: int = Query(default=1, ge=1),
    per_page: int = Query(default=20, ge=1, le=100),
):
    """List the caller's audits, newest first."""
    records, total = await service.list_audits(owner_id, page=page, per_page=per_page)
    return AuditListResponse(
        items=[AuditOverview.from_record(r) for r in records],
        total=total,
    )


@router.get("/{audit_id}", response_model=AuditDetailResponse)
async def get_audit(
    audit_id: UUID,
    owner_id: OptionalOwner,
    service: AuditServiceDep,
):
    """Get an audit. Audits with an owner are only visible to that owner."""
    record = await service.get_audit(audit_id)
    if record is None or (record.owner_id is not None and record.owner_id != owner_id):
        raise NotFoundError("Audit")
    return AuditDetailResponse.from_record(record)
