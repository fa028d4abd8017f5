"""
Audit persistence and the run-and-save use case.
"""
import logging
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from webaudit.models.audit import AuditRecordRow
from webaudit.schemas.audit import AuditRecord
from webaudit.services.orchestrator import AuditOrchestrator

logger = logging.getLogger(__name__)


class AuditRepository:
    """Stores AuditRecord aggregates as JSON documents."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def save(self, record: AuditRecord) -> AuditRecord:
        """Persist a record and return it with its assigned id."""
        row = AuditRecordRow(
            url=record.url,
            owner_id=record.owner_id,
            seo_score=record.seo.score,
            performance_score=record.performance.score,
            ui_ux_score=record.ui_ux.score,
            created_at=record.created_at,
            payload=record.model_dump(mode="json", exclude={"id"}),
        )
        self.db.add(row)
        await self.db.flush()
        await self.db.refresh(row)
        return record.model_copy(update={"id": row.id})

    async def find_by_id(self, audit_id: UUID) -> AuditRecord | None:
        row = await self.db.get(AuditRecordRow, audit_id)
        return self._to_record(row) if row else None

    async def find_by_owner(
        self,
        owner_id: str,
        page: int = 1,
        per_page: int = 20,
    ) -> tuple[list[AuditRecord], int]:
        """Owner's audits, newest first, with the total count."""
        count_query = select(func.count(AuditRecordRow.id)).where(
            AuditRecordRow.owner_id == owner_id
        )
        total = (await self.db.execute(count_query)).scalar() or 0

        query = (
            select(AuditRecordRow)
            .where(AuditRecordRow.owner_id == owner_id)
            .order_by(AuditRecordRow.created_at.desc())
            .offset((page - 1) * per_page)
            .limit(per_page)
        )
        result = await self.db.execute(query)
        return [self._to_record(row) for row in result.scalars().all()], total

    @staticmethod
    def _to_record(row: AuditRecordRow) -> AuditRecord:
        return AuditRecord.model_validate({**row.payload, "id": row.id})


class AuditService:
    """Runs an audit and stores the result."""

    def __init__(self, orchestrator: AuditOrchestrator, repository: AuditRepository):
        self.orchestrator = orchestrator
        self.repository = repository

    async def create_audit(self, url: str, owner_id: str | None = None) -> AuditRecord:
        """
        Audit a URL and persist the record.

        Nothing is stored when the orchestrator raises.
        """
        record = await self.orchestrator.run(url, owner_id=owner_id)
        saved = await self.repository.save(record)
        logger.info(f"[Audit] Saved audit {saved.id} for {saved.url}")
        return saved

    async def get_audit(self, audit_id: UUID) -> AuditRecord | None:
        return await self.repository.find_by_id(audit_id)

    async def list_audits(
        self,
        owner_id: str,
        page: int = 1,
        per_page: int = 20,
    ) -> tuple[list[AuditRecord], int]:
        return await self.repository.find_by_owner(owner_id, page=page, per_page=per_page)
