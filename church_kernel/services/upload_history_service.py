"""
UploadHistoryService -- import-batch lifecycle and batch-scoped rollback.

Responsibility:
    Records the lifecycle of a CSV import batch
    (PROCESSING -> COMPLETED | PARTIAL -> ROLLED_BACK) and undoes one batch
    by deleting exactly the transactions and payments that reference it.

Architecture position:
    Kernel > Services -- imperative shell.  The CSV parsing itself lives
    outside the kernel; the importer calls ``begin_upload`` before writing
    rows and ``complete_upload`` afterwards.

Invariants enforced:
    - Rollback is scoped by ``upload_history_id``, never by date: manually
      entered records and other batches are untouched even when their
      dates overlap.
    - ROLLED_BACK is terminal; a second rollback is an error, not a no-op.
    - A PROCESSING batch cannot be rolled back.
    - The batch row is locked (SELECT ... FOR UPDATE) for the duration of
      the rollback so concurrent rollbacks serialize.
    - Flush-only: never commits or rolls back the session.

Failure modes:
    - UploadNotFoundError
    - UploadAlreadyRolledBackError, UploadStillProcessingError,
      NothingToRollBackError, InvalidUploadTransitionError
    - UnauthenticatedError / ForbiddenError for non-admin rollback.
"""

from collections.abc import Sequence
from uuid import UUID

from sqlalchemy import delete, select

from church_kernel.domain.dtos import RollbackResult, UploadInfo
from church_kernel.domain.roles import Actor, require_admin, require_authenticated
from church_kernel.exceptions import (
    InvalidUploadTransitionError,
    NothingToRollBackError,
    UploadAlreadyRolledBackError,
    UploadNotFoundError,
    UploadStillProcessingError,
)
from church_kernel.logging_config import LogContext, get_logger
from church_kernel.models.transaction import Payment, Transaction
from church_kernel.models.upload_history import UploadHistory, UploadStatus
from church_kernel.selectors.upload_selector import UploadSelector
from church_kernel.services.base import BaseService

logger = get_logger("services.upload_history")


class UploadHistoryService(BaseService):
    """Service for upload batches."""

    def begin_upload(
        self,
        file_name: str,
        actor: Actor | None,
        upload_type: str = "transactions",
    ) -> UploadInfo:
        """Open a new batch in PROCESSING."""
        actor = require_authenticated(actor)

        upload = UploadHistory(
            file_name=file_name,
            upload_type=upload_type,
            uploaded_by_id=actor.user_id,
            uploaded_at=self._clock.now(),
            status=UploadStatus.PROCESSING.value,
            records_processed=0,
        )
        self.session.add(upload)
        self.session.flush()

        logger.info(
            "upload_started",
            extra={"upload_id": upload.id, "file_name": file_name},
        )
        return UploadSelector(self.session).to_info(upload)

    def complete_upload(
        self,
        upload_id: UUID,
        records_processed: int,
        errors: Sequence[str] = (),
    ) -> UploadInfo:
        """
        Close a PROCESSING batch as COMPLETED, or PARTIAL when rows failed.

        Raises:
            UploadNotFoundError: Upload id does not resolve.
            InvalidUploadTransitionError: Batch is not PROCESSING.
        """
        upload = self._get_for_update(upload_id)
        if upload is None:
            raise UploadNotFoundError(str(upload_id))

        target = UploadStatus.PARTIAL if errors else UploadStatus.COMPLETED
        if upload.status_value != UploadStatus.PROCESSING:
            raise InvalidUploadTransitionError(
                str(upload_id), upload.status_value.value, target.value
            )

        upload.status = target.value
        upload.records_processed = records_processed
        upload.error_log = "\n".join(errors) if errors else None
        self.session.flush()

        logger.info(
            "upload_completed",
            extra={
                "upload_id": upload.id,
                "status": target.value,
                "records_processed": records_processed,
                "error_count": len(errors),
            },
        )
        return UploadSelector(self.session).to_info(upload)

    def rollback_upload(self, upload_id: UUID, actor: Actor | None) -> RollbackResult:
        """
        Delete every transaction and payment created by the batch.

        Postconditions:
            - Records referencing the batch are deleted.
            - Batch status is ROLLED_BACK with ``rolled_back_at`` set.

        Raises:
            UploadNotFoundError: Upload id does not resolve.
            UploadAlreadyRolledBackError: Batch already ROLLED_BACK.
            UploadStillProcessingError: Batch still PROCESSING.
            NothingToRollBackError: Batch owns no transactions or payments.
        """
        actor = require_admin(actor, "roll back upload")

        upload = self._get_for_update(upload_id)
        if upload is None:
            raise UploadNotFoundError(str(upload_id))

        with LogContext.bind(upload_id=str(upload.id)):
            status = upload.status_value
            if upload.is_rolled_back:
                logger.warning("upload_rollback_rejected", extra={"status": status.value})
                raise UploadAlreadyRolledBackError(str(upload_id))
            if status == UploadStatus.PROCESSING:
                logger.warning("upload_rollback_rejected", extra={"status": status.value})
                raise UploadStillProcessingError(str(upload_id))

            transaction_count, payment_count = UploadSelector(
                self.session
            ).count_records(upload.id)
            if transaction_count == 0 and payment_count == 0:
                raise NothingToRollBackError(str(upload_id))

            transactions = self.session.execute(
                delete(Transaction)
                .where(Transaction.upload_history_id == upload.id)
                .execution_options(synchronize_session=False)
            ).rowcount
            payments = self.session.execute(
                delete(Payment)
                .where(Payment.upload_history_id == upload.id)
                .execution_options(synchronize_session=False)
            ).rowcount

            upload.status = UploadStatus.ROLLED_BACK.value
            upload.rolled_back_at = self._clock.now()
            self.session.flush()
            # Bulk deletes bypass the identity map; drop stale state.
            self.session.expire_all()

            logger.info(
                "upload_rolled_back",
                extra={
                    "transactions_deleted": transactions,
                    "payments_deleted": payments,
                    "actor": actor.user_id,
                },
            )

        return RollbackResult(
            upload_id=upload_id,
            transactions_deleted=transactions,
            payments_deleted=payments,
        )

    def _get_for_update(self, upload_id: UUID) -> UploadHistory | None:
        """Get the batch with a row lock for concurrent mutation."""
        return self.session.execute(
            select(UploadHistory)
            .where(UploadHistory.id == upload_id)
            .with_for_update()
        ).scalar_one_or_none()
