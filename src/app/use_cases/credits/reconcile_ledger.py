"""ReconcileLedger Use Case

Audits every organization's stored balance against its transaction history
and looks for promotion debits that never got linked to a promotion.
"""

import logging
import time
from datetime import datetime, timedelta
from typing import Optional
from libs.result import Result, Return, Error
from src.domain.base import utcnow
from src.app.repositories.organization_repository import OrganizationRepository
from src.app.repositories.credit_transaction_repository import CreditTransactionRepository
from .dtos import BalanceDiscrepancyDTO, ReconciliationResultDTO, UnlinkedSpendDTO

logger = logging.getLogger(__name__)


class ReconcileLedger:
    """
    Use Case: Reconcile organization balances against transactions

    Business Rules:
    1. For each organization, expected balance = signed sum of its transactions
    2. Any mismatch is recorded and logged
    3. Promotion / auto-renewal debits older than the grace period without a
       promotion_id are reported as spent-but-unlinked
    4. Does NOT modify any data (read-only reconciliation)
    """

    def __init__(
        self,
        organization_repo: OrganizationRepository,
        transaction_repo: CreditTransactionRepository,
        unlinked_grace_minutes: int = 15,
    ):
        self.organization_repo = organization_repo
        self.transaction_repo = transaction_repo
        self.unlinked_grace_minutes = unlinked_grace_minutes

    async def execute(self, now: Optional[datetime] = None) -> Result[ReconciliationResultDTO]:
        start_time = time.time()
        reconciliation_time = now or utcnow()

        try:
            logger.info("Starting credit ledger reconciliation")

            organizations = await self.organization_repo.get_all()
            total = len(organizations)

            logger.info(f"Found {total} organizations to reconcile")

            discrepancies: list[BalanceDiscrepancyDTO] = []

            for organization in organizations:
                transaction_sum = await self.transaction_repo.get_sum_by_organization(organization.id)

                if organization.credit_balance != transaction_sum:
                    discrepancy_amount = organization.credit_balance - transaction_sum
                    discrepancies.append(
                        BalanceDiscrepancyDTO(
                            organization_id=organization.id,
                            stored_balance=organization.credit_balance,
                            calculated_balance=transaction_sum,
                            discrepancy=discrepancy_amount,
                        )
                    )
                    logger.warning(
                        f"Discrepancy found for organization {organization.id}: "
                        f"stored_balance={organization.credit_balance}, "
                        f"transaction_sum={transaction_sum}, "
                        f"discrepancy={discrepancy_amount}"
                    )

            cutoff = reconciliation_time - timedelta(minutes=self.unlinked_grace_minutes)
            unlinked = await self.transaction_repo.get_unlinked_spends(cutoff)
            unlinked_spends = [
                UnlinkedSpendDTO(
                    transaction_id=t.id,
                    organization_id=t.organization_id,
                    transaction_type=t.transaction_type.value,
                    amount=t.amount,
                    created_at=t.created_at,
                )
                for t in unlinked
            ]
            for spend in unlinked_spends:
                logger.warning(
                    f"Unlinked {spend.transaction_type} debit {spend.transaction_id} "
                    f"for organization {spend.organization_id}: amount={spend.amount}"
                )

            execution_time_ms = int((time.time() - start_time) * 1000)

            response = ReconciliationResultDTO(
                total_organizations_checked=total,
                discrepancies_found=len(discrepancies),
                discrepancies=discrepancies,
                unlinked_spends=unlinked_spends,
                reconciliation_time=reconciliation_time,
                execution_time_ms=execution_time_ms,
            )

            if discrepancies or unlinked_spends:
                logger.warning(
                    f"Reconciliation complete. Found {len(discrepancies)} discrepancies and "
                    f"{len(unlinked_spends)} unlinked debits across {total} organizations "
                    f"in {execution_time_ms}ms"
                )
            else:
                logger.info(
                    f"Reconciliation complete. All {total} organizations balanced "
                    f"in {execution_time_ms}ms"
                )

            return Return.ok(response)

        except Exception as e:
            logger.error(f"Ledger reconciliation failed: {e}")
            return Return.err(
                Error(
                    code="RECONCILIATION_FAILED",
                    message="Failed to reconcile credit ledger",
                    reason=str(e),
                )
            )
