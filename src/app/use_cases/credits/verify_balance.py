"""VerifyBalance Use Case"""

from libs.result import Result, Return, Error
from src.app.repositories.organization_repository import OrganizationRepository
from src.app.repositories.credit_transaction_repository import CreditTransactionRepository
from src.domain.exceptions import BillingError
from .dtos import BalanceVerificationDTO
from .ledger import CreditLedgerStore


class VerifyBalance:
    """
    Use Case: Compare an organization's stored balance with its transaction sum

    Read-only. A non-zero difference means the ledger invariant is broken.
    """

    def __init__(
        self,
        organization_repo: OrganizationRepository,
        transaction_repo: CreditTransactionRepository,
    ):
        self.ledger = CreditLedgerStore(organization_repo, transaction_repo)

    async def execute(self, organization_id: int) -> Result[BalanceVerificationDTO]:
        try:
            return Return.ok(await self.ledger.verify_balance(organization_id))
        except BillingError as e:
            return Return.err(e.to_error())
        except Exception as e:
            return Return.err(
                Error(
                    code="VERIFY_BALANCE_FAILED",
                    message="Failed to verify balance",
                    reason=str(e),
                )
            )
