"""Credit Ledger Store

The only component allowed to change an organization's credit balance.
Every mutation appends a CreditTransaction and moves the balance in the same
database transaction.
"""

import json
import logging
from typing import Any, Dict, NamedTuple, Optional
from tenacity import AsyncRetrying, before_sleep_log, retry_if_exception_type, stop_after_attempt
from libs.result import Result, Return, Error
from src.app.services.unit_of_work import UnitOfWork
from src.app.repositories.organization_repository import OrganizationRepository
from src.app.repositories.credit_transaction_repository import CreditTransactionRepository
from src.domain.credit_transaction import (
    CREDIT_TYPES,
    DEBIT_TYPES,
    CreditReference,
    CreditTransaction,
    TransactionType,
)
from src.domain.exceptions import (
    BalanceConflictError,
    BillingError,
    InsufficientCreditsError,
    InvalidAmountError,
    InvalidTransactionTypeError,
    OrganizationNotFoundError,
)
from .dtos import BalanceVerificationDTO, CreditTransactionDTO, LedgerMutationResponseDTO

logger = logging.getLogger(__name__)


class LedgerEntry(NamedTuple):
    new_balance: int
    transaction: CreditTransaction


def _validate_amount(amount) -> None:
    if isinstance(amount, bool) or not isinstance(amount, int) or amount <= 0:
        raise InvalidAmountError(amount)


class CreditLedgerStore:
    """
    Balance mutations with pessimistic locking and a conditional write

    Business Rules:
    1. Amounts are positive integers, the sign comes from the operation
    2. Balance never goes below zero
    3. The organization row is locked (SELECT FOR UPDATE) before reading the balance
    4. The balance update only applies if the stored balance still equals the
       balance the transaction was computed from (BalanceConflictError otherwise)

    The store flushes but never commits. Callers own the unit of work so that
    a deduction can commit together with the promotion it pays for.
    """

    def __init__(
        self,
        organization_repo: OrganizationRepository,
        transaction_repo: CreditTransactionRepository,
    ):
        self.organization_repo = organization_repo
        self.transaction_repo = transaction_repo

    async def add_credits(
        self,
        organization_id: int,
        amount: int,
        transaction_type: TransactionType = TransactionType.TOPUP,
        description: str = "",
        reference: Optional[CreditReference] = None,
        performed_by: Optional[str] = None,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> LedgerEntry:
        """
        Credit an organization

        Raises:
            InvalidAmountError: amount is not a positive integer
            InvalidTransactionTypeError: type is not a credit type
            OrganizationNotFoundError: organization does not exist
            BalanceConflictError: balance changed between read and write
        """
        _validate_amount(amount)
        if transaction_type not in CREDIT_TYPES:
            raise InvalidTransactionTypeError(
                f"{transaction_type.value} cannot add credits"
            )

        organization = await self._lock_organization(organization_id)
        balance_before = organization.credit_balance
        balance_after = balance_before + amount

        transaction = await self._record(
            organization_id,
            transaction_type,
            amount,
            balance_before,
            balance_after,
            description,
            reference,
            performed_by,
            metadata,
        )

        loaded_delta = amount if transaction_type == TransactionType.TOPUP else 0
        await self._write_balance(organization_id, balance_before, balance_after, loaded_delta=loaded_delta)

        logger.info(
            f"Added {amount} credits ({transaction_type.value}) to organization {organization_id}: "
            f"{balance_before} -> {balance_after}"
        )
        return LedgerEntry(balance_after, transaction)

    async def deduct_credits(
        self,
        organization_id: int,
        amount: int,
        transaction_type: TransactionType = TransactionType.PROMOTION,
        description: str = "",
        reference: Optional[CreditReference] = None,
        performed_by: Optional[str] = None,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> LedgerEntry:
        """
        Debit an organization

        Raises:
            InvalidAmountError: amount is not a positive integer
            InvalidTransactionTypeError: type is not a debit type
            OrganizationNotFoundError: organization does not exist
            InsufficientCreditsError: balance < amount
            BalanceConflictError: balance changed between read and write
        """
        _validate_amount(amount)
        if transaction_type not in DEBIT_TYPES:
            raise InvalidTransactionTypeError(
                f"{transaction_type.value} cannot deduct credits"
            )

        organization = await self._lock_organization(organization_id)
        balance_before = organization.credit_balance

        if balance_before < amount:
            raise InsufficientCreditsError(required=amount, available=balance_before)

        balance_after = balance_before - amount

        transaction = await self._record(
            organization_id,
            transaction_type,
            -amount,
            balance_before,
            balance_after,
            description,
            reference,
            performed_by,
            metadata,
        )

        await self._write_balance(organization_id, balance_before, balance_after, spent_delta=amount)

        logger.info(
            f"Deducted {amount} credits ({transaction_type.value}) from organization {organization_id}: "
            f"{balance_before} -> {balance_after}"
        )
        return LedgerEntry(balance_after, transaction)

    async def verify_balance(self, organization_id: int) -> BalanceVerificationDTO:
        organization = await self.organization_repo.get_by_id(organization_id)
        if not organization:
            raise OrganizationNotFoundError(organization_id)

        calculated = await self.transaction_repo.get_sum_by_organization(organization_id)
        difference = organization.credit_balance - calculated

        return BalanceVerificationDTO(
            organization_id=organization_id,
            is_valid=difference == 0,
            stored_balance=organization.credit_balance,
            calculated_balance=calculated,
            difference=difference,
        )

    async def _lock_organization(self, organization_id: int):
        organization = await self.organization_repo.get_by_id(organization_id, for_update=True)
        if not organization:
            raise OrganizationNotFoundError(organization_id)
        return organization

    async def _record(
        self,
        organization_id: int,
        transaction_type: TransactionType,
        signed_amount: int,
        balance_before: int,
        balance_after: int,
        description: str,
        reference: Optional[CreditReference],
        performed_by: Optional[str],
        metadata: Optional[Dict[str, Any]],
    ) -> CreditTransaction:
        transaction = CreditTransaction(
            organization_id=organization_id,
            transaction_type=transaction_type,
            amount=signed_amount,
            balance_before=balance_before,
            balance_after=balance_after,
            description=description,
            performed_by=performed_by,
            metadata_json=json.dumps(metadata) if metadata else None,
        )
        transaction.apply_reference(reference)
        return await self.transaction_repo.create(transaction)

    async def _write_balance(
        self,
        organization_id: int,
        expected_balance: int,
        new_balance: int,
        loaded_delta: int = 0,
        spent_delta: int = 0,
    ) -> None:
        updated = await self.organization_repo.update_balance(
            organization_id,
            expected_balance=expected_balance,
            new_balance=new_balance,
            loaded_delta=loaded_delta,
            spent_delta=spent_delta,
        )
        if not updated:
            logger.warning(
                f"Balance conflict for organization {organization_id}: "
                f"expected stored balance {expected_balance}"
            )
            raise BalanceConflictError(organization_id)


class LedgerMutationUseCase:
    """
    Base for stand-alone ledger use cases

    Runs one mutation per unit of work and retries the whole unit of work when
    the conditional balance write loses a race.
    """

    MAX_ATTEMPTS = 3
    FAILURE_CODE = "LEDGER_MUTATION_FAILED"
    FAILURE_MESSAGE = "Failed to update credit balance"

    def __init__(
        self,
        uow: UnitOfWork,
        organization_repo: OrganizationRepository,
        transaction_repo: CreditTransactionRepository,
    ):
        self.uow = uow
        self.ledger = CreditLedgerStore(organization_repo, transaction_repo)

    async def _mutate(self, command) -> LedgerEntry:
        raise NotImplementedError

    async def _mutate_and_commit(self, command) -> LedgerEntry:
        try:
            entry = await self._mutate(command)
            await self.uow.commit()
        except Exception:
            await self.uow.rollback()
            raise
        return entry

    async def execute(self, command) -> Result[LedgerMutationResponseDTO]:
        try:
            async for attempt in AsyncRetrying(
                stop=stop_after_attempt(self.MAX_ATTEMPTS),
                retry=retry_if_exception_type(BalanceConflictError),
                before_sleep=before_sleep_log(logger, logging.INFO),
                reraise=True,
            ):
                with attempt:
                    entry = await self._mutate_and_commit(command)
        except BalanceConflictError as e:
            logger.error(
                f"Giving up on organization {e.organization_id} after {self.MAX_ATTEMPTS} balance conflicts"
            )
            return Return.err(e.to_error())
        except BillingError as e:
            return Return.err(e.to_error())
        except Exception as e:
            return Return.err(
                Error(
                    code=self.FAILURE_CODE,
                    message=self.FAILURE_MESSAGE,
                    reason=str(e),
                )
            )

        return Return.ok(
            LedgerMutationResponseDTO(
                new_balance=entry.new_balance,
                transaction=CreditTransactionDTO.from_entity(entry.transaction),
            )
        )
