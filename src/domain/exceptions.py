"""Domain exceptions

Business-rule violations raised by the ledger and promotion components.
Every exception carries a stable ``code`` so use cases can translate it into
a ``libs.result.Error`` without string matching.
"""

from typing import Optional
from libs.result import Error


class BillingError(Exception):
    code = "BILLING_ERROR"

    def __init__(self, message: str, reason: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.reason = reason

    def to_error(self) -> Error:
        return Error(code=self.code, message=self.message, reason=self.reason)


class InvalidAmountError(BillingError):
    code = "INVALID_AMOUNT"

    def __init__(self, amount: int):
        super().__init__("Amount must be positive", reason=f"amount={amount}")
        self.amount = amount


class InsufficientCreditsError(BillingError):
    code = "INSUFFICIENT_CREDITS"

    def __init__(self, required: int, available: int):
        super().__init__(
            f"Insufficient credits: required {required}, available {available}",
            reason=f"required={required}, available={available}",
        )
        self.required = required
        self.available = available


class InvalidTransactionTypeError(BillingError):
    code = "INVALID_TRANSACTION_TYPE"


class BalanceConflictError(BillingError):
    code = "BALANCE_CONFLICT"

    def __init__(self, organization_id: int):
        super().__init__(
            f"Balance of organization {organization_id} changed concurrently",
            reason="conditional balance write matched no row",
        )
        self.organization_id = organization_id


class InvalidTopupAmountError(BillingError):
    code = "INVALID_TOPUP_AMOUNT"


class OrganizationNotFoundError(BillingError):
    code = "ORGANIZATION_NOT_FOUND"

    def __init__(self, organization_id: int):
        super().__init__(f"Organization not found: {organization_id}")


class PackageNotFoundError(BillingError):
    code = "PACKAGE_NOT_FOUND"

    def __init__(self, package_id: int):
        super().__init__(f"Promotion package not found: {package_id}")


class PackageInactiveError(BillingError):
    code = "PACKAGE_INACTIVE"

    def __init__(self, package_id: int):
        super().__init__("This promotion package is not available", reason=f"package_id={package_id}")


class ConstructionNotFoundError(BillingError):
    code = "CONSTRUCTION_NOT_FOUND"

    def __init__(self, construction_id: int):
        super().__init__(f"Construction not found: {construction_id}")


class OwnershipMismatchError(BillingError):
    code = "OWNERSHIP_MISMATCH"

    def __init__(self, construction_id: int, organization_id: int):
        super().__init__(
            "Construction does not belong to your organization",
            reason=f"construction_id={construction_id}, organization_id={organization_id}",
        )


class NotPromotableError(BillingError):
    code = "NOT_PROMOTABLE"


class AlreadyPromotedError(BillingError):
    code = "ALREADY_PROMOTED"

    def __init__(self, construction_id: int):
        super().__init__(
            "This construction already has an active promotion",
            reason=f"construction_id={construction_id}",
        )


class PromotionNotFoundError(BillingError):
    code = "PROMOTION_NOT_FOUND"

    def __init__(self, promotion_id: int):
        super().__init__(f"Promotion not found: {promotion_id}")


class PromotionNotActiveError(BillingError):
    code = "NOT_ACTIVE"

    def __init__(self, promotion_id: int, status: str):
        super().__init__(
            "Only active promotions can be changed",
            reason=f"promotion_id={promotion_id}, status={status}",
        )


class InvalidStatusTransitionError(BillingError):
    code = "INVALID_STATUS_TRANSITION"

    def __init__(self, entity: str, current: str, target: str):
        super().__init__(
            f"{entity} cannot move from {current} to {target}",
            reason=f"current={current}, target={target}",
        )
        self.current = current
        self.target = target


class TopupNotFoundError(BillingError):
    code = "TOPUP_NOT_FOUND"

    def __init__(self, topup_history_id: int):
        super().__init__(f"Topup history not found: {topup_history_id}")


class InvalidWebhookPayloadError(BillingError):
    code = "INVALID_WEBHOOK_PAYLOAD"
