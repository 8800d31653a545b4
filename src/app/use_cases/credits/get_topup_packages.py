"""GetTopupPackages Use Case"""

from libs.result import Result, Return
from src.domain.credit_policy import MAX_TOPUP, MIN_TOPUP, TOPUP_PACKAGE_AMOUNTS, calculate_bonus
from .dtos import TopupPackageDTO, TopupPackagesResponseDTO


class GetTopupPackages:
    """Predefined top-up amounts with their bonus breakdown, for display"""

    def __init__(self, min_topup: int = MIN_TOPUP, max_topup: int = MAX_TOPUP):
        self.min_topup = min_topup
        self.max_topup = max_topup

    async def execute(self) -> Result[TopupPackagesResponseDTO]:
        packages = []
        for amount in TOPUP_PACKAGE_AMOUNTS:
            if amount < self.min_topup or amount > self.max_topup:
                continue
            bonus, percentage = calculate_bonus(amount)
            packages.append(
                TopupPackageDTO(
                    amount=amount,
                    bonus_credits=bonus,
                    bonus_percentage=percentage,
                    total_credits=amount + bonus,
                )
            )

        return Return.ok(
            TopupPackagesResponseDTO(
                packages=packages,
                min_amount=self.min_topup,
                max_amount=self.max_topup,
            )
        )
