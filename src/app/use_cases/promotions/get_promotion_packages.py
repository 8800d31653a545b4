"""GetPromotionPackages Use Case"""

from libs.result import Result, Return, Error
from src.app.repositories.promotion_package_repository import PromotionPackageRepository
from .dtos import PromotionPackageDTO, PromotionPackagesResponseDTO


class GetPromotionPackages:
    """Purchasable promotion packages in catalog order"""

    def __init__(self, package_repo: PromotionPackageRepository):
        self.package_repo = package_repo

    async def execute(self) -> Result[PromotionPackagesResponseDTO]:
        try:
            packages = await self.package_repo.get_active()
        except Exception as e:
            return Return.err(
                Error(
                    code="GET_PACKAGES_FAILED",
                    message="Failed to load promotion packages",
                    reason=str(e),
                )
            )

        return Return.ok(
            PromotionPackagesResponseDTO(
                packages=[PromotionPackageDTO.from_entity(p) for p in packages]
            )
        )
