"""Unit tests for GetAlertSettings and UpdateAlertSettings"""

import pytest
from unittest.mock import AsyncMock, MagicMock

from src.app.use_cases.credits import GetAlertSettings, UpdateAlertSettings, UpdateAlertSettingsCommandDTO
from src.domain.organization import Organization


@pytest.fixture
def organization():
    return Organization(id=42, name="Acme Builders", contact_email="contact@acme.test")


@pytest.fixture
def mock_organization_repo(organization):
    repo = MagicMock()
    repo.get_by_id = AsyncMock(return_value=organization)
    repo.update_alert_settings = AsyncMock(return_value=organization)
    return repo


@pytest.mark.asyncio
class TestGetAlertSettings:

    async def test_defaults_fall_back_to_contact_email(self, mock_organization_repo):
        # Act
        result = await GetAlertSettings(mock_organization_repo).execute(42)

        # Assert
        assert result.is_ok()
        assert result.value.low_balance_alert_enabled is True
        assert result.value.low_balance_alert_threshold == 500_000
        assert result.value.billing_email == "contact@acme.test"

    async def test_missing_organization(self, mock_organization_repo):
        # Arrange
        mock_organization_repo.get_by_id = AsyncMock(return_value=None)

        # Act
        result = await GetAlertSettings(mock_organization_repo).execute(99)

        # Assert
        assert result.error.code == "ORGANIZATION_NOT_FOUND"


@pytest.mark.asyncio
class TestUpdateAlertSettings:

    async def test_partial_update_is_committed(self, mock_uow, mock_organization_repo):
        """
        Given: An existing organization
        When: Only the threshold is changed
        Then: Other fields are passed as None so they keep their value, and the change commits
        """
        # Arrange
        use_case = UpdateAlertSettings(mock_uow, mock_organization_repo)

        # Act
        result = await use_case.execute(
            UpdateAlertSettingsCommandDTO(organization_id=42, low_balance_alert_threshold=150_000)
        )

        # Assert
        assert result.is_ok()
        mock_organization_repo.update_alert_settings.assert_awaited_once_with(
            42, enabled=None, threshold=150_000, billing_email=None
        )
        mock_uow.commit.assert_awaited_once()

    async def test_zero_threshold_is_a_valid_update(self, mock_uow, mock_organization_repo):
        # Act
        result = await UpdateAlertSettings(mock_uow, mock_organization_repo).execute(
            UpdateAlertSettingsCommandDTO(organization_id=42, low_balance_alert_threshold=0)
        )

        # Assert
        assert result.is_ok()
        assert mock_organization_repo.update_alert_settings.await_args.kwargs["threshold"] == 0

    async def test_nothing_to_update(self, mock_uow, mock_organization_repo):
        # Act
        result = await UpdateAlertSettings(mock_uow, mock_organization_repo).execute(
            UpdateAlertSettingsCommandDTO(organization_id=42)
        )

        # Assert
        assert result.error.code == "VALIDATION_ERROR"
        assert result.error.message == "No valid updates provided"
        mock_organization_repo.update_alert_settings.assert_not_called()

    async def test_negative_threshold(self, mock_uow, mock_organization_repo):
        # Act
        result = await UpdateAlertSettings(mock_uow, mock_organization_repo).execute(
            UpdateAlertSettingsCommandDTO(organization_id=42, low_balance_alert_threshold=-5)
        )

        # Assert
        assert result.error.code == "VALIDATION_ERROR"
        mock_uow.commit.assert_not_called()

    async def test_missing_organization_rolls_back(self, mock_uow, mock_organization_repo):
        # Arrange
        mock_organization_repo.update_alert_settings = AsyncMock(return_value=None)

        # Act
        result = await UpdateAlertSettings(mock_uow, mock_organization_repo).execute(
            UpdateAlertSettingsCommandDTO(organization_id=99, low_balance_alert_enabled=False)
        )

        # Assert
        assert result.error.code == "ORGANIZATION_NOT_FOUND"
        mock_uow.rollback.assert_awaited_once()
        mock_uow.commit.assert_not_called()
