"""SDK transfers module"""

from datetime import date, datetime
from typing import Any, Dict, List

from tropipay_wallet.domain.constants import TWO_FA_SMS, Endpoints
from tropipay_wallet.domain.exceptions import APIError, TransferError, ValidationError
from tropipay_wallet.domain.models import extract_items
from tropipay_wallet.domain.money import convert_transfer_fields
from tropipay_wallet.domain.transfers import TransferWorkflow
from tropipay_wallet.domain.validation import check_pagination
from tropipay_wallet.utils.date_utils import to_iso_date


def _require_transfer_id(transfer_id: Any) -> None:
    if not isinstance(transfer_id, str) or not transfer_id:
        raise ValidationError("Transfer ID is required", errors={"transferId": "Transfer ID is required"})


class TransfersModule:
    def __init__(self, sdk):
        self.sdk = sdk
        self._api = sdk.token_manager

    def start(
        self,
        from_account_id: str,
        beneficiary_id: str,
        amount: float,
        currency: str | None = None,
        reason: str = "",
    ) -> TransferWorkflow:
        """New workflow for one transfer attempt; call simulate() then execute()"""
        return TransferWorkflow(
            self._api,
            from_account_id,
            beneficiary_id,
            amount,
            currency=currency,
            reason=reason,
            events=self.sdk.events,
        )

    async def simulate(
        self,
        from_account_id: str,
        beneficiary_id: str,
        amount: float,
        currency: str | None = None,
        reason: str = "",
    ) -> Dict[str, Any]:
        """Quote in display units, including the requires2FA flag"""
        workflow = self.start(from_account_id, beneficiary_id, amount, currency, reason)
        simulation = await workflow.simulate()
        return simulation.to_dict()

    async def execute(
        self,
        from_account_id: str,
        beneficiary_id: str,
        amount: float,
        currency: str | None = None,
        reason: str = "",
        sms_code: str | None = None,
        authenticator_code: str | None = None,
        reference: str | None = None,
    ) -> Dict[str, Any]:
        """
        Simulate and execute in one call; a fresh simulation is always made.

        Raises:
            ValidationError: invalid input, missing or rejected second factor
            InsufficientFundsError: with available/required display amounts
            TransferError: other execution failures
        """
        workflow = self.start(from_account_id, beneficiary_id, amount, currency, reason)
        await workflow.simulate()
        result = await workflow.execute(
            sms_code=sms_code, authenticator_code=authenticator_code, reference=reference
        )
        return result.to_dict()

    async def get_status(self, transfer_id: str) -> Dict[str, Any]:
        _require_transfer_id(transfer_id)
        try:
            raw = await self._api.get(Endpoints.TRANSFER.format(transfer_id=transfer_id))
        except APIError as e:
            if e.status_code == 404:
                raise TransferError(f"Transfer not found: {transfer_id}", status_code=404) from e
            raise
        return convert_transfer_fields(raw or {})

    async def cancel(self, transfer_id: str) -> Dict[str, Any]:
        _require_transfer_id(transfer_id)
        try:
            raw = await self._api.post(Endpoints.TRANSFER_CANCEL.format(transfer_id=transfer_id))
        except APIError as e:
            if e.status_code == 404:
                raise TransferError(f"Transfer not found: {transfer_id}", status_code=404) from e
            if e.status_code == 409:
                raise TransferError("Transfer can no longer be cancelled", status_code=409) from e
            raise
        result = convert_transfer_fields(raw or {})
        self.sdk.events.emit("transfer_cancelled", result)
        return result

    async def get_history(
        self,
        offset: int = 0,
        limit: int = 20,
        start_date: date | datetime | None = None,
        end_date: date | datetime | None = None,
        status: str | None = None,
        account_id: str | None = None,
    ) -> List[Dict[str, Any]]:
        check_pagination(offset, limit)
        params = {
            "offset": offset,
            "limit": limit,
            "start_date": to_iso_date(start_date),
            "end_date": to_iso_date(end_date),
            "status": status,
            "account_id": account_id,
        }
        payload = await self._api.get(Endpoints.TRANSFERS, params=params)
        return [convert_transfer_fields(raw) for raw in extract_items(payload)]

    async def request_sms_code(self, phone_number: str | None = None) -> Any:
        """Ask the remote side to send an SMS security code"""
        payload: Dict[str, Any] = {"type": TWO_FA_SMS}
        if phone_number:
            payload["phoneNumber"] = phone_number
        return await self._api.post(Endpoints.SECURITY_CODE, json=payload)
