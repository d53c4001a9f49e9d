"""
Transfer workflow state machine.

    DRAFTED -> SIMULATED -> (AWAITING_SECOND_FACTOR) -> EXECUTED
    any state -> FAILED (terminal)

One workflow instance carries one fixed set of transfer parameters. The amount
is converted to minor units once and the same value is sent to both the
simulate and execute endpoints, so an execute can never reuse a simulation
made for a different amount or beneficiary.
"""

import logging
import random
import re
import string
import time
from enum import Enum
from typing import Any, Optional, Protocol

from tropipay_wallet.domain.constants import DEFAULT_CURRENCY, Endpoints
from tropipay_wallet.domain.exceptions import (
    InsufficientFundsError,
    TransferError,
    TropiPayError,
    ValidationError,
)
from tropipay_wallet.domain.models import TransferResult, TransferSimulation
from tropipay_wallet.domain.money import Money
from tropipay_wallet.domain.validation import check_transfer_fields
from tropipay_wallet.infrastructure.observability.logging import log_transfer
from tropipay_wallet.infrastructure.observability.metrics import record_transfer
from tropipay_wallet.utils.events import EventEmitter

INVALID_2FA_CODE = "INVALID_2FA_CODE"
TWO_FA_REQUIRED = "2FA_REQUIRED"


class TransferState(str, Enum):
    DRAFTED = "drafted"
    SIMULATED = "simulated"
    AWAITING_SECOND_FACTOR = "awaiting_second_factor"
    EXECUTED = "executed"
    FAILED = "failed"


class AuthenticatedAPI(Protocol):
    async def post(self, path: str, **kwargs: Any) -> Any: ...


def generate_reference(prefix: str = "TRP") -> str:
    """Unique transfer reference, e.g. TRP-1640995200000-AB12CD"""
    suffix = "".join(random.choices(string.ascii_uppercase + string.digits, k=6))
    return f"{prefix}-{int(time.time() * 1000)}-{suffix}"


def clean_security_code(code: Any) -> str | None:
    """Strip spaces and dashes a user may type into a 2FA code"""
    if code is None:
        return None
    cleaned = re.sub(r"[\s-]", "", str(code))
    return cleaned or None


def _state_error(message: str) -> ValidationError:
    error = ValidationError(message, errors={"state": message})
    error.code = "INVALID_TRANSFER_STATE"
    return error


class TransferWorkflow:
    """Simulate, gate on the second factor, then execute one transfer"""

    def __init__(
        self,
        api: AuthenticatedAPI,
        from_account_id: str,
        beneficiary_id: str,
        amount: Any,
        currency: str | None = None,
        reason: str = "",
        events: EventEmitter | None = None,
        user_id: Any = None,
    ):
        self.api = api
        self.from_account_id = from_account_id
        self.beneficiary_id = beneficiary_id
        self.requested_amount = amount
        self.currency = currency or DEFAULT_CURRENCY
        self.reason = reason or ""
        self.events = events or EventEmitter()
        self.user_id = user_id

        self.state = TransferState.DRAFTED
        self.amount: Optional[Money] = None
        self.simulation: Optional[TransferSimulation] = None
        self.result: Optional[TransferResult] = None
        self.error: Optional[TropiPayError] = None

    @property
    def requires_second_factor(self) -> bool:
        return self.state == TransferState.AWAITING_SECOND_FACTOR

    def _base_payload(self, reference: str) -> dict:
        return {
            "accountId": self.from_account_id,
            "destinationAccount": self.beneficiary_id,
            "amount": self.amount.minor,
            "currency": self.currency,
            "concept": self.reason,
            "reference": reference,
        }

    def _fail(self, error: TropiPayError, step: str, start_time: float) -> TropiPayError:
        self.state = TransferState.FAILED
        self.error = error
        record_transfer("failed")
        log_transfer(
            step,
            "failed",
            self.from_account_id,
            self.amount.minor if self.amount else 0,
            self.currency,
            round((time.time() - start_time) * 1000, 2),
            user_id=self.user_id,
        )
        if step == "execute":
            self.events.emit("transfer_failed", error)
        return error

    def _translate(self, error: TropiPayError, step: str) -> TropiPayError:
        if isinstance(error, InsufficientFundsError):
            return InsufficientFundsError(
                "Insufficient funds for this transfer",
                available=error.available if error.available is not None else 0.0,
                required=self.amount.display,
            )
        if isinstance(error, ValidationError):
            if error.code == INVALID_2FA_CODE:
                translated = ValidationError("Invalid 2FA verification code", status_code=error.status_code)
                translated.code = INVALID_2FA_CODE
                return translated
            if error.code == TWO_FA_REQUIRED:
                translated = ValidationError(
                    "2FA verification is required for this transfer", status_code=error.status_code
                )
                translated.code = TWO_FA_REQUIRED
                return translated
            if step == "execute" and error.status_code == 400:
                return TransferError(error.message or "Transfer execution failed", status_code=400)
        return error

    async def simulate(self) -> TransferSimulation:
        """
        Validate, convert the amount and request a quote.

        Raises:
            ValidationError: invalid parameters (no network call is made)
                or the workflow already finished
            InsufficientFundsError: remote balance check failed
            TropiPayError: any other remote failure
        """
        if self.state in (TransferState.EXECUTED, TransferState.FAILED):
            raise _state_error(f"Transfer is already {self.state.value}; start a new transfer")

        start_time = time.time()
        try:
            check_transfer_fields(self.from_account_id, self.beneficiary_id, self.requested_amount, self.currency)
            self.amount = Money.from_display(self.requested_amount, self.currency)
        except ValidationError as e:
            raise self._fail(e, "simulate", start_time)

        try:
            raw = await self.api.post(Endpoints.TRANSFER_SIMULATE, json=self._base_payload(generate_reference("SIM")))
        except TropiPayError as e:
            raise self._fail(self._translate(e, "simulate"), "simulate", start_time) from e

        self.simulation = TransferSimulation.from_api(raw or {}, self.currency)
        self.state = (
            TransferState.AWAITING_SECOND_FACTOR if self.simulation.requires_2fa else TransferState.SIMULATED
        )
        record_transfer("simulated")
        log_transfer(
            "simulate",
            self.state.value,
            self.from_account_id,
            self.amount.minor,
            self.currency,
            round((time.time() - start_time) * 1000, 2),
            user_id=self.user_id,
        )
        return self.simulation

    async def execute(
        self,
        sms_code: str | None = None,
        authenticator_code: str | None = None,
        reference: str | None = None,
    ) -> TransferResult:
        """
        Send the transfer with the simulated parameters.

        Args:
            sms_code: code received by SMS, sent as smsCode
            authenticator_code: authenticator app code, sent as googleAuthCode
            reference: caller reference; generated when omitted

        Raises:
            ValidationError: not simulated yet, already finished, a required
                second factor is missing, or the remote side rejected the code
            InsufficientFundsError: with available and required display amounts
            TransferError: any other execution failure reported by the remote side
        """
        if self.state in (TransferState.EXECUTED, TransferState.FAILED):
            raise _state_error(f"Transfer is already {self.state.value}; start a new transfer")
        if self.state == TransferState.DRAFTED or self.simulation is None:
            raise _state_error("Transfer must be simulated before execution")

        sms_code = clean_security_code(sms_code)
        authenticator_code = clean_security_code(authenticator_code)
        if self.state == TransferState.AWAITING_SECOND_FACTOR and not (sms_code or authenticator_code):
            error = ValidationError(
                "2FA verification is required for this transfer",
                errors={"securityCode": "SMS or authenticator code is required"},
            )
            error.code = TWO_FA_REQUIRED
            raise error

        payload = self._base_payload(reference or generate_reference("TXN"))
        if sms_code:
            payload["smsCode"] = sms_code
        if authenticator_code:
            payload["googleAuthCode"] = authenticator_code

        start_time = time.time()
        try:
            raw = await self.api.post(Endpoints.TRANSFER_EXECUTE, json=payload)
        except TropiPayError as e:
            raise self._fail(self._translate(e, "execute"), "execute", start_time) from e

        self.result = TransferResult.from_api(raw or {}, self.currency, self.amount)
        self.state = TransferState.EXECUTED
        record_transfer("executed")
        log_transfer(
            "execute",
            "executed",
            self.from_account_id,
            self.amount.minor,
            self.currency,
            round((time.time() - start_time) * 1000, 2),
            user_id=self.user_id,
        )
        logging.debug(f"Transfer {self.result.transfer_id} status {self.result.status}")
        self.events.emit("transfer_completed", self.result)
        return self.result
