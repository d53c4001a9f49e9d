"""Unit tests for the transfer workflow state machine"""

from unittest.mock import AsyncMock

import pytest

from tropipay_wallet.domain.constants import Endpoints
from tropipay_wallet.domain.exceptions import (
    APIError,
    InsufficientFundsError,
    TransferError,
    ValidationError,
)
from tropipay_wallet.domain.transfers import (
    TransferState,
    TransferWorkflow,
    clean_security_code,
    generate_reference,
)
from tropipay_wallet.utils.events import EventEmitter

SIMULATION = {
    "amountToPay": 1106,
    "amountToGet": 1056,
    "fees": 50,
    "exchangeRate": 1,
    "requires2FA": True,
    "accountLeftBalance": 98894,
}

EXECUTION = {"id": "TRF-00001", "reference": "ref-1", "status": "PROCESSING", "amount": 1056, "fees": 50}


def remote_error(code: str, status_code: int = 400, message: str = "Rejected") -> ValidationError:
    error = ValidationError(message, status_code=status_code)
    error.code = code
    return error


@pytest.fixture
def api() -> AsyncMock:
    return AsyncMock()


def make_workflow(api, amount=10.555, **kwargs) -> TransferWorkflow:
    return TransferWorkflow(api, "acc-usd", "ben-001", amount, currency="USD", reason="Rent", **kwargs)


async def test_simulate_sends_minor_units(api: AsyncMock):
    api.post.return_value = SIMULATION
    workflow = make_workflow(api)

    simulation = await workflow.simulate()

    path = api.post.await_args.args[0]
    payload = api.post.await_args.kwargs["json"]
    assert path == Endpoints.TRANSFER_SIMULATE
    assert payload["amount"] == 1056
    assert payload["accountId"] == "acc-usd"
    assert payload["destinationAccount"] == "ben-001"
    assert payload["concept"] == "Rent"
    assert payload["reference"].startswith("SIM-")
    assert simulation.requires_2fa is True
    assert simulation.to_dict()["amountToPay"] == 11.06
    assert workflow.state == TransferState.AWAITING_SECOND_FACTOR


async def test_simulate_without_second_factor(api: AsyncMock):
    api.post.return_value = {**SIMULATION, "requires2FA": False}
    workflow = make_workflow(api)

    await workflow.simulate()

    assert workflow.state == TransferState.SIMULATED
    assert not workflow.requires_second_factor


async def test_invalid_amount_fails_before_network(api: AsyncMock):
    workflow = make_workflow(api, amount=0)

    with pytest.raises(ValidationError) as exc_info:
        await workflow.simulate()

    assert "amount" in exc_info.value.errors
    api.post.assert_not_awaited()
    assert workflow.state == TransferState.FAILED


async def test_execute_requires_simulation(api: AsyncMock):
    workflow = make_workflow(api)

    with pytest.raises(ValidationError) as exc_info:
        await workflow.execute(sms_code="123456")

    assert exc_info.value.code == "INVALID_TRANSFER_STATE"
    api.post.assert_not_awaited()


async def test_execute_requires_second_factor_when_flagged(api: AsyncMock):
    api.post.return_value = SIMULATION
    workflow = make_workflow(api)
    await workflow.simulate()

    with pytest.raises(ValidationError) as exc_info:
        await workflow.execute()

    assert exc_info.value.code == "2FA_REQUIRED"
    assert api.post.await_count == 1
    assert workflow.state == TransferState.AWAITING_SECOND_FACTOR


async def test_execute_reuses_simulated_amount(api: AsyncMock):
    api.post.side_effect = [SIMULATION, EXECUTION]
    events = EventEmitter()
    completed = []
    events.on("transfer_completed", completed.append)
    workflow = make_workflow(api, events=events)

    await workflow.simulate()
    result = await workflow.execute(sms_code="123 456")

    simulate_payload = api.post.await_args_list[0].kwargs["json"]
    execute_call = api.post.await_args_list[1]
    assert execute_call.args[0] == Endpoints.TRANSFER_EXECUTE
    assert execute_call.kwargs["json"]["amount"] == simulate_payload["amount"] == 1056
    assert execute_call.kwargs["json"]["smsCode"] == "123456"
    assert "googleAuthCode" not in execute_call.kwargs["json"]
    assert execute_call.kwargs["json"]["reference"].startswith("TXN-")

    assert workflow.state == TransferState.EXECUTED
    assert result.transfer_id == "TRF-00001"
    assert result.to_dict()["amountSent"] == 10.56
    assert result.to_dict()["fees"] == 0.5
    assert completed == [result]


async def test_execute_with_authenticator_code(api: AsyncMock):
    api.post.side_effect = [SIMULATION, EXECUTION]
    workflow = make_workflow(api)

    await workflow.simulate()
    await workflow.execute(authenticator_code="654321", reference="my-ref")

    payload = api.post.await_args.kwargs["json"]
    assert payload["googleAuthCode"] == "654321"
    assert payload["reference"] == "my-ref"
    assert "smsCode" not in payload


async def test_insufficient_funds_reports_requested_amount(api: AsyncMock):
    api.post.side_effect = [SIMULATION, InsufficientFundsError("low", available=5.0)]
    failed = []
    events = EventEmitter()
    events.on("transfer_failed", failed.append)
    workflow = make_workflow(api, events=events)

    await workflow.simulate()
    with pytest.raises(InsufficientFundsError) as exc_info:
        await workflow.execute(sms_code="123456")

    assert exc_info.value.available == 5.0
    assert exc_info.value.required == 10.56
    assert workflow.state == TransferState.FAILED
    assert failed == [exc_info.value]


async def test_insufficient_funds_without_available_defaults_to_zero(api: AsyncMock):
    api.post.side_effect = InsufficientFundsError("low")
    workflow = make_workflow(api)

    with pytest.raises(InsufficientFundsError) as exc_info:
        await workflow.simulate()

    assert exc_info.value.available == 0.0
    assert exc_info.value.required == 10.56


async def test_invalid_code_is_terminal(api: AsyncMock):
    api.post.side_effect = [SIMULATION, remote_error("INVALID_2FA_CODE")]
    workflow = make_workflow(api)

    await workflow.simulate()
    with pytest.raises(ValidationError) as exc_info:
        await workflow.execute(sms_code="000000")
    assert exc_info.value.code == "INVALID_2FA_CODE"
    assert workflow.state == TransferState.FAILED

    with pytest.raises(ValidationError) as retry_info:
        await workflow.execute(sms_code="123456")
    assert retry_info.value.code == "INVALID_TRANSFER_STATE"
    assert api.post.await_count == 2


async def test_other_execution_rejections_become_transfer_errors(api: AsyncMock):
    api.post.side_effect = [SIMULATION, remote_error("LIMIT_EXCEEDED", message="Daily limit reached")]
    workflow = make_workflow(api)

    await workflow.simulate()
    with pytest.raises(TransferError, match="Daily limit reached"):
        await workflow.execute(sms_code="123456")


async def test_remote_server_errors_pass_through(api: AsyncMock):
    api.post.side_effect = APIError("TropiPay API error (502)", status_code=502)
    workflow = make_workflow(api)

    with pytest.raises(APIError):
        await workflow.simulate()
    assert workflow.state == TransferState.FAILED


def test_generate_reference_is_unique():
    references = {generate_reference() for _ in range(50)}
    assert len(references) == 50
    assert all(reference.startswith("TRP-") for reference in references)


def test_clean_security_code():
    assert clean_security_code(" 12-34 56 ") == "123456"
    assert clean_security_code("") is None
    assert clean_security_code(None) is None
