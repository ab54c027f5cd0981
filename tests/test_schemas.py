"""
Test suite for request/response models.
Tests: 1) Prompt validation 2) Poll bounds 3) Approval amounts 4) Wire shapes
"""
from datetime import timedelta

import pytest
from pydantic import ValidationError

from bankr_gateway.adapters.evm.constants import MAX_UINT256
from bankr_gateway.adapters.evm.schemas import AllowanceState
from bankr_gateway.engine.exceptions import ErrorKind
from bankr_gateway.schemas import (
    ApprovalRequest,
    ErrorDetail,
    ErrorResponse,
    Job,
    JobStatus,
    PollConfig,
    PromptRequest,
)

VALID_ADDRESS = "0x4a15fc613c713FC52E907a77071Ec2d0a392a584"


class TestPromptRequest:

    def test_minimal(self):
        request = PromptRequest.model_validate({"prompt": "what's my balance"})
        assert request.xmtp is False
        assert request.hints().wallet_address is None
        assert request.poll_config() == PollConfig()

    def test_camel_case_fields(self):
        request = PromptRequest.model_validate({
            "prompt": "swap",
            "walletAddress": VALID_ADDRESS,
            "xmtp": True,
            "poll": {"interval": 1000, "maxAttempts": 3, "timeout": 10000},
        })
        assert request.hints().wallet_address == VALID_ADDRESS
        assert request.hints().xmtp is True
        assert request.poll_config().max_attempts == 3

    @pytest.mark.parametrize("payload", [
        {},
        {"prompt": ""},
        {"prompt": "x" * 10001},
        {"prompt": 42},
        {"prompt": "hi", "walletAddress": "0x123"},
        {"prompt": "hi", "xmtp": "yes"},
        {"prompt": "hi", "poll": {"interval": 500}},
        {"prompt": "hi", "poll": {"interval": 20000}},
        {"prompt": "hi", "poll": {"maxAttempts": 0}},
        {"prompt": "hi", "poll": {"maxAttempts": 1001}},
        {"prompt": "hi", "poll": {"timeout": 300001}},
        {"prompt": "hi", "poll": {"interval": "2000"}},
        {"prompt": "hi", "poll": {"retries": 3}},
    ])
    def test_rejected(self, payload):
        with pytest.raises(ValidationError):
            PromptRequest.model_validate(payload)

    def test_prompt_length_boundaries(self):
        PromptRequest.model_validate({"prompt": "x"})
        PromptRequest.model_validate({"prompt": "x" * 10000})


class TestApprovalRequest:

    def test_amount_optional(self):
        assert ApprovalRequest.model_validate({}).value is None

    def test_max_amount_accepted(self):
        request = ApprovalRequest.model_validate({"amount": str(MAX_UINT256)})
        assert request.value == MAX_UINT256

    @pytest.mark.parametrize("amount", [str(MAX_UINT256 + 1), "-1", "1.5", "0x10", "", 100])
    def test_invalid_amount(self, amount):
        with pytest.raises(ValidationError):
            ApprovalRequest.model_validate({"amount": amount})


class TestWireShapes:

    def test_job_to_dict_always_has_core_fields(self):
        job = Job.model_validate({"jobId": "job_1", "status": "pending"})
        assert job.to_dict() == {
            "jobId": "job_1",
            "status": "pending",
            "response": None,
            "transactions": [],
            "richData": [],
        }

    def test_terminal_statuses(self):
        assert JobStatus.COMPLETED.is_terminal
        assert JobStatus.FAILED.is_terminal
        assert not JobStatus.PENDING.is_terminal
        assert not JobStatus.PROCESSING.is_terminal

    def test_job_is_frozen(self):
        job = Job.model_validate({"jobId": "job_1", "status": "completed"})
        with pytest.raises(ValidationError):
            job.status = JobStatus.PENDING

    def test_error_envelope(self):
        body = ErrorResponse(
            error=ErrorDetail(code=ErrorKind.TIMEOUT, message="late", details={"attempts": 1})
        ).to_dict()

        assert body["success"] is False
        assert body["error"] == {"code": "TIMEOUT", "message": "late", "details": {"attempts": 1}}
        assert "timestamp" in body

    def test_allowance_state_timestamp_is_utc(self):
        state = AllowanceState(owner_address=VALID_ADDRESS, token_address=VALID_ADDRESS, allowance=0)
        assert state.checked_at.utcoffset() == timedelta(0)
