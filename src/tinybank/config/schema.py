"""Pydantic schema for configuration validation."""

import hashlib
import json
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, Field, field_validator, model_validator

from ..engine.governance import QUORUM_SIZE


def check_token_amount(v, field_name: str):
    """
    Validate a whole-token amount and keep it as a string.

    Floats are refused so amounts never pass through binary rounding.
    """
    if isinstance(v, (bool, float)):
        raise ValueError(f"{field_name} must be an int or decimal string, not {type(v).__name__}")
    try:
        value = Decimal(str(v))
    except InvalidOperation:
        raise ValueError(f"{field_name} is not a decimal number: {v!r}")
    if not value.is_finite() or value < 0:
        raise ValueError(f"{field_name} must be a finite, non-negative amount, got {v!r}")
    return str(v)


def fractional_digits(amount: str) -> int:
    """Number of significant digits after the decimal point."""
    sign, digits, exponent = Decimal(amount).as_tuple()
    if exponent >= 0:
        return 0
    text = "".join(map(str, digits)).rjust(-exponent, "0")
    return len(text[exponent:].rstrip("0"))


class LedgerParams(BaseModel):
    """Ledger construction parameters."""
    name: str = Field(min_length=1, description="Token name")
    symbol: str = Field(min_length=1, description="Token symbol")
    decimals: int = Field(ge=0, le=36, description="Decimals used to scale amounts")
    initial_mint: int = Field(ge=0, description="Whole tokens minted to the deployer")


class BankParams(BaseModel):
    """Bank construction parameters (actors are chain account indices)."""
    owner: int = Field(ge=0, description="Account index of the bank owner")
    managers: List[int] = Field(description="Account indices of the five managers")
    reward_per_block: str = Field(default="1", description="Initial reward per height, in whole tokens")

    @field_validator("managers")
    @classmethod
    def validate_managers(cls, v):
        """Exactly five distinct managers."""
        if len(v) != QUORUM_SIZE:
            raise ValueError(f"Expected exactly {QUORUM_SIZE} managers, got {len(v)}")
        if len(set(v)) != len(v):
            raise ValueError("Managers must be distinct")
        return v

    @field_validator("reward_per_block", mode="before")
    @classmethod
    def validate_reward(cls, v):
        return check_token_amount(v, "reward_per_block")


class ChainParams(BaseModel):
    """Execution environment parameters."""
    account_count: int = Field(ge=7, le=1000, default=10, description="Generated accounts")
    seed: str = Field(default="tinybank", description="Address derivation seed")
    automine: bool = Field(default=True, description="Mine one block per transaction")


class Step(BaseModel):
    """One scripted transaction (or block advance)."""
    action: Literal[
        "approve",
        "stake",
        "transfer",
        "transfer_from",
        "withdraw",
        "confirm",
        "set_reward_per_block",
        "mine",
    ]
    actor: int = Field(ge=0, default=0, description="Sending account index")
    amount: Optional[str] = Field(default=None, description="Whole-token amount")
    to: Optional[Union[int, Literal["bank"]]] = Field(default=None, description="Recipient/spender")
    source: Optional[int] = Field(default=None, ge=0, description="Owner account for transfer_from")
    repeat: int = Field(ge=1, default=1, description="Run the step this many times")
    blocks: int = Field(ge=0, default=1, description="Blocks to mine (mine action only)")
    expect_revert: Optional[str] = Field(default=None, description="Expected revert reason")

    @field_validator("amount", mode="before")
    @classmethod
    def validate_amount(cls, v):
        if v is None:
            return v
        return check_token_amount(v, "amount")

    @model_validator(mode="after")
    def validate_arguments(self):
        """Ensure each action carries the arguments it needs."""
        needs_amount = {"approve", "stake", "transfer", "transfer_from", "withdraw", "set_reward_per_block"}
        needs_to = {"approve", "transfer", "transfer_from"}
        if self.action in needs_amount and self.amount is None:
            raise ValueError(f"Step '{self.action}' requires an amount")
        if self.action in needs_to and self.to is None:
            raise ValueError(f"Step '{self.action}' requires a 'to' target")
        if self.action == "transfer_from" and self.source is None:
            raise ValueError("Step 'transfer_from' requires a source account")
        return self


class Scenario(BaseModel):
    """Scripted sequence of steps."""
    description: str = Field(default="", description="Human-readable scenario summary")
    steps: List[Step] = Field(default_factory=list)


class Config(BaseModel):
    """Complete configuration for a ledger + bank run."""
    ledger: LedgerParams
    bank: BankParams
    chain: ChainParams = Field(default_factory=ChainParams)
    scenario: Scenario = Field(default_factory=Scenario)

    @model_validator(mode="after")
    def validate_account_indices(self):
        """Every referenced account index must exist on the chain."""
        limit = self.chain.account_count
        indices = [self.bank.owner, *self.bank.managers]
        for step in self.scenario.steps:
            indices.append(step.actor)
            if isinstance(step.to, int):
                indices.append(step.to)
            if step.source is not None:
                indices.append(step.source)
        out_of_range = sorted({i for i in indices if i < 0 or i >= limit})
        if out_of_range:
            raise ValueError(
                f"Account indices {out_of_range} out of range for {limit} chain accounts"
            )
        return self

    @model_validator(mode="after")
    def validate_amount_precision(self):
        """Amounts must be representable with the ledger's decimals."""
        decimals = self.ledger.decimals
        amounts = [("bank.reward_per_block", self.bank.reward_per_block)]
        for index, step in enumerate(self.scenario.steps):
            if step.amount is not None:
                amounts.append((f"scenario.steps[{index}].amount", step.amount))
        for name, amount in amounts:
            if fractional_digits(amount) > decimals:
                raise ValueError(
                    f"{name}={amount} has more fractional digits than the ledger's {decimals} decimals"
                )
        return self

    def compute_hash(self) -> str:
        """Compute config hash for reproducibility."""
        config_dict = self.model_dump()
        config_str = json.dumps(config_dict, sort_keys=True)
        return hashlib.sha256(config_str.encode()).hexdigest()[:16]

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Config':
        """Create config from dictionary."""
        return cls(**data)

    def to_dict(self) -> Dict[str, Any]:
        """Convert config to dictionary."""
        return self.model_dump()
