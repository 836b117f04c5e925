"""
Instruction Files
=================
JSON interchange format for instructions built outside this process
(e.g. by a pool/vault SDK script) and handed to `poolpilot send`.

    [
      {
        "programId": "...",
        "accounts": [{"pubkey": "...", "isSigner": true, "isWritable": true}],
        "data": "<base64>"
      }
    ]
"""

import base64
import binascii
import json
from typing import List

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator
from solders.instruction import AccountMeta, Instruction
from solders.pubkey import Pubkey

from poolpilot.shared.execution.errors import ConfigurationError


class AccountMetaSpec(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    pubkey: str
    is_signer: bool = Field(default=False, alias="isSigner")
    is_writable: bool = Field(default=False, alias="isWritable")


class InstructionSpec(BaseModel):
    """One serialized instruction."""

    model_config = ConfigDict(populate_by_name=True)

    program_id: str = Field(..., alias="programId")
    accounts: List[AccountMetaSpec] = Field(default_factory=list)
    data: str = Field(default="", description="Base64 instruction data")

    @field_validator("data")
    @classmethod
    def _check_base64(cls, v: str) -> str:
        try:
            base64.b64decode(v, validate=True)
        except binascii.Error as e:
            raise ValueError(f"data is not valid base64: {e}")
        return v

    def to_instruction(self) -> Instruction:
        return Instruction(
            Pubkey.from_string(self.program_id),
            base64.b64decode(self.data),
            [
                AccountMeta(Pubkey.from_string(a.pubkey), a.is_signer, a.is_writable)
                for a in self.accounts
            ],
        )


def parse_instructions(raw: list) -> List[Instruction]:
    """Build solders instructions from already-decoded JSON."""
    if not isinstance(raw, list):
        raise ConfigurationError("Instruction file must contain a JSON array")
    try:
        return [InstructionSpec.model_validate(item).to_instruction() for item in raw]
    except (ValidationError, ValueError) as e:
        raise ConfigurationError(f"Invalid instruction entry: {e}") from e


def load_instructions_file(path: str) -> List[Instruction]:
    """Read an instruction file in the format above."""
    try:
        with open(path, "r") as f:
            raw = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        raise ConfigurationError(f"failed to parse file {path}") from e
    return parse_instructions(raw)
