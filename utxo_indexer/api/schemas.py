"""
UTXO Indexer - API Schemas
============================
Pydantic models for API request/response validation.
"""

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, StrictInt

from utxo_indexer.constants import MAX_OUTPUT_VALUE
from utxo_indexer.domain.models import Block, Transaction, TxInput, TxOutput, UTXORecord


# ============================================================================
# BASE SCHEMAS
# ============================================================================

class RootResponse(BaseModel):
    """Root endpoint response"""
    status: str = Field(..., description="Service status")
    service: str = Field(..., description="Service name")


class ErrorResponse(BaseModel):
    """Rejection response"""
    error: str = Field(..., description="Human-readable reason")
    code: Optional[str] = Field(None, description="Machine-readable error code")


# ============================================================================
# BLOCK SUBMISSION SCHEMAS
# ============================================================================

class InputSchema(BaseModel):
    """Transaction input schema (reference to a prior output)"""
    model_config = ConfigDict(populate_by_name=True)

    tx_id: str = Field(..., alias="txId", min_length=1, description="Creating transaction id")
    index: StrictInt = Field(..., ge=0, description="Output position")

    def to_domain(self) -> TxInput:
        return TxInput(tx_id=self.tx_id, index=self.index)


class OutputSchema(BaseModel):
    """Transaction output schema"""
    address: str = Field(..., min_length=1, description="Recipient address")
    # Integer minor units; floats and booleans are rejected
    value: StrictInt = Field(..., ge=0, le=MAX_OUTPUT_VALUE, description="Value")

    def to_domain(self) -> TxOutput:
        return TxOutput(address=self.address, value=self.value)


class TransactionSchema(BaseModel):
    """Transaction schema"""
    id: str = Field(..., min_length=1, description="Transaction id")
    inputs: List[InputSchema] = Field(default_factory=list)
    outputs: List[OutputSchema] = Field(default_factory=list)

    def to_domain(self) -> Transaction:
        return Transaction(
            id=self.id,
            inputs=tuple(i.to_domain() for i in self.inputs),
            outputs=tuple(o.to_domain() for o in self.outputs),
        )


class BlockSchema(BaseModel):
    """Block submission schema"""
    id: str = Field(..., min_length=1, description="Block id (hex)")
    height: StrictInt = Field(..., description="Block height")
    transactions: List[TransactionSchema] = Field(default_factory=list)

    def to_domain(self) -> Block:
        return Block(
            id=self.id,
            height=self.height,
            transactions=tuple(tx.to_domain() for tx in self.transactions),
        )


class SubmitResponse(BaseModel):
    """Accepted block / rollback response"""
    success: bool = True
    height: int


# ============================================================================
# QUERY SCHEMAS
# ============================================================================

class BalanceResponse(BaseModel):
    """Balance response"""
    balance: int


class StatusResponse(BaseModel):
    """Ledger status response"""
    height: int
    blocks: int


class BlockSummaryResponse(BaseModel):
    """Stored block summary"""
    id: str
    height: int
    transactions: List[str]


class UTXOResponse(BaseModel):
    """Unspent output"""
    tx_id: str
    output_index: int
    address: str
    value: int
    created_at_height: int

    @classmethod
    def from_record(cls, record: UTXORecord) -> "UTXOResponse":
        return cls(
            tx_id=record.tx_id,
            output_index=record.output_index,
            address=record.address,
            value=record.value,
            created_at_height=record.created_at_height,
        )


__all__ = [
    "RootResponse",
    "ErrorResponse",
    "InputSchema",
    "OutputSchema",
    "TransactionSchema",
    "BlockSchema",
    "SubmitResponse",
    "BalanceResponse",
    "StatusResponse",
    "BlockSummaryResponse",
    "UTXOResponse",
]
