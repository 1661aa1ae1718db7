"""
UTXO Indexer - Core Domain Models
===================================
Strutture dati fondamentali del ledger.

Models:
- TxOutput: Output transazione (address + value)
- TxInput: Input transazione (riferimento a un output precedente)
- Transaction: Transazione con input/output, id fornito dal chiamante
- Block: Blocco (id, height, transazioni ordinate)
- UTXOKey: Chiave UTXO (tx_id + output_index)
- UTXORecord: Proiezione persistita di un output

Tutte le strutture sono immutabili (frozen).
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Optional, List, Dict, Any, Tuple

from utxo_indexer.constants import validate_value
from utxo_indexer.domain.hashing import compute_block_id
from utxo_indexer.errors import format_validation_error


def _require_id(field_name: str, value: Any) -> None:
    if not value or not isinstance(value, str):
        raise format_validation_error(field_name, value, "non-empty string")


def _require_index(field_name: str, value: Any) -> None:
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise format_validation_error(field_name, value, "non-negative integer")


# ============================================================================
# TRANSACTION OUTPUT
# ============================================================================

@dataclass(frozen=True)
class TxOutput:
    """
    Output di transazione.

    Attributes:
        address (str): Indirizzo destinatario
        value (int): Valore in minor units (>= 0)

    Examples:
        >>> output = TxOutput(address="addr1", value=10)
        >>> output.value
        10
    """

    address: str
    value: int

    def __post_init__(self):
        _require_id("address", self.address)
        if not validate_value(self.value):
            raise format_validation_error(
                "value", self.value, "non-negative integer",
                code="INVALID_OUTPUT_VALUE"
            )

    def to_dict(self) -> Dict[str, Any]:
        return {"address": self.address, "value": self.value}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> TxOutput:
        return cls(address=data["address"], value=data["value"])


# ============================================================================
# TRANSACTION INPUT
# ============================================================================

@dataclass(frozen=True)
class TxInput:
    """
    Input di transazione (riferimento a un output precedente).

    Carries no value: the value is resolved by lookup at validation time.

    Attributes:
        tx_id (str): Id della transazione che ha creato l'output
        index (int): Posizione dell'output nella lista outputs
    """

    tx_id: str
    index: int

    def __post_init__(self):
        _require_id("tx_id", self.tx_id)
        _require_index("index", self.index)

    @property
    def key(self) -> UTXOKey:
        return UTXOKey(self.tx_id, self.index)

    def to_dict(self) -> Dict[str, Any]:
        # Wire format uses camelCase txId
        return {"txId": self.tx_id, "index": self.index}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> TxInput:
        tx_id = data["txId"] if "txId" in data else data["tx_id"]
        return cls(tx_id=tx_id, index=data["index"])


# ============================================================================
# TRANSACTION
# ============================================================================

@dataclass(frozen=True)
class Transaction:
    """
    Transazione.

    Identity is the caller-supplied ``id``. A transaction without inputs is
    a value-creation transaction (e.g. genesis issuance) and is exempt from
    the balance-equality rule.

    Examples:
        >>> genesis = Transaction("tx1", inputs=(), outputs=(TxOutput("addr1", 10),))
        >>> genesis.is_value_creation()
        True
    """

    id: str
    inputs: Tuple[TxInput, ...] = ()
    outputs: Tuple[TxOutput, ...] = ()

    def __post_init__(self):
        _require_id("id", self.id)
        # Accept lists, store tuples
        object.__setattr__(self, "inputs", tuple(self.inputs))
        object.__setattr__(self, "outputs", tuple(self.outputs))

    def is_value_creation(self) -> bool:
        return not self.inputs

    def output_sum(self) -> int:
        return sum(output.value for output in self.outputs)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "inputs": [inp.to_dict() for inp in self.inputs],
            "outputs": [out.to_dict() for out in self.outputs],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> Transaction:
        return cls(
            id=data["id"],
            inputs=tuple(TxInput.from_dict(i) for i in data.get("inputs", [])),
            outputs=tuple(TxOutput.from_dict(o) for o in data.get("outputs", [])),
        )


# ============================================================================
# BLOCK
# ============================================================================

@dataclass(frozen=True)
class Block:
    """
    Blocco.

    Attributes:
        id (str): SHA-256 hex di (height, transaction ids ordinati)
        height (int): Posizione nella storia lineare (prima = 1)
        transactions (tuple): Transazioni ordinate
    """

    id: str
    height: int
    transactions: Tuple[Transaction, ...] = ()

    def __post_init__(self):
        _require_id("id", self.id)
        if isinstance(self.height, bool) or not isinstance(self.height, int):
            raise format_validation_error("height", self.height, "integer")
        object.__setattr__(self, "transactions", tuple(self.transactions))

    @property
    def transaction_ids(self) -> List[str]:
        return [tx.id for tx in self.transactions]

    def compute_id(self) -> str:
        """Id atteso per questo blocco"""
        return compute_block_id(self.height, self.transaction_ids)

    @classmethod
    def build(cls, height: int, transactions: List[Transaction]) -> Block:
        """
        Costruisci blocco con id calcolato.

        Examples:
            >>> block = Block.build(1, [genesis])
            >>> block.id == block.compute_id()
            True
        """
        return cls(
            id=compute_block_id(height, [tx.id for tx in transactions]),
            height=height,
            transactions=tuple(transactions),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "height": self.height,
            "transactions": [tx.to_dict() for tx in self.transactions],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> Block:
        return cls(
            id=data["id"],
            height=data["height"],
            transactions=tuple(
                Transaction.from_dict(tx) for tx in data.get("transactions", [])
            ),
        )


# ============================================================================
# UTXO
# ============================================================================

@dataclass(frozen=True, order=True)
class UTXOKey:
    """
    Chiave univoca per identificare un output.

    Attributes:
        tx_id (str): Id transazione che lo crea
        output_index (int): Indice output (0, 1, 2, ...)
    """

    tx_id: str
    output_index: int

    def __str__(self) -> str:
        return f"{self.tx_id}:{self.output_index}"


@dataclass(frozen=True)
class UTXORecord:
    """
    Proiezione persistita di un output.

    Invariant: ``spent`` is True iff ``spent_in_tx`` is not None.
    """

    tx_id: str
    output_index: int
    address: str
    value: int
    created_at_height: int
    spent: bool = False
    spent_in_tx: Optional[str] = field(default=None)

    @property
    def key(self) -> UTXOKey:
        return UTXOKey(self.tx_id, self.output_index)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "tx_id": self.tx_id,
            "output_index": self.output_index,
            "address": self.address,
            "value": self.value,
            "spent": self.spent,
            "spent_in_tx": self.spent_in_tx,
            "created_at_height": self.created_at_height,
        }


__all__ = [
    "TxInput",
    "TxOutput",
    "Transaction",
    "Block",
    "UTXOKey",
    "UTXORecord",
]
