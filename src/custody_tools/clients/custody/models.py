"""Request models for the custody API.

Optional fields default to ``None`` and are left out of both query strings
and JSON bodies, never sent as explicit nulls.
"""

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Any


class PeerType(Enum):
    """Kind of account on either end of a transaction."""

    VAULT_ACCOUNT = "VAULT_ACCOUNT"
    EXCHANGE_ACCOUNT = "EXCHANGE_ACCOUNT"
    INTERNAL_WALLET = "INTERNAL_WALLET"
    EXTERNAL_WALLET = "EXTERNAL_WALLET"
    NETWORK_CONNECTION = "NETWORK_CONNECTION"
    FIAT_ACCOUNT = "FIAT_ACCOUNT"
    ONE_TIME_ADDRESS = "ONE_TIME_ADDRESS"


class TransactionStatus(Enum):
    """Lifecycle status of a transaction."""

    SUBMITTED = "SUBMITTED"
    QUEUED = "QUEUED"
    PENDING_SIGNATURE = "PENDING_SIGNATURE"
    PENDING_AUTHORIZATION = "PENDING_AUTHORIZATION"
    PENDING_3RD_PARTY_MANUAL_APPROVAL = "PENDING_3RD_PARTY_MANUAL_APPROVAL"
    PENDING_3RD_PARTY = "PENDING_3RD_PARTY"
    BROADCASTING = "BROADCASTING"
    CONFIRMING = "CONFIRMING"
    COMPLETED = "COMPLETED"
    PENDING_AML_CHECKUP = "PENDING_AML_CHECKUP"
    PARTIALLY_COMPLETED = "PARTIALLY_COMPLETED"
    CANCELLING = "CANCELLING"
    CANCELLED = "CANCELLED"
    REJECTED = "REJECTED"
    FAILED = "FAILED"
    TIMEOUT = "TIMEOUT"
    BLOCKED = "BLOCKED"


class TransactionOrder(Enum):
    """Sort order for transaction listings."""

    CREATED_AT = "createdAt"
    LAST_UPDATED = "lastUpdated"


@dataclass(frozen=True)
class TransactionFilter:
    """Filter for listing transactions.

    Attributes:
        before: Only transactions created before this epoch-millisecond time.
        after: Only transactions created after this epoch-millisecond time.
        status: Only transactions with this status.
        limit: Maximum number of results; the server default is 200.
        order_by: Field used to order the results.

    """

    before: int | None = None
    after: int | None = None
    status: TransactionStatus | None = None
    limit: int | None = None
    order_by: TransactionOrder | None = None

    def to_params(self) -> dict[str, Any]:
        """Return the query parameters, without unset fields."""
        params: dict[str, Any] = {
            "before": self.before,
            "after": self.after,
            "status": self.status.value if self.status else None,
            "limit": self.limit,
            "orderBy": self.order_by.value if self.order_by else None,
        }
        return {k: v for k, v in params.items() if v is not None}


@dataclass(frozen=True)
class TransferPeerPath:
    """Source or destination of a transaction."""

    type: PeerType
    id: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Return the JSON body representation."""
        return {"type": self.type.value, "id": self.id}


@dataclass(frozen=True)
class OneTimeAddress:
    """Ad-hoc destination address, with an optional tag or memo."""

    address: str
    tag: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Return the JSON body representation."""
        return {"address": self.address, "tag": self.tag}


@dataclass(frozen=True)
class TransactionArguments:
    """Body of a create-transaction request.

    ``amount`` is sent as a decimal string so no precision is lost.
    """

    asset_id: str
    source: TransferPeerPath
    destination: TransferPeerPath
    amount: Decimal
    fee: Decimal | None = None
    gas_price: Decimal | None = None
    note: str | None = None
    destination_address: OneTimeAddress | None = None
    customer_ref_id: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Return the JSON body representation."""
        return {
            "assetId": self.asset_id,
            "source": self.source.to_dict(),
            "destination": self.destination.to_dict(),
            "amount": str(self.amount),
            "fee": str(self.fee) if self.fee is not None else None,
            "gasPrice": str(self.gas_price) if self.gas_price is not None else None,
            "note": self.note,
            "destinationAddress": (
                self.destination_address.to_dict() if self.destination_address else None
            ),
            "customerRefId": self.customer_ref_id,
        }


@dataclass(frozen=True)
class TransferTicketTerm:
    """One term of a transfer ticket."""

    network_connection_id: str
    outgoing: bool
    asset: str
    amount: Decimal
    note: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Return the JSON body representation."""
        return {
            "networkConnectionId": self.network_connection_id,
            "outgoing": self.outgoing,
            "asset": self.asset,
            "amount": str(self.amount),
            "note": self.note,
        }


@dataclass(frozen=True)
class CreateTransferTicketArgs:
    """Body of a create-transfer-ticket request."""

    terms: tuple[TransferTicketTerm, ...]
    external_ticket_id: str | None = None
    description: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Return the JSON body representation."""
        return {
            "externalTicketId": self.external_ticket_id,
            "description": self.description,
            "terms": [term.to_dict() for term in self.terms],
        }


@dataclass(frozen=True)
class TermTransferArgs:
    """Body of a request that executes one transfer-ticket term."""

    source: TransferPeerPath
    fee: Decimal | None = None
    gas_price: Decimal | None = None

    def to_dict(self) -> dict[str, Any]:
        """Return the JSON body representation."""
        return {
            "source": self.source.to_dict(),
            "fee": str(self.fee) if self.fee is not None else None,
            "gasPrice": str(self.gas_price) if self.gas_price is not None else None,
        }
