"""High-level custody API client with one coroutine per endpoint.

The façade only builds paths, query strings, and bodies; signing, transport,
and error mapping all live in ``AuthenticatedHttpClient``. Responses are
returned as parsed JSON.
"""

from decimal import Decimal
from typing import Any
from urllib.parse import quote

from custody_tools.clients.custody.client import AuthenticatedHttpClient
from custody_tools.clients.custody.models import (
    CreateTransferTicketArgs,
    TermTransferArgs,
    TransactionArguments,
    TransactionFilter,
)


def build_path(path: str, params: dict[str, Any] | None = None) -> str:
    """Append a query string to a path.

    Parameters are sorted so the same filter always yields the same signed
    path; ``None`` values are dropped.
    """
    if not params:
        return path
    items = sorted((k, v) for k, v in params.items() if v is not None)
    if not items:
        return path
    query = "&".join(f"{quote(str(k))}={quote(str(v))}" for k, v in items)
    return f"{path}?{query}"


def _path(template: str, *segments: Any) -> str:
    """Fill a path template with percent-encoded segments.

    Each segment is quoted on its own, so an ID containing ``/``, ``?``, ``#``
    or a space stays inside its segment and the path that is signed is the
    path that goes on the wire.
    """
    return template.format(*(quote(str(segment), safe=":") for segment in segments))


def _address_id(address: str, tag: str | None) -> str:
    """Return the address path segment, with ``:tag`` when a tag is given."""
    return f"{address}:{tag}" if tag else address


class CustodySDK:
    """Custody platform API client.

    Args:
        client: Authenticated HTTP client used for every call.

    """

    def __init__(self, client: AuthenticatedHttpClient) -> None:
        """Initialize the SDK with an authenticated client."""
        self._client = client

    @classmethod
    def from_config(cls) -> "CustodySDK":
        """Create an SDK whose client is built from configuration."""
        return cls(AuthenticatedHttpClient.from_config())

    # Assets

    async def get_supported_assets(self) -> list[dict[str, Any]]:
        """Get all assets currently supported by the platform."""
        return await self._client.get("/v1/supported_assets")

    # Vault accounts

    async def get_vault_accounts(self) -> list[dict[str, Any]]:
        """Get all vault accounts of the tenant."""
        return await self._client.get("/v1/vault/accounts")

    async def get_vault_account_by_id(self, vault_account_id: str) -> dict[str, Any]:
        """Get a single vault account."""
        return await self._client.get(_path("/v1/vault/accounts/{}", vault_account_id))

    async def get_vault_account_asset(self, vault_account_id: str, asset_id: str) -> dict[str, Any]:
        """Get a single asset of a vault account."""
        return await self._client.get(_path("/v1/vault/accounts/{}/{}", vault_account_id, asset_id))

    async def create_vault_account(
        self,
        name: str,
        *,
        hidden_on_ui: bool = False,
        customer_ref_id: str | None = None,
    ) -> dict[str, Any]:
        """Create a new vault account.

        Args:
            name: Name for the new vault account.
            hidden_on_ui: Hide the account and its transactions in the console.
            customer_ref_id: Optional customer reference ID.

        """
        body = {"name": name, "customerRefId": customer_ref_id, "hiddenOnUI": hidden_on_ui}
        return await self._client.post("/v1/vault/accounts", body)

    async def update_vault_account(self, vault_account_id: str, name: str) -> dict[str, Any]:
        """Rename a vault account."""
        return await self._client.put(
            _path("/v1/vault/accounts/{}", vault_account_id), {"name": name}
        )

    async def hide_vault_account(self, vault_account_id: str) -> dict[str, Any]:
        """Hide a vault account in the console."""
        return await self._client.post(_path("/v1/vault/accounts/{}/hide", vault_account_id), {})

    async def unhide_vault_account(self, vault_account_id: str) -> dict[str, Any]:
        """Reveal a hidden vault account in the console."""
        return await self._client.post(_path("/v1/vault/accounts/{}/unhide", vault_account_id), {})

    async def create_vault_asset(self, vault_account_id: str, asset_id: str) -> dict[str, Any]:
        """Add an asset to an existing vault account."""
        return await self._client.post(
            _path("/v1/vault/accounts/{}/{}", vault_account_id, asset_id), {}
        )

    async def get_deposit_addresses(
        self, vault_account_id: str, asset_id: str
    ) -> list[dict[str, Any]]:
        """Get the deposit addresses of an asset in a vault account."""
        return await self._client.get(
            _path("/v1/vault/accounts/{}/{}/addresses", vault_account_id, asset_id)
        )

    async def generate_new_address(
        self,
        vault_account_id: str,
        asset_id: str,
        *,
        description: str | None = None,
        customer_ref_id: str | None = None,
    ) -> dict[str, Any]:
        """Generate a new deposit address for an asset in a vault account."""
        body = {"description": description, "customerRefId": customer_ref_id}
        return await self._client.post(
            _path("/v1/vault/accounts/{}/{}/addresses", vault_account_id, asset_id), body
        )

    async def set_address_description(
        self,
        vault_account_id: str,
        asset_id: str,
        address: str,
        *,
        tag: str | None = None,
        description: str | None = None,
    ) -> dict[str, Any]:
        """Set the description of an existing address.

        Args:
            vault_account_id: The vault account ID.
            asset_id: The asset ID.
            address: The address to describe.
            tag: XRP tag or EOS memo of the address, if any.
            description: New description; an empty string clears it.

        """
        path = _path(
            "/v1/vault/accounts/{}/{}/addresses/{}",
            vault_account_id,
            asset_id,
            _address_id(address, tag),
        )
        return await self._client.put(path, {"description": description or ""})

    async def set_customer_ref_id_for_vault_account(
        self, vault_account_id: str, customer_ref_id: str
    ) -> dict[str, Any]:
        """Set the customer reference ID of a vault account."""
        return await self._client.post(
            _path("/v1/vault/accounts/{}/set_customer_ref_id", vault_account_id),
            {"customerRefId": customer_ref_id},
        )

    async def set_customer_ref_id_for_address(
        self,
        vault_account_id: str,
        asset_id: str,
        address: str,
        *,
        tag: str | None = None,
        customer_ref_id: str | None = None,
    ) -> dict[str, Any]:
        """Set the customer reference ID of a deposit address."""
        path = _path(
            "/v1/vault/accounts/{}/{}/addresses/{}/set_customer_ref_id",
            vault_account_id,
            asset_id,
            _address_id(address, tag),
        )
        return await self._client.post(path, {"customerRefId": customer_ref_id})

    # Exchange accounts

    async def get_exchange_accounts(self) -> list[dict[str, Any]]:
        """Get all exchange accounts of the tenant."""
        return await self._client.get("/v1/exchange_accounts")

    async def get_exchange_account_by_id(self, exchange_account_id: str) -> dict[str, Any]:
        """Get a single exchange account."""
        return await self._client.get(_path("/v1/exchange_accounts/{}", exchange_account_id))

    async def transfer_to_subaccount(
        self,
        exchange_account_id: str,
        subaccount_id: str,
        asset_id: str,
        amount: Decimal,
    ) -> dict[str, Any]:
        """Transfer from a main exchange account to one of its subaccounts."""
        return await self._client.post(
            _path(
                "/v1/exchange_accounts/{}/{}/transfer_to_subaccount",
                exchange_account_id,
                asset_id,
            ),
            {"subaccountId": subaccount_id, "amount": str(amount)},
        )

    async def transfer_from_subaccount(
        self,
        exchange_account_id: str,
        subaccount_id: str,
        asset_id: str,
        amount: Decimal,
    ) -> dict[str, Any]:
        """Transfer from a subaccount to its main exchange account."""
        return await self._client.post(
            _path(
                "/v1/exchange_accounts/{}/{}/transfer_from_subaccount",
                exchange_account_id,
                asset_id,
            ),
            {"subaccountId": subaccount_id, "amount": str(amount)},
        )

    # Fiat accounts

    async def get_fiat_accounts(self) -> list[dict[str, Any]]:
        """Get all fiat accounts of the tenant."""
        return await self._client.get("/v1/fiat_accounts")

    async def get_fiat_account_by_id(self, account_id: str) -> dict[str, Any]:
        """Get a single fiat account."""
        return await self._client.get(_path("/v1/fiat_accounts/{}", account_id))

    async def redeem_to_linked_dda(self, account_id: str, amount: Decimal) -> dict[str, Any]:
        """Redeem from a fiat account to its linked DDA."""
        return await self._client.post(
            _path("/v1/fiat_accounts/{}/redeem_to_linked_dda", account_id), {"amount": str(amount)}
        )

    async def deposit_from_linked_dda(self, account_id: str, amount: Decimal) -> dict[str, Any]:
        """Deposit to a fiat account from its linked DDA."""
        return await self._client.post(
            _path("/v1/fiat_accounts/{}/deposit_from_linked_dda", account_id),
            {"amount": str(amount)}
        )

    # Transactions

    async def get_transactions(
        self, transaction_filter: TransactionFilter | None = None
    ) -> list[dict[str, Any]]:
        """Get transactions matching a filter.

        Args:
            transaction_filter: Time range, status, limit, and ordering.
                ``None`` lists with server defaults.

        """
        params = transaction_filter.to_params() if transaction_filter else None
        return await self._client.get(build_path("/v1/transactions", params))

    async def get_transaction_by_id(self, tx_id: str) -> dict[str, Any]:
        """Get details of a single transaction."""
        return await self._client.get(_path("/v1/transactions/{}", tx_id))

    async def create_transaction(self, options: TransactionArguments) -> dict[str, Any]:
        """Create a new transaction."""
        return await self._client.post("/v1/transactions", options)

    async def cancel_transaction_by_id(self, tx_id: str) -> dict[str, Any]:
        """Cancel a transaction."""
        return await self._client.post(_path("/v1/transactions/{}/cancel", tx_id), {})

    # Internal and external wallets

    async def get_internal_wallets(self) -> list[dict[str, Any]]:
        """Get all internal wallets of the tenant."""
        return await self._client.get("/v1/internal_wallets")

    async def get_internal_wallet(self, wallet_id: str) -> dict[str, Any]:
        """Get a single internal wallet."""
        return await self._client.get(_path("/v1/internal_wallets/{}", wallet_id))

    async def get_internal_wallet_asset(self, wallet_id: str, asset_id: str) -> dict[str, Any]:
        """Get a single asset of an internal wallet."""
        return await self._client.get(_path("/v1/internal_wallets/{}/{}", wallet_id, asset_id))

    async def create_internal_wallet(
        self, name: str, *, customer_ref_id: str | None = None
    ) -> dict[str, Any]:
        """Create a new internal wallet."""
        return await self._client.post(
            "/v1/internal_wallets", {"name": name, "customerRefId": customer_ref_id}
        )

    async def create_internal_wallet_asset(
        self, wallet_id: str, asset_id: str, address: str, *, tag: str | None = None
    ) -> dict[str, Any]:
        """Add an asset address to an internal wallet."""
        return await self._client.post(
            _path("/v1/internal_wallets/{}/{}", wallet_id, asset_id),
            {"address": address, "tag": tag}
        )

    async def delete_internal_wallet(self, wallet_id: str) -> dict[str, Any]:
        """Delete an internal wallet."""
        return await self._client.delete(_path("/v1/internal_wallets/{}", wallet_id))

    async def delete_internal_wallet_asset(self, wallet_id: str, asset_id: str) -> dict[str, Any]:
        """Delete an asset from an internal wallet."""
        return await self._client.delete(_path("/v1/internal_wallets/{}/{}", wallet_id, asset_id))

    async def set_customer_ref_id_for_internal_wallet(
        self, wallet_id: str, customer_ref_id: str
    ) -> dict[str, Any]:
        """Set the customer reference ID of an internal wallet."""
        return await self._client.post(
            _path("/v1/internal_wallets/{}/set_customer_ref_id", wallet_id),
            {"customerRefId": customer_ref_id},
        )

    async def get_external_wallets(self) -> list[dict[str, Any]]:
        """Get all external wallets of the tenant."""
        return await self._client.get("/v1/external_wallets")

    async def get_external_wallet(self, wallet_id: str) -> dict[str, Any]:
        """Get a single external wallet."""
        return await self._client.get(_path("/v1/external_wallets/{}", wallet_id))

    async def get_external_wallet_asset(self, wallet_id: str, asset_id: str) -> dict[str, Any]:
        """Get a single asset of an external wallet."""
        return await self._client.get(_path("/v1/external_wallets/{}/{}", wallet_id, asset_id))

    async def create_external_wallet(
        self, name: str, *, customer_ref_id: str | None = None
    ) -> dict[str, Any]:
        """Create a new external wallet."""
        return await self._client.post(
            "/v1/external_wallets", {"name": name, "customerRefId": customer_ref_id}
        )

    async def create_external_wallet_asset(
        self, wallet_id: str, asset_id: str, address: str, *, tag: str | None = None
    ) -> dict[str, Any]:
        """Add an asset address to an external wallet."""
        return await self._client.post(
            _path("/v1/external_wallets/{}/{}", wallet_id, asset_id),
            {"address": address, "tag": tag}
        )

    async def delete_external_wallet(self, wallet_id: str) -> dict[str, Any]:
        """Delete an external wallet."""
        return await self._client.delete(_path("/v1/external_wallets/{}", wallet_id))

    async def delete_external_wallet_asset(self, wallet_id: str, asset_id: str) -> dict[str, Any]:
        """Delete an asset from an external wallet."""
        return await self._client.delete(_path("/v1/external_wallets/{}/{}", wallet_id, asset_id))

    async def set_customer_ref_id_for_external_wallet(
        self, wallet_id: str, customer_ref_id: str
    ) -> dict[str, Any]:
        """Set the customer reference ID of an external wallet."""
        return await self._client.post(
            _path("/v1/external_wallets/{}/set_customer_ref_id", wallet_id),
            {"customerRefId": customer_ref_id},
        )

    # Network connections

    async def get_network_connections(self) -> list[dict[str, Any]]:
        """Get all network connections."""
        return await self._client.get("/v1/network_connections")

    async def get_network_connection_by_id(self, connection_id: str) -> dict[str, Any]:
        """Get a single network connection."""
        return await self._client.get(_path("/v1/network_connections/{}", connection_id))

    # Transfer tickets

    async def create_transfer_ticket(self, options: CreateTransferTicketArgs) -> dict[str, Any]:
        """Create a new transfer ticket."""
        return await self._client.post("/v1/transfer_tickets", options)

    async def get_transfer_tickets(self) -> list[dict[str, Any]]:
        """Get all transfer tickets."""
        return await self._client.get("/v1/transfer_tickets")

    async def get_transfer_ticket_by_id(self, ticket_id: str) -> dict[str, Any]:
        """Get a single transfer ticket."""
        return await self._client.get(_path("/v1/transfer_tickets/{}", ticket_id))

    async def get_term_in_transfer_ticket(self, ticket_id: str, term_id: str) -> dict[str, Any]:
        """Get one term of a transfer ticket."""
        return await self._client.get(_path("/v1/transfer_tickets/{}/{}", ticket_id, term_id))

    async def cancel_transfer_ticket(self, ticket_id: str) -> dict[str, Any]:
        """Cancel a transfer ticket."""
        return await self._client.post(_path("/v1/transfer_tickets/{}/cancel", ticket_id), {})

    async def transfer_term(
        self, ticket_id: str, term_id: str, options: TermTransferArgs
    ) -> dict[str, Any]:
        """Execute the transfer of one transfer-ticket term."""
        return await self._client.post(
            _path("/v1/transfer_tickets/{}/{}", ticket_id, term_id), options
        )

    async def close(self) -> None:
        """Close the underlying HTTP client."""
        await self._client.close()

    async def __aenter__(self) -> "CustodySDK":
        """Enter async context manager."""
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        """Exit async context manager."""
        await self.close()
