"""Backend (PostgREST-style) HTTP client for obligation records and their history"""

import httpx
from dataclasses import dataclass, field
from typing import Any, Dict, List
from cycles_gateway.domain.models import Bill, Obligation, ObligationKind, Transaction
from cycles_gateway.domain.exceptions import BackendAPIError, ObligationNotFoundError
from cycles_gateway.domain.records import bill_from_record, obligation_from_record, transaction_from_record
from cycles_gateway.config import settings

# kind -> (record table, payments table, foreign key on payments and bills)
TABLES = {
    ObligationKind.LIABILITY: ("liabilities", "liability_payments", "liability_id"),
    ObligationKind.BUDGET: ("budgets", "transactions", "budget_id"),
    ObligationKind.GOAL: ("goals", "transactions", "goal_id"),
    ObligationKind.RECURRING_TRANSACTION: ("recurring_transactions", "transactions", "recurring_transaction_id"),
}


@dataclass
class ObligationBundle:
    """An obligation plus the history snapshot it is computed against"""

    obligation: Obligation
    transactions: List[Transaction] = field(default_factory=list)
    bills: List[Bill] = field(default_factory=list)


class BackendClient:
    """Client for the backend record store"""

    def __init__(self, base_url: str | None = None, api_key: str | None = None, timeout: float | None = None):
        self.base_url = (base_url or settings.backend_api_base).rstrip("/")
        self.api_key = api_key if api_key is not None else settings.backend_api_key
        self.timeout = timeout or settings.http_timeout_seconds

    def _headers(self) -> Dict[str, str]:
        return {
            "apikey": self.api_key,
            "Authorization": f"Bearer {self.api_key}",
            "Accept": "application/json",
        }

    async def fetch_obligation_bundle(self, kind: ObligationKind, obligation_id: str) -> ObligationBundle:
        """
        Fetch an obligation record with its payments and bills.

        Raises:
            ObligationNotFoundError: No record with that id
            BackendAPIError: On timeout, HTTP errors, or invalid response
        """
        kind = ObligationKind(kind)
        record_table, payments_table, foreign_key = TABLES[kind]

        async with httpx.AsyncClient(timeout=self.timeout, headers=self._headers()) as client:
            try:
                rows = await self._select(client, record_table, {"id": f"eq.{obligation_id}"})
                if not rows:
                    raise ObligationNotFoundError(f"{kind.value} {obligation_id} not found")

                date_column = "payment_date" if kind == ObligationKind.LIABILITY else "date"
                payment_rows = await self._select(
                    client, payments_table, {foreign_key: f"eq.{obligation_id}", "order": f"{date_column}.asc"}
                )
                bill_rows = await self._select(client, "bills", {foreign_key: f"eq.{obligation_id}"})

                return ObligationBundle(
                    obligation=obligation_from_record(kind, rows[0], settings.tolerance_for(kind)),
                    transactions=[transaction_from_record(row) for row in payment_rows],
                    bills=[bill_from_record(row) for row in bill_rows],
                )

            except httpx.TimeoutException as e:
                raise BackendAPIError(f"Backend API timeout after {self.timeout}s") from e
            except httpx.HTTPStatusError as e:
                raise BackendAPIError(f"Backend API error: {e.response.status_code}") from e
            except httpx.RequestError as e:
                raise BackendAPIError(f"Backend API unreachable: {e}") from e
            except (KeyError, ValueError, TypeError, AttributeError) as e:
                raise BackendAPIError(f"Invalid record data from backend: {e}") from e

    async def _select(self, client: httpx.AsyncClient, table: str, params: Dict[str, str]) -> List[Dict[str, Any]]:
        response = await client.get(f"{self.base_url}/rest/v1/{table}", params={"select": "*", **params})
        response.raise_for_status()
        data = response.json()
        if not isinstance(data, list):
            raise ValueError(f"expected a list of rows from {table}")
        return data
