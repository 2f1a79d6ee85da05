from __future__ import annotations

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:  # pragma: no cover
    from engagesdk.sdk import EngageSDK


class EventBuilder:
    """Chainable builder for event parameters.

    Nested builders become nested objects; ``None`` values are left out.
    """

    def __init__(self) -> None:
        self._params: dict[str, Any] = {}

    def add_param(self, key: str, value: Any) -> "EventBuilder":
        if value is None:
            return self
        if isinstance(value, (EventBuilder, ProductBuilder)):
            value = value.to_dict()
        self._params[key] = value
        return self

    def to_dict(self) -> dict[str, Any]:
        return dict(self._params)


class ProductBuilder:
    """Describes the currencies and items moving in a transaction."""

    def __init__(self) -> None:
        self._real_currency: dict[str, Any] | None = None
        self._virtual_currencies: list[dict[str, Any]] = []
        self._items: list[dict[str, Any]] = []

    def add_real_currency(self, currency_type: str, currency_amount: int) -> "ProductBuilder":
        self._real_currency = {
            "realCurrencyType": currency_type,
            "realCurrencyAmount": currency_amount,
        }
        return self

    def add_virtual_currency(self, currency_name: str, currency_type: str, currency_amount: int) -> "ProductBuilder":
        self._virtual_currencies.append(
            {
                "virtualCurrency": {
                    "virtualCurrencyName": currency_name,
                    "virtualCurrencyType": currency_type,
                    "virtualCurrencyAmount": currency_amount,
                }
            }
        )
        return self

    def add_item(self, item_name: str, item_type: str, item_amount: int) -> "ProductBuilder":
        self._items.append(
            {
                "item": {
                    "itemName": item_name,
                    "itemType": item_type,
                    "itemAmount": item_amount,
                }
            }
        )
        return self

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {}
        if self._real_currency is not None:
            out["realCurrency"] = dict(self._real_currency)
        if self._virtual_currencies:
            out["virtualCurrencies"] = list(self._virtual_currencies)
        if self._items:
            out["items"] = list(self._items)
        return out


class TransactionBuilder:
    """Records common ``transaction`` events through an SDK instance."""

    def __init__(self, sdk: "EngageSDK") -> None:
        self._sdk = sdk

    def buy_virtual_currency(
        self,
        transaction_name: str,
        real_currency_type: str,
        real_currency_amount: int,
        virtual_currency_name: str,
        virtual_currency_type: str,
        virtual_currency_amount: int,
    ) -> bool:
        received = ProductBuilder().add_virtual_currency(
            virtual_currency_name, virtual_currency_type, virtual_currency_amount
        )
        spent = ProductBuilder().add_real_currency(real_currency_type, real_currency_amount)
        params = (
            EventBuilder()
            .add_param("transactionName", transaction_name)
            .add_param("transactionType", "PURCHASE")
            .add_param("productsReceived", received)
            .add_param("productsSpent", spent)
        )
        return self._sdk.record_event("transaction", params)
