# bistro/client/cart_state.py
"""
Stan koszyka po stronie klienta jako czysty reducer.

Sumy (total_amount, total_items) sa zawsze liczone od nowa z entries,
nigdy nie sa lokalnie poprawiane.
"""
from dataclasses import dataclass, replace, asdict
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any, Iterable


class ActionType(str, Enum):
    SET_CART = "SET_CART"
    ADD_ITEM = "ADD_ITEM"
    UPDATE_QUANTITY = "UPDATE_QUANTITY"
    REMOVE_ITEM = "REMOVE_ITEM"
    CLEAR_CART = "CLEAR_CART"
    SET_ERROR = "SET_ERROR"
    CLEAR_ERROR = "CLEAR_ERROR"
    SET_LOADING = "SET_LOADING"


@dataclass(frozen=True)
class CartEntry:
    id: int
    item_id: int
    name: str
    price: Decimal
    quantity: int
    image_url: str | None = None

    @classmethod
    def from_payload(cls, data: dict) -> "CartEntry | None":
        """Kanoniczny wpis z API -> CartEntry. Wpis niekompletny albo z blednymi liczbami -> None."""
        if not isinstance(data, dict) or data.get("id") is None:
            return None
        item = data.get("item") or {}
        if not isinstance(item, dict):
            return None
        item_id = data.get("item_id", item.get("id"))
        try:
            return cls(
                id=int(data["id"]),
                item_id=int(item_id),
                name=item.get("name", ""),
                price=Decimal(str(item.get("price", "0"))),
                quantity=int(data.get("quantity", 1)),
                image_url=item.get("image_url"),
            )
        except (TypeError, ValueError, InvalidOperation):
            return None

    def to_dict(self) -> dict:
        data = asdict(self)
        data["price"] = str(self.price)
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "CartEntry":
        return cls(**{**data, "price": Decimal(str(data["price"]))})


@dataclass(frozen=True)
class CartAction:
    type: ActionType
    payload: Any = None


@dataclass(frozen=True)
class CartState:
    entries: tuple[CartEntry, ...] = ()
    total_amount: Decimal = Decimal("0.00")
    total_items: int = 0
    error: str | None = None
    is_loading: bool = False


def _with_entries(state: CartState, entries: Iterable[CartEntry]) -> CartState:
    entries = tuple(entries)
    return replace(
        state,
        entries=entries,
        total_amount=sum((e.price * e.quantity for e in entries), Decimal("0.00")),
        total_items=sum(e.quantity for e in entries),
    )


def _coerce(entry) -> CartEntry | None:
    if isinstance(entry, CartEntry):
        return entry
    return CartEntry.from_payload(entry)


def _upsert(entries: tuple[CartEntry, ...], entry: CartEntry) -> list[CartEntry]:
    #dopasowanie po id wpisu albo po id pozycji menu
    result = list(entries)
    for idx, current in enumerate(result):
        if current.id == entry.id or current.item_id == entry.item_id:
            result[idx] = entry
            return result
    result.append(entry)
    return result


def cart_reducer(state: CartState, action: CartAction) -> CartState:
    match action.type:
        case ActionType.SET_CART:
            entries = [e for e in (_coerce(raw) for raw in (action.payload or [])) if e is not None]
            return _with_entries(state, entries)

        case ActionType.ADD_ITEM | ActionType.UPDATE_QUANTITY:
            entry = _coerce(action.payload)
            if entry is None:
                return state
            return _with_entries(state, _upsert(state.entries, entry))

        case ActionType.REMOVE_ITEM:
            return _with_entries(state, [e for e in state.entries if e.id != action.payload])

        case ActionType.CLEAR_CART:
            return CartState()

        case ActionType.SET_ERROR:
            return replace(state, error=str(action.payload))

        case ActionType.CLEAR_ERROR:
            return replace(state, error=None)

        case ActionType.SET_LOADING:
            return replace(state, is_loading=bool(action.payload))

        case _:
            return state
