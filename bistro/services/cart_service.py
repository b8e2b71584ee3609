from decimal import Decimal

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from bistro.data.models.cart_item import CartItemModel
from bistro.repos.cart_repo import CartRepo
from bistro.repos.item_repo import ItemRepo
from bistro.services.lock_service import LockService
from bistro.domain.errors import NotFoundError, UnauthenticatedError
from bistro.domain.schemas import CartEntryOut, CartItemSummary, CartOut, CartDeletedOut, CartClearedOut
from bistro.utils.logging import get_logger

logger = get_logger(__name__)


def clamp_quantity(quantity: int) -> int:
    #ilosc ponizej 1 przycinamy do 1, nigdy nie zapisujemy 0 ani ujemnych
    return max(1, int(quantity))


class CartService:
    """
    Prosta implementacja cqrs dla domeny cart
    commands (add, update, remove, clear) modyfikuja stan - kazda od razu commit
    query (get) tylko odczyt, zawsze z bazy - bez cache

    Polityka dodawania: SET - ponowne dodanie tej samej pozycji ustawia ilosc, nie sumuje.
    """

    def __init__(self, db: Session, lock_service: LockService):
        self.repo = CartRepo(db)
        self.items = ItemRepo(db)
        self.lock_service = lock_service

    #query - odczyt
    def get_cart(self, user_id: int | None) -> CartOut:
        self._require_user(user_id)

        entries = []
        for row in self.repo.get_cart_items(user_id):
            if row.item is None:
                logger.warning(f"Wpis koszyka {row.id} bez pozycji menu, pomijam")
                continue
            entries.append(self._entry_out(row))

        return CartOut(
            cart_items=entries,
            total_amount=sum((e.item.price * e.quantity for e in entries), Decimal("0.00")),
            total_items=sum(e.quantity for e in entries),
        )

    #commands
    def add_item(self, user_id: int | None, item_id: int, quantity: int = 1) -> CartEntryOut:
        self._require_user(user_id)
        qty = clamp_quantity(quantity)

        if not self.items.get_item(item_id):
            raise NotFoundError("Item not found or has been deleted")

        with self.lock_service.cart_lock(user_id):
            entry = self.repo.get_by_user_and_item(user_id, item_id)

            if entry:
                logger.info(f"Pozycja {item_id} juz w koszyku usera {user_id}, ustawiam ilosc {entry.quantity} -> {qty}")
                entry.quantity = qty
            else:
                try:
                    entry = self.repo.add_cart_item(
                        CartItemModel(user_id=user_id, item_id=item_id, quantity=qty)
                    )
                    logger.info(f"Dodano pozycje {item_id} do koszyka usera {user_id}")
                except IntegrityError:
                    #ktos wstawil ten sam wpis pierwszy - unique (user, item) wygrywa
                    self.repo.rollback()
                    entry = self.repo.get_by_user_and_item(user_id, item_id)
                    if entry is None:
                        raise
                    entry.quantity = qty

            self.repo.commit()
            self.repo.refresh(entry)

        return self._entry_out(entry)

    def update_quantity(self, user_id: int | None, entry_id: int, quantity: int) -> CartEntryOut:
        self._require_user(user_id)
        qty = clamp_quantity(quantity)

        with self.lock_service.cart_lock(user_id):
            entry = self.repo.get_cart_item(entry_id, user_id)
            if not entry:
                raise NotFoundError("Cart item not found")

            entry.quantity = qty
            self.repo.commit()
            self.repo.refresh(entry)

        if entry.item is None:
            raise NotFoundError("Item not found or has been deleted")

        logger.info(f"Wpis koszyka {entry_id} usera {user_id}: ilosc {qty}")
        return self._entry_out(entry)

    def remove_item(self, user_id: int | None, entry_id: int) -> CartDeletedOut:
        self._require_user(user_id)

        with self.lock_service.cart_lock(user_id):
            entry = self.repo.get_cart_item(entry_id, user_id)
            if not entry:
                raise NotFoundError("Cart item not found")

            self.repo.delete_cart_item(entry)
            self.repo.commit()

        logger.info(f"Usunieto wpis koszyka {entry_id} usera {user_id}")
        return CartDeletedOut(id=entry_id, message="Cart item deleted successfully")

    def clear_cart(self, user_id: int | None) -> CartClearedOut:
        self._require_user(user_id)

        with self.lock_service.cart_lock(user_id):
            deleted = self.repo.delete_all(user_id)
            self.repo.commit()

        logger.info(f"Wyczyszczono koszyk usera {user_id}, usunieto {deleted} wpisow")
        return CartClearedOut(message="Cart cleared successfully", deleted_count=deleted)

    @staticmethod
    def _require_user(user_id: int | None):
        if not user_id:
            raise UnauthenticatedError("User not authenticated")

    @staticmethod
    def _entry_out(row: CartItemModel) -> CartEntryOut:
        return CartEntryOut(
            id=row.id,
            item_id=row.item_id,
            quantity=row.quantity,
            item=CartItemSummary(
                id=row.item.id,
                name=row.item.name,
                price=row.item.price,
                image_url=row.item.image_url,
            ),
        )
