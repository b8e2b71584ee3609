# bistro/repos/cart_repo.py
from sqlalchemy import select, delete
from sqlalchemy.orm import Session

from bistro.data.models.cart_item import CartItemModel


class CartRepo:
    def __init__(self, db: Session):
        self.db = db

    def get_cart_items(self, user_id: int) -> list[CartItemModel]:
        return list(
            self.db.execute(
                select(CartItemModel)
                .where(CartItemModel.user_id == user_id)
                .order_by(CartItemModel.id)
            ).unique().scalars().all()
        )

    def get_cart_item(self, entry_id: int, user_id: int) -> CartItemModel | None:
        """Wpis tylko jesli nalezy do usera - cudzy wyglada jak nieistniejacy."""
        return self.db.execute(
            select(CartItemModel).where(
                CartItemModel.id == entry_id,
                CartItemModel.user_id == user_id,
            )
        ).unique().scalar_one_or_none()

    def get_by_user_and_item(self, user_id: int, item_id: int) -> CartItemModel | None:
        return self.db.execute(
            select(CartItemModel).where(
                CartItemModel.user_id == user_id,
                CartItemModel.item_id == item_id,
            )
        ).unique().scalar_one_or_none()

    def add_cart_item(self, entry: CartItemModel) -> CartItemModel:
        self.db.add(entry)
        self.db.flush()
        return entry

    def delete_cart_item(self, entry: CartItemModel) -> None:
        self.db.delete(entry)
        self.db.flush()

    def delete_all(self, user_id: int) -> int:
        result = self.db.execute(
            delete(CartItemModel).where(CartItemModel.user_id == user_id)
        )
        return result.rowcount or 0

    def refresh(self, entry: CartItemModel) -> CartItemModel:
        self.db.refresh(entry)
        return entry

    def commit(self):
        self.db.commit()

    def rollback(self):
        self.db.rollback()
