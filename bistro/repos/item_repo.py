# bistro/repos/item_repo.py
from sqlalchemy import select, delete
from sqlalchemy.orm import Session

from bistro.data.models.item import ItemModel
from bistro.data.models.cart_item import CartItemModel


class ItemRepo:
    def __init__(self, db: Session):
        self.db = db

    def list_items(self, category: str | None = None) -> list[ItemModel]:
        stmt = select(ItemModel).order_by(ItemModel.id)
        if category:
            stmt = stmt.where(ItemModel.category == category)
        return list(self.db.execute(stmt).scalars().all())

    def get_item(self, item_id: int) -> ItemModel | None:
        return self.db.get(ItemModel, item_id)

    def get_items(self, item_ids: list[int]) -> dict[int, ItemModel]:
        if not item_ids:
            return {}
        rows = self.db.execute(
            select(ItemModel).where(ItemModel.id.in_(item_ids))
        ).scalars().all()
        return {row.id: row for row in rows}

    def create_item(self, item: ItemModel) -> ItemModel:
        self.db.add(item)
        self.db.commit()
        self.db.refresh(item)
        return item

    def save(self, item: ItemModel) -> ItemModel:
        self.db.commit()
        self.db.refresh(item)
        return item

    def delete_item(self, item: ItemModel) -> None:
        #wpisy koszyka wskazujace na pozycje znikaja razem z nia (sqlite nie egzekwuje FK)
        self.db.execute(delete(CartItemModel).where(CartItemModel.item_id == item.id))
        self.db.delete(item)
        self.db.commit()
