# bistro/repos/order_repo.py
from datetime import datetime

from sqlalchemy import select
from sqlalchemy.orm import Session

from bistro.data.models.order import OrderModel


class OrderRepo:
    def __init__(self, db: Session):
        self.db = db

    def add_order(self, order: OrderModel) -> OrderModel:
        """Dodaje i flushuje bez commita - id jest znane przed wywolaniem bramki."""
        self.db.add(order)
        self.db.flush()
        return order

    def get_order(self, order_id: int) -> OrderModel | None:
        return self.db.get(OrderModel, order_id)

    def get_by_session_id(self, session_id: str) -> OrderModel | None:
        return self.db.execute(
            select(OrderModel).where(OrderModel.session_id == session_id)
        ).scalar_one_or_none()

    def list_for_user(self, user_id: int) -> list[OrderModel]:
        return list(
            self.db.execute(
                select(OrderModel)
                .where(OrderModel.user_id == user_id)
                .order_by(OrderModel.created_at.desc(), OrderModel.id.desc())
            ).scalars().all()
        )

    def list_all(self) -> list[OrderModel]:
        return list(
            self.db.execute(
                select(OrderModel).order_by(OrderModel.created_at.desc(), OrderModel.id.desc())
            ).scalars().all()
        )

    def list_pending_online(self, created_before: datetime) -> list[OrderModel]:
        return list(
            self.db.execute(
                select(OrderModel).where(
                    OrderModel.payment_status == "pending",
                    OrderModel.session_id.is_not(None),
                    OrderModel.created_at < created_before,
                )
            ).scalars().all()
        )

    def list_pending_without_session(self, created_before: datetime) -> list[OrderModel]:
        """Online, pending, bez id sesji - sesja w bramce nigdy nie powstala."""
        return list(
            self.db.execute(
                select(OrderModel).where(
                    OrderModel.payment_status == "pending",
                    OrderModel.payment_method != "cod",
                    OrderModel.session_id.is_(None),
                    OrderModel.created_at < created_before,
                )
            ).scalars().all()
        )

    def commit(self, order: OrderModel | None = None) -> OrderModel | None:
        self.db.commit()
        if order is not None:
            self.db.refresh(order)
        return order

    def rollback(self):
        self.db.rollback()
