# bistro/api/deps.py
"""
Zaleznosci FastAPI: bramka auth (bearer z naglowka albo cookie)
i fabryki serwisow. Testy podmieniaja get_lock_service / get_payment_gateway /
get_notification_service przez app.dependency_overrides.
"""
import jwt
from fastapi import Depends, Cookie
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session

from bistro.data.database import get_db
from bistro.domain.errors import UnauthenticatedError, AccessDeniedError
from bistro.services.cart_service import CartService
from bistro.services.item_service import ItemService
from bistro.services.lock_service import LockService
from bistro.services.notification_service import NotificationService
from bistro.services.order_service import OrderService
from bistro.services.payment_gateway import PaymentGateway
from bistro.services.user_service import UserService
from bistro.utils.security import decode_access_token

bearer = HTTPBearer(auto_error=False)


def get_current_user_id(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer),
    token_cookie: str | None = Cookie(None, alias="token"),
) -> int:
    """Token zawiera tylko id usera - imie/email trzeba dociagnac z bazy."""
    token = credentials.credentials if credentials else token_cookie
    if not token:
        raise UnauthenticatedError("Token missing")

    try:
        return decode_access_token(token)
    except jwt.ExpiredSignatureError:
        raise AccessDeniedError("Token expired")
    except jwt.InvalidTokenError:
        raise AccessDeniedError("Invalid token")


def get_lock_service() -> LockService:
    return LockService()


def get_payment_gateway() -> PaymentGateway:
    return PaymentGateway()


def get_notification_service() -> NotificationService:
    return NotificationService()


def get_user_service(db: Session = Depends(get_db)) -> UserService:
    return UserService(db)


def get_item_service(db: Session = Depends(get_db)) -> ItemService:
    return ItemService(db)


def get_cart_service(
    db: Session = Depends(get_db),
    lock_service: LockService = Depends(get_lock_service),
) -> CartService:
    return CartService(db=db, lock_service=lock_service)


def get_order_service(
    db: Session = Depends(get_db),
    gateway: PaymentGateway = Depends(get_payment_gateway),
    notification_service: NotificationService = Depends(get_notification_service),
) -> OrderService:
    return OrderService(db=db, gateway=gateway, notification_service=notification_service)


def require_admin(
    user_id: int = Depends(get_current_user_id),
    users: UserService = Depends(get_user_service),
) -> int:
    if not users.is_admin(user_id):
        raise AccessDeniedError("Admin access required")
    return user_id
