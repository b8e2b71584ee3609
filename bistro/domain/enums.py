# bistro/domain/enums.py
from enum import Enum


class Category(str, Enum):
    BREAKFAST = "Breakfast"
    LUNCH = "Lunch"
    DINNER = "Dinner"
    MEXICAN = "Mexican"
    ITALIAN = "Italian"
    DESSERTS = "Desserts"
    DRINKS = "Drinks"


class PaymentMethod(str, Enum):
    COD = "cod"
    ONLINE = "online"
    CARD = "card"
    UPI = "upi"

    @property
    def is_online(self) -> bool:
        #wszystko poza gotowka idzie przez sesje platnosci
        return self is not PaymentMethod.COD


class PaymentStatus(str, Enum):
    PENDING = "pending"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


class OrderStatus(str, Enum):
    PROCESSING = "processing"
    CONFIRMED = "confirmed"
    OUT_FOR_DELIVERY = "outForDelivery"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"
