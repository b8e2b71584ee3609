# bistro/data/seed.py
from decimal import Decimal

from bistro.data.database import SessionLocal, Base, engine
from bistro.data.models.item import ItemModel
import bistro.data.models  # noqa: F401

DEMO_MENU = [
    ("Masala Dosa", "Crispy rice crepe with potato filling", "Breakfast", "120.00", 4.5),
    ("Paneer Butter Masala", "Cottage cheese in tomato gravy", "Lunch", "260.00", 4.7),
    ("Margherita Pizza", "Tomato, mozzarella, basil", "Italian", "320.00", 4.3),
    ("Chicken Tacos", "Three soft tacos with salsa", "Mexican", "280.00", 4.1),
    ("Gulab Jamun", "Two pieces in sugar syrup", "Desserts", "90.00", 4.8),
    ("Mango Lassi", "Yogurt and mango drink", "Drinks", "110.00", 4.6),
]


def seed(db=None) -> int:
    """Wstawia demo menu tylko gdy tabela items jest pusta. Zwraca liczbe dodanych pozycji."""
    own_session = db is None
    db = db or SessionLocal()
    try:
        # not forcing: only seed if empty
        if db.query(ItemModel).first():
            return 0
        for name, description, category, price, rating in DEMO_MENU:
            db.add(ItemModel(
                name=name,
                description=description,
                category=category,
                price=Decimal(price),
                rating=rating,
                hearts=0,
            ))
        db.commit()
        return len(DEMO_MENU)
    finally:
        if own_session:
            db.close()


if __name__ == "__main__":
    Base.metadata.create_all(bind=engine)
    print(f"Seeded {seed()} menu items")
