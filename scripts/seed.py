# scripts/seed.py
# Пересоздаёт таблицы в DATABASE_URL и заполняет демо-данными:
# администратор, подтверждённый продавец с товарами и покупатель.
from sqlalchemy import text
from sqlalchemy.orm import Session

from lumbarong.core.config import settings
from lumbarong.core.security import get_password_hash
from lumbarong.db.base import Base
from lumbarong.db.session import engine
from lumbarong.models.user import User, RoleEnum
from lumbarong.models.product import Product
import lumbarong.models.order
import lumbarong.models.notification
import lumbarong.models.wishlist

PRODUCTS = [
    ("Classic Piña Barong", "Authentic Piña fabric with intricate hand embroidery.", 8500, 5, "Barong Tagalog"),
    ("Jusi Barong Tagalog", "Lightweight jusi with calado embroidery from Lumban.", 4500, 12, "Barong Tagalog"),
    ("Embroidered Filipiniana Terno", "Butterfly-sleeved terno with hand-beaded details.", 12000, 3, "Filipiniana Dresses"),
    ("Capiz Shell Brooch", "Handcrafted capiz brooch for barong collars.", 650, 40, "Accessories"),
]

def main():
    print('Seeding:', settings.DATABASE_URL)
    with engine.connect() as conn:
        print('Connection OK, SELECT 1 ->', conn.execute(text("SELECT 1")).scalar())

    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)

    with Session(bind=engine) as session:
        seller = User(
            name="Maria Clara", email="artisan@lumban.ph", hashed_password=get_password_hash("seller123"),
            role=RoleEnum.seller, is_verified=True, shop_name="Heritage Embroideries",
        )
        admin = User(
            name="Admin User", email="admin@lumbarong.ph", hashed_password=get_password_hash("admin123"),
            role=RoleEnum.admin, is_verified=True,
        )
        customer = User(
            name="Juan Dela Cruz", email="juan@example.ph", hashed_password=get_password_hash("customer123"),
            role=RoleEnum.customer, is_verified=True, address="123 Rizal St, Lumban, Laguna",
        )
        session.add_all([seller, admin, customer])
        session.flush()

        for name, description, price, stock, category in PRODUCTS:
            session.add(Product(
                seller_id=seller.id, name=name, description=description,
                price=price, stock=stock, category=category,
            ))
        session.commit()
    print(f'Seeded 3 users and {len(PRODUCTS)} products.')

if __name__ == '__main__':
    main()
