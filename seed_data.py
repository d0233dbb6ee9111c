from sqlmodel import Session, select
from storefront.db.session import engine, create_db_and_tables
from storefront.models.product import Category, Product

CATALOG = {
    "Fruit": [
        ("Apple", 150, "piece", "/images/apple.webp"),
        ("Banana Bunch", 249, "bunch", "/images/bananas.webp"),
        ("Blueberries", 399, "250 g", "/images/blueberries.webp"),
    ],
    "Bakery": [
        ("Sourdough Bread", 300, "loaf", "/images/sourdough.webp"),
        ("Oat Crackers", 275, "200 g", "/images/oat-crackers.webp"),
    ],
    "Pantry": [
        ("Rolled Oats", 349, "1 kg", "/images/oats.webp"),
        ("Raw Honey", 899, "500 g", "/images/honey.webp"),
    ],
}

def seed_catalog():
    print("Creating database and tables...")
    create_db_and_tables()

    with Session(engine) as session:
        # Check if products already exist to avoid duplicates
        existing_products = session.exec(select(Product)).all()
        if existing_products:
            print(f"Database already contains {len(existing_products)} products. Skipping seed.")
            return

        print("Seeding initial catalog...")
        count = 0
        for category_name, products in CATALOG.items():
            category = Category(name=category_name)
            session.add(category)
            session.flush()
            for name, price_cents, unit, image_url in products:
                session.add(Product(
                    name=name,
                    price_cents=price_cents,
                    unit=unit,
                    image_url=image_url,
                    category_id=category.id,
                ))
                count += 1

        session.commit()
        print(f"Successfully seeded {len(CATALOG)} categories and {count} products!")

if __name__ == "__main__":
    seed_catalog()
