"""
Project: Restaurant Back-Office (RBO)

Description:
Populates the database with the standard menu and a batch of random
orders from the last two weeks. Run directly: ``python seed.py``.
"""

import random
from datetime import timedelta

from loguru import logger

from app import create_app
from lifecycle import OrderStatus, OrderType
from models import MenuItem, Order, OrderItem, db, to_money, utcnow

MENU = [
    ("Classic Cheeseburger", "9.99", "cheeseburger.png", "Juicy beef patty with melted cheese, lettuce, tomato, and special sauce", "Burgers"),
    ("Deluxe Hotdog", "7.99", "hotdog.png", "Premium beef hotdog with mustard, ketchup, and relish", "Sandwiches"),
    ("Crispy French Fries", "4.99", "fries.png", "Golden crispy french fries with sea salt", "Sides"),
    ("Pepperoni Pizza", "14.99", "pizza.png", "Hand-tossed pizza with pepperoni, mozzarella, and tomato sauce", "Pizza"),
    ("Grilled Chicken", "12.99", "chicken.png", "Herb-marinated grilled chicken breast with vegetables", "Main Courses"),
    ("Premium Steak", "24.99", "steak.png", "Prime cut steak cooked to perfection", "Main Courses"),
    ("Steak and Cheese Sandwich", "13.99", "steakAndCheese.png", "Thinly sliced steak with melted cheese on a toasted roll", "Sandwiches"),
    ("Beef Tacos", "10.99", "taco.png", "Three soft tacos with seasoned beef, lettuce, cheese, and salsa", "Mexican"),
    ("Chocolate Dipped Donut", "3.99", "chocolateDippedDonut.png", "Fluffy donut dipped in rich chocolate glaze", "Desserts"),
    ("Maple Dipped Donut with Sprinkles", "4.29", "mapleDippedWithSprinklesDonut.png", "Donut with maple glaze and colorful sprinkles", "Desserts"),
    ("Buttery Croissant", "3.49", "croissant.png", "Flaky, buttery croissant baked to golden perfection", "Bakery"),
    ("Cherry Pie", "5.99", "cherryPie.png", "Sweet cherry filling in a flaky crust", "Desserts"),
    ("Asian Noodles", "11.99", "noodles.png", "Stir-fried noodles with vegetables and choice of protein", "Asian"),
]

CUSTOMERS = [
    "John Smith", "Emma Johnson", "Michael Williams", "Sophia Brown", "James Jones",
    "Olivia Davis", "Robert Miller", "Ava Wilson", "William Moore", "Isabella Taylor",
]

ADDRESSES = [
    "123 Main St, New York, NY 10001",
    "456 Elm St, Los Angeles, CA 90001",
    "789 Oak St, Chicago, IL 60007",
    "321 Pine St, San Francisco, CA 94101",
    "654 Maple Ave, Boston, MA 02108",
    "987 Cedar Rd, Miami, FL 33101",
    "741 Birch Ln, Seattle, WA 98101",
    "852 Walnut Dr, Austin, TX 78701",
    "963 Cherry Blvd, Denver, CO 80201",
    "159 Spruce Ct, Atlanta, GA 30301",
]

SEED_ORDER_COUNT = 25
SEED_DELIVERY_FEE = "3.99"


def seed_menu():
    if MenuItem.query.count() == 0:
        db.session.add_all(
            MenuItem(name=name, price=to_money(price), image_path=f"/public/menuIcons/{icon}", description=desc, category=cat)
            for name, price, icon, desc, cat in MENU
        )
        db.session.commit()
        logger.info(f"Seeded {len(MENU)} menu items")


def seed_orders(rng=random):
    if Order.query.count() > 0:
        return
    menu = MenuItem.query.all()
    for _ in range(SEED_ORDER_COUNT):
        order_type = rng.choice(list(OrderType)).value
        placed = utcnow() - timedelta(days=rng.randint(1, 14))
        order = Order(
            customer=rng.choice(CUSTOMERS),
            address=rng.choice(ADDRESSES),
            status=rng.choice(list(OrderStatus)).value,
            type=order_type,
            delivery_fee=to_money(SEED_DELIVERY_FEE) if order_type == OrderType.DELIVERY.value else None,
            time=placed,
            created_at=placed,
            updated_at=placed,
        )
        for menu_item in rng.sample(menu, min(len(menu), rng.randint(1, 5))):
            order.items.append(
                OrderItem(menu_item=menu_item, name=menu_item.name, price=menu_item.price, quantity=rng.randint(1, 3))
            )
        order.recalculate_total()
        db.session.add(order)
    db.session.commit()
    logger.info(f"Seeded {SEED_ORDER_COUNT} orders")


if __name__ == "__main__":
    app = create_app()
    with app.app_context():
        seed_menu()
        seed_orders()
    print("Seeded menu and orders.")
