# storefront/data/seed.py
from decimal import Decimal

from storefront.data import models
from storefront.data.database import Base, SessionLocal, engine
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


def seed():
    """Demo catalog for the sql backend: a few products, a plain pack and a customizable one."""
    Base.metadata.create_all(bind=engine)
    db = SessionLocal()
    try:
        # not forcing: only seed if empty
        if db.query(models.ProductModel).first():
            return

        fruit = models.CategoryModel(name="Fruit")
        dairy = models.CategoryModel(name="Dairy")
        db.add_all([fruit, dairy])
        db.flush()

        apples = models.ProductModel(name="Apples 1kg", price=Decimal("3.20"), stock=40, category_id=fruit.id)
        pears = models.ProductModel(name="Pears 1kg", price=Decimal("3.80"), stock=25, category_id=fruit.id)
        bananas = models.ProductModel(name="Bananas 1kg", price=Decimal("2.40"), stock=30, category_id=fruit.id)
        milk = models.ProductModel(name="Milk 1l", price=Decimal("1.10"), stock=60, category_id=dairy.id)
        yogurt = models.ProductModel(name="Natural yogurt", price=Decimal("0.90"), stock=50, category_id=dairy.id)
        db.add_all([apples, pears, bananas, milk, yogurt])
        db.flush()

        breakfast = models.PackModel(name="Breakfast pack", price=Decimal("4.50"), products_count=2)
        fruit_box = models.PackModel(name="Fruit box", price=Decimal("9.00"), products_count=3)
        db.add_all([breakfast, fruit_box])
        db.flush()

        db.add_all([
            models.PackProductModel(pack_id=breakfast.id, product_id=milk.id, quantity=1),
            models.PackProductModel(pack_id=breakfast.id, product_id=yogurt.id, quantity=2),
            models.PackProductModel(pack_id=fruit_box.id, product_id=apples.id, quantity=1),
            models.PackCategoryModel(pack_id=fruit_box.id, category_id=fruit.id, products_count=2),
        ])
        db.commit()
        logger.info("Demo catalog seeded")
    finally:
        db.close()


if __name__ == "__main__":
    seed()
