import time

from flask_sqlalchemy import SQLAlchemy
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import validates

from listing_service.logger import logger

db = SQLAlchemy()


class User(db.Model):
    __tablename__ = 'users'

    id = db.Column(db.Integer, primary_key=True)
    user_name = db.Column(db.String(100), unique=True, nullable=False)
    password = db.Column(db.String(255), nullable=False)  # salted hash, never plaintext

    def __repr__(self):
        return f'<User {self.user_name}>'


class Product(db.Model):
    __tablename__ = 'products'

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(200), nullable=False)
    price = db.Column(db.Float, nullable=False)
    # casefold(name), searched with a plain LIKE
    name_folded = db.Column(db.String(400), nullable=False, index=True)

    @validates('name')
    def _fold_name(self, key, name):
        self.name_folded = name.casefold()
        return name

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "price": self.price,
        }

    def __repr__(self):
        return f'<Product {self.name}>'


def init_db(app, attempts=10, delay=2):
    """Create tables, waiting for the database to come up."""
    with app.app_context():
        for attempt in range(1, attempts + 1):
            try:
                db.create_all()
                return
            except OperationalError:
                if attempt == attempts:
                    raise
                logger.warning(f"Database unavailable, retrying in {delay} seconds...")
                time.sleep(delay)
