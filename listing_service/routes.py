import math

from flask import Blueprint, current_app, g, jsonify, request
from sqlalchemy.exc import IntegrityError

from listing_service.auth import create_token, hash_password, require_auth, verify_password
from listing_service.logger import logger
from listing_service.metrics import LOGIN_ATTEMPTS, PRODUCT_COUNT
from listing_service.model import db, Product, User

api = Blueprint('api', __name__)

CREDENTIALS_REQUIRED = "Username and password are required."
INVALID_CREDENTIALS = "Invalid username or password."


def _json_body():
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}


def _non_empty_str(value):
    return isinstance(value, str) and value != ""


def _product_cache():
    return current_app.extensions["product_cache"]


def _like_escape(term):
    return term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


@api.route("/register", methods=["POST"])
def register():
    data = _json_body()
    user_name = data.get("user_name")
    password = data.get("password")
    logger.info("Registration attempt", extra={'endpoint': '/register', 'user_name': user_name})

    if not _non_empty_str(user_name) or not _non_empty_str(password):
        logger.warning("Registration failed - missing user_name or password", extra={'endpoint': '/register', 'status_code': 400})
        return jsonify({"error": CREDENTIALS_REQUIRED}), 400

    try:
        if User.query.filter_by(user_name=user_name).first():
            logger.warning("Registration failed - user already exists", extra={'endpoint': '/register', 'user_name': user_name, 'status_code': 400})
            return jsonify({"error": "Username already exists."}), 400

        user = User(user_name=user_name, password=hash_password(password))
        db.session.add(user)
        db.session.commit()
    except IntegrityError:
        # lost a race with a concurrent registration of the same name
        db.session.rollback()
        logger.warning("Registration failed - user already exists", extra={'endpoint': '/register', 'user_name': user_name, 'status_code': 400})
        return jsonify({"error": "Username already exists."}), 400
    except Exception as e:
        db.session.rollback()
        logger.error("Registration error", extra={'endpoint': '/register', 'error': str(e)})
        return jsonify({"error": "Registration failed."}), 500

    logger.info("User registered successfully", extra={'endpoint': '/register', 'user_name': user_name, 'user_id': user.id, 'status_code': 201})
    return jsonify({"message": "Registration successful."}), 201


@api.route("/login", methods=["POST"])
def login():
    data = _json_body()
    user_name = data.get("user_name")
    password = data.get("password")
    logger.info("Login attempt", extra={'endpoint': '/login', 'user_name': user_name})

    if not _non_empty_str(user_name) or not _non_empty_str(password):
        LOGIN_ATTEMPTS.labels('failed').inc()
        logger.warning("Login failed - missing user_name or password", extra={'endpoint': '/login', 'status_code': 400})
        return jsonify({"error": CREDENTIALS_REQUIRED}), 400

    try:
        user = User.query.filter_by(user_name=user_name).first()

        # Same answer for unknown user and wrong password
        if not user or not verify_password(user.password, password):
            LOGIN_ATTEMPTS.labels('failed').inc()
            logger.warning("Invalid login credentials", extra={'endpoint': '/login', 'user_name': user_name, 'status_code': 401})
            return jsonify({"error": INVALID_CREDENTIALS}), 401

        token = create_token(user.id)
    except Exception as e:
        LOGIN_ATTEMPTS.labels('failed').inc()
        logger.error("Login error", extra={'endpoint': '/login', 'error': str(e)})
        return jsonify({"error": "Login failed."}), 500

    LOGIN_ATTEMPTS.labels('success').inc()
    logger.info("Successful login", extra={'endpoint': '/login', 'user_id': user.id, 'user_name': user.user_name, 'status_code': 200})
    return jsonify({"token": token})


@api.route("/products", methods=["POST"])
@require_auth
def create_product():
    data = _json_body()
    name = data.get("name")
    price = data.get("price")
    user_id = g.current_user.get("user_id")
    logger.info("Create product request", extra={'endpoint': '/products', 'user_id': user_id})

    if not _non_empty_str(name) or price is None:
        logger.warning("Missing required fields for product creation", extra={'endpoint': '/products', 'status_code': 400})
        return jsonify({"error": "Name and price are required."}), 400

    if isinstance(price, bool) or not isinstance(price, (int, float)):
        logger.warning("Invalid price for product creation", extra={'endpoint': '/products', 'status_code': 400})
        return jsonify({"error": "Price must be a number."}), 400

    try:
        price = float(price)
    except OverflowError:
        # integers beyond float range
        price = math.inf
    if not math.isfinite(price):
        logger.warning("Invalid price for product creation", extra={'endpoint': '/products', 'status_code': 400})
        return jsonify({"error": "Price must be a number."}), 400

    try:
        product = Product(name=name, price=price)
        db.session.add(product)
        db.session.commit()
    except Exception as e:
        db.session.rollback()
        logger.error("Error creating product", extra={'endpoint': '/products', 'user_id': user_id, 'error': str(e)})
        return jsonify({"error": "Product listing failed."}), 500

    PRODUCT_COUNT.labels('create').inc()
    _product_cache().invalidate()

    logger.info("Product created successfully", extra={'endpoint': '/products', 'product_id': product.id, 'user_id': user_id, 'status_code': 201})
    return jsonify({"message": "Product listing created.", "product": product.to_dict()}), 201


@api.route("/products", methods=["GET"])
def list_products():
    search = request.args.get("search") or None
    logger.info("List products request", extra={'endpoint': '/products', 'search': search})

    cache = _product_cache()
    # read before querying so a write landing mid-request retires this entry
    generation = cache.generation()
    cached = cache.get(search, generation)
    if cached is not None:
        logger.info("Products retrieved from cache", extra={'endpoint': '/products', 'search': search, 'cached': True, 'status_code': 200})
        return jsonify({"products": cached})

    try:
        query = Product.query
        if search:
            # name_folded holds casefold(name); SQLite's lower() only folds ASCII
            query = query.filter(Product.name_folded.like(f"%{_like_escape(search.casefold())}%", escape="\\"))
        products = [p.to_dict() for p in query.order_by(Product.id).all()]
    except Exception as e:
        logger.error("Error retrieving products", extra={'endpoint': '/products', 'search': search, 'error': str(e)})
        return jsonify({"error": "Failed to fetch products."}), 500

    cache.set(products, search, generation)
    logger.info("Products retrieved from database", extra={'endpoint': '/products', 'search': search, 'product_count': len(products), 'status_code': 200})
    return jsonify({"products": products})


@api.route("/<int:product_id>", methods=["DELETE"])
@require_auth
def delete_product(product_id):
    user_id = g.current_user.get("user_id")
    logger.info(f"Delete product request for product_id: {product_id}", extra={'endpoint': '/<id>', 'product_id': product_id, 'user_id': user_id})

    try:
        product = db.session.get(Product, product_id)
        if product is None:
            logger.warning("Product not found", extra={'endpoint': '/<id>', 'product_id': product_id, 'status_code': 404})
            return jsonify({"error": "Product not found."}), 404

        deleted = product.to_dict()
        db.session.delete(product)
        db.session.commit()
    except Exception as e:
        db.session.rollback()
        logger.error("Error deleting product", extra={'endpoint': '/<id>', 'product_id': product_id, 'error': str(e)})
        return jsonify({"error": "An error occurred while deleting the product."}), 500

    PRODUCT_COUNT.labels('delete').inc()
    _product_cache().invalidate()

    logger.info("Product deleted successfully", extra={'endpoint': '/<id>', 'product_id': product_id, 'user_id': user_id, 'status_code': 200})
    return jsonify(deleted)


@api.route("/<product_id>", methods=["DELETE"])
@require_auth
def delete_unknown_product(product_id):
    # Non-integer ids can never match a product row
    logger.warning("Product not found", extra={'endpoint': '/<id>', 'status_code': 404})
    return jsonify({"error": "Product not found."}), 404
