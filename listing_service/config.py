import os

from dotenv import load_dotenv

load_dotenv()


class Config:
    SQLALCHEMY_DATABASE_URI = (
        os.getenv('DATABASE_URL')
        or os.getenv('PRODUCT_DB_URI')
        or 'sqlite:///listings.db'
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Token signing secret
    SECRET_KEY = os.getenv('JWT_SECRET') or os.getenv('SECRET_KEY', 'mysecretkey')
    JWT_ALGORITHM = 'HS256'
    JWT_EXPIRES_HOURS = int(os.getenv('JWT_EXPIRES_HOURS', 2))

    # Listing cache is disabled when REDIS_URL is unset
    REDIS_URL = os.getenv('REDIS_URL')
    PRODUCT_CACHE_TTL = int(os.getenv('PRODUCT_CACHE_TTL', 60))

    LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO')
    HOST = os.getenv('HOST', '0.0.0.0')
    PORT = int(os.getenv('PORT', 3000))


class TestConfig(Config):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = 'sqlite://'
    SECRET_KEY = 'test-secret'
    REDIS_URL = None
    LOG_LEVEL = 'WARNING'
