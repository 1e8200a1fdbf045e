# Configuration settings
import os
from datetime import timedelta
from dotenv import load_dotenv

# This line loads the variables from your .env file
load_dotenv()


def _default_database_url():
    return 'sqlite:///' + os.path.join(os.getcwd(), 'aesvault.db')


# This class holds all the configuration variables for your app
class Config:
    SECRET_KEY = os.environ.get('SECRET_KEY', 'dev-secret-change-me')
    JWT_SECRET_KEY = os.environ.get('JWT_SECRET_KEY', SECRET_KEY)
    JWT_ACCESS_TOKEN_EXPIRES = timedelta(hours=int(os.environ.get('JWT_EXPIRES_HOURS', 24)))

    # 32 bytes for AES-256. Validated in create_app, there is no default.
    ENCRYPTION_KEY = os.environ.get('ENCRYPTION_KEY')

    SQLALCHEMY_DATABASE_URI = os.environ.get('DATABASE_URL', _default_database_url())
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    HOST = os.environ.get('HOST', '127.0.0.1')
    PORT = int(os.environ.get('PORT', 5000))
    CORS_ORIGINS = [origin.strip() for origin in os.environ.get('CORS_ORIGINS', 'http://localhost:3000').split(',')]

    HISTORY_LIMIT = int(os.environ.get('HISTORY_LIMIT', 10))
