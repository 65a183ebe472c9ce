import os
from dotenv import load_dotenv

load_dotenv()


def _flag(name, default):
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ('1', 'true', 'yes', 'on')


#Over here all the configurations are added within this class
class Config:
    ENV = os.getenv('APP_ENV', 'development')
    SECRET_KEY = os.getenv('SECRET_KEY', 'dev-secret-key-change-me')
    SESSION_COOKIE_NAME = '_blogapp_session'
    SESSION_COOKIE_HTTPONLY = True
    SESSION_COOKIE_SAMESITE = 'Lax'

    DATABASE = os.getenv('DATABASE', 'blog.db')
    UPLOAD_FOLDER = os.getenv('UPLOAD_FOLDER', os.path.join('public', 'uploads'))
    # Matched as written, so '.JPG' is not accepted
    ALLOWED_EXTENSIONS = ('.png', '.jpg', '.jpeg')

    PER_PAGE = 20
    MAX_PER_PAGE = 100

    CSRF_ENABLED = _flag('CSRF_ENABLED', True)
    FORCE_SSL = _flag('FORCE_SSL', ENV == 'production')

    LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO')
    LOG_FILE = os.getenv('LOG_FILE')

    GITHUB_CLIENT_ID = os.getenv('GITHUB_CLIENT_ID')
    GITHUB_CLIENT_SECRET = os.getenv('GITHUB_CLIENT_SECRET')
    GITHUB_AUTHORIZE_URL = 'https://github.com/login/oauth/authorize'
    GITHUB_TOKEN_URL = 'https://github.com/login/oauth/access_token'
    GITHUB_USER_URL = 'https://api.github.com/user'


class TestConfig(Config):
    ENV = 'test'
    TESTING = True
    SECRET_KEY = 'test-secret'
    CSRF_ENABLED = False
    FORCE_SSL = False
    LOG_FILE = None
    GITHUB_CLIENT_ID = 'test-client'
    GITHUB_CLIENT_SECRET = 'test-secret'
