"""
Application Configuration

FLOW OVERVIEW
- Config.__init__
  • Reads FLASK_ENV to select which .env file to load (dev/prod). Testing bypasses file load.
- Properties expose configuration values, defaulting to sensible development-safe defaults.
- SQLALCHEMY_DATABASE_URI
  • DATABASE_URL wins; otherwise DB_HOST/DB_* build a MySQL (PyMySQL) URL; otherwise local SQLite.
"""

import os
from dotenv import load_dotenv


class Config:
    """Base configuration class"""

    def __init__(self):
        # Load environment variables based on FLASK_ENV
        env_file = os.getenv('FLASK_ENV', 'development')
        if env_file == 'testing':
            # For testing, don't load config files, use environment variables directly
            pass
        elif env_file == 'production':
            load_dotenv('config.prod.env')
        else:
            load_dotenv('config.env')  # Default to development

    @property
    def SECRET_KEY(self):
        """Application secret key"""
        return os.getenv('SECRET_KEY', 'dev-secret-key-change-in-production')

    @property
    def SQLALCHEMY_DATABASE_URI(self):
        """Database connection URI"""
        url = os.getenv('DATABASE_URL')
        if url:
            return url
        host = os.getenv('DB_HOST')
        if host:
            port = int(os.getenv('DB_PORT', 3306))
            user = os.getenv('DB_USER', 'root')
            password = os.getenv('DB_PASSWORD', '')
            name = os.getenv('DB_NAME', 'autoai')
            return f"mysql+pymysql://{user}:{password}@{host}:{port}/{name}?charset=utf8mb4"
        return 'sqlite:///autoai.db'

    @property
    def SQLALCHEMY_TRACK_MODIFICATIONS(self):
        """SQLAlchemy track modifications setting"""
        return False

    @property
    def SQLALCHEMY_ENGINE_OPTIONS(self):
        """Engine options; MySQL drops idle connections after wait_timeout"""
        return {'pool_pre_ping': True, 'pool_recycle': 3600}

    @property
    def DEEPSEEK_API_KEYS(self):
        """Comma-separated DeepSeek API keys; empty means stub replies"""
        return os.getenv('DEEPSEEK_API_KEYS', '')

    @property
    def DEEPSEEK_BASE_URL(self):
        """OpenAI-compatible endpoint of the DeepSeek API"""
        return os.getenv('DEEPSEEK_BASE_URL', 'https://api.deepseek.com/v1')

    @property
    def DEEPSEEK_MODEL(self):
        return os.getenv('DEEPSEEK_MODEL', 'deepseek-chat')

    @property
    def AI_TEMPERATURE(self):
        return float(os.getenv('AI_TEMPERATURE', 0.7))

    @property
    def AI_MAX_TOKENS(self):
        return int(os.getenv('AI_MAX_TOKENS', 4000))

    @property
    def AI_CONTEXT_TOKEN_BUDGET(self):
        """Maximum tokens of chat history replayed to the model"""
        return int(os.getenv('AI_CONTEXT_TOKEN_BUDGET', 6000))

    @property
    def LOG_LEVEL(self):
        return os.getenv('LOG_LEVEL', 'INFO').upper()

    @property
    def JSON_AS_ASCII(self):
        """Keep non-ASCII file contents readable in JSON responses"""
        return False

    @property
    def SESSION_COOKIE_SECURE(self):
        """Whether session cookies should be secure (HTTPS only)"""
        return os.getenv('SESSION_COOKIE_SECURE', 'False').lower() == 'true'

    @property
    def SESSION_COOKIE_HTTPONLY(self):
        """Whether session cookies should be HTTP only"""
        return True

    @property
    def SESSION_COOKIE_SAMESITE(self):
        """Session cookie SameSite policy"""
        return 'Lax'

    @property
    def PERMANENT_SESSION_LIFETIME(self):
        """Session lifetime in seconds"""
        return int(os.getenv('PERMANENT_SESSION_LIFETIME', 86400))
