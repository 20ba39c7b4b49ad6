"""
Configuration loader for environment variables.
"""

import os
from dotenv import load_dotenv

# Load .env from project root
load_dotenv()


class Config:
    """Application configuration from environment variables."""

    # PostgreSQL
    POSTGRES_HOST = os.getenv('POSTGRES_HOST', 'localhost')
    POSTGRES_PORT = os.getenv('POSTGRES_PORT', '5432')
    POSTGRES_DATABASE = os.getenv('POSTGRES_DATABASE', 'contracts')
    POSTGRES_USER = os.getenv('POSTGRES_USER')
    POSTGRES_PASSWORD = os.getenv('POSTGRES_PASSWORD')

    # Inflation index (BCB SGS series 433 - IPCA monthly variation)
    INDEX_API_BASE_URL = os.getenv('INDEX_API_BASE_URL', 'https://api.bcb.gov.br')
    INDEX_SERIES_ID = os.getenv('INDEX_SERIES_ID', '433')
    INDEX_TIMEOUT_SECONDS = float(os.getenv('INDEX_TIMEOUT_SECONDS', '10'))
    INDEX_CACHE_SECONDS = int(os.getenv('INDEX_CACHE_SECONDS', '3600'))

    # Logging
    LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO')

    @classmethod
    def get_postgres_url(cls):
        """Get SQLAlchemy PostgreSQL connection URL."""
        return (
            f"postgresql://{cls.POSTGRES_USER}:{cls.POSTGRES_PASSWORD}"
            f"@{cls.POSTGRES_HOST}:{cls.POSTGRES_PORT}/{cls.POSTGRES_DATABASE}"
        )

    @classmethod
    def get_index_series_url(cls):
        """Get the SGS endpoint URL for the configured index series."""
        return f"{cls.INDEX_API_BASE_URL}/dados/serie/bcdata.sgs.{cls.INDEX_SERIES_ID}/dados"
