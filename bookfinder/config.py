"""Configuration management."""
import os
from dotenv import load_dotenv

# Load environment variables
load_dotenv()


class Config:
    """Application configuration."""

    # Catalog source
    CATALOG_API_URL = os.getenv("CATALOG_API_URL", "https://book-finder1.p.rapidapi.com/api/search")
    CATALOG_API_HOST = os.getenv("CATALOG_API_HOST", "book-finder1.p.rapidapi.com")
    CATALOG_API_KEY = os.getenv("CATALOG_API_KEY")

    # Store
    STORE_BACKEND = os.getenv("STORE_BACKEND", "memory")
    DB_HOST = os.getenv("DB_HOST", "localhost")
    DB_PORT = os.getenv("DB_PORT", "5432")
    DB_NAME = os.getenv("DB_NAME", "booksdb")
    DB_USER = os.getenv("DB_USER", "postgres")
    DB_PASSWORD = os.getenv("DB_PASSWORD", "")

    @property
    def DATABASE_URL(self):
        """Build PostgreSQL connection string."""
        return f"postgresql://{self.DB_USER}:{self.DB_PASSWORD}@{self.DB_HOST}:{self.DB_PORT}/{self.DB_NAME}"

    # Defaults
    DEFAULT_TIMEOUT = int(os.getenv("DEFAULT_TIMEOUT", "10"))
    MAX_CONCURRENT = int(os.getenv("MAX_CONCURRENT", "5"))
