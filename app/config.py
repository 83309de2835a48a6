"""
Configuration module for the StoryWeaver personalization service.
Loads settings from .env file and environment variables.
"""

import os
from pathlib import Path

from dotenv import load_dotenv

# Values already present in the environment win over the .env file
_env_path = Path(__file__).parent.parent / ".env"
if _env_path.exists():
    load_dotenv(_env_path, override=False)


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() in ("true", "1", "yes")


class Settings:
    """Application configuration loaded from environment variables."""

    def __init__(self):
        self.app_name: str = os.getenv("APP_NAME", "StoryWeaver")
        self.api_version: str = os.getenv("API_VERSION", "v1")
        self.debug: bool = _env_bool("DEBUG", "false")
        self.environment: str = os.getenv("ENVIRONMENT", "development")

        # Firebase
        self.firebase_credentials_path: str = os.getenv("FIREBASE_CREDENTIALS_PATH", "")

        # Collections
        self.children_collection: str = os.getenv("CHILDREN_COLLECTION", "children")
        self.templates_collection: str = os.getenv("TEMPLATES_COLLECTION", "storyTemplates")
        self.stories_collection: str = os.getenv("STORIES_COLLECTION", "personalizedStories")

        # Firestore rejects batches above 500 writes
        self.max_batch_size: int = int(os.getenv("MAX_BATCH_SIZE", "500"))

        # Listen to the children collection from inside the API process
        self.watch_profiles: bool = _env_bool("WATCH_PROFILES", "false")

        # Local dev mode
        self.local_seed_path: str = os.getenv("LOCAL_SEED_PATH", "")

    @property
    def children_document_pattern(self) -> str:
        return f"{self.children_collection}/{{childId}}"


_settings = None


def get_settings() -> Settings:
    """Get application settings singleton."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings
