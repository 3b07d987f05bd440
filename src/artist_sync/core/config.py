"""
Configuration management for artist_sync.
"""
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional
from urllib.parse import urlencode

from .exceptions import ConfigurationError

logger = logging.getLogger(__name__)

SPOTIFY_AUTHORIZE_URL = "https://accounts.spotify.com/authorize"

_REQUIRED_FIELDS = {
    "lastfm_username": "LASTFM_USERNAME",
    "lastfm_api_key": "LASTFM_API_KEY",
    "spotify_client_id": "SPOTIFY_CLIENT_ID",
    "spotify_client_secret": "SPOTIFY_CLIENT_SECRET",
    "redirect_uri": "REDIRECT_URI",
    "redis_url": "REDIS_URL",
}

_SECRET_FIELDS = ("lastfm_api_key", "spotify_client_secret")


@dataclass
class Config:
    """Configuration settings for the application."""

    # Last.fm
    lastfm_username: Optional[str] = None
    lastfm_api_key: Optional[str] = None

    # Spotify OAuth
    spotify_client_id: Optional[str] = None
    spotify_client_secret: Optional[str] = None
    redirect_uri: Optional[str] = None
    oauth_scopes: str = "playlist-read-private"
    callback_host: str = "127.0.0.1"
    callback_port: int = 7979

    # Storage
    redis_url: Optional[str] = None
    database_path: Path = field(default_factory=lambda: Path("data/artists.db"))

    # Reconciliation
    page_limit: int = 2000
    max_workers: int = 0  # 0 = one worker per page
    request_timeout: int = 30

    # Application Settings
    log_level: str = "INFO"
    debug_api_calls: bool = False

    def __post_init__(self) -> None:
        self.database_path = Path(self.database_path)

    @classmethod
    def from_env(cls) -> "Config":
        """Create configuration from environment variables."""
        return cls(
            lastfm_username=os.getenv("LASTFM_USERNAME"),
            lastfm_api_key=os.getenv("LASTFM_API_KEY"),
            spotify_client_id=os.getenv("SPOTIFY_CLIENT_ID"),
            spotify_client_secret=os.getenv("SPOTIFY_CLIENT_SECRET"),
            redirect_uri=os.getenv("REDIRECT_URI"),
            oauth_scopes=os.getenv("SPOTIFY_SCOPES", "playlist-read-private"),
            callback_host=os.getenv("CALLBACK_HOST", "127.0.0.1"),
            callback_port=int(os.getenv("CALLBACK_PORT", "7979")),
            redis_url=os.getenv("REDIS_URL"),
            database_path=Path(os.getenv("ARTIST_DB_PATH", "data/artists.db")),
            page_limit=int(os.getenv("LASTFM_PAGE_LIMIT", "2000")),
            max_workers=int(os.getenv("MAX_WORKERS", "0")),
            request_timeout=int(os.getenv("REQUEST_TIMEOUT", "30")),
            log_level=os.getenv("LOG_LEVEL", "INFO"),
            debug_api_calls=os.getenv("DEBUG_API_CALLS", "false").lower() == "true",
        )

    @classmethod
    def from_dotenv(cls, env_file: Optional[Path] = None) -> "Config":
        """Create configuration from .env file."""
        from dotenv import load_dotenv

        if env_file:
            if not Path(env_file).exists():
                raise ConfigurationError(f"Environment file not found: {env_file}")
            load_dotenv(env_file)
        else:
            # Try to find .env in project root
            project_root = cls._find_project_root()
            if project_root:
                env_file = project_root / ".env"
                if env_file.exists():
                    load_dotenv(env_file)

        return cls.from_env()

    @staticmethod
    def _find_project_root() -> Optional[Path]:
        """Find the project root directory."""
        current = Path.cwd()

        # Look for markers that indicate project root
        markers = [".git", "pyproject.toml", ".env"]

        for parent in [current] + list(current.parents):
            if any((parent / marker).exists() for marker in markers):
                return parent

        return current

    def setup_logging(self) -> None:
        """Set up logging configuration."""
        log_level = getattr(logging, self.log_level.upper(), logging.INFO)

        formatter = logging.Formatter(
            "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
        )

        root_logger = logging.getLogger()
        root_logger.setLevel(log_level)

        for handler in root_logger.handlers[:]:
            root_logger.removeHandler(handler)

        console_handler = logging.StreamHandler()
        console_handler.setFormatter(formatter)
        root_logger.addHandler(console_handler)

        if self.debug_api_calls:
            logging.getLogger("requests").setLevel(logging.DEBUG)
            logging.getLogger("urllib3").setLevel(logging.DEBUG)

    def validate(self) -> None:
        """Validate the configuration."""
        errors = []

        for attr, env_var in _REQUIRED_FIELDS.items():
            if not getattr(self, attr):
                errors.append(f"{env_var} is required")

        if not 0 < self.callback_port < 65536:
            errors.append("CALLBACK_PORT must be between 1 and 65535")

        if self.page_limit <= 0:
            errors.append("LASTFM_PAGE_LIMIT must be > 0")

        if self.max_workers < 0:
            errors.append("MAX_WORKERS must be >= 0")

        if self.request_timeout <= 0:
            errors.append("REQUEST_TIMEOUT must be > 0")

        if errors:
            raise ConfigurationError(f"Configuration errors: {', '.join(errors)}")

    @property
    def authorize_url(self) -> str:
        """URL the user must visit to grant access."""
        params = {
            "client_id": self.spotify_client_id or "",
            "response_type": "code",
            "redirect_uri": self.redirect_uri or "",
            "scope": self.oauth_scopes,
        }
        return f"{SPOTIFY_AUTHORIZE_URL}?{urlencode(params)}"

    def ensure_directories(self) -> None:
        """Ensure the artist database directory exists."""
        self.database_path.parent.mkdir(parents=True, exist_ok=True)

    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration to dictionary."""
        return dict(self.__dict__)

    def __str__(self) -> str:
        config_dict = self.to_dict()
        # Hide sensitive information
        for key in _SECRET_FIELDS:
            if config_dict.get(key):
                config_dict[key] = f"{config_dict[key][:4]}..."
        return f"Config({config_dict})"
