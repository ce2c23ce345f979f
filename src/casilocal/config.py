"""Configuration management for the CasiLocal content bot."""

import logging
import os
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field

try:
    import tomllib  # Python 3.11+
except ImportError:
    import tomli as tomllib  # Python < 3.11

logger = logging.getLogger(__name__)

DEFAULT_QUERY = "Laptop friendly specialty coffee madrid"
DEFAULT_MODEL = "llama-3.3-70b-versatile"


def _find_repo_root(start_dir: Path) -> Path:
    """Find repository root by walking upward looking for .git or pyproject.toml."""
    current_dir = start_dir

    while True:
        if (current_dir / ".git").exists() or (current_dir / "pyproject.toml").exists():
            return current_dir

        parent_dir = current_dir.parent
        if parent_dir == current_dir:
            return start_dir

        current_dir = parent_dir


def _load_repo_config_data(repo_root: Path) -> Optional[dict]:
    """Load repo config data from .casilocal/config.toml if it exists."""
    config_file = repo_root / ".casilocal" / "config.toml"

    if not config_file.exists():
        return None

    try:
        with open(config_file, "rb") as f:
            return tomllib.load(f)
    except (OSError, tomllib.TOMLDecodeError) as e:
        logger.warning(f"Ignoring malformed {config_file}: {e}")
        return None


def _get_repo_config_value(data: Optional[dict], keys: list[str]):
    """Safely get a nested repo config value."""
    if not data:
        return None
    current = data
    for key in keys:
        if not isinstance(current, dict) or key not in current:
            return None
        current = current[key]
    return current


def _has_site_markers(site_path: Path) -> bool:
    """Check if a directory looks like the CasiLocal site root."""
    return (site_path / "astro.config.mjs").exists() or (site_path / "src" / "content" / "spots").is_dir()


def resolve_site_root(cli_site_path: Optional[str] = None) -> Path:
    """Resolve the site root with the following precedence:

    1. CLI --site option (if provided)
    2. repo-local .casilocal/config.toml (walk upward from CWD)
    3. CASILOCAL_SITE environment variable
    4. Auto-discovery by walking up from cwd looking for astro.config.mjs
    5. The current directory

    Raises:
        FileNotFoundError: If an explicitly configured path does not exist
    """
    if cli_site_path:
        site_path = Path(cli_site_path).resolve()
        if not site_path.exists():
            raise FileNotFoundError(f"Specified site path does not exist: {site_path}")
        return site_path

    repo_config = _load_repo_config_data(_find_repo_root(Path.cwd()))
    repo_site = _get_repo_config_value(repo_config, ["site_root"])
    if isinstance(repo_site, str) and repo_site:
        site_path = Path(repo_site).resolve()
        if not site_path.exists():
            raise FileNotFoundError(f"Site path from .casilocal/config.toml does not exist: {site_path}")
        return site_path

    env_site = os.environ.get("CASILOCAL_SITE")
    if env_site:
        site_path = Path(env_site).resolve()
        if not site_path.exists():
            raise FileNotFoundError(f"CASILOCAL_SITE path does not exist: {site_path}")
        return site_path

    current_dir = Path.cwd()
    while True:
        if _has_site_markers(current_dir):
            return current_dir
        parent_dir = current_dir.parent
        if parent_dir == current_dir:
            break
        current_dir = parent_dir

    return Path.cwd()


def load_env_files(site_root: Path) -> None:
    """Load .env from the working directory and the site root (first wins)."""
    for env_path in (Path.cwd() / ".env", site_root / ".env"):
        if env_path.exists():
            load_dotenv(env_path, override=False)


class LlmConfig(BaseModel):
    """Text-generation settings."""

    model: str = Field(default=DEFAULT_MODEL)
    timeout_seconds: float = Field(default=60.0)


class SeedConfig(BaseModel):
    """Settings for the ingestion ("seed") pipeline."""

    default_query: str = Field(default=DEFAULT_QUERY)
    language_code: str = Field(default="en")
    result_count: int = Field(default=20, ge=1, le=20)
    max_attempts: int = Field(default=3, ge=1)
    duplicate_ratio_threshold: float = Field(default=0.5)
    min_new_per_batch: int = Field(default=5)
    known_names_in_prompt: int = Field(default=15)
    default_author: str = Field(default="murad-madi")
    default_neighborhood: str = Field(default="Centro")


class RefineConfig(BaseModel):
    """Settings for the refinement pipeline."""

    rate_limit_seconds: float = Field(default=600.0, ge=0)
    excluded_files: list[str] = Field(default_factory=lambda: ["example-spot.mdx"])


class CasiConfig(BaseModel):
    """Configuration for a CasiLocal site checkout."""

    site_root: Path = Field(default_factory=Path.cwd)
    llm: LlmConfig = Field(default_factory=LlmConfig)
    seed: SeedConfig = Field(default_factory=SeedConfig)
    refine: RefineConfig = Field(default_factory=RefineConfig)

    @classmethod
    def from_env(cls, cli_site_path: Optional[str] = None) -> "CasiConfig":
        """Load configuration from the repo config file, environment and defaults.

        Args:
            cli_site_path: Site path from CLI --site option (highest precedence)
        """
        site_root = resolve_site_root(cli_site_path)
        load_env_files(site_root)
        repo_config = _load_repo_config_data(_find_repo_root(Path.cwd())) or {}

        llm_data = dict(repo_config.get("llm") or {})
        seed_data = dict(repo_config.get("seed") or {})
        refine_data = dict(repo_config.get("refine") or {})

        if os.environ.get("CASILOCAL_MODEL"):
            llm_data["model"] = os.environ["CASILOCAL_MODEL"]
        if os.environ.get("CASILOCAL_DEFAULT_QUERY"):
            seed_data["default_query"] = os.environ["CASILOCAL_DEFAULT_QUERY"]
        if os.environ.get("CASILOCAL_LANGUAGE_CODE"):
            seed_data["language_code"] = os.environ["CASILOCAL_LANGUAGE_CODE"]
        if os.environ.get("CASILOCAL_SEED_MAX_ATTEMPTS"):
            seed_data["max_attempts"] = int(os.environ["CASILOCAL_SEED_MAX_ATTEMPTS"])
        if os.environ.get("CASILOCAL_REFINE_DELAY_SECONDS"):
            refine_data["rate_limit_seconds"] = float(os.environ["CASILOCAL_REFINE_DELAY_SECONDS"])

        return cls(
            site_root=site_root,
            llm=LlmConfig(**llm_data),
            seed=SeedConfig(**seed_data),
            refine=RefineConfig(**refine_data),
        )
