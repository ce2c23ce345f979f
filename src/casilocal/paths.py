"""Path layout of a CasiLocal site checkout."""

from pathlib import Path

from .config import CasiConfig


class SitePaths:
    """Manages paths within the site tree."""

    def __init__(self, site_root: Path):
        self.root = site_root

        self.content = site_root / "src" / "content"
        self.spots = self.content / "spots"

        # Bot state lives next to the original scripts
        self.bot = site_root / "bot"
        self.processed_file = self.bot / "processed-spots.json"
        self.refined_file = self.bot / "refined-spots.json"

    @classmethod
    def from_config(cls, config: CasiConfig) -> "SitePaths":
        """Create SitePaths from a CasiConfig."""
        return cls(config.site_root)

    def spot_path(self, slug: str) -> Path:
        """Get path to the content file for a slug."""
        return self.spots / f"{slug}.mdx"

    def list_spot_files(self) -> list[Path]:
        """All .mdx content files, sorted by name."""
        if not self.spots.exists():
            return []
        return sorted(p for p in self.spots.glob("*.mdx") if p.is_file())
