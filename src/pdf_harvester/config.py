"""Configuration management with Pydantic models."""

from pathlib import Path

from pydantic import BaseModel, Field


class FetcherConfig(BaseModel):
    """Configuration for page fetching and document downloads."""

    use_js: bool = False
    timeout_ms: int = Field(default=30000, ge=1000, le=120000)
    user_agent: str = "PdfHarvester/0.1 (Document Collector)"
    wait_after_load_ms: int = Field(default=0, ge=0, le=10000)
    page_pool_size: int = Field(default=3, ge=1, le=20)


class DownloadConfig(BaseModel):
    """Configuration for the acquisition pipeline."""

    max_concurrent: int = Field(default=0, ge=0, le=100)  # 0 = unbounded
    delay_seconds: float = Field(default=0.0, ge=0.0, le=60.0)
    max_retries: int = Field(default=2, ge=0, le=10)
    retry_base_delay: float = Field(default=1.0, ge=0.1, le=30.0)
    max_file_size: int = Field(default=200 * 1024 * 1024, ge=1)


class PreviewConfig(BaseModel):
    """Configuration for first-page preview rendering."""

    scale: float = Field(default=0.4, gt=0.0, le=4.0)
    jpeg_quality: int = Field(default=80, ge=1, le=100)


class OutputConfig(BaseModel):
    """Configuration for output."""

    archive_path: Path = Path("./scraped_pdfs.zip")
    previews_dir: Path | None = None


class AppConfig(BaseModel):
    """Main application configuration."""

    fetcher: FetcherConfig = Field(default_factory=FetcherConfig)
    download: DownloadConfig = Field(default_factory=DownloadConfig)
    preview: PreviewConfig = Field(default_factory=PreviewConfig)
    output: OutputConfig = Field(default_factory=OutputConfig)
    verbose: bool = False

    @classmethod
    def from_toml(cls, path: Path) -> "AppConfig":
        """Load config from a TOML file."""
        try:
            import tomllib  # type: ignore[import-not-found]
        except ModuleNotFoundError:
            import tomli as tomllib  # type: ignore[import-not-found]
        with open(path, "rb") as f:
            data = tomllib.load(f)
        return cls.model_validate(data)

    def to_toml(self) -> str:
        """Serialize config to TOML format."""
        data = self.model_dump(mode="json", exclude_none=True)
        return _dict_to_toml(data)


def _toml_value(v: object) -> str:
    """Format a Python value as a TOML literal."""
    if isinstance(v, bool):
        return "true" if v else "false"
    if isinstance(v, (int, float)):
        return str(v)
    if isinstance(v, str):
        escaped = v.replace("\\", "\\\\").replace('"', '\\"')
        return f'"{escaped}"'
    if isinstance(v, list):
        items = ", ".join(_toml_value(i) for i in v)
        return f"[{items}]"
    return f'"{v}"'


def _dict_to_toml(data: dict) -> str:
    """Convert a dict of scalars and one level of tables to a TOML string."""
    lines: list[str] = []
    # Top-level keys must precede the first table header
    for k, v in data.items():
        if not isinstance(v, dict):
            lines.append(f"{k} = {_toml_value(v)}")
    for k, v in data.items():
        if isinstance(v, dict):
            lines.append(f"\n[{k}]")
            for sk, sv in v.items():
                lines.append(f"{sk} = {_toml_value(sv)}")
    return "\n".join(lines).lstrip("\n") + "\n"
