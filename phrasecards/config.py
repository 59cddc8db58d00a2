from pathlib import Path

from pydantic import BaseModel


class AppConfig(BaseModel):
    """Where the card source and the persisted review state live."""

    catalog_path: str = "data.csv"
    state_dir: str = "."
    srs_file: str = "srs_v5.json"
    daily_file: str = "daily_v5.json"
    default_goal: int = 10

    @property
    def srs_path(self) -> Path:
        return Path(self.state_dir) / self.srs_file

    @property
    def daily_path(self) -> Path:
        return Path(self.state_dir) / self.daily_file
