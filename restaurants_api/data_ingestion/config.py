from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True)
class IngestionConfig:
    """
    Configuration for the dataset import.
    """

    source_path: Path = Path("data/restaurants.json")
    lines: bool = True
    batch_size: int = 1000
    drop_existing: bool = False


DEFAULT_INGESTION_CONFIG = IngestionConfig()
