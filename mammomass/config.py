# mammomass/config.py

from pathlib import Path
import os

# Root of the project; overridable via env for containers / CI
PROJECT_ROOT = Path(
    os.getenv("MAMMOMASS_ROOT", Path(__file__).resolve().parents[1])
)

# Base artifacts directory (models, datasets, reports)
ARTIFACTS_DIR = PROJECT_ROOT / "artifacts"

# Datasets directory (raw mammographic mass file lives here)
DATASETS_DIR = ARTIFACTS_DIR / "datasets"

# Where trained models / artifacts are stored
PRETRAINED_DIR = ARTIFACTS_DIR / "pretrained"

# Analysis runs (tables, plots, report.json)
REPORTS_DIR = ARTIFACTS_DIR / "reports"

# Default input file; the UCI layout (no header, '?' for missing)
MASS_CSV_PATH = Path(
    os.getenv("MAMMOMASS_DATA_PATH", DATASETS_DIR / "mammographic_masses.data")
)

# Public copy of the dataset; pandas can read it straight from the URL
MASS_DATA_URL = (
    "https://archive.ics.uci.edu/ml/machine-learning-databases/"
    "mammographic-masses/mammographic_masses.data"
)

# Global random seed (overridable via env)
RANDOM_SEED = int(os.getenv("MAMMOMASS_RANDOM_SEED", "42"))

LOG_LEVEL = os.getenv("MAMMOMASS_LOG_LEVEL", "INFO").upper()
