"""Central path configuration for the Codenames engine package."""

from pathlib import Path

PACKAGE_DIR = Path(__file__).parent

# Bundled word decks
DECKS_DIR = PACKAGE_DIR / "decks"
