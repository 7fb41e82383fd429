import gzip
import json
import sys
from pathlib import Path

# Add project root to path to import the app package
project_root = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(project_root))

from app.services.catalog import normalize_dataset  # noqa: E402


def build_catalog(source: Path, target: Path) -> int:
    """Normalize a raw store dump (appid -> record map) into the compact gzipped catalog."""
    with source.open(encoding="utf-8") as fh:
        raw = json.load(fh)

    entries = normalize_dataset(raw)
    payload = [entry.model_dump(mode="json") for entry in entries]

    target.parent.mkdir(parents=True, exist_ok=True)
    with gzip.open(target, "wt", encoding="utf-8") as fh:
        json.dump(payload, fh, ensure_ascii=False, separators=(",", ":"))
    return len(payload)


def main():
    if len(sys.argv) < 2:
        print("Usage: python scripts/build_catalog.py <raw_games.json> [data/games.min.json.gz]")
        sys.exit(1)

    source = Path(sys.argv[1])
    target = Path(sys.argv[2]) if len(sys.argv) > 2 else project_root / "data" / "games.min.json.gz"
    count = build_catalog(source, target)
    print(f"Wrote {count} games to {target}")


if __name__ == "__main__":
    main()
