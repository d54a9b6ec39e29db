"""Example script showing how to run a background catalog scan programmatically."""
from __future__ import annotations

from pathlib import Path
import sys

PROJECT_ROOT = Path(__file__).resolve().parents[1]
SRC_ROOT = PROJECT_ROOT / "src"
if str(SRC_ROOT) not in sys.path:
    sys.path.insert(0, str(SRC_ROOT))

from romcat import CatalogService, ScanConfig  # type: ignore  # noqa: E402


def main() -> None:
    root = Path(sys.argv[1]) if len(sys.argv) > 1 else Path.cwd()
    config = ScanConfig(root=str(root), data_dir=PROJECT_ROOT / "outputs")
    with CatalogService(config) as service:
        future = service.refresh(load_from_cache=False)
        if future is not None:
            future.result()
        event = service.events.get()
    print(f"{event.kind}: {event.location}")
    if event.result is not None:
        for entry in event.result.catalog.entries:
            print(entry.format.value, entry.title, entry.outcome.value)


if __name__ == "__main__":
    main()
