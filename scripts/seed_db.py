from __future__ import annotations

import importlib
import sys
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
for path in (REPO_ROOT, REPO_ROOT / "src" / "labor_attendance"):
    if str(path) not in sys.path:
        sys.path.insert(0, str(path))

from config import get_settings_module

from labor_attendance.database.bootstrap import ensure_default_site


def main() -> None:
    settings = importlib.import_module(get_settings_module())
    db_config = dict(settings.DB_CONFIG)
    site = dict(settings.DEFAULT_SITE)

    ensure_default_site(db_config, site)

    print(
        f"OK: Default site {site['name']!r} "
        f"({site['latitude']}, {site['longitude']}, r={site['radius_meters']}m) -> "
        f"{db_config.get('user')}@{db_config.get('host')}:{db_config.get('port', 3306)}/{db_config.get('database')}"
    )


if __name__ == "__main__":
    main()
