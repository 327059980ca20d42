import re
from pathlib import Path

import fellowship.db as db_pkg
from fellowship.db import ALL_TABLE_NAMES, Base

VERSIONS_DIR = Path(__file__).resolve().parents[1] / "alembic" / "versions"


def test_models_match_table_list():
    assert set(Base.metadata.tables) == set(ALL_TABLE_NAMES)
    assert len(ALL_TABLE_NAMES) == len(set(ALL_TABLE_NAMES))


def test_migrations_create_every_listed_table():
    created = set()
    for path in VERSIONS_DIR.glob("*.py"):
        created |= set(re.findall(r'op\.create_table\(\s*"(\w+)"', path.read_text()))
    assert created == set(ALL_TABLE_NAMES)


def test_db_package_exports_only_the_full_table_list():
    assert not hasattr(db_pkg, "NOTIFICATION_TABLE_NAMES")
