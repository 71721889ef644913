"""Tests for the Alembic upgrade helper."""

import os

from devlink.core.settings import settings
from devlink.scripts import migrate


def test_upgrade_points_alembic_at_migrations(mocker) -> None:
    upgrade = mocker.patch.object(migrate.command, "upgrade")

    migrate.run_upgrade_head()

    cfg, revision = upgrade.call_args.args
    assert revision == "head"
    assert cfg.get_main_option("sqlalchemy.url") == settings.database_url_sync
    script_location = cfg.get_main_option("script_location")
    assert os.path.isdir(os.path.join(script_location, "versions"))
