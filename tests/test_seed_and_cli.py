"""
Tests for demo seeding and the management CLI.
"""

from sqlalchemy import func, select
from typer.testing import CliRunner

from marketplace_api.cli import app as cli_app
from marketplace_api.models import MenuItem, MenuItemOption, Restaurant
from marketplace_api.seed import seed


runner = CliRunner()


class TestSeed:
    def test_seed_creates_demo_restaurant(self, db_session):
        ids = seed(db_session)

        restaurant = db_session.get(Restaurant, ids["restaurant_id"])
        assert restaurant.owner_id == ids["owner_id"]
        assert db_session.scalar(select(func.count()).select_from(MenuItem)) == 3
        assert db_session.scalar(select(func.count()).select_from(MenuItemOption)) == 4

    def test_seed_is_idempotent(self, db_session):
        first = seed(db_session)
        second = seed(db_session)

        assert first == second
        assert db_session.scalar(select(func.count()).select_from(Restaurant)) == 1


class TestCli:
    def test_version(self):
        result = runner.invoke(cli_app, ["version"])
        assert result.exit_code == 0
        assert "0.1.0" in result.output

    def test_check_config_passes_outside_production(self):
        result = runner.invoke(cli_app, ["check-config"])
        assert result.exit_code == 0
        assert "Configuration OK" in result.output
