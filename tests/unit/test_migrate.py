from app.db.migrate import MIGRATIONS_DIR, discover_migrations


def test_migrations_are_discovered_in_order():
    versions = [version for version, _ in discover_migrations()]

    assert versions == [
        "001_create_users_table",
        "002_create_discord_orgs_table",
        "003_create_members_table",
        "004_create_discord_tokens_table",
    ]


def test_token_migration_enforces_one_row_per_user():
    sql = (MIGRATIONS_DIR / "004_create_discord_tokens_table.sql").read_text()

    assert "UNIQUE(user_id)" in sql.replace(" (", "(")
    assert "ON DELETE CASCADE" in sql


def test_users_migration_has_unique_discord_id():
    sql = (MIGRATIONS_DIR / "001_create_users_table.sql").read_text()

    assert "discord_id VARCHAR(255) NOT NULL UNIQUE" in sql
