"""
Config Tests — layered loading, type validation and the module-level
accessor.
"""

import pytest

from lorm.config import ConfigLoader, LormConfig, configure, get_config, reset_config
from lorm.db import SQLiteExecutor, connect, detect_driver
from lorm.faults import ConfigFault
from lorm.models import Dialect, FieldSpec, UUIDField, compile_entity


class TestDefaults:

    def test_defaults(self):
        config = get_config()
        assert config == LormConfig()
        assert config.dialect == "sqlite"
        assert config.database_url is None
        assert config.echo_sql is False

    def test_cached(self):
        assert get_config() is get_config()

    def test_reset(self):
        first = get_config()
        reset_config()
        assert get_config() is not first


class TestLoader:

    def test_yaml_file(self, tmp_path):
        path = tmp_path / "lorm.yaml"
        path.write_text("dialect: postgres\necho_sql: true\n")
        config = ConfigLoader.load(path=str(path)).build()
        assert config.dialect == "postgres"
        assert config.echo_sql is True

    def test_yaml_section(self, tmp_path):
        path = tmp_path / "app.yaml"
        path.write_text("lorm:\n  database_url: sqlite:///app.db\nother:\n  key: 1\n")
        assert ConfigLoader.load(path=str(path)).build().database_url == "sqlite:///app.db"

    def test_missing_yaml(self, tmp_path):
        with pytest.raises(ConfigFault):
            ConfigLoader.load(path=str(tmp_path / "nope.yaml"))

    def test_yaml_not_mapping(self, tmp_path):
        path = tmp_path / "lorm.yaml"
        path.write_text("- a\n- b\n")
        with pytest.raises(ConfigFault):
            ConfigLoader.load(path=str(path))

    def test_environment(self, monkeypatch):
        monkeypatch.setenv("LORM_DIALECT", "mysql")
        monkeypatch.setenv("LORM_ECHO_SQL", "yes")
        config = ConfigLoader.load().build()
        assert config.dialect == "mysql"
        assert config.echo_sql is True

    def test_numeric_boolean_environment(self, monkeypatch):
        monkeypatch.setenv("LORM_ECHO_SQL", "1")
        assert get_config().echo_sql is True
        reset_config()
        monkeypatch.setenv("LORM_ECHO_SQL", "0")
        assert get_config().echo_sql is False

    def test_dotenv_in_working_directory(self, tmp_path, monkeypatch):
        (tmp_path / ".env").write_text("LORM_DIALECT=postgres\n")
        monkeypatch.chdir(tmp_path)
        assert ConfigLoader.load().build().dialect == "postgres"

    def test_env_file(self, tmp_path):
        env = tmp_path / ".env"
        env.write_text("LORM_DATABASE_URL=sqlite:///env.db\nOTHER=1\n")
        loader = ConfigLoader.load(env_file=str(env))
        assert loader.get("database_url") == "sqlite:///env.db"
        assert loader.get("other") is None

    def test_precedence(self, tmp_path, monkeypatch):
        path = tmp_path / "lorm.yaml"
        path.write_text("dialect: postgres\n")
        monkeypatch.setenv("LORM_DIALECT", "mysql")
        assert ConfigLoader.load(path=str(path)).build().dialect == "mysql"
        config = ConfigLoader.load(path=str(path), overrides={"dialect": "sqlite"}).build()
        assert config.dialect == "sqlite"

    def test_nested_env_keys(self, monkeypatch):
        monkeypatch.setenv("LORM_POOL__SIZE", "5")
        assert ConfigLoader.load().get("pool.size") == 5

    def test_type_mismatch(self):
        with pytest.raises(ConfigFault):
            ConfigLoader.load(overrides={"echo_sql": "loud"}).build()

    def test_unknown_keys_ignored(self, caplog):
        config = ConfigLoader.load(overrides={"colour": "blue"}).build()
        assert config == LormConfig()
        assert "colour" in caplog.text

    @pytest.mark.parametrize("raw,parsed", [
        ("true", True),
        ("off", False),
        ("1", True),
        ("0", False),
        ("3", 3),
        ("2.5", 2.5),
        ('{"a": 1}', {"a": 1}),
        ("plain", "plain"),
    ])
    def test_parse_value(self, raw, parsed):
        assert ConfigLoader()._parse_value(raw) == parsed


class TestConfigure:

    def test_overrides(self):
        config = configure(dialect="postgres")
        assert get_config() is config
        assert config.dialect == "postgres"

    def test_explicit_config(self):
        config = LormConfig(echo_sql=True)
        assert configure(config) is config
        assert get_config().echo_sql is True

    def test_default_dialect_for_compilation(self):
        configure(dialect="mysql")
        model = compile_entity("Widget", [FieldSpec("id", kind=UUIDField(), pk=True)])
        assert model.dialect is Dialect.MYSQL
        assert model.statements.delete.sql == "DELETE FROM `widgets` WHERE `id` = ?"

    def test_executor_echo_default(self, recorder):
        configure(echo_sql=True)
        assert recorder().echo is False
        assert SQLiteExecutor(None).echo is True


class TestConnect:

    def test_detect_driver(self):
        assert detect_driver("sqlite:///x.db") == "sqlite"
        assert detect_driver("postgresql://u@h/db") == "postgres"
        assert detect_driver("postgres://u@h/db") == "postgres"
        assert detect_driver("mysql://u@h/db") == "mysql"

    def test_unknown_scheme(self):
        with pytest.raises(ConfigFault):
            detect_driver("oracle://h/db")

    @pytest.mark.asyncio
    async def test_connect_url(self):
        async with await connect("sqlite:///:memory:") as db:
            assert isinstance(db, SQLiteExecutor)
            assert (await db.fetch_one("SELECT 1 AS one"))["one"] == 1

    @pytest.mark.asyncio
    async def test_connect_configured_url(self):
        configure(database_url="sqlite:///:memory:")
        db = await connect()
        try:
            assert isinstance(db, SQLiteExecutor)
        finally:
            await db.close()

    @pytest.mark.asyncio
    async def test_connect_without_url(self):
        with pytest.raises(ConfigFault):
            await connect()

    @pytest.mark.asyncio
    async def test_mysql_has_no_executor(self):
        with pytest.raises(ConfigFault):
            await connect("mysql://u@h/db")
