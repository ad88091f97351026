import logging

import pytest

import main
from notewright.config import ConfigManager


@pytest.fixture(autouse=True)
def isolated_cwd(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    yield
    # Release the log file handler opened by setup_logging
    for handler in logging.getLogger().handlers[:]:
        handler.close()
        logging.getLogger().removeHandler(handler)


def test_incremental_and_force_full_conflict():
    with pytest.raises(SystemExit) as excinfo:
        main.parse_arguments(["--importer", "mock", "--incremental", "--force-full"])

    assert excinfo.value.code == 2


def test_input_required_for_claude_importer():
    with pytest.raises(SystemExit):
        main.parse_arguments([])


def test_options_fall_back_to_config(tmp_path):
    (tmp_path / "config.yaml").write_text("import:\n  tags: [ai]\n  incremental: false\n", encoding="utf-8")
    args = main.parse_arguments(["--importer", "mock", "-l", "AI Tools"])

    options = main.build_options(args, ConfigManager(tmp_path / "config.yaml"))

    assert options.tags == ["ai"]
    assert options.links == ["AI Tools"]
    assert options.incremental is False


def test_mock_import_end_to_end(tmp_path):
    vault = tmp_path / "vault"

    with pytest.raises(SystemExit) as excinfo:
        main.main(["--importer", "mock", "-o", str(vault)])

    assert excinfo.value.code == 0
    assert (vault / "Home Renovation" / "home-renovation.md").exists()


def test_dry_run_leaves_vault_untouched(tmp_path):
    vault = tmp_path / "vault"

    with pytest.raises(SystemExit) as excinfo:
        main.main(["--importer", "mock", "-o", str(vault), "--dry-run"])

    assert excinfo.value.code == 0
    assert not vault.exists()


def test_missing_input_exits_with_error(tmp_path):
    with pytest.raises(SystemExit) as excinfo:
        main.main(["-i", str(tmp_path / "missing"), "-o", str(tmp_path / "vault")])

    assert excinfo.value.code == 1
