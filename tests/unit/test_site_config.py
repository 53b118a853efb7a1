"""Tests for the YAML site configuration loader and adapter factory."""

from pathlib import Path

import pytest

from partsfinder.site_clients import SiteConfig, build_site_clients, load_sites_config
from partsfinder.site_clients.adapters import EbayAdapter, KleinanzeigenAdapter, MockAdapter, SchadeAutosAdapter
from partsfinder.site_clients.site_config import default_config_path


def write_config(tmp_path: Path, content: str) -> str:
    path = tmp_path / "sites.yml"
    path.write_text(content, encoding="utf-8")
    return str(path)


class TestLoadSitesConfig:
    def test_load_valid_config(self, tmp_path):
        path = write_config(
            tmp_path,
            """
sites:
  kleinanzeigen:
    adapter: kleinanzeigen
    site_id: 1
    params:
      keywords: "Eclipse D30"
  ebay:
    adapter: ebay
    site_id: 3
    enabled: false
""",
        )

        sites = load_sites_config(path)

        assert list(sites) == ["kleinanzeigen", "ebay"]
        assert sites["kleinanzeigen"] == SiteConfig(
            adapter="kleinanzeigen", site_id=1, enabled=True, params={"keywords": "Eclipse D30"}
        )
        assert sites["ebay"].enabled is False
        assert sites["ebay"].params == {}

    def test_repository_config_is_valid(self):
        sites = load_sites_config(str(Path(__file__).resolve().parents[2] / "config" / "sites.yml"))

        assert {cfg.adapter for cfg in sites.values()} == {"kleinanzeigen", "schadeautos", "ebay"}

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_sites_config(str(tmp_path / "nope.yml"))

    def test_empty_file(self, tmp_path):
        assert load_sites_config(write_config(tmp_path, "")) == {}

    def test_invalid_yaml(self, tmp_path):
        with pytest.raises(ValueError, match="Invalid YAML"):
            load_sites_config(write_config(tmp_path, "sites: [unclosed"))

    @pytest.mark.parametrize(
        "content,message",
        [
            ("other: 1", "`sites` section"),
            ("sites:\n  a: 1", "Invalid site configuration"),
            ("sites:\n  a:\n    site_id: 1", "non-empty `adapter`"),
            ("sites:\n  a:\n    adapter: craigslist\n    site_id: 1", "unknown adapter"),
            ("sites:\n  a:\n    adapter: mock", "`site_id` must be an integer"),
            ("sites:\n  a:\n    adapter: mock\n    site_id: 'one'", "`site_id` must be an integer"),
            ("sites:\n  a:\n    adapter: mock\n    site_id: 1\n    params: [1]", "must be a mapping"),
            ("sites:\n  a:\n    adapter: mock\n    site_id: true", "`site_id` must be an integer"),
            ("sites:\n  a:\n    adapter: mock\n    site_id: 1\n    enabled: 'false'", "`enabled` must be true or false"),
            ("- just a list", "`sites` section"),
        ],
    )
    def test_invalid_structure(self, tmp_path, content, message):
        with pytest.raises(ValueError, match=message):
            load_sites_config(write_config(tmp_path, content))

    def test_duplicate_site_id(self, tmp_path):
        path = write_config(
            tmp_path,
            """
sites:
  kleinanzeigen:
    adapter: kleinanzeigen
    site_id: 1
  schadeautos:
    adapter: schadeautos
    site_id: 1
""",
        )

        with pytest.raises(ValueError, match="already used by 'kleinanzeigen'"):
            load_sites_config(path)

    def test_env_override(self, monkeypatch, tmp_path):
        path = write_config(tmp_path, "sites: {}")
        monkeypatch.setenv("PARTSFINDER_SITES_CONFIG", path)

        assert default_config_path() == Path(path)


class TestBuildSiteClients:
    def test_builds_enabled_sites_with_shared_session(self, mock_session):
        configs = {
            "kleinanzeigen": SiteConfig(adapter="kleinanzeigen", site_id=1, params={"keywords": "x"}),
            "schadeautos": SiteConfig(adapter="schadeautos", site_id=2),
            "ebay": SiteConfig(
                adapter="ebay",
                site_id=3,
                params={"client_id": "id", "client_secret": "secret", "sandbox": True},
            ),
            "disabled": SiteConfig(adapter="mock", site_id=4, enabled=False),
        }

        clients = build_site_clients(configs, session=mock_session)

        assert list(clients) == ["kleinanzeigen", "schadeautos", "ebay"]
        assert isinstance(clients["kleinanzeigen"], KleinanzeigenAdapter)
        assert isinstance(clients["schadeautos"], SchadeAutosAdapter)
        assert isinstance(clients["ebay"], EbayAdapter)
        assert clients["kleinanzeigen"].keywords == "x"
        assert clients["ebay"].sandbox is True
        assert all(client.session is mock_session for client in clients.values())
        assert [client.site_id for client in clients.values()] == [1, 2, 3]

    def test_dry_run_uses_mock_adapters(self, mock_session):
        configs = {
            "kleinanzeigen": SiteConfig(adapter="kleinanzeigen", site_id=1),
            "ebay": SiteConfig(adapter="ebay", site_id=3),
        }

        clients = build_site_clients(configs, session=mock_session, dry_run=True)

        assert all(isinstance(client, MockAdapter) for client in clients.values())
        assert clients["ebay"].site_id == 3

    def test_mock_adapter_params(self, mock_session):
        configs = {"fake": SiteConfig(adapter="mock", site_id=5, params={"num_parts": 3})}

        clients = build_site_clients(configs, session=mock_session)

        assert clients["fake"].num_parts == 3

    def test_missing_ebay_credentials(self, monkeypatch, mock_session):
        monkeypatch.delenv("EBAY_CLIENT_ID", raising=False)
        monkeypatch.delenv("EBAY_CLIENT_SECRET", raising=False)

        with pytest.raises(ValueError, match="EBAY_CLIENT_ID"):
            build_site_clients({"ebay": SiteConfig(adapter="ebay", site_id=3)}, session=mock_session)
