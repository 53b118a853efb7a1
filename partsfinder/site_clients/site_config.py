"""
Site configuration loader for the parts finder.

This module centralizes reading and validating site settings from
`config/sites.yml` and turns them into ready-to-use adapter instances. The
command line tool and tests should use these helpers to keep configuration
handling consistent.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import requests
import yaml

from .adapters import ADAPTERS, MockAdapter
from .base import SiteClient
from .http import create_session

logger = logging.getLogger(__name__)


@dataclass
class SiteConfig:
    """Configuration for a single marketplace site."""

    adapter: str
    site_id: int
    enabled: bool = True
    params: dict[str, Any] = field(default_factory=dict)


def _project_root() -> Path:
    """Return the project root path based on this file's location."""
    return Path(__file__).resolve().parent.parent.parent


def default_config_path() -> Path:
    """Config path from PARTSFINDER_SITES_CONFIG, else `config/sites.yml`."""
    override = os.getenv("PARTSFINDER_SITES_CONFIG")
    if override:
        return Path(override)
    return _project_root() / "config" / "sites.yml"


def _read_yaml(path: Path) -> Any:
    if not path.is_file():
        raise FileNotFoundError(f"No sites file at {path}")

    with path.open("r", encoding="utf-8") as handle:
        try:
            return yaml.safe_load(handle)
        except yaml.YAMLError as exc:
            raise ValueError(f"Invalid YAML in {path}: {exc}") from exc


def _parse_site(name: str, data: Any) -> SiteConfig:
    """Validate one entry under `sites:` and turn it into a SiteConfig."""
    if not isinstance(data, Mapping):
        raise ValueError(f"Invalid site configuration for '{name}': expected a mapping")

    adapter = data.get("adapter")
    if not isinstance(adapter, str) or not adapter.strip():
        raise ValueError(f"sites.{name}: a non-empty `adapter` is required")
    if adapter not in ADAPTERS:
        raise ValueError(
            f"sites.{name}: unknown adapter '{adapter}', "
            f"expected one of {', '.join(sorted(ADAPTERS))}"
        )

    site_id = data.get("site_id")
    # bool is an int subclass; `site_id: true` is a typo, not an id
    if isinstance(site_id, bool) or not isinstance(site_id, int):
        raise ValueError(f"sites.{name}: `site_id` must be an integer, got {site_id!r}")

    enabled = data.get("enabled", True)
    if not isinstance(enabled, bool):
        raise ValueError(f"sites.{name}: `enabled` must be true or false, got {enabled!r}")

    params = data.get("params")
    if params is None:
        params = {}
    elif not isinstance(params, Mapping):
        raise ValueError(f"sites.{name}: `params` must be a mapping of adapter arguments")

    return SiteConfig(adapter=adapter, site_id=site_id, enabled=enabled, params=dict(params))


def load_sites_config(config_path: str | None = None) -> dict[str, SiteConfig]:
    """
    Read `config/sites.yml` (or `config_path`) into SiteConfig objects.

    Every site must name a registered adapter and carry an integer `site_id`
    that no other site uses, since the id is stamped on every returned Part.

    Raises:
        FileNotFoundError: If the file does not exist
        ValueError: If the YAML is invalid or a site entry is malformed
    """
    path = Path(config_path) if config_path else default_config_path()
    raw = _read_yaml(path)
    if raw is None:
        logger.warning("Sites file %s is empty, no sites configured", path)
        return {}

    sites_section = raw.get("sites") if isinstance(raw, Mapping) else None
    if not isinstance(sites_section, Mapping):
        raise ValueError(f"{path}: top-level `sites` section must be a mapping")

    sites: dict[str, SiteConfig] = {}
    seen_ids: dict[int, str] = {}
    for name, data in sites_section.items():
        site = _parse_site(name, data)
        if site.site_id in seen_ids:
            raise ValueError(
                f"sites.{name}: site_id {site.site_id} is already used by '{seen_ids[site.site_id]}'"
            )
        seen_ids[site.site_id] = name
        sites[name] = site

    logger.info(
        "Sites loaded from %s",
        path,
        extra={"sites": list(sites), "enabled": [n for n, s in sites.items() if s.enabled]},
    )
    return sites


def build_site_client(
    config: SiteConfig, session: requests.Session, dry_run: bool = False
) -> SiteClient:
    """
    Instantiate the adapter described by one SiteConfig.

    With ``dry_run`` every site is replaced by a MockAdapter carrying the same
    site id, so no network access happens.
    """
    if dry_run or config.adapter == "mock":
        mock_params = config.params if config.adapter == "mock" else {}
        return MockAdapter(site_id=config.site_id, **mock_params)

    adapter_cls = ADAPTERS[config.adapter]
    return adapter_cls(site_id=config.site_id, session=session, **config.params)


def build_site_clients(
    configs: Mapping[str, SiteConfig],
    session: requests.Session | None = None,
    verify_tls: bool | None = None,
    dry_run: bool = False,
) -> dict[str, SiteClient]:
    """
    Instantiate every enabled site, sharing one HTTP session.

    Args:
        configs: Site configurations keyed by site name
        session: Shared session (created with `create_session` if omitted)
        verify_tls: TLS verification for a newly created session
        dry_run: Replace all sites by mock adapters

    Returns:
        Adapters keyed by site name, in configuration order

    Raises:
        ValueError: If an adapter rejects its configuration (e.g. missing credentials)
        TypeError: If `params` contains an argument the adapter does not accept
    """
    session = session or create_session(verify_tls=verify_tls)

    clients: dict[str, SiteClient] = {}
    for site_name, config in configs.items():
        if not config.enabled:
            logger.info("Skipping disabled site", extra={"site": site_name})
            continue
        clients[site_name] = build_site_client(config, session, dry_run=dry_run)
    return clients


__all__ = [
    "SiteConfig",
    "build_site_client",
    "build_site_clients",
    "default_config_path",
    "load_sites_config",
]
