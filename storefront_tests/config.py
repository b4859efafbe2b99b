"""Shared configuration for the storefront UI tests.

Settings come from environment variables, falling back to ``.env.defaults`` at
the repository root and finally to the built-in defaults below:

- UI_BASE_URL: storefront under test (default: the public Demo Web Shop)
- UI_SMOKE_BASE_URL: optional second profile, read-only unless UI_SMOKE_ALLOW_WRITES=1
- UI_REGISTERED_EMAIL / UI_REGISTERED_PASSWORD: registered-user credentials
- UI_RUN_LIVE=1: enable suites that talk to the live storefront
"""
from __future__ import annotations

import os
from contextlib import contextmanager
from copy import deepcopy
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Dict, Iterator, List
from urllib.parse import urljoin

DEFAULT_BASE_URL = "https://demowebshop.tricentis.com"
DEFAULT_REGISTERED_EMAIL = "e.e@e.com"
DEFAULT_REGISTERED_PASSWORD = "eeeeee"

_TRUE_VALUES = {"1", "true", "True", "yes"}


@lru_cache(maxsize=1)
def _load_env_defaults() -> Dict[str, str]:
    env_defaults = Path(__file__).resolve().parents[1] / ".env.defaults"
    if not env_defaults.exists():
        return {}

    defaults: Dict[str, str] = {}
    for raw in env_defaults.read_text(encoding="utf-8").splitlines():
        line = raw.strip()
        if not line or line.startswith("#") or "=" not in line:
            continue
        key, value = line.split("=", 1)
        value = value.strip()
        if len(value) >= 2 and value[0] in ('"', "'") and value[-1] == value[0]:
            value = value[1:-1]
        defaults[key.strip()] = value
    return defaults


def env(key: str, default: str | None = None) -> str | None:
    """Environment value, then ``.env.defaults`` value, then ``default``."""
    value = os.getenv(key)
    if value:
        return value
    return _load_env_defaults().get(key, default)


@dataclass
class UiTargetProfile:
    """Concrete host + credentials for one storefront target."""

    name: str
    base_url: str
    registered_email: str
    registered_password: str
    allow_writes: bool = True


class UiTestConfig:
    """Settings for the storefront harness, resolved once at import time."""

    def __init__(self) -> None:
        self.playwright_headless: bool = (env("PLAYWRIGHT_HEADLESS", "true") or "true").lower() in {"true", "1"}
        self.browser_type: str = env("PLAYWRIGHT_BROWSER", "chromium") or "chromium"
        self.default_timeout_ms: int = int(env("UI_DEFAULT_TIMEOUT_MS", "30000") or "30000")
        self.run_live: bool = (env("UI_RUN_LIVE", "0") or "0") in _TRUE_VALUES
        self.screenshot_dir: str | None = env("SCREENSHOT_DIR")

        registered_email = env("UI_REGISTERED_EMAIL")
        registered_password = env("UI_REGISTERED_PASSWORD")
        if not registered_email or not registered_password:
            print(
                "[CONFIG] UI_REGISTERED_EMAIL/UI_REGISTERED_PASSWORD not set, "
                f"using fixture account {DEFAULT_REGISTERED_EMAIL}"
            )

        primary = UiTargetProfile(
            name="primary",
            base_url=env("UI_BASE_URL", DEFAULT_BASE_URL) or DEFAULT_BASE_URL,
            registered_email=registered_email or DEFAULT_REGISTERED_EMAIL,
            registered_password=registered_password or DEFAULT_REGISTERED_PASSWORD,
            allow_writes=(env("UI_ALLOW_WRITES", "1") or "1") not in {"0", "false", "False"},
        )

        self._profiles: Dict[str, UiTargetProfile] = {primary.name: primary}

        smoke_base = env("UI_SMOKE_BASE_URL")
        if smoke_base:
            self._profiles["smoke"] = UiTargetProfile(
                name="smoke",
                base_url=smoke_base,
                registered_email=env("UI_SMOKE_REGISTERED_EMAIL", primary.registered_email) or primary.registered_email,
                registered_password=env("UI_SMOKE_REGISTERED_PASSWORD", primary.registered_password)
                or primary.registered_password,
                allow_writes=(env("UI_SMOKE_ALLOW_WRITES", "0") or "0") in _TRUE_VALUES,
            )

        self._active: UiTargetProfile = primary

    # ---- active profile helpers -------------------------------------------------
    @property
    def base_url(self) -> str:
        return self._active.base_url

    @property
    def registered_email(self) -> str:
        return self._active.registered_email

    @property
    def registered_password(self) -> str:
        return self._active.registered_password

    @property
    def allow_writes(self) -> bool:
        return self._active.allow_writes

    # ---- profile orchestration --------------------------------------------------
    def profiles(self) -> List[UiTargetProfile]:
        return list(self._profiles.values())

    @contextmanager
    def use_profile(self, profile: UiTargetProfile) -> Iterator[UiTargetProfile]:
        """Temporarily switch the active profile (a copy, so tests cannot mutate it)."""
        previous = self._active
        self._active = deepcopy(profile)
        try:
            yield self._active
        finally:
            self._active = previous

    @contextmanager
    def use_base_url(self, base_url: str) -> Iterator[UiTargetProfile]:
        """Point the active profile at another host, e.g. the local mock storefront."""
        profile = deepcopy(self._active)
        profile.base_url = base_url
        with self.use_profile(profile) as active:
            yield active

    # ---- utility helpers --------------------------------------------------------
    def url(self, path: str) -> str:
        """Return an absolute URL for the provided path."""
        return urljoin(self.base_url.rstrip("/") + "/", path.lstrip("/"))


settings = UiTestConfig()
