"""
Platform profiles — per-platform environment tables.

The Windows build host lacks the compiler discovery conventions cargo
assumes, so every task there runs with an explicit search path, the
OpenSSL include/lib locations and a certificate bundle. POSIX hosts
inherit their environment untouched.
"""

from __future__ import annotations

import platform as _platform
from typing import Literal

from pydantic import BaseModel, Field

PlatformFamily = Literal["windows", "posix"]

RUBY_VERSION_PLACEHOLDER = "{ruby_version}"

DEFAULT_RUBY_VERSION = "2.1.6-x64"

DEFAULT_WINDOWS_PATH: list[str] = [
    "C:/rubies/{ruby_version}/bin",
    "C:/rubies/{ruby_version}/mingw/bin",
    "C:/Program Files (x86)/Git/Cmd",
    "C:/Program Files (x86)/Git/libexec/git-core",
    "C:/wix",
    "C:/7-zip",
    "C:/Program Files (x86)/Windows Kits/8.1/bin/x64",
    "C:/Windows/system32",
    "C:/Windows",
    "C:/Windows/System32/Wbem",
    "C:/Program Files/OpenSSH/bin",
    "C:/opscode/chef/bin/",
    "C:/opscode/chefdk/bin/",
    "C:/opscode/chefdk/embedded/mingw/bin",
    "C:/Program Files/Rust nightly 1.4/bin",
    "C:/chef/delivery-cli/bin",
]

DEFAULT_WINDOWS_ENV: dict[str, str] = {
    "HOME": "${USERPROFILE}",
    "HOMEDRIVE": "C:",
    "HOMEPATH": "/Users/Administrator",
    "C_INCLUDE_PATH": (
        "C:/OpenSSL-Win64/include;"
        "C:/opscode/chefdk/embedded/mingw/i686-w64-mingw32/include"
    ),
    "OPENSSL_INCLUDE_DIR": "C:/OpenSSL-Win64/include",
    "OPENSSL_LIB_DIR": "C:/OpenSSL-Win64",
    "LD_LIBRARY_PATH": "C:/OpenSSL-Win64",
    "SSL_CERT_FILE": "C:/rubies/{ruby_version}/ssl/certs/cacert.pem",
}


class WindowsSettings(BaseModel):
    """Toolchain locations on the Windows build host."""

    ruby_version: str = DEFAULT_RUBY_VERSION
    path: list[str] = Field(default_factory=lambda: list(DEFAULT_WINDOWS_PATH))
    env: dict[str, str] = Field(default_factory=lambda: dict(DEFAULT_WINDOWS_ENV))


class PlatformProfile(BaseModel):
    """The environment strategy for one platform family."""

    name: str
    family: PlatformFamily
    env: dict[str, str] = Field(default_factory=dict)

    @property
    def is_windows(self) -> bool:
        return self.family == "windows"


def _interpolate(value: str, ruby_version: str) -> str:
    return value.replace(RUBY_VERSION_PLACEHOLDER, ruby_version)


def _path_key(entry: str) -> str:
    # Windows paths compare case-insensitively, trailing slash ignored
    return entry.rstrip("/\\").lower()


def dedupe_path(entries: list[str]) -> list[str]:
    """Drop repeated search-path entries, keeping first occurrence order."""
    seen: set[str] = set()
    result: list[str] = []
    for entry in entries:
        entry = entry.strip()
        if not entry:
            continue
        key = _path_key(entry)
        if key in seen:
            continue
        seen.add(key)
        result.append(entry)
    return result


def windows_profile(settings: WindowsSettings | None = None) -> PlatformProfile:
    """Build the Windows profile from toolchain settings.

    ``PATH`` is deduplicated and ``;``-joined; ``{ruby_version}`` is
    interpolated in every entry and value.
    """
    settings = settings or WindowsSettings()
    ruby = settings.ruby_version

    path = dedupe_path([_interpolate(p, ruby) for p in settings.path])
    env = {key: _interpolate(value, ruby) for key, value in settings.env.items()}
    if path:
        env["PATH"] = ";".join(path)

    return PlatformProfile(name="windows", family="windows", env=env)


def posix_profile() -> PlatformProfile:
    """POSIX hosts inherit their environment unchanged."""
    return PlatformProfile(name="posix", family="posix")


def detect_family() -> PlatformFamily:
    """Platform family of the current host."""
    return "windows" if _platform.system() == "Windows" else "posix"


def resolve_profile(
    name: str = "auto",
    windows: WindowsSettings | None = None,
) -> PlatformProfile:
    """Resolve a profile by name (``auto``, ``windows``, ``posix``).

    Raises:
        ValueError: On an unknown platform name.
    """
    if name == "auto":
        name = detect_family()
    if name == "windows":
        return windows_profile(windows)
    if name == "posix":
        return posix_profile()
    raise ValueError(f"Unknown platform '{name}'. Valid: auto, posix, windows")
