"""Expo version manifest lookup.

Fetches the public Expo versions manifest and picks the React Native version
that a given (or the newest) Expo SDK is built against.
"""

from __future__ import annotations

import re
from typing import Any

import httpx

from .errors import VersionManifestError
from .logger import SmokeTestLogger

DEFAULT_VERSIONS_URL = "https://exp.host/--/api/v2/versions"

_SEMVER_RE = re.compile(
    r"^v?(\d+)\.(\d+)\.(\d+)(?:-([0-9A-Za-z.-]+))?(?:\+[0-9A-Za-z.-]+)?$"
)


def _semver_key(version: str) -> tuple[int, int, int, int, tuple[Any, ...]]:
    """Sort key ordering versions by semver precedence (pre-releases first)."""
    match = _SEMVER_RE.match(version.strip())
    if not match:
        raise VersionManifestError(f"Invalid SDK version in manifest: {version!r}")
    major, minor, patch, prerelease = match.groups()
    if prerelease is None:
        return (int(major), int(minor), int(patch), 1, ())
    identifiers = tuple(
        (0, int(part), "") if part.isdigit() else (1, 0, part)
        for part in prerelease.split(".")
    )
    return (int(major), int(minor), int(patch), 0, identifiers)


def semver_major(version: str) -> int:
    return _semver_key(version)[0]


def select_sdk_version(
    sdk_versions: dict[str, Any],
    sdk_major_version: str | int | None = None,
    logger: SmokeTestLogger | None = None,
) -> str | None:
    """Pick the SDK key to use from a manifest's ``sdkVersions`` mapping.

    The first key whose major component equals *sdk_major_version* wins.
    Without a requested major (or when nothing matches) the highest version
    is returned.  ``None`` means the mapping is empty.
    """
    selected: str | None = None
    if sdk_major_version:
        wanted = int(sdk_major_version)
        selected = next((v for v in sdk_versions if semver_major(v) == wanted), None)
        if selected is None and logger is not None:
            logger.warn(
                "*** Could not find the version of Expo sdk matching the specified "
                f"version - sdk-{sdk_major_version}"
            )
    if selected is None and sdk_versions:
        selected = sorted(sdk_versions, key=_semver_key, reverse=True)[0]
    return selected


def extract_react_native_version(
    manifest: dict[str, Any],
    sdk_major_version: str | int | None = None,
    logger: SmokeTestLogger | None = None,
) -> str:
    """Return ``facebookReactNativeVersion`` for the selected SDK.

    Raises:
        VersionManifestError: If the manifest lacks ``sdkVersions``, the
            selected entry, or its React Native version field.
    """
    sdk_versions = manifest.get("sdkVersions")
    if isinstance(sdk_versions, dict):
        selected = select_sdk_version(sdk_versions, sdk_major_version, logger)
        entry = sdk_versions.get(selected) if selected is not None else None
        if isinstance(entry, dict) and entry.get("facebookReactNativeVersion"):
            return str(entry["facebookReactNativeVersion"])
    raise VersionManifestError("Received object is incorrect")


async def fetch_versions_manifest(
    url: str = DEFAULT_VERSIONS_URL,
    timeout: float | None = None,
) -> dict[str, Any]:
    """GET the versions manifest and return its decoded JSON body.

    Network and HTTP status errors propagate as ``httpx.HTTPError``; an
    undecodable body propagates as ``ValueError``.
    """
    async with httpx.AsyncClient(timeout=httpx.Timeout(timeout)) as client:
        response = await client.get(url)
        response.raise_for_status()
        data = response.json()
    if not isinstance(data, dict):
        raise VersionManifestError("Received object is incorrect")
    return data


async def get_latest_supported_rn_version_for_expo(
    sdk_major_version: str | int | None = None,
    url: str = DEFAULT_VERSIONS_URL,
    timeout: float | None = None,
    logger: SmokeTestLogger | None = None,
) -> str:
    """Resolve the React Native version supported by an Expo SDK.

    Args:
        sdk_major_version: Requested Expo SDK major (e.g. ``"35"``). When
            omitted, the latest SDK in the manifest is used.
        url: Versions manifest endpoint.
        timeout: HTTP timeout in seconds, ``None`` for no limit.
        logger: Optional progress logger.

    Returns:
        The React Native version string, e.g. ``"0.59.8"``.
    """
    specified = f"sdk-{sdk_major_version}" if sdk_major_version else ""
    if logger is not None:
        latest = "" if specified else "latest "
        logger.info(
            f"*** Getting latest React Native version supported by {latest}Expo {specified}..."
        )

    manifest = await fetch_versions_manifest(url, timeout=timeout)
    rn_version = extract_react_native_version(manifest, sdk_major_version, logger)

    if logger is not None:
        logger.info(
            f"*** Latest React Native version supported by Expo {specified}: {rn_version}"
        )
    return rn_version
