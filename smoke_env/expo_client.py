"""Expo client installation on emulators and simulators.

Downloads the Expo Go build advertised by the versions manifest and installs
it with ``adb install`` (Android) or ``xcrun simctl install`` (iOS).  iOS
builds are unpacked into the Expo simulator app cache, keyed by client
version, so repeated installs reuse the extracted bundle.
"""

from __future__ import annotations

import asyncio
import shutil
import tarfile
import tempfile
from pathlib import Path

import httpx

from .config import SetupConfig
from .devices import AndroidEmulatorHelper, IosSimulatorHelper
from .errors import VersionManifestError
from .logger import SmokeTestLogger
from .versions import fetch_versions_manifest


class ExpoClientInstaller:
    """Installs the Expo client app on a running device."""

    def __init__(
        self,
        config: SetupConfig,
        android: AndroidEmulatorHelper,
        ios: IosSimulatorHelper,
        logger: SmokeTestLogger,
    ) -> None:
        self.config = config
        self.android = android
        self.ios = ios
        self.logger = logger

    async def install_on_android(self, device_id: str) -> None:
        manifest = await self._manifest()
        url = _require(manifest, "androidUrl")
        with tempfile.TemporaryDirectory() as tmp:
            apk_path = Path(tmp) / "Exponent.apk"
            self.logger.info(f"*** Downloading Expo client from {url}")
            await self._download(url, apk_path)
            self.logger.info(f"*** Installing Expo client on {device_id}")
            await self.android.install_apk(device_id, apk_path)

    async def install_on_ios(self, udid: str) -> None:
        manifest = await self._manifest()
        url = _require(manifest, "iosUrl")
        version = str(manifest.get("iosVersion") or "latest")
        app_dir = self.config.ios_expo_apps_cache_dir / f"Exponent-{version}.app"

        if not _is_populated(app_dir):
            app_dir.parent.mkdir(parents=True, exist_ok=True)
            archive = app_dir.parent / f"Exponent-{version}.tar.gz"
            self.logger.info(f"*** Downloading Expo client from {url}")
            await self._download(url, archive)
            try:
                await asyncio.to_thread(_extract_archive, archive, app_dir)
            finally:
                archive.unlink(missing_ok=True)

        self.logger.info(f"*** Installing Expo client on simulator {udid}")
        await self.ios.install_app(udid, app_dir)

    async def _manifest(self) -> dict:
        return await fetch_versions_manifest(
            self.config.expo_versions_url, timeout=self.config.request_timeout
        )

    async def _download(self, url: str, destination: Path) -> None:
        async with httpx.AsyncClient(
            timeout=httpx.Timeout(self.config.request_timeout), follow_redirects=True
        ) as client:
            response = await client.get(url)
            response.raise_for_status()
            content = response.content
        await asyncio.to_thread(destination.write_bytes, content)


def _require(manifest: dict, key: str) -> str:
    value = manifest.get(key)
    if not value:
        raise VersionManifestError(f"Versions manifest has no {key!r}")
    return str(value)


def _is_populated(app_dir: Path) -> bool:
    return app_dir.is_dir() and any(app_dir.iterdir())


def _extract_archive(archive: Path, destination: Path) -> None:
    """Unpack *archive* into a sibling staging folder, then move it into place."""
    staging = destination.with_name(destination.name + ".partial")
    shutil.rmtree(staging, ignore_errors=True)
    try:
        staging.mkdir()
        with tarfile.open(archive, "r:gz") as tar:
            tar.extractall(staging, filter="data")
        if destination.exists():
            shutil.rmtree(destination)
        staging.rename(destination)
    except Exception:
        shutil.rmtree(staging, ignore_errors=True)
        raise
