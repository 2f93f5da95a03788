"""Thin Android emulator and iOS simulator helpers.

Wraps the handful of ``adb`` and ``xcrun simctl`` invocations the smoke
environment needs.  All commands go through a :class:`CommandRunner`, so the
helpers are easy to drive with a fake in tests.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path

from .errors import CommandError, DeviceError
from .runner import CommandRunner


@dataclass(frozen=True)
class AndroidDevice:
    id: str
    state: str

    @property
    def online(self) -> bool:
        return self.state == "device"


def parse_adb_devices(output: str) -> list[AndroidDevice]:
    """Parse ``adb devices`` output into :class:`AndroidDevice` records.

    Example input::

        List of devices attached
        emulator-5554	device
        emulator-5556	offline
    """
    devices: list[AndroidDevice] = []
    for line in output.splitlines():
        line = line.strip()
        if not line or line.startswith("List of devices") or line.startswith("*"):
            continue
        parts = line.split()
        if len(parts) >= 2:
            devices.append(AndroidDevice(id=parts[0], state=parts[1]))
    return devices


class AndroidEmulatorHelper:
    """``adb`` wrapper for device discovery and app permissions."""

    def __init__(self, runner: CommandRunner, adb_command: str = "adb") -> None:
        self.runner = runner
        self.adb_command = adb_command

    async def get_online_devices(self) -> list[AndroidDevice]:
        result = await self.runner.run([self.adb_command, "devices"])
        return [d for d in parse_adb_devices(result.stdout) if d.online]

    async def get_first_online_device(self) -> AndroidDevice:
        devices = await self.get_online_devices()
        if not devices:
            raise DeviceError("No online Android emulator found")
        return devices[0]

    async def enable_draw_permit_for_app(
        self, package_name: str, device_id: str | None = None
    ) -> None:
        """Allow *package_name* to draw over other apps (``SYSTEM_ALERT_WINDOW``)."""
        await self.runner.run(
            self._adb(device_id)
            + ["shell", "appops", "set", package_name, "SYSTEM_ALERT_WINDOW", "allow"]
        )

    async def install_apk(self, device_id: str, apk_path: Path) -> None:
        await self.runner.run(self._adb(device_id) + ["install", "-r", str(apk_path)])

    def _adb(self, device_id: str | None) -> list[str]:
        if device_id:
            return [self.adb_command, "-s", device_id]
        return [self.adb_command]


class IosSimulatorHelper:
    """``xcrun simctl`` wrapper bound to one configured simulator."""

    def __init__(self, runner: CommandRunner, device: str | None = None) -> None:
        self.runner = runner
        self.device = device

    def get_device(self) -> str:
        if not self.device:
            raise DeviceError("No iOS simulator configured")
        return self.device

    async def get_device_udid(self) -> str:
        """Look up the udid of the configured simulator by name."""
        name = self.get_device()
        result = await self.runner.run(["xcrun", "simctl", "list", "devices", "--json"])
        listing = json.loads(result.stdout or "{}")
        for runtime_devices in listing.get("devices", {}).values():
            for device in runtime_devices:
                if device.get("name") == name and device.get("isAvailable", True):
                    return device["udid"]
        raise DeviceError(f"iOS simulator {name!r} not found")

    async def boot_simulator(self, device: str) -> None:
        await self.runner.run(["xcrun", "simctl", "boot", device])

    async def shutdown_simulator(self, device: str) -> None:
        try:
            await self.runner.run(["xcrun", "simctl", "shutdown", device])
        except CommandError as exc:
            # simctl refuses to shut down a device that is already shut down.
            if "current state: Shutdown" not in exc.stderr:
                raise

    async def erase_simulator(self, device: str) -> None:
        await self.runner.run(["xcrun", "simctl", "erase", device])

    async def install_app(self, udid: str, app_path: Path) -> None:
        await self.runner.run(["xcrun", "simctl", "install", udid, str(app_path)])
