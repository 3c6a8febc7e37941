from __future__ import annotations

import subprocess
from ipaddress import IPv4Interface

from nsgen.models import (
    Device,
    DeviceKind,
    DeviceNames,
    ProvisionedDevice,
    TopologyInventory,
)
from nsgen.traffic import UPTIME_OID, TrafficSimulator


class ScriptedRunner:
    def __init__(self, failing: set[str] | None = None) -> None:
        self.failing = failing or set()
        self.argvs: list[list[str]] = []

    def run(self, argv, check=True):
        self.argvs.append(list(argv))
        code = 1 if self.failing.intersection(argv) else 0
        return subprocess.CompletedProcess(argv, code, stdout="", stderr="")


def _inventory(*hosts: int) -> TopologyInventory:
    devices = []
    for host in hosts:
        name = f"ws-{host}"
        devices.append(
            ProvisionedDevice(
                Device(
                    name=name,
                    kind=DeviceKind.WORKSTATION,
                    address=IPv4Interface(f"192.168.100.{host}/24"),
                    mac=f"02:0c:29:33:00:{host:02x}",
                    names=DeviceNames(f"ws_{host}", f"vh_{name}", f"vn_{name}", f"/tmp/{name}"),
                )
            )
        )
    return TopologyInventory(devices=tuple(devices))


def test_one_round_polls_and_pings_the_next_device() -> None:
    runner = ScriptedRunner()
    sim = TrafficSimulator(_inventory(1, 20, 21), runner, interval=0)  # type: ignore[arg-type]

    assert sim.run(rounds=1) == 1
    assert runner.argvs == [
        ["snmpget", "-v", "2c", "-c", "public", "192.168.100.1", UPTIME_OID],
        ["ping", "-c", "1", "-W", "1", "192.168.100.20"],
        ["snmpget", "-v", "2c", "-c", "public", "192.168.100.20", UPTIME_OID],
        ["ping", "-c", "1", "-W", "1", "192.168.100.21"],
        ["snmpget", "-v", "2c", "-c", "public", "192.168.100.21", UPTIME_OID],
        ["ping", "-c", "1", "-W", "1", "192.168.100.1"],
    ]


def test_failures_are_counted_not_raised() -> None:
    runner = ScriptedRunner(failing={"192.168.100.2"})
    sim = TrafficSimulator(_inventory(1, 2), runner, interval=0)  # type: ignore[arg-type]

    assert sim.run(rounds=2) == 2
    assert sim.polls == 8
    assert sim.errors == 4


def test_stop_ends_the_loop() -> None:
    runner = ScriptedRunner()
    sim = TrafficSimulator(_inventory(1), runner, interval=0)  # type: ignore[arg-type]
    sim.stop()
    assert sim.run() == 0
    assert runner.argvs == []


def test_empty_inventory() -> None:
    sim = TrafficSimulator(TopologyInventory(), ScriptedRunner(), interval=0)  # type: ignore[arg-type]
    assert sim.run(rounds=3) == 0
