from __future__ import annotations

import random
from pathlib import Path

import pytest

from nsgen.config import Config
from nsgen.identity import IdentityStore
from nsgen.models import CommandError
from nsgen.naming import NamingScheme
from nsgen.provision import DeviceProvisioner
from nsgen.topology import TopologyManager


class FakeNamespaces:
    def __init__(self) -> None:
        self.existing: set[str] = set()
        self.fail_create: set[str] = set()
        self.fail_delete: set[str] = set()
        self.calls: list[tuple] = []

    def create(self, name: str):
        self.calls.append(("create", name))
        if name in self.fail_create or name in self.existing:
            raise CommandError(["ip", "netns", "add", name], 1, "File exists")
        self.existing.add(name)

    def delete(self, name: str):
        self.calls.append(("delete", name))
        if name in self.fail_delete:
            raise CommandError(["ip", "netns", "del", name], 1, "Device or resource busy")
        if name not in self.existing:
            raise CommandError(["ip", "netns", "del", name], 1, "No such file or directory")
        self.existing.discard(name)

    def list(self) -> list[str]:
        return sorted(self.existing)


class FakeLinks:
    def __init__(self) -> None:
        # link name -> (peer, namespace or None)
        self.links: dict[str, list] = {}
        self.addresses: dict[tuple[str, str | None], list[str]] = {}
        self.macs: dict[tuple[str, str | None], str] = {}
        self.up_links: set[tuple[str, str | None]] = set()
        self.fail_create: set[str] = set()
        self.fail_move: set[str] = set()
        self.fail_address: set[str] = set()
        self.calls: list[tuple] = []

    def create_pair(self, host_name: str, ns_name: str):
        self.calls.append(("create_pair", host_name, ns_name))
        if host_name in self.fail_create or host_name in self.links:
            raise CommandError(["ip", "link", "add", host_name], 2, "RTNETLINK answers: File exists")
        self.links[host_name] = [ns_name, None]
        self.links[ns_name] = [host_name, None]

    def move_to_namespace(self, link: str, namespace: str):
        self.calls.append(("move", link, namespace))
        if link in self.fail_move or link not in self.links:
            raise CommandError(["ip", "link", "set", link, "netns", namespace], 1, "Cannot find device")
        self.links[link][1] = namespace

    def set_mac(self, link: str, mac: str, namespace: str | None = None):
        self.calls.append(("set_mac", link, mac, namespace))
        self.macs[(link, namespace)] = mac

    def set_address(self, link: str, address: str, namespace: str | None = None):
        self.calls.append(("set_address", link, address, namespace))
        if link in self.fail_address:
            raise CommandError(["ip", "addr", "add", address, "dev", link], 2, "Cannot assign")
        self.addresses.setdefault((link, namespace), []).append(address)

    def up(self, link: str, namespace: str | None = None):
        self.calls.append(("up", link, namespace))
        self.up_links.add((link, namespace))

    def delete(self, name: str):
        self.calls.append(("delete", name))
        if name not in self.links:
            raise CommandError(["ip", "link", "delete", name], 1, "Cannot find device")
        peer = self.links.pop(name)[0]
        self.links.pop(peer, None)

    def list(self) -> list[str]:
        # only links in the host namespace are visible
        return sorted(name for name, (_, ns) in self.links.items() if ns is None)


class FakeAgent:
    def __init__(self) -> None:
        self.configured: dict[str, tuple[str, str]] = {}
        self.started: list[tuple[str, str]] = []
        self.fail_start: set[str] = set()

    def configure(self, path: str, address: str, community: str):
        self.configured[path] = (address, community)

    def start(self, namespace: str, config_path: str):
        if namespace in self.fail_start:
            raise CommandError(["ip", "netns", "exec", namespace, "snmpd"], None, "not found")
        self.started.append((namespace, config_path))


@pytest.fixture
def namespaces() -> FakeNamespaces:
    return FakeNamespaces()


@pytest.fixture
def links() -> FakeLinks:
    return FakeLinks()


@pytest.fixture
def agent() -> FakeAgent:
    return FakeAgent()


@pytest.fixture
def cfg(tmp_path: Path) -> Config:
    return Config(
        mac_file=str(tmp_path / "mac_addresses.conf"),
        snmp_config_dir=str(tmp_path),
        snmp_base_config=str(tmp_path / "missing-snmpd.conf"),
    )


@pytest.fixture
def identities(cfg: Config) -> IdentityStore:
    return IdentityStore(cfg.mac_file, prefix=cfg.mac_prefix, rng=random.Random(7))


@pytest.fixture
def provisioner(cfg, namespaces, links, agent, identities) -> DeviceProvisioner:
    return DeviceProvisioner(
        namespaces=namespaces,
        links=links,
        agent=agent,
        naming=NamingScheme(config_dir=cfg.snmp_config_dir),
        identities=identities,
        community=cfg.snmp_community,
    )


@pytest.fixture
def manager(cfg, provisioner) -> TopologyManager:
    return TopologyManager(cfg, provisioner)
