"""single device provisioning"""

import logging
from ipaddress import IPv4Interface
from typing import Protocol

from nsgen.identity import IdentityStore
from nsgen.models import (
    AddressBindFailed,
    AgentStartFailed,
    CommandError,
    Device,
    DeviceKind,
    LinkCreateFailed,
    LinkMoveFailed,
    NamespaceCreateFailed,
    ProvisionedDevice,
)
from nsgen.naming import NamingScheme

_LOGGER = logging.getLogger(__name__)


class Namespaces(Protocol):
    def create(self, name: str): ...

    def delete(self, name: str): ...

    def list(self) -> list[str]: ...


class Links(Protocol):
    def create_pair(self, host_name: str, ns_name: str): ...

    def move_to_namespace(self, link: str, namespace: str): ...

    def set_mac(self, link: str, mac: str, namespace: str | None = None): ...

    def set_address(self, link: str, address: str, namespace: str | None = None): ...

    def up(self, link: str, namespace: str | None = None): ...

    def delete(self, name: str): ...

    def list(self) -> list[str]: ...


class Agent(Protocol):
    def configure(self, path: str, address: str, community: str): ...

    def start(self, namespace: str, config_path: str): ...


class DeviceProvisioner:
    """Creates the namespace, veth pair, addressing and SNMP agent of one
    device.

    Every step raises its own ProvisionError subclass, so the caller knows
    how far a device got. Nothing is rolled back; the next cleanup removes
    whatever was left behind.
    """

    def __init__(
        self,
        namespaces: Namespaces,
        links: Links,
        agent: Agent,
        naming: NamingScheme,
        identities: IdentityStore,
        community: str = "public",
    ):
        self.namespaces = namespaces
        self.links = links
        self.agent = agent
        self.naming = naming
        self.identities = identities
        self.community = community

    def prepare(self, name: str, kind: DeviceKind, address: IPv4Interface) -> Device:
        """resolve names and MAC of a planned device

        Raises NamingError for unusable names and StoreUnwritable when the
        MAC cannot be persisted, both are fatal for the whole run.
        """
        names = self.naming.derive(name)
        mac = self.identities.resolve_mac(name)
        return Device(name=name, kind=kind, address=address, mac=mac, names=names)

    def provision(self, device: Device) -> ProvisionedDevice:
        """provision a prepared device, raises ProvisionError"""
        names = device.names
        _LOGGER.info("provisioning %s %s", device.kind, device.name)

        try:
            if names.namespace in self.namespaces.list():
                _LOGGER.info("namespace %s exists, deleting it", names.namespace)
                self.namespaces.delete(names.namespace)
            self.namespaces.create(names.namespace)
        except CommandError as exc:
            raise NamespaceCreateFailed(device.name, str(exc)) from exc

        try:
            if names.host_link in self.links.list():
                _LOGGER.info("link %s exists, deleting it", names.host_link)
                self.links.delete(names.host_link)
            self.links.create_pair(names.host_link, names.ns_link)
        except CommandError as exc:
            raise LinkCreateFailed(device.name, str(exc)) from exc

        try:
            self.links.move_to_namespace(names.ns_link, names.namespace)
        except CommandError as exc:
            raise LinkMoveFailed(device.name, str(exc)) from exc

        address = str(device.address)
        try:
            self.links.set_mac(names.host_link, device.mac)
            self.links.set_address(names.host_link, address)
            self.links.up(names.host_link)
            self.links.set_mac(names.ns_link, device.mac, namespace=names.namespace)
            self.links.set_address(names.ns_link, address, namespace=names.namespace)
            self.links.up(names.ns_link, namespace=names.namespace)
        except CommandError as exc:
            raise AddressBindFailed(device.name, str(exc)) from exc

        try:
            self.agent.configure(names.agent_config_path, str(device.ip), self.community)
            self.agent.start(names.namespace, names.agent_config_path)
        except (CommandError, OSError) as exc:
            raise AgentStartFailed(device.name, str(exc)) from exc

        _LOGGER.warning(
            "Created %s %s with IP %s and MAC %s",
            device.kind,
            device.name,
            device.ip,
            device.mac,
        )
        return ProvisionedDevice(device)
