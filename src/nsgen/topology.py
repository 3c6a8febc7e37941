"""
nsgen Topology Manager - Cleanup and Provisioning Lifecycle

PURPOSE:
    Owns the device inventory of a run. Computes the address plan, resolves
    every device's names and MAC up front, clears whatever a previous run
    left behind and then provisions the devices one by one in a fixed
    order: router, firewalls, switches, workstations, access points and
    Wi-Fi clients.

WHO READS ME:
    - main.py: builds a TopologyManager and calls run() / cleanup()

WHO I READ:
    - addressing.py: plan_addresses(), default_pools()
    - provision.py: DeviceProvisioner
    - models.py: inventory types and errors

DEPENDENCIES:
    - enlighten: optional progress bar
    - threading: stop flag settable from signal handlers

STATES:
    IDLE -> CLEANING -> PROVISIONING -> READY
    a stop request ends CLEANING or PROVISIONING in STOPPED after the
    current device (or delete) has completed

ERRORS:
    - ConfigError, StoreUnwritable: raised before anything is deleted
    - CleanupError: raised when leftovers survive the cleanup
    - ProvisionError: logged, recorded as a failure, next device continues
"""

import logging
import threading
from enum import Enum

import enlighten

from nsgen.addressing import AddressPlan, default_pools, plan_addresses
from nsgen.config import Config
from nsgen.models import (
    CleanupError,
    CommandError,
    Device,
    ProvisionedDevice,
    ProvisionError,
    ProvisionFailure,
    TopologyInventory,
)
from nsgen.provision import DeviceProvisioner

_LOGGER = logging.getLogger(__name__)


def plan_topology(cfg: Config) -> AddressPlan:
    """the address plan for the configured pools"""
    pools = default_pools(cfg.workstations, cfg.access_points, cfg.wifi_clients)
    return plan_addresses(cfg.network, cfg.start_offset, pools)


class TopologyState(Enum):
    IDLE = "idle"
    CLEANING = "cleaning"
    PROVISIONING = "provisioning"
    READY = "ready"
    STOPPED = "stopped"


class TopologyManager:
    """drives cleanup and provisioning of the whole simulated LAN"""

    def __init__(self, cfg: Config, provisioner: DeviceProvisioner):
        self.config = cfg
        self.provisioner = provisioner
        self.state = TopologyState.IDLE
        self.device_count = 0
        self._devices: list[ProvisionedDevice] = []
        self._failures: list[ProvisionFailure] = []
        self._stop = threading.Event()

    @property
    def inventory(self) -> TopologyInventory:
        return TopologyInventory(devices=tuple(self._devices), failures=tuple(self._failures))

    @property
    def stop_requested(self) -> bool:
        return self._stop.is_set()

    def request_stop(self):
        """halt after the device currently being worked on"""
        _LOGGER.warning("Stop requested, finishing current device")
        self._stop.set()

    def plan(self) -> AddressPlan:
        return plan_topology(self.config)

    def prepare(self, plan: AddressPlan) -> list[Device]:
        """names and MACs for every planned device, in provisioning order"""
        return [
            self.provisioner.prepare(planned.name, planned.kind, planned.address)
            for planned in plan
        ]

    def _managed_namespaces(self, existing: list[str], plan: AddressPlan | None) -> list[str]:
        if self.config.cleanup_all_namespaces:
            return existing
        naming = self.provisioner.naming
        known = set(self.provisioner.identities.known_names())
        if plan is not None:
            known.update(planned.name for planned in plan)
        managed = {naming.namespace_name(name) for name in known}
        return [ns for ns in existing if ns in managed]

    @staticmethod
    def _list_or_fail(collaborator, what: str) -> list[str]:
        try:
            return collaborator.list()
        except CommandError as exc:
            raise CleanupError(f"cannot list {what}: {exc}") from exc

    def cleanup(self, plan: AddressPlan | None = None):
        """remove leftover links and namespaces, absent ones are fine"""
        self.state = TopologyState.CLEANING
        _LOGGER.warning("Cleaning up existing network namespaces and veth pairs")
        links = self.provisioner.links
        namespaces = self.provisioner.namespaces
        naming = self.provisioner.naming
        leftovers: list[str] = []

        stale_links = [
            link
            for link in self._list_or_fail(links, "links")
            if naming.is_managed_link(link)
        ]
        for link in stale_links:
            if self.stop_requested:
                self.state = TopologyState.STOPPED
                return
            try:
                links.delete(link)
                _LOGGER.info("deleted veth %s", link)
            except CommandError as exc:
                # deleting one end of a pair removes its peer as well
                if link in self._list_or_fail(links, "links"):
                    _LOGGER.error(exc)
                    leftovers.append(f"link {link}")
                else:
                    _LOGGER.debug("veth %s already gone", link)

        stale_namespaces = self._managed_namespaces(
            self._list_or_fail(namespaces, "namespaces"), plan
        )
        for ns in stale_namespaces:
            if self.stop_requested:
                self.state = TopologyState.STOPPED
                return
            try:
                namespaces.delete(ns)
                _LOGGER.info("deleted namespace %s", ns)
            except CommandError as exc:
                if ns in self._list_or_fail(namespaces, "namespaces"):
                    _LOGGER.error(exc)
                    leftovers.append(f"namespace {ns}")
                else:
                    _LOGGER.debug("namespace %s already gone", ns)

        if leftovers:
            raise CleanupError("could not remove " + ", ".join(leftovers))
        self.state = TopologyState.IDLE

    def run(self, progress: bool = False) -> TopologyInventory:
        """plan, clean up and provision, returns the final inventory"""
        plan = self.plan()
        devices = self.prepare(plan)
        _LOGGER.warning("Planned %d devices in %s", len(devices), plan.network)

        self.cleanup(plan)
        if self.stop_requested:
            self.state = TopologyState.STOPPED
            return self.inventory

        manager = None
        ticks = None
        if progress:
            manager = enlighten.get_manager()
            ticks = manager.counter(
                total=len(devices),
                desc="devices",
                unit="devices",
                leave=False,
                color="cyan",
            )

        self.state = TopologyState.PROVISIONING
        try:
            for device in devices:
                if self.stop_requested:
                    _LOGGER.warning("Stopped before %s", device.name)
                    break
                try:
                    self._devices.append(self.provisioner.provision(device))
                    self.device_count += 1
                except ProvisionError as exc:
                    _LOGGER.error(exc)
                    self._failures.append(ProvisionFailure.from_error(exc))
                if ticks is not None:
                    ticks.update()
        finally:
            if manager is not None:
                ticks.close()  # type: ignore
                manager.stop()

        self.state = TopologyState.STOPPED if self.stop_requested else TopologyState.READY
        _LOGGER.warning(
            "Done: %d devices provisioned, %d failed", self.device_count, len(self._failures)
        )
        return self.inventory
