"""
nsgen Address Allocator - IPv4 Address Plan for the Simulated LAN

PURPOSE:
    Computes, once per run, which address every device gets. The
    infrastructure devices have fixed host numbers, the dynamic pools get
    contiguous blocks laid out one after another starting at a configured
    offset. The result is immutable and validated: pools never overlap each
    other or the static block, and nothing spills over the end of the subnet.

WHO READS ME:
    - topology.py: plan_addresses() at the start of every run
    - main.py: --plan output

WHO I READ:
    - models.py: DeviceKind, ConfigError, AddressSpaceExhausted

EXAMPLE:
    network 192.168.100.0/24, start_offset 20, pools ws=10, ap=2, wi=10
        rtr  192.168.100.1      ws-3 192.168.100.23
        ap-0 192.168.100.30     wi-0 192.168.100.32
"""

from dataclasses import dataclass
from ipaddress import IPv4Address, IPv4Interface, IPv4Network

from nsgen.models import AddressSpaceExhausted, ConfigError, DeviceKind


@dataclass(frozen=True)
class StaticDevice:
    """an infrastructure device with a fixed host number"""

    name: str
    kind: DeviceKind
    host: int


@dataclass(frozen=True)
class Pool:
    """a pool of devices named <prefix>-<index>"""

    prefix: str
    kind: DeviceKind
    size: int


@dataclass(frozen=True)
class PlannedDevice:
    name: str
    kind: DeviceKind
    address: IPv4Interface


# router, firewalls and switches, in provisioning order
STATIC_DEVICES = (
    StaticDevice("rtr", DeviceKind.ROUTER, 1),
    StaticDevice("fw-1", DeviceKind.ETHERNET_FIREWALL, 2),
    StaticDevice("fw-2", DeviceKind.WIFI_FIREWALL, 3),
    StaticDevice("sw-1", DeviceKind.MANAGED_SWITCH, 4),
    StaticDevice("sw-2", DeviceKind.MANAGED_SWITCH, 5),
    StaticDevice("sw-3", DeviceKind.MANAGED_SWITCH, 6),
    StaticDevice("sw-4", DeviceKind.MANAGED_SWITCH, 7),
)


def default_pools(workstations: int, access_points: int, wifi_clients: int) -> tuple[Pool, ...]:
    """the dynamic pools in the order they are laid out"""
    return (
        Pool("ws", DeviceKind.WORKSTATION, workstations),
        Pool("ap", DeviceKind.ACCESS_POINT, access_points),
        Pool("wi", DeviceKind.WIFI_CLIENT, wifi_clients),
    )


@dataclass(frozen=True)
class AddressPlan:
    """ordered, immutable device to address assignment"""

    network: IPv4Network
    devices: tuple[PlannedDevice, ...]

    def __iter__(self):
        return iter(self.devices)

    def __len__(self) -> int:
        return len(self.devices)

    def address_of(self, name: str) -> IPv4Address:
        for device in self.devices:
            if device.name == name:
                return device.address.ip
        raise KeyError(name)


def plan_addresses(
    network: IPv4Network,
    start_offset: int,
    pools: tuple[Pool, ...],
    static_devices: tuple[StaticDevice, ...] = STATIC_DEVICES,
) -> AddressPlan:
    """lay out the static devices and the dynamic pools in the network"""
    # usable hosts are 1 .. num_addresses - 2 (network and broadcast excluded)
    last_host = network.num_addresses - 2
    if last_host < 1:
        raise ConfigError(f"network {network} has no usable host addresses")

    def iface(host: int) -> IPv4Interface:
        return IPv4Interface(f"{network.network_address + host}/{network.prefixlen}")

    planned: list[PlannedDevice] = []
    seen_hosts: set[int] = set()
    for static in static_devices:
        if static.host < 1 or static.host > last_host:
            raise ConfigError(f"{static.name}: host number {static.host} is outside {network}")
        if static.host in seen_hosts:
            raise ConfigError(f"{static.name}: host number {static.host} is used twice")
        seen_hosts.add(static.host)
        planned.append(PlannedDevice(static.name, static.kind, iface(static.host)))

    static_top = max(seen_hosts, default=0)
    if start_offset <= static_top:
        raise ConfigError(
            f"start offset {start_offset} overlaps the static block (up to .{static_top})"
        )

    for pool in pools:
        if pool.size < 0:
            raise ConfigError(f"pool {pool.prefix}: size must not be negative ({pool.size})")

    total = sum(pool.size for pool in pools)
    highest = start_offset + total - 1
    if total and highest > last_host:
        raise AddressSpaceExhausted(
            f"{total} dynamic devices starting at .{start_offset} need host "
            f"number {highest}, but {network} ends at {last_host}"
        )

    offset = start_offset
    for pool in pools:
        for index in range(pool.size):
            planned.append(
                PlannedDevice(f"{pool.prefix}-{index}", pool.kind, iface(offset + index))
            )
        offset += pool.size

    return AddressPlan(network=network, devices=tuple(planned))
