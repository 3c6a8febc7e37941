"""
nsgen Data Models - Core Data Structures for Namespace Topologies

PURPOSE:
    Defines the data models shared by all nsgen modules: the device kinds,
    the derived per-device names, the fully resolved device and the
    inventory handed to the traffic simulator. Also holds the error
    hierarchy.

WHO READS ME:
    - addressing.py: DeviceKind, AddressError types
    - naming.py: DeviceNames, naming errors
    - identity.py: StoreUnwritable
    - provision.py: Device, ProvisionedDevice, ProvisionError subclasses
    - topology.py: TopologyInventory, ProvisionFailure
    - main.py: NsgenError for exception handling

WHO I READ:
    - None (leaf module, no internal dependencies)

DEPENDENCIES:
    - dataclasses: @dataclass decorator
    - enum: DeviceKind
    - ipaddress: IPv4Address, IPv4Interface

ERROR HIERARCHY:
    NsgenError
    +-- ConfigError                 fatal, raised before any provisioning
    |   +-- AddressSpaceExhausted
    |   +-- NamingError
    |       +-- NameTooLong
    |       +-- NameCollision
    |       +-- InvalidName
    +-- StoreUnwritable             fatal, MAC stability cannot be kept
    +-- CleanupError                fatal, leftovers could not be removed
    +-- CommandError                an external command failed
    +-- ProvisionError              per device, recorded and skipped
        +-- NamespaceCreateFailed
        +-- LinkCreateFailed
        +-- LinkMoveFailed
        +-- AddressBindFailed
        +-- AgentStartFailed
"""

from dataclasses import dataclass, field
from enum import Enum
from ipaddress import IPv4Address, IPv4Interface


class NsgenError(Exception):
    """Base class for all errors raised by nsgen"""


class ConfigError(NsgenError):
    """invalid configuration, detected before anything is touched"""


class AddressSpaceExhausted(ConfigError):
    """the address plan does not fit into the configured subnet"""


class NamingError(ConfigError):
    """a device name cannot be mapped to platform names"""


class NameTooLong(NamingError):
    pass


class NameCollision(NamingError):
    pass


class InvalidName(NamingError):
    pass


class StoreUnwritable(NsgenError):
    """the identity store cannot be read or appended"""


class CleanupError(NsgenError):
    """leftovers of a previous run could not be removed"""


class CommandError(NsgenError):
    """an external command failed or could not be executed"""

    def __init__(self, argv: list[str], returncode: int | None, stderr: str = ""):
        self.argv = list(argv)
        self.returncode = returncode
        self.stderr = stderr.strip()
        msg = f"command failed ({returncode}): {' '.join(self.argv)}"
        if self.stderr:
            msg += f": {self.stderr}"
        super().__init__(msg)


class ProvisionError(NsgenError):
    """a single device could not be provisioned; step names where it failed"""

    step = "provision"

    def __init__(self, device: str, reason: str):
        self.device = device
        self.reason = reason
        super().__init__(f"{device}: {self.step} failed: {reason}")


class NamespaceCreateFailed(ProvisionError):
    step = "namespace"


class LinkCreateFailed(ProvisionError):
    step = "link-create"


class LinkMoveFailed(ProvisionError):
    step = "link-move"


class AddressBindFailed(ProvisionError):
    step = "address-bind"


class AgentStartFailed(ProvisionError):
    step = "agent-start"


class DeviceKind(Enum):
    """the role a simulated device plays in the LAN"""

    ROUTER = "Router"
    ETHERNET_FIREWALL = "Ethernet Firewall"
    WIFI_FIREWALL = "WiFi Firewall"
    MANAGED_SWITCH = "Managed Switch"
    WORKSTATION = "Workstation"
    ACCESS_POINT = "WiFi AP"
    WIFI_CLIENT = "WiFi Client"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class DeviceNames:
    """platform names derived from a device name"""

    namespace: str
    host_link: str
    ns_link: str
    agent_config_path: str


@dataclass(frozen=True)
class Device:
    """a fully resolved device, ready to be provisioned"""

    name: str
    kind: DeviceKind
    address: IPv4Interface
    mac: str
    names: DeviceNames

    @property
    def ip(self) -> IPv4Address:
        return self.address.ip


@dataclass(frozen=True)
class ProvisionedDevice:
    """a device that made it through all provisioning steps"""

    device: Device

    @property
    def name(self) -> str:
        return self.device.name

    @property
    def ip(self) -> IPv4Address:
        return self.device.ip


@dataclass(frozen=True)
class ProvisionFailure:
    """a device which failed, with the step and the reason"""

    name: str
    step: str
    reason: str

    @classmethod
    def from_error(cls, exc: ProvisionError) -> "ProvisionFailure":
        return cls(name=exc.device, step=exc.step, reason=exc.reason)


@dataclass(frozen=True)
class TopologyInventory:
    """the outcome of a run, read-only for consumers"""

    devices: tuple[ProvisionedDevice, ...] = field(default_factory=tuple)
    failures: tuple[ProvisionFailure, ...] = field(default_factory=tuple)

    @property
    def device_count(self) -> int:
        return len(self.devices)

    def __iter__(self):
        return iter(self.devices)

    def __len__(self) -> int:
        return len(self.devices)
