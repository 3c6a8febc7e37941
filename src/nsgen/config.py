"""
nsgen Configuration - Configuration Loading and Defaults Management

PURPOSE:
    Manages configuration loading from TOML files and provides the defaults
    for a simulated LAN: the subnet, the size of each dynamic device pool,
    where the persistent MAC addresses live and how the SNMP agents and the
    veth pairs are named.

WHO READS ME:
    - main.py: Loads configuration via Config.load() during bootstrap
    - topology.py: pool sizes, subnet, cleanup scope
    - naming.py, identity.py, agent.py: their respective settings

WHO I READ:
    - None (leaf module, no internal dependencies)

DEPENDENCIES:
    - serde: TOML serialization/deserialization (@deserialize, @serialize)
    - serde.toml: from_toml(), to_toml()
    - dataclasses: @dataclass decorator
    - ipaddress: IPv4Network for the LAN subnet

FILE FORMAT:
    config.toml example:
    ```toml
    network = "192.168.100.0/24"
    start_offset = 20
    workstations = 10
    access_points = 2
    wifi_clients = 10
    mac_file = "mac_addresses.conf"
    mac_prefix = "02:0c:29:33"
    snmp_community = "public"
    ```
"""

import logging
from dataclasses import dataclass
from ipaddress import IPv4Network

from serde import deserialize, serialize, SerdeError
from serde.toml import from_toml, to_toml

_LOGGER = logging.getLogger(__name__)


@deserialize
@serialize
@dataclass
class Config:
    """namespace topology configuration"""

    network: IPv4Network = IPv4Network("192.168.100.0/24")
    start_offset: int = 20
    workstations: int = 10
    access_points: int = 2
    wifi_clients: int = 10

    mac_file: str = "mac_addresses.conf"
    mac_prefix: str = "02:0c:29:33"

    snmp_base_config: str = "/etc/snmp/snmpd.conf"
    snmp_config_dir: str = "/etc/snmp"
    snmp_community: str = "public"
    snmp_port: int = 161

    link_host_prefix: str = "vh_"
    link_ns_prefix: str = "vn_"
    link_name_chars: int = 12
    cleanup_all_namespaces: bool = False

    poll_interval: float = 5.0
    poll_jitter: float = 0.0

    @classmethod
    def load(cls, filename: str) -> "Config":
        """load the configuration from the given file"""
        try:
            with open(filename, encoding="utf-8") as handle:
                cfg = from_toml(cls, handle.read())
            _LOGGER.info("Configuration loaded from file %s", filename)
        except (FileNotFoundError, TypeError, ValueError, SerdeError) as exc:
            if not isinstance(exc, FileNotFoundError):
                _LOGGER.error(exc)
            cfg = cls()
            _LOGGER.warning("using configuration defaults")
        return cfg

    def save(self, filename: str):
        """save the configuration to the given file"""
        with open(filename, "w+", encoding="utf-8") as handle:
            handle.write(to_toml(self))
