"""derive namespace, veth and agent config names from a device name"""

import logging
import os
import re

from nsgen.models import DeviceNames, InvalidName, NameCollision, NameTooLong

_LOGGER = logging.getLogger(__name__)

# IFNAMSIZ is 16 including the terminating NUL
MAX_LINK_NAME = 15
MAX_NAMESPACE_NAME = 255

_NAMESPACE_RE = re.compile(r"^[A-Za-z0-9_.]+$")


class NamingScheme:
    """turns device names into platform names

    Link names are built from a prefix and the first ``chars`` characters of
    the device name. Distinct devices sharing such a truncated key would
    alias each other's links, so every key handed out is remembered and a
    second device claiming it is rejected.
    """

    def __init__(
        self,
        config_dir: str = "/etc/snmp",
        host_prefix: str = "vh_",
        ns_prefix: str = "vn_",
        chars: int = 12,
    ):
        if chars < 1:
            raise ValueError(f"link name characters must be positive: {chars}")
        # with nested prefixes "v"+"nx" and "vn"+"x" would name the same link
        if host_prefix.startswith(ns_prefix) or ns_prefix.startswith(host_prefix):
            raise ValueError("host and namespace link prefixes must not prefix each other")
        self.config_dir = config_dir
        self.host_prefix = host_prefix
        self.ns_prefix = ns_prefix
        self.chars = chars
        self._keys: dict[str, str] = {}
        self._namespaces: dict[str, str] = {}

    @staticmethod
    def namespace_name(name: str) -> str:
        """namespace names may not contain hyphens"""
        return name.replace("-", "_")

    def short_name(self, name: str) -> str:
        return name[: self.chars]

    def is_managed_link(self, link: str) -> bool:
        return link.startswith(self.host_prefix) or link.startswith(self.ns_prefix)

    def derive(self, name: str) -> DeviceNames:
        """return the names for a device, raises NamingError"""
        if not name:
            raise InvalidName("device name must not be empty")
        namespace = self.namespace_name(name)
        if not _NAMESPACE_RE.match(namespace):
            raise InvalidName(f"{name}: only letters, digits, '-', '_' and '.' are allowed")
        if len(namespace) > MAX_NAMESPACE_NAME:
            raise NameTooLong(f"{name}: namespace name exceeds {MAX_NAMESPACE_NAME} characters")

        short = self.short_name(name)
        host_link = f"{self.host_prefix}{short}"
        ns_link = f"{self.ns_prefix}{short}"
        for link in (host_link, ns_link):
            if len(link) > MAX_LINK_NAME:
                raise NameTooLong(
                    f"{name}: link name {link} exceeds {MAX_LINK_NAME} characters"
                )

        owner = self._keys.get(short)
        if owner is not None and owner != name:
            raise NameCollision(
                f"{name} and {owner} both truncate to '{short}' ({host_link})"
            )
        owner = self._namespaces.get(namespace)
        if owner is not None and owner != name:
            raise NameCollision(f"{name} and {owner} both map to namespace {namespace}")
        self._keys[short] = name
        self._namespaces[namespace] = name

        names = DeviceNames(
            namespace=namespace,
            host_link=host_link,
            ns_link=ns_link,
            agent_config_path=os.path.join(self.config_dir, f"snmpd_{name}.conf"),
        )
        _LOGGER.debug("names for %s: %s", name, names)
        return names
