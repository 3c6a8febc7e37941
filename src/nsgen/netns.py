"""
nsgen Namespace and Link Primitives - Thin Wrappers around iproute2

PURPOSE:
    The only place where nsgen talks to the kernel's network configuration.
    Every call shells out to `ip` through a CommandRunner. A failed command
    raises CommandError. The provisioner and the topology manager decide
    what that means for the device at hand.

WHO READS ME:
    - provision.py: namespace and link steps for a single device
    - topology.py: listing and deleting leftovers during cleanup
    - agent.py, traffic.py: CommandRunner

WHO I READ:
    - models.py: CommandError

DEPENDENCIES:
    - subprocess: running iproute2
    - shutil: locating required tools

COMMANDS:
    ip netns add|del|list <ns>
    ip link add <host> type veth peer name <peer>
    ip link set <peer> netns <ns>
    ip [-n <ns>] link set dev <link> address <mac>|up
    ip [-n <ns>] addr add <ip/len> dev <link>
    ip -o link show
"""

import logging
import shutil
import subprocess
from typing import Sequence

from nsgen.models import CommandError

_LOGGER = logging.getLogger(__name__)


class CommandRunner:
    """runs argv lists, never through a shell"""

    def run(self, argv: Sequence[str], check: bool = True) -> subprocess.CompletedProcess:
        argv = list(argv)
        _LOGGER.debug("run: %s", " ".join(argv))
        try:
            res = subprocess.run(argv, check=False, capture_output=True, text=True)
        except OSError as exc:
            raise CommandError(argv, None, str(exc)) from exc
        if check and res.returncode != 0:
            raise CommandError(argv, res.returncode, res.stderr or "")
        return res


def missing_tools(tools: Sequence[str]) -> list[str]:
    """return the tools not found on PATH"""
    return [tool for tool in tools if shutil.which(tool) is None]


def _ip(*args: str, ns: str | None = None) -> list[str]:
    argv = ["ip"]
    if ns is not None:
        argv += ["-n", ns]
    return argv + list(args)


class IpNamespaces:
    """network namespaces via `ip netns`"""

    def __init__(self, runner: CommandRunner):
        self.runner = runner

    def create(self, name: str):
        self.runner.run(_ip("netns", "add", name))

    def delete(self, name: str):
        self.runner.run(_ip("netns", "del", name))

    def list(self) -> list[str]:
        res = self.runner.run(_ip("netns", "list"))
        # lines look like "ns_name (id: 3)"
        return [line.split()[0] for line in res.stdout.splitlines() if line.strip()]


class IpLinks:
    """veth pairs and their addresses via `ip link` and `ip addr`"""

    def __init__(self, runner: CommandRunner):
        self.runner = runner

    def create_pair(self, host_name: str, ns_name: str):
        self.runner.run(_ip("link", "add", host_name, "type", "veth", "peer", "name", ns_name))

    def move_to_namespace(self, link: str, namespace: str):
        self.runner.run(_ip("link", "set", link, "netns", namespace))

    def set_mac(self, link: str, mac: str, namespace: str | None = None):
        self.runner.run(_ip("link", "set", "dev", link, "address", mac, ns=namespace))

    def set_address(self, link: str, address: str, namespace: str | None = None):
        self.runner.run(_ip("addr", "add", address, "dev", link, ns=namespace))

    def up(self, link: str, namespace: str | None = None):
        self.runner.run(_ip("link", "set", "dev", link, "up", ns=namespace))

    def delete(self, name: str):
        self.runner.run(_ip("link", "delete", name))

    def list(self) -> list[str]:
        res = self.runner.run(_ip("-o", "link", "show"))
        links = []
        for line in res.stdout.splitlines():
            # "12: vh_ws-0@vn_ws-0: <BROADCAST,...> mtu 1500 ..."
            parts = line.split(":", 2)
            if len(parts) < 3:
                continue
            links.append(parts[1].strip().split("@", 1)[0])
        return links
