"""background chatter for the simulated LAN: SNMP polls and pings"""

import logging
import random
import threading

from nsgen.models import CommandError, TopologyInventory
from nsgen.netns import CommandRunner

_LOGGER = logging.getLogger(__name__)

UPTIME_OID = "SNMPv2-MIB::sysUpTime.0"


class TrafficSimulator:
    """polls every provisioned device and pings its successor, round after
    round, until stopped. Only reads the inventory."""

    def __init__(
        self,
        inventory: TopologyInventory,
        runner: CommandRunner,
        community: str = "public",
        interval: float = 5.0,
        jitter: float = 0.0,
        rng: random.Random | None = None,
    ):
        self.inventory = inventory
        self.runner = runner
        self.community = community
        self.interval = interval
        self.jitter = jitter
        self.rng = rng or random.Random()
        self.polls = 0
        self.errors = 0
        self._stop = threading.Event()

    def stop(self):
        self._stop.set()

    def _probe(self, argv: list[str]) -> bool:
        self.polls += 1
        try:
            res = self.runner.run(argv, check=False)
        except CommandError as exc:
            _LOGGER.debug(exc)
            self.errors += 1
            return False
        if res.returncode != 0:
            _LOGGER.debug("%s: exit %d", " ".join(argv), res.returncode)
            self.errors += 1
            return False
        return True

    def run_round(self):
        devices = self.inventory.devices
        for index, device in enumerate(devices):
            if self._stop.is_set():
                return
            self._probe(
                ["snmpget", "-v", "2c", "-c", self.community, str(device.ip), UPTIME_OID]
            )
            peer = devices[(index + 1) % len(devices)]
            self._probe(["ping", "-c", "1", "-W", "1", str(peer.ip)])

    def run(self, rounds: int | None = None) -> int:
        """run until stopped or for the given number of rounds, returns the
        number of rounds started"""
        if not self.inventory.devices:
            _LOGGER.warning("No devices to poll")
            return 0
        _LOGGER.warning("Starting network activity simulation")
        done = 0
        while not self._stop.is_set() and (rounds is None or done < rounds):
            self.run_round()
            done += 1
            _LOGGER.info("round %d: %d polls, %d errors", done, self.polls, self.errors)
            if rounds is not None and done >= rounds:
                break
            delay = self.interval + (self.rng.uniform(0, self.jitter) if self.jitter else 0)
            self._stop.wait(delay)
        return done
