"""persistent MAC addresses per device name

The store is a plain text file with one ``name=mac`` line per device. It is
only ever appended to: once a name has a MAC, that MAC stays the same for
every following run so that ARP caches and monitoring history stay valid.
"""

import logging
import os
import random
import re

from nsgen.models import StoreUnwritable

_LOGGER = logging.getLogger(__name__)

_OCTET = r"[0-9a-f]{2}"
MAC_RE = re.compile(rf"^{_OCTET}(:{_OCTET}){{5}}$")
PREFIX_RE = re.compile(rf"^{_OCTET}(:{_OCTET}){{3}}$")


class IdentityStore:
    """maps device names to MAC addresses, backed by an append-only file"""

    def __init__(
        self, filename: str, prefix: str = "02:0c:29:33", rng: random.Random | None = None
    ):
        prefix = prefix.lower()
        if not PREFIX_RE.match(prefix):
            raise ValueError(f"MAC prefix must be 4 octets: {prefix}")
        self.filename = filename
        self.prefix = prefix
        self.rng = rng or random.Random()
        self._cache: dict[str, str] | None = None

    def read(self) -> dict[str, str]:
        """read the whole store, the first entry of a name wins"""
        mapping: dict[str, str] = {}
        try:
            with open(self.filename, encoding="utf-8") as handle:
                lines = handle.readlines()
        except FileNotFoundError:
            return mapping
        except (OSError, UnicodeDecodeError) as exc:
            raise StoreUnwritable(f"cannot read {self.filename}: {exc}") from exc

        for lineno, line in enumerate(lines, start=1):
            line = line.strip()
            if not line or line.startswith("#"):
                continue
            name, sep, mac = line.partition("=")
            name, mac = name.strip(), mac.strip().lower()
            if not sep or not name or not MAC_RE.match(mac):
                _LOGGER.warning("%s:%d: ignoring malformed entry", self.filename, lineno)
                continue
            if name in mapping:
                if mapping[name] != mac:
                    _LOGGER.warning(
                        "%s:%d: duplicate entry for %s ignored", self.filename, lineno, name
                    )
                continue
            mapping[name] = mac
        return mapping

    def append(self, name: str, mac: str):
        """durably append a single entry"""
        try:
            with open(self.filename, "ab+") as handle:
                line = f"{name}={mac}\n".encode("utf-8")
                # a hand edited store may lack the final newline
                if handle.seek(0, os.SEEK_END) > 0:
                    handle.seek(-1, os.SEEK_END)
                    if handle.read(1) != b"\n":
                        line = b"\n" + line
                handle.write(line)
                handle.flush()
                os.fsync(handle.fileno())
        except OSError as exc:
            raise StoreUnwritable(f"cannot append to {self.filename}: {exc}") from exc

    def _mapping(self) -> dict[str, str]:
        if self._cache is None:
            self._cache = self.read()
        return self._cache

    def known_names(self) -> list[str]:
        return list(self._mapping())

    def _generate(self, taken: set[str]) -> str:
        # random 16 bit suffix, walk forward on a clash
        start = self.rng.randrange(0x10000)
        for i in range(0x10000):
            suffix = (start + i) % 0x10000
            mac = f"{self.prefix}:{suffix >> 8:02x}:{suffix & 0xFF:02x}"
            if mac not in taken:
                return mac
        raise StoreUnwritable(f"no free MAC address left for prefix {self.prefix}")

    def resolve_mac(self, name: str) -> str:
        """return the MAC for the device, generating and persisting a new
        one when the name is unknown"""
        mapping = self._mapping()
        mac = mapping.get(name)
        if mac is not None:
            _LOGGER.debug("MAC for %s loaded: %s", name, mac)
            return mac

        mac = self._generate(set(mapping.values()))
        self.append(name, mac)
        mapping[name] = mac
        _LOGGER.info("MAC for %s generated: %s", name, mac)
        return mac
