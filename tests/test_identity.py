from __future__ import annotations

import random
from pathlib import Path

import pytest

from nsgen.identity import IdentityStore
from nsgen.models import StoreUnwritable


class FixedRandom(random.Random):
    def randrange(self, *args, **kwargs):  # type: ignore[override]
        return 0x1234


def test_resolve_mac_is_stable_within_a_store(identities: IdentityStore) -> None:
    first = identities.resolve_mac("rtr")
    assert first == identities.resolve_mac("rtr")
    assert first.startswith("02:0c:29:33:")


def test_resolve_mac_survives_reload(tmp_path: Path) -> None:
    path = str(tmp_path / "macs.conf")
    mac = IdentityStore(path).resolve_mac("ws-3")

    reloaded = IdentityStore(path)
    assert reloaded.read() == {"ws-3": mac}
    assert reloaded.resolve_mac("ws-3") == mac


def test_new_entries_are_appended(tmp_path: Path) -> None:
    path = tmp_path / "macs.conf"
    path.write_text("rtr=00:0c:29:33:aa:bb\n", encoding="utf-8")
    store = IdentityStore(str(path), rng=FixedRandom())

    assert store.resolve_mac("rtr") == "00:0c:29:33:aa:bb"
    assert store.resolve_mac("fw-1") == "02:0c:29:33:12:34"
    assert path.read_text(encoding="utf-8").splitlines() == [
        "rtr=00:0c:29:33:aa:bb",
        "fw-1=02:0c:29:33:12:34",
    ]


def test_first_entry_wins_and_garbage_is_skipped(tmp_path: Path) -> None:
    path = tmp_path / "macs.conf"
    path.write_text(
        "# comment\n"
        "sw-1=02:0C:29:33:01:01\n"
        "not a mapping\n"
        "sw-2=zz:zz\n"
        "sw-1=02:0c:29:33:ff:ff\n",
        encoding="utf-8",
    )
    assert IdentityStore(str(path)).read() == {"sw-1": "02:0c:29:33:01:01"}


def test_generated_macs_do_not_collide(tmp_path: Path) -> None:
    store = IdentityStore(str(tmp_path / "macs.conf"), rng=FixedRandom())
    macs = {store.resolve_mac(f"wi-{i}") for i in range(3)}
    assert macs == {"02:0c:29:33:12:34", "02:0c:29:33:12:35", "02:0c:29:33:12:36"}


def test_unwritable_store_raises(tmp_path: Path) -> None:
    store = IdentityStore(str(tmp_path / "missing" / "macs.conf"))
    with pytest.raises(StoreUnwritable):
        store.resolve_mac("rtr")


def test_unreadable_store_raises(tmp_path: Path) -> None:
    store = IdentityStore(str(tmp_path))
    with pytest.raises(StoreUnwritable):
        store.read()


def test_prefix_must_have_four_octets(tmp_path: Path) -> None:
    with pytest.raises(ValueError):
        IdentityStore(str(tmp_path / "macs.conf"), prefix="02:0c:29")


def test_append_after_hand_edit_without_newline(tmp_path: Path) -> None:
    path = tmp_path / "macs.conf"
    path.write_text("rtr=00:0c:29:33:aa:bb", encoding="utf-8")
    IdentityStore(str(path), rng=FixedRandom()).resolve_mac("fw-1")

    assert path.read_text(encoding="utf-8").splitlines() == [
        "rtr=00:0c:29:33:aa:bb",
        "fw-1=02:0c:29:33:12:34",
    ]
    assert IdentityStore(str(path)).resolve_mac("rtr") == "00:0c:29:33:aa:bb"


def test_undecodable_store_raises(tmp_path: Path) -> None:
    path = tmp_path / "macs.conf"
    path.write_bytes(b"rtr=00:0c:29:33:aa:bb\n\xff\xfe=junk\n")
    with pytest.raises(StoreUnwritable):
        IdentityStore(str(path)).read()
