from __future__ import annotations

import os

import pytest

from nsgen.models import InvalidName, NameCollision, NameTooLong
from nsgen.naming import NamingScheme


def test_derive_names() -> None:
    names = NamingScheme(config_dir="/etc/snmp").derive("fw-1")
    assert names.namespace == "fw_1"
    assert names.host_link == "vh_fw-1"
    assert names.ns_link == "vn_fw-1"
    assert names.agent_config_path == os.path.join("/etc/snmp", "snmpd_fw-1.conf")


def test_long_names_are_truncated() -> None:
    names = NamingScheme().derive("workstation-10")
    assert names.host_link == "vh_workstation-"
    assert len(names.host_link) == 15
    assert names.namespace == "workstation_10"


def test_truncation_collision_is_rejected() -> None:
    scheme = NamingScheme()
    scheme.derive("workstation-10")
    with pytest.raises(NameCollision):
        scheme.derive("workstation-100")


def test_derive_is_idempotent() -> None:
    scheme = NamingScheme()
    assert scheme.derive("ws-1") == scheme.derive("ws-1")


def test_namespace_collision_is_rejected() -> None:
    scheme = NamingScheme()
    scheme.derive("ws-1")
    with pytest.raises(NameCollision):
        scheme.derive("ws_1")


def test_link_name_limit() -> None:
    scheme = NamingScheme(host_prefix="veth_", ns_prefix="veth-ns_")
    scheme.derive("ws-0")
    with pytest.raises(NameTooLong):
        scheme.derive("access-point-1")


@pytest.mark.parametrize("name", ["", "ws 1", "ws/1"])
def test_invalid_names(name: str) -> None:
    with pytest.raises(InvalidName):
        NamingScheme().derive(name)


def test_managed_links() -> None:
    scheme = NamingScheme()
    assert scheme.is_managed_link("vh_rtr")
    assert scheme.is_managed_link("vn_rtr")
    assert not scheme.is_managed_link("veth1234")
    assert not scheme.is_managed_link("eth0")


@pytest.mark.parametrize(("host", "ns"), [("vh_", "vh_"), ("v", "vn"), ("vn", "v"), ("", "vn_")])
def test_nested_link_prefixes_are_rejected(host: str, ns: str) -> None:
    with pytest.raises(ValueError):
        NamingScheme(host_prefix=host, ns_prefix=ns)
