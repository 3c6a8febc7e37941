"""
nsgen - Namespace LAN Generator

Purpose: Package initialization for nsgen. Defines public API exports
         (Config, TopologyManager, main) and loads package metadata
         (__version__, __description__).

Package Structure:
    - main.py: CLI entry point and argument parsing
    - topology.py: cleanup / provisioning lifecycle of the whole LAN
    - provision.py: provisioning of a single device
    - addressing.py: IPv4 address plan
    - naming.py: namespace, veth and agent config names
    - identity.py: persistent MAC addresses
    - netns.py: iproute2 wrappers
    - agent.py: snmpd configuration and launch
    - traffic.py: SNMP / ping activity simulation
    - config.py: Configuration management
    - models.py: Data models and errors
    - colorlog.py: Colored log output formatter
    - templates/: Jinja2 template for the snmpd configuration

Entry Points:
    - nsgen: CLI command (calls main.main())
    - python -m nsgen
"""

import importlib.metadata as importlib_metadata

from .config import Config
from .topology import TopologyManager
from .main import main

_metadata = importlib_metadata.metadata("nsgen")
__version__ = _metadata["Version"]
__description__ = _metadata["Summary"]


__all__ = ["Config", "TopologyManager", "main"]
