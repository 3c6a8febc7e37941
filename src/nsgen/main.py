"""
nsgen Main Entry Point - CLI Argument Parsing and Application Bootstrap

PURPOSE:
    Entry point for the nsgen CLI tool. Handles argument parsing and
    configuration loading, wires the iproute2/snmpd collaborators into a
    TopologyManager and reports the outcome.

WHO READS ME:
    - Users: via CLI command `nsgen` or `python -m nsgen`

WHO I READ:
    - config.py: Configuration loading and defaults
    - models.py: NsgenError exception handling
    - topology.py, provision.py, netns.py, agent.py, identity.py, naming.py
    - traffic.py: optional activity simulation
    - colorlog.py: Custom log formatting

DEPENDENCIES:
    - argparse: CLI argument parsing
    - logging: Application logging
    - os, signal, sys: System operations

FLOW:
    1. Parse CLI arguments (create_argparser)
    2. Load configuration from config.toml (or defaults), apply overrides
    3. --plan: print addresses and names, touch nothing
    4. Check for root and the required tools
    5. --cleanup: remove leftovers and exit, otherwise run the manager
    6. Print the summary, optionally simulate traffic

EXIT CODE:
    0 unless a fatal error occurred (configuration, identity store,
    cleanup); devices which failed to provision are reported, not fatal.
"""

import argparse
import logging
import os
import signal
import sys

import nsgen
from nsgen.agent import SnmpAgent
from nsgen.colorlog import CustomFormatter, stream_is_tty
from nsgen.config import Config
from nsgen.identity import IdentityStore
from nsgen.models import ConfigError, NsgenError, TopologyInventory
from nsgen.naming import NamingScheme
from nsgen.netns import CommandRunner, IpLinks, IpNamespaces, missing_tools
from nsgen.provision import DeviceProvisioner
from nsgen.topology import TopologyManager, plan_topology
from nsgen.traffic import TrafficSimulator

_LOGGER = logging.getLogger(__name__)

REQUIRED_TOOLS = ("ip", "snmpd")
SIMULATION_TOOLS = ("snmpget", "ping")


def valid_pool_size(value):
    ivalue = int(value)
    if ivalue < 0 or ivalue > 253:
        raise argparse.ArgumentTypeError(
            f"invalid value {value}. Valid values are from 0-253."
        )
    return ivalue


def create_argparser(parser_class=argparse.ArgumentParser):
    """create the argparser for nsgen"""
    parser = parser_class(prog=nsgen.__name__, description=nsgen.__description__)
    config_settings = parser.add_argument_group("configuration")

    config_settings.add_argument(
        "-c",
        "--config",
        dest="configfile",
        help="Use the configuration from this file, defaults to %(default)s",
        default="config.toml",
    )
    config_settings.add_argument(
        "-w",
        "--write",
        dest="writeconfig",
        action="store_true",
        help="Write the default configuration to a file and exit",
        default=False,
    )
    config_settings.add_argument(
        "-v", "--version", action="version", version=f"%(prog)s {nsgen.__version__}"
    )
    config_settings.add_argument(
        "-l",
        "--loglevel",
        type=str,
        default=os.environ.get("LOG_LEVEL", "WARN"),
        help="DEBUG, INFO, WARN, ERROR, CRITICAL, defaults to %(default)s",
    )
    config_settings.add_argument(
        "-p",
        "--progress",
        action="store_true",
        help="show a progress bar",
    )

    parser.add_argument(
        "--workstations",
        type=valid_pool_size,
        default=None,
        help="Number of workstations, overrides the configuration",
    )
    parser.add_argument(
        "--access-points",
        dest="access_points",
        type=valid_pool_size,
        default=None,
        help="Number of Wi-Fi access points, overrides the configuration",
    )
    parser.add_argument(
        "--wifi-clients",
        dest="wifi_clients",
        type=valid_pool_size,
        default=None,
        help="Number of Wi-Fi clients, overrides the configuration",
    )
    parser.add_argument(
        "--start-offset",
        dest="start_offset",
        type=int,
        default=None,
        help="Host number of the first dynamic device, overrides the configuration",
    )
    parser.add_argument(
        "--plan",
        action="store_true",
        default=False,
        help="Print the address plan and derived names, do not touch the system",
    )
    parser.add_argument(
        "--cleanup",
        action="store_true",
        default=False,
        help="Only remove namespaces and veth pairs of previous runs",
    )
    parser.add_argument(
        "--simulate",
        action="store_true",
        default=False,
        help="Poll the devices with SNMP and ping after provisioning (Ctrl-C stops)",
    )
    parser.add_argument(
        "--rounds",
        type=int,
        default=None,
        help="Stop the simulation after this many rounds (default: run until stopped)",
    )
    return parser


def get_log_level(level_name: str) -> tuple[int, bool]:
    log_levels = {
        "CRITICAL": logging.CRITICAL,
        "ERROR": logging.ERROR,
        "WARN": logging.WARNING,
        "WARNING": logging.WARNING,
        "INFO": logging.INFO,
        "DEBUG": logging.DEBUG,
        "NOTSET": logging.NOTSET,
    }
    level_name = level_name.upper()
    if level_name in log_levels:
        return log_levels[level_name], False
    return logging.WARNING, True


def setup_logging(loglevel: str):
    """sets up the logging, takes the given loglevel and uses the custom,
    colorful log formatter when writing to a terminal
    """
    logging.basicConfig(level=logging.WARN)
    level, unknown_loglevel = get_log_level(loglevel)
    logging.root.setLevel(level)
    for handler in logging.root.handlers:
        handler.setFormatter(CustomFormatter(use_color=stream_is_tty(handler)))
    if unknown_loglevel:
        _LOGGER.warning("Unknown log level: %s", loglevel.upper())


def apply_overrides(cfg: Config, args: argparse.Namespace) -> Config:
    for name in ("workstations", "access_points", "wifi_clients", "start_offset"):
        value = getattr(args, name, None)
        if value is not None:
            setattr(cfg, name, value)
    return cfg


def build_naming(cfg: Config) -> NamingScheme:
    return NamingScheme(
        config_dir=cfg.snmp_config_dir,
        host_prefix=cfg.link_host_prefix,
        ns_prefix=cfg.link_ns_prefix,
        chars=cfg.link_name_chars,
    )


def build_manager(cfg: Config, runner: CommandRunner | None = None) -> TopologyManager:
    """wire the iproute2 and snmpd collaborators into a manager"""
    runner = runner or CommandRunner()
    try:
        naming = build_naming(cfg)
        identities = IdentityStore(cfg.mac_file, prefix=cfg.mac_prefix)
    except ValueError as exc:
        raise ConfigError(str(exc)) from exc
    provisioner = DeviceProvisioner(
        namespaces=IpNamespaces(runner),
        links=IpLinks(runner),
        agent=SnmpAgent(cfg.snmp_base_config, port=cfg.snmp_port),
        naming=naming,
        identities=identities,
        community=cfg.snmp_community,
    )
    return TopologyManager(cfg, provisioner)


def print_plan(cfg: Config, out=None):
    """print what would be provisioned, without MACs"""
    out = out or sys.stdout
    try:
        naming = build_naming(cfg)
    except ValueError as exc:
        raise ConfigError(str(exc)) from exc
    for planned in plan_topology(cfg):
        names = naming.derive(planned.name)
        print(
            f"{planned.name:<8} {str(planned.kind):<18} {str(planned.address):<18} "
            f"{names.namespace:<10} {names.host_link:<16} {names.ns_link}",
            file=out,
        )


def print_summary(inventory: TopologyInventory, out=None):
    """list provisioned and failed devices"""
    out = out or sys.stdout
    print(f"Provisioned {inventory.device_count} devices:", file=out)
    for provisioned in inventory:
        dev = provisioned.device
        print(
            f"  {dev.name:<8} {str(dev.kind):<18} {str(dev.ip):<16} {dev.mac} "
            f"netns {dev.names.namespace}",
            file=out,
        )
    if inventory.failures:
        print(f"Failed {len(inventory.failures)} devices:", file=out)
        for failure in inventory.failures:
            print(f"  {failure.name:<8} {failure.step}: {failure.reason}", file=out)


def install_stop_handlers(callback):
    def _handler(signum, _frame):
        _LOGGER.warning("Received %s", signal.Signals(signum).name)
        callback()

    signal.signal(signal.SIGINT, _handler)
    signal.signal(signal.SIGTERM, _handler)


def main():
    """main function, returns 0 on success, 1 otherwise"""
    parser = create_argparser()
    args = parser.parse_args()
    setup_logging(args.loglevel)

    cfg = Config.load(args.configfile)
    if args.writeconfig:
        cfg.save(args.configfile)
        return 0
    apply_overrides(cfg, args)

    if args.rounds is not None and args.rounds < 1:
        parser.error("--rounds must be at least 1")
    if args.rounds is not None and not args.simulate:
        _LOGGER.warning("--rounds ignored without --simulate")

    try:
        if args.plan:
            print_plan(cfg)
            return 0

        if os.geteuid() != 0:
            parser.error("creating namespaces needs root, try: sudo nsgen ...")
        tools = REQUIRED_TOOLS + (SIMULATION_TOOLS if args.simulate else ())
        missing = missing_tools(tools)
        if missing:
            parser.error(f"missing required tools: {', '.join(missing)}")

        runner = CommandRunner()
        manager = build_manager(cfg, runner)
        install_stop_handlers(manager.request_stop)

        if args.cleanup:
            try:
                plan = manager.plan()
            except ConfigError as exc:
                _LOGGER.warning("ignoring current plan for cleanup: %s", exc)
                plan = None
            manager.cleanup(plan)
            return 0

        inventory = manager.run(progress=args.progress)
        print_summary(inventory)

        if args.simulate and not manager.stop_requested:
            simulator = TrafficSimulator(
                inventory,
                runner,
                community=cfg.snmp_community,
                interval=cfg.poll_interval,
                jitter=cfg.poll_jitter,
            )
            install_stop_handlers(simulator.stop)
            simulator.run(rounds=args.rounds)
        retval = 0
    except NsgenError as exc:
        _LOGGER.error(exc)
        retval = 1
    return retval


if __name__ == "__main__":
    sys.exit(main())
