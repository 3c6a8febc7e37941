"""
nsgen SNMP Agent - Per-Device snmpd Configuration and Launch

PURPOSE:
    Writes one snmpd configuration per device, bound to the device address,
    and launches snmpd inside the device namespace. The launch is fire and
    forget: the process is detached and never supervised.

WHO READS ME:
    - provision.py: configure() and start() as the last provisioning step

WHO I READ:
    - models.py: CommandError, NsgenError

DEPENDENCIES:
    - jinja2: renders templates/snmpd.conf.jinja2 (PackageLoader)
    - subprocess: detached snmpd launch

GENERATED CONFIG:
    <contents of the base snmpd.conf, if present>
    agentAddress udp:<ip>:<port>
    rocommunity <community>
"""

import logging
import os
import subprocess
from datetime import datetime, timezone

from jinja2 import Environment, PackageLoader, Template, TemplateNotFound, select_autoescape

from nsgen.models import CommandError, NsgenError

_LOGGER = logging.getLogger(__name__)

TEMPLATE_NAME = "snmpd.conf.jinja2"


def load_template() -> Template:
    """load the snmpd configuration template"""
    env = Environment(loader=PackageLoader("nsgen"), autoescape=select_autoescape())
    try:
        return env.get_template(TEMPLATE_NAME)
    except TemplateNotFound as exc:
        raise NsgenError(f"template does not exist: {TEMPLATE_NAME}") from exc


class SnmpAgent:
    """configures and starts snmpd instances"""

    def __init__(self, base_config: str | None = "/etc/snmp/snmpd.conf", port: int = 161):
        self.base_config = base_config
        self.port = port
        self.template = load_template()

    def _base(self) -> str:
        if not self.base_config:
            return ""
        try:
            with open(self.base_config, encoding="utf-8") as handle:
                return handle.read().rstrip("\n")
        except FileNotFoundError:
            _LOGGER.debug("no base config at %s", self.base_config)
            return ""

    def configure(self, path: str, address: str, community: str):
        """write the agent configuration for a device to path"""
        config = self.template.render(
            device=os.path.basename(path),
            date=datetime.now(timezone.utc),
            base=self._base(),
            address=address,
            port=self.port,
            community=community,
        )
        with open(path, "w", encoding="utf-8") as handle:
            handle.write(config + "\n")
        _LOGGER.info("agent config written to %s", path)

    def start(self, namespace: str, config_path: str):
        """launch snmpd in the namespace and return without waiting"""
        argv = ["ip", "netns", "exec", namespace, "snmpd", "-Lo", "-C", "-c", config_path]
        try:
            proc = subprocess.Popen(
                argv,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.DEVNULL,
                stderr=subprocess.DEVNULL,
                start_new_session=True,
            )
        except OSError as exc:
            raise CommandError(argv, None, str(exc)) from exc
        _LOGGER.info("agent started in %s (pid %d)", namespace, proc.pid)
