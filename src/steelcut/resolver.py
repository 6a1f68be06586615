"""
Steelcut Host Resolver

Works out, once per host, which operating system family it runs and which
package and service manager drivers drive it.
"""

import enum
import logging
from typing import TYPE_CHECKING, Dict, Optional, Tuple

from steelcut.errors import ConstructionError

if TYPE_CHECKING:
    from steelcut.executor import CommandExecutor
    from steelcut.packages.base import PackageManager
    from steelcut.services import ServiceManager

logger = logging.getLogger(__name__)

OS_PROBE_COMMAND = "uname"
OS_RELEASE_COMMAND = "cat /etc/os-release"


class OSKind(str, enum.Enum):
    """Operating system families steelcut can drive."""

    DEBIAN = "debian"
    REDHAT = "redhat"
    DARWIN = "darwin"


DEBIAN_IDS = frozenset({"debian", "ubuntu", "linuxmint", "pop", "raspbian", "elementary", "kali"})
REDHAT_IDS = frozenset({"rhel", "redhat", "centos", "fedora", "rocky", "almalinux", "ol", "amzn"})

# Accepted spellings of an OS override
_OS_ALIASES: Dict[str, OSKind] = {
    "debian": OSKind.DEBIAN,
    "ubuntu": OSKind.DEBIAN,
    "redhat": OSKind.REDHAT,
    "rhel": OSKind.REDHAT,
    "centos": OSKind.REDHAT,
    "fedora": OSKind.REDHAT,
    "darwin": OSKind.DARWIN,
    "macos": OSKind.DARWIN,
}


def parse_os_release(content: str) -> Dict[str, str]:
    """Parse /etc/os-release content into a dict."""
    fields = {}
    for line in content.splitlines():
        line = line.strip()
        if not line or line.startswith("#") or "=" not in line:
            continue
        key, _, value = line.partition("=")
        fields[key.strip()] = value.strip().strip('"\'')
    return fields


def classify_os_release(hostname: str, content: str) -> OSKind:
    """
    Map os-release content to an OS family.

    ``ID`` is checked first, then each token of ``ID_LIKE``.
    """
    fields = parse_os_release(content)
    candidates = [fields.get("ID", "").lower()]
    candidates.extend(fields.get("ID_LIKE", "").lower().split())

    for candidate in candidates:
        if candidate in DEBIAN_IDS:
            logger.info("Detected Debian/Ubuntu on host '%s'", hostname)
            return OSKind.DEBIAN
        if candidate in REDHAT_IDS:
            logger.info("Detected Red Hat/CentOS/Fedora on host '%s'", hostname)
            return OSKind.REDHAT

    raise ConstructionError(
        hostname,
        f"unsupported Linux distribution: {fields.get('ID') or 'unknown'}",
        probe_output=content,
    )


def classify_kernel(hostname: str, kernel: str) -> Optional[OSKind]:
    """
    Classify ``uname`` output.

    Returns None for Linux, whose family needs a second probe.
    """
    if kernel == "Darwin":
        return OSKind.DARWIN
    if kernel == "Linux":
        return None
    raise ConstructionError(hostname, f"unsupported operating system: {kernel or '<empty>'}", probe_output=kernel)


async def resolve_os_kind(
    executor: "CommandExecutor",
    hostname: str,
    override: Optional[str] = None,
) -> OSKind:
    """
    Determine the OS family of a host.

    Args:
        executor: Executor bound to the host
        hostname: Host name, for messages
        override: OS given by the caller; skips probing where possible

    Raises:
        ConstructionError: If the OS is not Debian-family, RedHat-family or Darwin
    """
    if override:
        alias = _OS_ALIASES.get(override.strip().lower())
        if alias is not None:
            return alias
        kernel = override.strip()
    else:
        kernel = (await executor.run_command(OS_PROBE_COMMAND)).strip()

    kind = classify_kernel(hostname, kernel)
    if kind is not None:
        logger.info("Detected macOS on host '%s'", hostname)
        return kind

    os_release = await executor.run_command(OS_RELEASE_COMMAND)
    return classify_os_release(hostname, os_release)


def select_drivers(kind: OSKind, executor: "CommandExecutor") -> Tuple["PackageManager", "ServiceManager"]:
    """Create the package and service manager drivers for an OS family."""
    from steelcut.packages.base import get_package_manager
    from steelcut.services import get_service_manager

    package_manager = get_package_manager(kind)(executor)
    service_manager = get_service_manager(kind)(executor)
    logger.debug(
        "Selected %s package manager and %s service manager",
        package_manager.name, service_manager.name,
    )
    return package_manager, service_manager
