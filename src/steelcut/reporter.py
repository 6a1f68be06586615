"""
Steelcut System Reporter

CPU, memory, disk and process information gathered with standard Unix
tools through the host's executor.
"""

import re
from dataclasses import dataclass, field
from typing import List

from steelcut.errors import CommandError
from steelcut.executor import CommandExecutor
from steelcut.resolver import OSKind

# Force the C locale so numbers use '.' as decimal separator
_LINUX_CPU = "LC_ALL=C top -bn1 | grep 'Cpu(s)'"
_DARWIN_CPU = "LC_ALL=C top -l 1 -n 0 | grep 'CPU usage'"
_LINUX_MEMORY = "LC_ALL=C free -b"
_DARWIN_MEMORY = "LC_ALL=C top -l 1 -n 0 | grep PhysMem"
_DISK = "LC_ALL=C df -P /"
_PROCESSES = "ps -A -o comm="

_IDLE_RE = re.compile(r"([\d.]+)[\s%]*id(?:le)?\b")
_PHYSMEM_RE = re.compile(r"([\d.]+)([KMGT]?)\s+(used|unused)")
_UNITS = {"": 1, "K": 1024, "M": 1024 ** 2, "G": 1024 ** 3, "T": 1024 ** 4}


@dataclass
class HostInfo:
    """Snapshot of a host's resource usage."""

    cpu_usage: float
    memory_usage: float
    disk_usage: float
    running_processes: List[str] = field(default_factory=list)


class SystemReporter:
    """Resource usage reports for one host."""

    def __init__(self, executor: CommandExecutor, hostname: str, kind: OSKind):
        self.executor = executor
        self.hostname = hostname
        self.kind = kind

    @property
    def _is_darwin(self) -> bool:
        return self.kind is OSKind.DARWIN

    def _unexpected(self, command: str, output: str) -> CommandError:
        return CommandError(command, self.hostname, "produced output that could not be parsed", output)

    async def cpu_usage(self) -> float:
        """Percentage of CPU time not spent idle."""
        command = _DARWIN_CPU if self._is_darwin else _LINUX_CPU
        output = await self.executor.run_command(command)
        match = _IDLE_RE.search(output)
        if not match:
            raise self._unexpected(command, output)
        return round(100.0 - float(match.group(1)), 2)

    async def memory_usage(self) -> float:
        """Percentage of physical memory in use."""
        if self._is_darwin:
            return await self._darwin_memory_usage()

        output = await self.executor.run_command(_LINUX_MEMORY)
        for line in output.splitlines():
            parts = line.split()
            if parts and parts[0] == "Mem:" and len(parts) >= 3:
                total, used = int(parts[1]), int(parts[2])
                if total > 0:
                    return round(used * 100.0 / total, 2)
        raise self._unexpected(_LINUX_MEMORY, output)

    async def _darwin_memory_usage(self) -> float:
        output = await self.executor.run_command(_DARWIN_MEMORY)
        amounts = {}
        for number, unit, label in _PHYSMEM_RE.findall(output):
            amounts[label] = float(number) * _UNITS[unit]

        used, unused = amounts.get("used"), amounts.get("unused")
        if used is None or unused is None or used + unused == 0:
            raise self._unexpected(_DARWIN_MEMORY, output)
        return round(used * 100.0 / (used + unused), 2)

    async def disk_usage(self) -> float:
        """Percentage of the root filesystem in use."""
        output = await self.executor.run_command(_DISK)
        lines = output.strip().splitlines()
        if len(lines) >= 2:
            parts = lines[-1].split()
            if len(parts) >= 5 and parts[4].endswith("%"):
                try:
                    return float(parts[4].rstrip("%"))
                except ValueError:
                    pass
        raise self._unexpected(_DISK, output)

    async def running_processes(self) -> List[str]:
        """Command names of all running processes."""
        output = await self.executor.run_command(_PROCESSES)
        return [line.strip() for line in output.splitlines() if line.strip()]

    async def info(self) -> HostInfo:
        return HostInfo(
            cpu_usage=await self.cpu_usage(),
            memory_usage=await self.memory_usage(),
            disk_usage=await self.disk_usage(),
            running_processes=await self.running_processes(),
        )
