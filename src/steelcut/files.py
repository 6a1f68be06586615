"""
Steelcut File Manager

Directory and permission operations run through the host's executor.
"""

import shlex
from typing import List

from steelcut.errors import CommandError
from steelcut.executor import CommandExecutor
from steelcut.resolver import OSKind


class FileManager:
    """Directory and permission operations on one host."""

    def __init__(self, executor: CommandExecutor, hostname: str, kind: OSKind):
        self.executor = executor
        self.hostname = hostname
        self.kind = kind

    async def create_directory(self, path: str) -> None:
        """Create a directory and any missing parents."""
        await self.executor.run_command(f"mkdir -p {shlex.quote(path)}")

    async def delete_directory(self, path: str) -> None:
        """Delete a directory and everything under it."""
        await self.executor.run_command(f"rm -rf {shlex.quote(path)}")

    async def list_directory(self, path: str) -> List[str]:
        """Names of the entries in a directory, hidden ones included."""
        output = await self.executor.run_command(f"ls -1A {shlex.quote(path)}")
        return [line for line in output.splitlines() if line]

    async def set_permissions(self, path: str, mode: int) -> None:
        await self.executor.run_command(f"chmod {mode:o} {shlex.quote(path)}")

    async def get_permissions(self, path: str) -> int:
        """Permission bits of a path, e.g. ``0o755``."""
        if self.kind is OSKind.DARWIN:
            command = f"stat -f %Lp {shlex.quote(path)}"
        else:
            command = f"stat -c %a {shlex.quote(path)}"

        output = await self.executor.run_command(command)
        try:
            return int(output.strip(), 8)
        except ValueError:
            raise CommandError(command, self.hostname, "produced output that could not be parsed", output)
