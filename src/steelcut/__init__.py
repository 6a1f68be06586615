# Copyright (c) 2024 Steelcut Contributors
# MIT License

"""
Steelcut: run commands and manage packages on Unix hosts.

One Host object hides whether a machine is local or reached over SSH, and
which package manager it uses.

Features:
    - Local subprocess or SSH (asyncssh) execution behind one call
    - sudo with the password passed on stdin only
    - apt, yum and Homebrew drivers with parsed update records
    - scp-protocol file copy, ping + SSH reachability checks
    - systemd/launchd services and basic resource reports

Example::

    host = await create_host("web1.example.com", user="deploy", sudo_password="...")
    updates = await host.check_updates()
"""

from __future__ import annotations

from steelcut.config import HostConfig, load_inventory
from steelcut.executor import CommandOptions, CompletionStatus, ExecutionOutcome
from steelcut.host import Host, create_host
from steelcut.packages.base import Update
from steelcut.release import __author__, __version__
from steelcut.resolver import OSKind

__all__ = [
    "__version__",
    "__author__",
    "CommandOptions",
    "CompletionStatus",
    "ExecutionOutcome",
    "Host",
    "HostConfig",
    "OSKind",
    "Update",
    "create_host",
    "load_inventory",
]
