"""
Steelcut CLI

Command-line interface for one-off host operations.
"""

import argparse
import asyncio
import dataclasses
import getpass
import json
import logging
import sys
from typing import Any, List, Optional

from steelcut import __version__
from steelcut.config import HostConfig, load_inventory
from steelcut.errors import ExitCode, SteelcutError
from steelcut.executor import CommandOptions
from steelcut.host import Host, create_host

PACKAGE_ACTIONS = ('list', 'add', 'remove', 'upgrade', 'upgrade-all', 'check-updates')
SERVICE_ACTIONS = ('enable', 'start', 'stop', 'restart', 'status')


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the steelcut CLI."""
    parser = create_parser()
    args = parser.parse_args(argv)

    if args.version:
        print(f"steelcut {__version__}")
        return ExitCode.SUCCESS

    if not args.command:
        parser.print_help()
        return ExitCode.SUCCESS

    configure_logging(args.verbose)

    try:
        return asyncio.run(dispatch(args))
    except SteelcutError as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return e.exit_code
    except KeyboardInterrupt:
        print("\nInterrupted", file=sys.stderr)
        return ExitCode.KEYBOARD_INTERRUPT


def configure_logging(verbosity: int) -> None:
    """Map -v counts to log levels; warnings are always shown."""
    if verbosity >= 2:
        level = logging.DEBUG
    elif verbosity == 1:
        level = logging.INFO
    else:
        level = logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog='steelcut',
        description='Run commands and manage packages on Unix hosts',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  steelcut run web1 'uptime'
  steelcut -i hosts.yml packages web1 check-updates --json
  steelcut copy web1 ./app.conf /etc/app.conf
  steelcut service web1 restart nginx

Secrets are read from STEELCUT_PASSWORD, STEELCUT_KEY_PASSPHRASE and
STEELCUT_SUDO_PASSWORD, or prompted for with --ask-pass/--ask-sudo-pass.
        """
    )

    parser.add_argument(
        '--version', '-V',
        action='store_true',
        help='Show version and exit'
    )

    parser.add_argument(
        '-v', '--verbose',
        action='count',
        default=0,
        help='Increase verbosity (-v, -vv)'
    )

    parser.add_argument(
        '-i', '--inventory',
        type=str,
        default=None,
        help='YAML file with per-host settings'
    )

    parser.add_argument('--user', '-u', type=str, default=None, help='Login user')
    parser.add_argument('--port', '-p', type=int, default=None, help='SSH port')
    parser.add_argument('--os', type=str, default=None, help='Skip OS detection (debian, redhat, darwin)')
    parser.add_argument('--timeout', type=float, default=None, help='Remote command timeout in seconds')
    parser.add_argument('--ask-pass', action='store_true', help='Prompt for the SSH password')
    parser.add_argument('--ask-sudo-pass', action='store_true', help='Prompt for the sudo password')
    parser.add_argument(
        '--insecure',
        action='store_true',
        help='Accept any host key (test environments only)'
    )
    parser.add_argument(
        '--json',
        action='store_true',
        dest='json_output',
        help='Output results as JSON'
    )

    subparsers = parser.add_subparsers(dest='command', help='Commands')

    run_parser = subparsers.add_parser('run', help='Run a shell command')
    run_parser.add_argument('host', help='Target host')
    run_parser.add_argument('cmd', help='Command line to run')
    run_parser.add_argument('--sudo', action='store_true', help='Run with sudo')

    ping_parser = subparsers.add_parser('ping', help='Check that a host is reachable')
    ping_parser.add_argument('host', help='Target host')

    pkg_parser = subparsers.add_parser('packages', help='Manage packages')
    pkg_parser.add_argument('host', help='Target host')
    pkg_parser.add_argument('action', choices=PACKAGE_ACTIONS)
    pkg_parser.add_argument('package', nargs='?', default=None)

    copy_parser = subparsers.add_parser('copy', help='Copy a local file to a host')
    copy_parser.add_argument('host', help='Target host')
    copy_parser.add_argument('local_path')
    copy_parser.add_argument('remote_path')

    svc_parser = subparsers.add_parser('service', help='Manage a service')
    svc_parser.add_argument('host', help='Target host')
    svc_parser.add_argument('action', choices=SERVICE_ACTIONS)
    svc_parser.add_argument('service')

    info_parser = subparsers.add_parser('info', help='Show CPU, memory and disk usage')
    info_parser.add_argument('host', help='Target host')

    return parser


def build_config(args: argparse.Namespace) -> HostConfig:
    """Combine inventory entry, command-line flags and environment."""
    config = HostConfig()
    if args.inventory:
        config = load_inventory(args.inventory).get(args.host, config)

    overrides = {
        'user': args.user,
        'port': args.port,
        'os': args.os,
        'command_timeout': args.timeout,
    }
    overrides = {k: v for k, v in overrides.items() if v is not None}
    if args.insecure:
        overrides['host_key_checking'] = False
    if args.ask_pass:
        overrides['password'] = getpass.getpass(f"SSH password for {args.host}: ")
    if args.ask_sudo_pass:
        overrides['sudo_password'] = getpass.getpass(f"sudo password for {args.host}: ")

    if overrides:
        config = config.merged(**overrides)
    return config.with_env()


async def dispatch(args: argparse.Namespace) -> int:
    """Build the host and run the selected command."""
    host = await create_host(args.host, build_config(args))

    if args.command == 'run':
        output = await host.run_command(args.cmd, CommandOptions(use_sudo=args.sudo))
        emit(args, {'host': host.hostname, 'output': output}, output.rstrip('\n'))

    elif args.command == 'ping':
        await host.is_reachable()
        emit(args, {'host': host.hostname, 'reachable': True}, f"{host.hostname} is reachable")

    elif args.command == 'packages':
        return await run_packages(args, host)

    elif args.command == 'copy':
        await host.copy_file(args.local_path, args.remote_path)
        emit(args, {'host': host.hostname, 'copied': args.remote_path},
             f"Copied {args.local_path} to {host.hostname}:{args.remote_path}")

    elif args.command == 'service':
        action = getattr(host, 'service_status' if args.action == 'status' else f"{args.action}_service")
        result = await action(args.service)
        text = result if args.action == 'status' else f"{args.action} {args.service}: ok"
        emit(args, {'host': host.hostname, 'service': args.service, 'action': args.action, 'result': result}, text)

    elif args.command == 'info':
        info = await host.info()
        emit(
            args,
            dataclasses.asdict(info),
            f"cpu: {info.cpu_usage:.1f}%  memory: {info.memory_usage:.1f}%  "
            f"disk: {info.disk_usage:.1f}%  processes: {len(info.running_processes)}",
        )

    return ExitCode.SUCCESS


async def run_packages(args: argparse.Namespace, host: Host) -> int:
    action = args.action

    if action in ('add', 'remove', 'upgrade'):
        if not args.package:
            print(f"ERROR: 'packages {action}' needs a package name", file=sys.stderr)
            return ExitCode.GENERIC_ERROR
        method = {
            'add': host.add_package,
            'remove': host.remove_package,
            'upgrade': host.upgrade_package,
        }[action]
        await method(args.package)
        emit(args, {'host': host.hostname, 'action': action, 'package': args.package},
             f"{action} {args.package}: ok")

    elif action == 'list':
        packages = await host.list_packages()
        emit(args, {'host': host.hostname, 'packages': packages}, "\n".join(packages))

    else:
        if action == 'check-updates':
            updates = await host.check_updates()
        else:
            updates = await host.upgrade_all_packages()
        emit(
            args,
            {'host': host.hostname, 'updates': [dataclasses.asdict(u) for u in updates]},
            "\n".join(f"{u.name} {u.version}" for u in updates) or "No updates",
        )

    return ExitCode.SUCCESS


def emit(args: argparse.Namespace, data: Any, text: str) -> None:
    """Print a result as JSON or text."""
    if args.json_output:
        print(json.dumps(data, indent=2))
    elif text:
        print(text)


if __name__ == '__main__':
    sys.exit(main())
