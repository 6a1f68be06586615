"""
Steelcut Packages Module

Package manager drivers, one per OS family.
"""

from steelcut.packages.base import (
    PackageManager,
    Update,
    get_package_manager,
    parse_updates,
    register_package_manager,
)

__all__ = [
    'PackageManager',
    'Update',
    'get_package_manager',
    'parse_updates',
    'register_package_manager',
]
