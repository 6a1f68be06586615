# Copyright (c) 2024 Steelcut Contributors
# MIT License

"""Steelcut release metadata."""

from __future__ import annotations

__version__ = "0.3.0"
__author__ = "Steelcut Contributors"

# Version info tuple for programmatic comparison
VERSION_INFO = (0, 3, 0)
