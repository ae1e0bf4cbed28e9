# Copyright (c) 2024 Pushbook Contributors
# MIT License

"""Pushbook release metadata."""

from __future__ import annotations

__version__ = "0.1.0"
__author__ = "Pushbook Contributors"
