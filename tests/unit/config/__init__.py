"""Unit tests for configuration module.

This package contains tests for P4Config and config loading, including
validation, defaults, environment variable overrides, and YAML file
precedence.
"""

from __future__ import annotations
