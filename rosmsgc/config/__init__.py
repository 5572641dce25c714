"""Packaged configuration files for rosmsgc."""
