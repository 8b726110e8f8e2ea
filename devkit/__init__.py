"""Airborne devkit: prepares React Native bundles for OTA releases."""

__version__ = "0.15.5"
