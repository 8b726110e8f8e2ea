"""Airborne API client.

Public API:
    AirborneClient(base_url, token): create_file / upload_file / create_package / post_login
    run_command(name, params_ref, options): generic core-command dispatcher
"""

from devkit.client.airborne import AirborneClient
from devkit.client.commands import COMMANDS, CommandSpec, run_command

__all__ = ["AirborneClient", "COMMANDS", "CommandSpec", "run_command"]
