from devkit.auth.credentials import Credentials, load_token, require_access_token, save_token

__all__ = ["Credentials", "load_token", "require_access_token", "save_token"]
