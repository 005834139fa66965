"""Configuration management for rastermap.

This module handles loading and managing configuration settings using
Dynaconf. Settings are loaded from multiple locations in order of
increasing priority:

1. Global settings (/etc/rastermap/)
2. User settings (~/.config/rastermap/)
3. Current directory settings (./)
4. Environment variable specified file (RASTERMAP_SETTINGS_FILE_FOR_DYNACONF)

Every key has a default in the code that reads it, so an empty
configuration is valid. Keys read by rastermap:

- ``verbose``: progress output from :func:`rastermap.utils.vprint`.
- ``zoom_min``, ``zoom_max``: accepted Region zoom range (3, 21).
- ``request_timeout``, ``max_workers``, ``max_tiles``, ``user_agent``:
  tile downloads (30 s, 8 threads, 256 tiles).
- ``stadia_api_key``, ``google_api_key``, ``google_size``: provider
  credentials and the Google image size (640x640).
- ``grid_size``, ``bins``, ``bandwidth_policy``, ``min_vertices``:
  density overlays (100, 5, ``"shared"``, 2).
- ``cmap``, ``opacity``, ``dpi``: compositing (viridis, 0.5, 100).

Attributes
----------
USER_DIR : pathlib.Path
    Path to user configuration directory.
GLOB_DIR : pathlib.Path
    Path to global configuration directory.
CURR_DIR : pathlib.Path
    Path to current working directory.
settings : Dynaconf
    The Dynaconf settings object with loaded configuration.
"""
import os
import pathlib

from dynaconf import Dynaconf

USER_DIR = pathlib.Path("~/.config/rastermap").expanduser()
GLOB_DIR = pathlib.Path("/etc/rastermap/")
CURR_DIR = pathlib.Path("./").absolute()
settings_files = [
    GLOB_DIR / "settings.toml",
    GLOB_DIR / ".secrets.toml",
    USER_DIR / "settings.toml",
    USER_DIR / ".secrets.toml",
    CURR_DIR / "settings.toml",
    CURR_DIR / ".secrets.toml"
    ]
extra_file = os.getenv("RASTERMAP_SETTINGS_FILE_FOR_DYNACONF")
if extra_file:
    settings_files.append(pathlib.Path(extra_file).absolute())

settings = Dynaconf(
    merge_enabled = True,
    envvar_prefix="RASTERMAP",
    settings_files=settings_files,
    environments=True,
    load_dotenv=True,
)


def change_env(new_env):
    """Change the active Dynaconf environment.

    Parameters
    ----------
    new_env : str
        The environment name to switch to (e.g., 'development', 'production').
    """
    settings.setenv(new_env)
    settings.reload()
