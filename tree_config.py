from pathlib import Path

from dynaconf import Dynaconf

settings = Dynaconf(
    envvar_prefix="SETTINGS_TREE",
    root_path=Path(__file__).parent,
    settings_files=[
        "settings.toml",  # Library defaults
        "user.toml",  # Local overrides (e.g., environment, log_level)
    ],
    merge_enabled=True,  # Merge nested tables instead of replacing
)

# `envvar_prefix` = export envvars with `export SETTINGS_TREE_ENVIRONMENT=test`.
# `root_path` = resolve settings files next to this module, not the cwd.
# Missing files are skipped, so callers use settings.get(key, fallback).
# settings.toml is only read from a source checkout (py-modules ship no data
# files); installed copies run on those fallbacks plus SETTINGS_TREE_* envvars.
