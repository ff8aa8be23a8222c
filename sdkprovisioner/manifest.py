import os

import toml

from .cli_logger import logger
from .config import MANIFEST_FILE_NAME
from .errors import ManifestError

OS_TYPE_KEY = "OsType"

# Platforms whose runtime and SDK/toolchain versions differ.
SDK_PLATFORMS = frozenset({"dotnet"})


def platform_key(platform, suffix):
    return f"{platform[:1].upper()}{platform[1:]}{suffix}"


def entries_for(resolved, os_flavor):
    """Standard manifest entries for a resolved platform version."""
    entries = [
        (platform_key(resolved.platform, "RuntimeVersion"), resolved.runtime_version or resolved.version),
    ]
    if resolved.platform in SDK_PLATFORMS:
        entries.append((platform_key(resolved.platform, "SdkVersion"), resolved.version))
    entries.append((OS_TYPE_KEY, os_flavor.value))
    return entries


def format_entry(key, value):
    value = str(value)
    if any(ch in value for ch in ('"', "\\", "\n", "\r")):
        raise ValueError(f"Manifest value for {key} cannot contain quotes, backslashes or newlines: {value!r}")
    return f'{key}="{value}"\n'


def read_manifest(manifest_path):
    """Parse a manifest of ``key="value"`` lines into a dict."""
    if not os.path.exists(manifest_path):
        return {}
    try:
        with open(manifest_path, "r") as f:
            return toml.load(f)
    except toml.TomlDecodeError as e:
        raise ManifestError(f"Error decoding manifest at {manifest_path}: {e}", manifest_path) from e
    except IOError as e:
        raise ManifestError(f"Error reading manifest at {manifest_path}: {e}", manifest_path) from e


class ManifestWriter:
    """Appends build metadata to the manifest, each key written at most once."""

    def manifest_path(self, output_dir):
        return os.path.join(output_dir, MANIFEST_FILE_NAME)

    def write(self, manifest_path, entries):
        existing = read_manifest(manifest_path)
        lines = []
        for key, value in entries:
            if key in existing:
                if str(existing[key]) != str(value):
                    logger.warning(
                        f"Manifest {manifest_path} already records {key}=\"{existing[key]}\"; "
                        f"not overwriting with \"{value}\""
                    )
                continue
            lines.append(format_entry(key, value))
            existing[key] = value

        if not lines:
            return manifest_path
        parent = os.path.dirname(manifest_path)
        try:
            if parent:
                os.makedirs(parent, exist_ok=True)
            with open(manifest_path, "a") as f:
                f.writelines(lines)
        except OSError as e:
            raise ManifestError(f"Error writing manifest at {manifest_path}: {e}", manifest_path) from e
        logger.debug(f"Wrote {len(lines)} entries to {manifest_path}")
        return manifest_path
