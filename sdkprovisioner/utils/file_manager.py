import os
import tarfile
import shutil
import contextlib

import requests

from ..cli_logger import logger
from ..errors import OperationCancelled, RemoteUnavailable
from .remote import get_once, with_retries

# -------------------- Helpers: safe paths & extraction --------------------

def _safe_join(base, *paths):
    """Safely join paths, preventing path traversal attacks."""
    base = os.path.abspath(base)
    final = os.path.abspath(os.path.join(base, *paths))
    if not final.startswith(base + os.sep) and final != base:
        raise IOError(f"Unsafe path detected: {final}")
    return final


def _safe_extract_tar(tar_ref: tarfile.TarFile, dest_dir: str, log_each=False):
    """Safely extract a tar file, preventing path traversal attacks."""
    for member in tar_ref.getmembers():
        # deny absolute or parent traversal
        member_path = _safe_join(dest_dir, member.name)
        if member.isdir():
            if log_each:
                logger.step_info(f"creating: {member.name}", indent=3)
            os.makedirs(member_path, exist_ok=True)
            continue
        # ensure parent exists
        os.makedirs(os.path.dirname(member_path), exist_ok=True)
        if member.issym():
            # link targets must stay inside the tree as well
            if os.path.isabs(member.linkname):
                raise IOError(f"Unsafe link target detected: {member.name} -> {member.linkname}")
            _safe_join(dest_dir, os.path.relpath(os.path.join(os.path.dirname(member_path), member.linkname), dest_dir))
            if os.path.lexists(member_path):
                os.remove(member_path)
            os.symlink(member.linkname, member_path)
            continue
        if log_each:
            logger.step_info(f"extracting: {member.name}", indent=2)
        src = tar_ref.extractfile(member)
        if src is None:
            # hard links to missing members, devices, fifos
            logger.debug(f"Skipping special archive member {member.name}")
            continue
        with src as src_file:
            with open(member_path, "wb") as out:
                shutil.copyfileobj(src_file, out)
            # Preserve file permissions
            if member.mode:
                os.chmod(member_path, member.mode)


def extract(filepath, dest_dir, log_each=False):
    """Extract the tar archive ``filepath`` into ``dest_dir``.

    Raises ``tarfile.TarError`` for corrupt archives and ``OSError`` for
    unsafe members, disk or permission failures.
    """
    os.makedirs(dest_dir, exist_ok=True)
    with tarfile.open(filepath, 'r:*') as tar:
        _safe_extract_tar(tar, dest_dir, log_each=log_each)
    logger.debug(f"Extracted {os.path.basename(filepath)} to {dest_dir}")
    return dest_dir

# -------------------- Download --------------------

def download_file(url, filepath, settings, chunk_size=1024 * 256):
    """Stream ``url`` into ``filepath`` through a temp file and an atomic rename.

    A connection dropped mid-stream restarts the download from the first
    byte, within the retry budget of ``settings``. Raises
    ``RemoteUnavailable`` (or ``OperationCancelled``) for network failures
    and ``OSError`` for local write failures. The temp file never survives a
    failure.
    """
    os.makedirs(os.path.dirname(filepath), exist_ok=True)
    filename = os.path.basename(filepath)
    temp_filepath = filepath + ".tmp"

    def attempt():
        response = get_once(url, settings, stream=True)
        try:
            total_size = int(response.headers.get('content-length', 0))
            with open(temp_filepath, 'wb') as f:
                chunks = logger.progress(
                    response.iter_content(chunk_size=chunk_size),
                    description=f"Downloading {filename}",
                    total=total_size,
                )
                for chunk in chunks:
                    if settings.cancel_event.is_set():
                        raise OperationCancelled(url)
                    if chunk:  # keep-alive chunks may be empty
                        f.write(chunk)
        except requests.exceptions.RequestException as e:
            raise RemoteUnavailable(f"Error downloading {url}: {e}", url=url) from e
        finally:
            response.close()

    try:
        with_retries(url, settings, attempt)
        # Atomic rename
        os.replace(temp_filepath, filepath)
    except BaseException:
        with contextlib.suppress(OSError):
            os.remove(temp_filepath)
        raise

    return filepath
