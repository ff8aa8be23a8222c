from ..cli_logger import logger
from .file_manager import download_file, extract
from .remote import get, get_text
from .versions import is_coarse, latest, matches_hint, version_key
