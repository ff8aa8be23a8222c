import datetime
import sys
import time
import traceback
import os
import shutil
from colorama import Fore, Style, init

# Initialize Colorama
init(autoreset=True)

LOG_DIR = os.environ.get(
    "SDKPROVISIONER_LOG_DIR",
    os.path.join(os.path.expanduser("~"), ".sdkprovisioner", "logs"),
)
os.makedirs(LOG_DIR, exist_ok=True)


class Logger:
    def __init__(self, log_dir=LOG_DIR):
        self.log_file = os.path.join(
            log_dir,
            f"sdkprovisioner_{datetime.datetime.now().strftime('%Y%m%d_%H%M%S')}_{os.getpid()}.log"
        )

    def _get_timestamp(self):
        return datetime.datetime.now().strftime("%H:%M:%S")

    def _log(self, level, message, color, stream=None, prefix="", show_timestamp=True):
        # resolved per call so click's CliRunner can swap the streams
        if stream is None:
            stream = sys.stdout
        if show_timestamp:
            timestamp = self._get_timestamp()
            log_message = f"[{timestamp}] [{level}] {message}\n"
            print(f"{color}{Style.BRIGHT}[{timestamp}]{Style.RESET_ALL} {prefix}{message}{Style.RESET_ALL}", file=stream)
        else:
            log_message = f"[{level}] {message}\n"
            print(f"{color}{prefix}{message}{Style.RESET_ALL}", file=stream)

        with open(self.log_file, "a") as f:
            f.write(log_message)

    def info(self, message):
        self._log("INFO", message, Fore.CYAN)

    def step_info(self, message, indent=0):
        prefix = " " * indent
        self._log("", message, Fore.CYAN, prefix=prefix, show_timestamp=False)

    def success(self, message):
        self._log("SUCCESS", message, Fore.GREEN, prefix=f"{Style.BRIGHT}✓ {Style.RESET_ALL}{Fore.GREEN}")

    def warning(self, message):
        self._log("WARNING", message, Fore.YELLOW, stream=sys.stderr,
                  prefix=f"{Style.BRIGHT}⚠ {Style.RESET_ALL}{Fore.YELLOW}")

    def error(self, message):
        self._log("ERROR", message, Fore.RED, stream=sys.stderr,
                  prefix=f"{Style.BRIGHT}✖ {Style.RESET_ALL}{Fore.RED}")

    def debug(self, message):
        self._log("DEBUG", message, Fore.WHITE + Style.DIM)

    # -------- Progress bar method --------
    def progress(self, iterable, description="Downloading", total=None, bar_length=30, redraw_interval=0.1):
        """Yield byte chunks from ``iterable`` while redrawing a download bar in place.

        The bar is redrawn at most every ``redraw_interval`` seconds and once
        more when ``total`` bytes have arrived. Without a known ``total`` (no
        content-length header) the chunks are passed through untouched.
        """
        if not total:
            for item in iterable:
                yield item
            return

        start_time = time.time()
        last_draw = None
        current_val = 0

        def format_size(bytes_val):
            if bytes_val >= 1024 * 1024 * 1024:
                return f"{bytes_val / (1024*1024*1024):.1f} GB"
            if bytes_val >= 1024 * 1024:
                return f"{bytes_val / (1024*1024):.1f} MB"
            if bytes_val >= 1024:
                return f"{bytes_val / 1024:.1f} KB"
            return f"{int(bytes_val)} B"

        def render(elapsed):
            percent = min(1.0, current_val / total)
            filled_len = int(bar_length * percent)

            # Bar
            bar = Fore.GREEN + "━" * filled_len
            if filled_len < bar_length:
                bar += Fore.RED + "╺" + Style.RESET_ALL + "━" * (bar_length - filled_len - 1)
            else:
                bar += Style.RESET_ALL

            speed = current_val / elapsed if elapsed > 0 else 0
            remaining = max(0, total - current_val)
            eta = remaining / speed if speed > 0 else 0

            return (
                f"{percent*100:3.0f}% | "
                f"{bar} | "
                f"{format_size(current_val)}/{format_size(total)} • "
                f"{speed/(1024*1024):.1f} MB/s • "
                f"{time.strftime('%M:%S', time.gmtime(elapsed))}/"
                f"{time.strftime('%M:%S', time.gmtime(elapsed+eta))}"
            )

        print(f"{description}...")
        sys.stdout.flush()

        for item in iterable:
            yield item
            current_val += len(item)

            now = time.time()
            if last_draw is not None and now - last_draw < redraw_interval and current_val < total:
                continue
            last_draw = now

            line = render(now - start_time)
            terminal_width = shutil.get_terminal_size().columns
            if terminal_width < len(line):
                # for small display
                line = line[:terminal_width]
            # Overwrite same line
            sys.stdout.write(f"\r{line}")
            sys.stdout.flush()

        if last_draw is not None:
            sys.stdout.write("\n")
            sys.stdout.flush()

    # -------- Exception logging --------
    def exception(self, exc_type, exc_value, exc_traceback):
        self.error(f"An unhandled exception occurred: {exc_value}")
        formatted_lines = traceback.format_exception(exc_type, exc_value, exc_traceback)
        for line in formatted_lines:
            for sub_line in line.splitlines():
                if sub_line.strip():
                    self._log("TRACEBACK", f">> {sub_line}", Fore.RED, stream=sys.stderr)


# ---------------- Helper ----------------
logger = Logger()

def get_latest_log_file():
    """Return the path to the latest log file."""
    log_files = [os.path.join(LOG_DIR, f) for f in os.listdir(LOG_DIR) if f.endswith(".log")]
    if not log_files:
        return None
    return max(log_files, key=os.path.getctime)
