import argparse
import signal
import sys
from PySide6.QtWidgets import QApplication

from packages.shared.paths import ensure_app_dirs
from packages.core.logging_ import setup_logging
from .ui.window import LauncherWindow


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="streaming-launcher", description="Fullscreen streaming launcher")
    parser.add_argument("--dev", action="store_true", help="windowed mode with debug logging")
    # Qt consumes its own options from sys.argv
    args, _ = parser.parse_known_args(argv)
    return args


def main() -> None:
    args = parse_args()
    ensure_app_dirs()
    setup_logging(debug=args.dev)

    app = QApplication(sys.argv)
    win = LauncherWindow(dev_mode=args.dev)
    win.show_primary()

    # Handle Ctrl+C gracefully from a terminal
    def signal_handler(sig, frame):
        print("\nReceived interrupt signal (Ctrl+C), shutting down...")
        win.quit_launcher()

    if hasattr(signal, 'SIGINT'):
        signal.signal(signal.SIGINT, signal_handler)

    sys.exit(app.exec())


if __name__ == "__main__":
    main()
