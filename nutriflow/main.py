"""
NutriFlow - Main Application
Wires configuration, logging, the navigation controller and the preview
renderer, and drives them from a line-based console.
"""

import sys
import os
import logging
import signal
import shlex
from datetime import date
from typing import Callable, Dict, List, Optional, TextIO

from nutriflow.config import Config
from nutriflow.core.scheduler import ThreadingScheduler
from nutriflow.ui.chrome import ChromeRenderer
from nutriflow.ui.flows import AppFlows
from nutriflow.ui.navigation import NavigationManager, NavigationSnapshot
from nutriflow.ui.screens import Screen
from nutriflow.ui.selection import Event
from nutriflow.ui.transitions import TransitionTimings


DEFAULT_CONFIG = os.path.join(os.path.dirname(__file__), '../config/config.yaml')


class NutriFlowApp:
    """
    Main application
    """

    def __init__(self, config_path: str):
        """
        Initialize application

        Args:
            config_path: Path to config.yaml
        """
        # Load configuration
        self.config = Config(config_path)

        # Setup logging
        self._setup_logging()
        self.logger = logging.getLogger(__name__)
        self.logger.info("=" * 50)
        self.logger.info("NutriFlow starting...")
        self.logger.info("=" * 50)

        # Initialize components
        self.scheduler = ThreadingScheduler()
        self.navigation = NavigationManager(
            self.scheduler,
            initial_screen=Screen.parse(self.config.get('navigation.initial_screen', 'welcome')),
            active_date=self.config.get_date('calendar.initial_date'),
            timings=TransitionTimings.from_config(self.config),
        )
        self.flows = AppFlows(
            self.navigation,
            social_login_delay=float(self.config.get('auth.social_login_delay', 1.0)),
        )
        self.renderer = ChromeRenderer(
            width=self.config.get('display.width', 390),
            height=self.config.get('display.height', 844),
            constrained_width=self.config.get('display.constrained_width', 384),
        )

        # State
        self.running = False
        self.preview_path: Optional[str] = self.config.get('render.output')
        self._unsubscribe: Optional[Callable[[], None]] = None

    def _setup_logging(self):
        """Configure logging"""
        log_level = getattr(logging, self.config.get('logging.level', 'INFO'))
        log_format = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'

        handlers = []

        # Console handler
        if self.config.get('logging.console', True):
            handlers.append(logging.StreamHandler())

        # File handler
        log_file = self.config.get('logging.file')
        if log_file:
            log_dir = os.path.dirname(log_file)
            if log_dir:
                os.makedirs(log_dir, exist_ok=True)
            handlers.append(logging.FileHandler(log_file))

        logging.basicConfig(
            level=log_level,
            format=log_format,
            handlers=handlers
        )

    def start(self):
        """Start the application and render the initial screen"""
        self._unsubscribe = self.navigation.subscribe(self._on_navigation_change)
        self.running = True
        self._render(self.navigation.snapshot())
        self.logger.info("NutriFlow started successfully!")

    def stop(self):
        """Clean shutdown"""
        if not self.running:
            return
        self.logger.info("Shutting down...")
        self.running = False

        if self._unsubscribe:
            self._unsubscribe()
            self._unsubscribe = None

        self.navigation.shutdown()
        self.scheduler.cancel_all()
        self.logger.info("NutriFlow stopped")

    def _signal_handler(self, signum, frame):
        """Handle shutdown signals"""
        self.logger.info(f"Received signal {signum}")
        self.stop()
        sys.exit(0)

    def _on_navigation_change(self, snapshot: NavigationSnapshot):
        self.logger.debug(
            f"Screen {snapshot.screen.value} phase={snapshot.phase.value} "
            f"depth={snapshot.depth} tabs={snapshot.show_bottom_nav}"
        )
        self._render(snapshot)

    def _render(self, snapshot: NavigationSnapshot):
        """Write the preview frame if an output path is configured"""
        if not self.preview_path:
            return
        try:
            self.renderer.save(snapshot, self.preview_path)
        except Exception as e:
            self.logger.error(f"Render error: {e}", exc_info=True)

    # ------------------------------------------------------------------
    # Console

    def commands(self) -> Dict[str, Callable[[List[str]], None]]:
        callbacks = self.navigation.callbacks()
        return {
            'nav': lambda args: callbacks.on_navigate(args[0]),
            'push': lambda args: self.navigation.push_child(args[0]),
            'back': lambda args: callbacks.on_back(),
            'detail': lambda args: callbacks.on_event_select(Event(
                id=args[0], title=' '.join(args[1:]) or args[0], subtitle='', time='', type='meal'
            )),
            'expand': lambda args: callbacks.on_expand(self.navigation.current_screen),
            'daily': lambda args: callbacks.on_daily_view_open(date.fromisoformat(args[0])),
            'date': lambda args: callbacks.on_date_select(date.fromisoformat(args[0])),
            'modal': lambda args: callbacks.on_modal_state_change(args[0] == 'on'),
            'focus': lambda args: callbacks.on_ai_textbox_focus(args[0] == 'on'),
            'pref': lambda args: self.flows.open_preference(args[0]),
            'state': lambda args: self._print_state(),
        }

    def _print_state(self):
        snapshot = self.navigation.snapshot()
        print(f"screen={snapshot.screen.value} stack={[s.value for s in snapshot.stack]} "
              f"phase={snapshot.phase.value} date={snapshot.active_date.isoformat()} "
              f"selection={snapshot.selection.id if snapshot.selection else None} "
              f"modal={snapshot.modal_open} focus={snapshot.input_focused}")

    def run_console(self, stream: TextIO = sys.stdin):
        """
        Read commands line by line until EOF or 'quit'

        Example: "nav calendar", "daily 2020-06-04", "back", "state"
        """
        commands = self.commands()
        for line in stream:
            if not self.running:
                break
            try:
                parts = shlex.split(line)
            except ValueError as e:
                self.logger.warning(f"Could not parse '{line.strip()}': {e}")
                continue
            if not parts:
                continue
            name, args = parts[0], parts[1:]
            if name in ('quit', 'exit'):
                break

            handler = commands.get(name)
            if handler is None:
                self.logger.warning(f"Unknown command: {name}")
                continue
            try:
                handler(args)
            except (ValueError, IndexError, RuntimeError) as e:
                self.logger.warning(f"Command '{line.strip()}' failed: {e}")


def main():
    """Main entry point"""
    # Determine config path
    if len(sys.argv) > 1:
        config_path = sys.argv[1]
    else:
        config_path = os.environ.get('NUTRIFLOW_CONFIG', DEFAULT_CONFIG)

    # Ensure config exists
    if not os.path.exists(config_path):
        print(f"ERROR: Configuration file not found: {config_path}")
        print("Usage: nutriflow [config_path]")
        sys.exit(1)

    # Create and start application
    app = NutriFlowApp(config_path)
    signal.signal(signal.SIGTERM, app._signal_handler)
    try:
        app.start()
        app.run_console()
    except KeyboardInterrupt:
        app.logger.info("Received interrupt signal")
    except Exception as e:
        app.logger.error(f"Fatal error: {e}", exc_info=True)
    finally:
        app.stop()


if __name__ == '__main__':
    main()
