"""
Pushbook Playbook Runner

High-level runner that coordinates inventory loading, playbook parsing,
include resolution, scheduling and output.
"""

import asyncio
import json
import logging
from pathlib import Path
from typing import Collection, Optional, Union

from pushbook.config import RunConfig, get_config
from pushbook.connections.base import open_session
from pushbook.engine.context import Context
from pushbook.engine.display import Display
from pushbook.engine.errors import ExitCode, HostFailedError, LoadError, PushbookError
from pushbook.engine.executor import SessionFactory, TaskExecutor
from pushbook.engine.inventory import HostInventory
from pushbook.engine.playbook import PlaybookParser
from pushbook.engine.resolver import PlaybookResolver
from pushbook.engine.results import PlaybookResult
from pushbook.engine.scheduler import Scheduler

logger = logging.getLogger(__name__)


class PlaybookRunner:
    """
    High-level playbook runner.

    Coordinates:
    - Inventory loading (static file or discovery script)
    - Playbook parsing
    - Include resolution and per-host scheduling
    - Output formatting
    """

    def __init__(
        self,
        playbook_path: Union[str, Path],
        host_config: Optional[Union[str, Path]] = None,
        host_script: Optional[Union[str, Path]] = None,
        tags: Optional[Collection[str]] = None,
        config: Optional[RunConfig] = None,
        display: Optional[Display] = None,
        session_factory: SessionFactory = open_session,
    ):
        self.playbook_path = Path(playbook_path)
        self.host_config = host_config
        self.host_script = host_script
        self.tags = list(tags) if tags is not None else None
        self.config = config or get_config()
        self.display = display or Display(json_output=self.config.json_output)
        self.session_factory = session_factory

        self.inventory: Optional[HostInventory] = None
        self.result: Optional[PlaybookResult] = None

    def run(self) -> int:
        """
        Run the playbook synchronously.

        Returns:
            Exit code (0=success, 2=host failures, 3=load error, 1=other error)
        """
        try:
            result = asyncio.run(self.run_async())
            return result.exit_code
        except LoadError as e:
            self._report_error("load_error", f"{e}", e.exit_code)
            return e.exit_code
        except HostFailedError as e:
            self._report_error("host_failed", f"Halted: {e}", e.exit_code)
            return e.exit_code
        except PushbookError as e:
            self._report_error("error", f"Error: {e}", e.exit_code)
            return e.exit_code
        except KeyboardInterrupt:
            self._report_error("interrupted", "\nInterrupted", ExitCode.KEYBOARD_INTERRUPT)
            return ExitCode.KEYBOARD_INTERRUPT

    async def run_async(self) -> PlaybookResult:
        """
        Load everything, then run the playbook and its includes.

        Inventory and playbook errors surface as LoadError before any
        host is contacted.
        """
        self.inventory = self.load_inventory()
        playbook = PlaybookParser(self.playbook_path).parse()
        logger.info("loaded %r with %d host(s) in inventory", playbook, len(self.inventory.hosts))

        executor = TaskExecutor(
            config=self.config,
            display=self.display,
            session_factory=self.session_factory,
        )
        resolver = PlaybookResolver(Scheduler(executor, self.config))

        self.result = PlaybookResult(playbook_path=str(self.playbook_path))
        try:
            await resolver.resolve_and_run(
                playbook,
                self.inventory,
                self.tags,
                Context(),
                self.result,
            )
        finally:
            self._print_summary(self.result)

        return self.result

    def load_inventory(self) -> HostInventory:
        """Load the inventory from the static file or the discovery script."""
        if self.host_config is not None and self.host_script is not None:
            raise LoadError("give either a host config file or a host script, not both")
        if self.host_config is not None:
            return HostInventory.from_file(self.host_config)
        if self.host_script is not None:
            return HostInventory.from_script(self.host_script)
        raise LoadError("no inventory given (host config file or host script required)")

    def _print_summary(self, result: PlaybookResult) -> None:
        if self.config.json_output:
            print(result.to_json())
        else:
            self.display.recap(result.get_final_stats())

    def _report_error(self, error_type: str, message: str, exit_code: int) -> None:
        if self.config.json_output:
            print(json.dumps({
                "error": True,
                "error_type": error_type,
                "message": message.strip(),
                "exit_code": int(exit_code),
            }, indent=2))
        else:
            self.display.error(message)
