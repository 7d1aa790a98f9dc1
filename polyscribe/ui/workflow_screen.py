"""Terminal screen for the transcribe / translate / save workflow."""

import logging
import shlex
from typing import Optional

from rich.console import Console, Group
from rich.live import Live
from rich.panel import Panel
from rich.prompt import Prompt
from rich.table import Table
from rich.text import Text
from pubsub import pub

from ..errors import PolyscribeError
from ..models.language import Language
from ..models.transcription import TranscriptionResult
from ..models.workflow import WorkflowState
from ..services.workflow_controller import WorkflowController, STATE_TOPIC
from ..transcription.publisher import PARTIAL_TOPIC, FINAL_TOPIC

logger = logging.getLogger(__name__)

COMMANDS = [
    ("file <path>", "Select audio file"),
    ("source <language>", "Set source language"),
    ("target <language>", "Set target language"),
    ("1", "Transcribe"),
    ("2", "Translate"),
    ("3 [directory]", "Save transcript and translation"),
    ("cancel", "Cancel transcription"),
    ("session", "Start or end the translation session"),
    ("edit <text>", "Replace the transcript text"),
    ("edit-translation <text>", "Replace the translation text"),
    ("ok", "Dismiss alert"),
    ("q", "Quit"),
]


class WorkflowScreen:
    """Rich-rendered single screen driving a WorkflowController."""

    def __init__(self, controller: WorkflowController, console: Optional[Console] = None,
                 autoload_sample: bool = True):
        self.controller = controller
        self.console = console or Console()
        self.autoload_sample = autoload_sample
        self.running = False
        self.last_result: Optional[TranscriptionResult] = None
        self.needs_refresh = False

        pub.subscribe(self._on_state_change, STATE_TOPIC)
        pub.subscribe(self._on_transcription_result, PARTIAL_TOPIC)
        pub.subscribe(self._on_transcription_result, FINAL_TOPIC)

    def _on_state_change(self, state: WorkflowState, change: str) -> None:
        logger.debug(f"State change: {change}")
        self.needs_refresh = True

    def _on_transcription_result(self, result: TranscriptionResult) -> None:
        self.last_result = result
        self.needs_refresh = True

    def close(self) -> None:
        """Stop listening for workflow events."""
        pub.unsubscribe(self._on_state_change, STATE_TOPIC)
        pub.unsubscribe(self._on_transcription_result, PARTIAL_TOPIC)
        pub.unsubscribe(self._on_transcription_result, FINAL_TOPIC)

    def render(self, state: Optional[WorkflowState] = None) -> Group:
        """Build the renderable for a state snapshot."""
        state = state or self.controller.snapshot()

        header = Text("Transcription & Translation", style="bold blue")

        selection = Table.grid(padding=(0, 2))
        selection.add_column(style="dim")
        selection.add_column()
        selection.add_row("Source Language", state.source_language.display_name)
        selection.add_row("Target Language", state.target_language.display_name)
        selection.add_row("File", state.input_file.name if state.input_file else "No file selected")
        selection.add_row("Translation session", state.session_state.value)

        actions = Table(show_header=True, header_style="bold")
        actions.add_column("Action")
        actions.add_column("State")
        for label, enabled, busy in (
            ("Transcribe", state.can_transcribe, state.is_transcribing),
            ("Translate", state.can_translate, state.is_translating),
            ("Save", state.can_export, False),
        ):
            if busy:
                actions.add_row(label, Text("working...", style="yellow"))
            elif enabled:
                actions.add_row(label, Text("ready", style="green"))
            else:
                actions.add_row(label, Text("disabled", style="dim"))

        transcript = Panel(state.live_transcript or "", title=f"Transcript ({state.source_language.display_name})")
        translation = Panel(state.translation or "", title=f"Translation ({state.target_language.display_name})")

        parts = [header, selection, actions, transcript, translation]
        if state.is_transcribing and self.last_result is not None and not self.last_result.is_final:
            parts.append(Text(f"Hypothesis #{self.last_result.sequence_number} from {self.last_result.service}",
                              style="dim"))
        if state.alert is not None:
            style = "bold green" if state.alert.title == "Success" else "bold red"
            parts.append(Text(f"{state.alert.title}: {state.alert.message}", style=style))
        if state.last_error:
            parts.append(Text(state.last_error, style="red"))
        return Group(*parts)

    def show_status(self) -> None:
        self.console.clear()
        self.console.print(self.render())
        commands = Table.grid(padding=(0, 2))
        for command, description in COMMANDS:
            commands.add_row(f"[bold]{command}[/bold]", description)
        self.console.print(commands)

    def handle_command(self, line: str) -> bool:
        """Execute one command line. Returns False when the user quits."""
        try:
            parts = shlex.split(line)
        except ValueError as e:
            self.console.print(f"Cannot parse command: {e}", style="red")
            return True
        if not parts:
            return True

        command, args = parts[0].lower(), parts[1:]
        try:
            if command in ("q", "quit"):
                return False
            elif command == "file":
                if not args:
                    self.console.print("Usage: file <path>", style="yellow")
                elif self.controller.select_file([" ".join(args)]) is None:
                    self.console.print("⚠️  File not selected", style="yellow")
            elif command in ("source", "target"):
                language = Language.from_value(" ".join(args))
                if command == "source":
                    self.controller.set_source_language(language)
                else:
                    self.controller.set_target_language(language)
            elif command == "1":
                if self.controller.transcribe() is not None:
                    self._follow_progress()
            elif command == "2":
                if self.controller.translate() is not None:
                    self._follow_progress()
            elif command == "3":
                path = self.controller.export(directory=args[0] if args else None)
                if path is not None:
                    self.console.print(f"✅ Saved to {path}", style="green")
            elif command == "cancel":
                self.controller.cancel_transcription()
            elif command == "session":
                self.controller.toggle_translation_session()
            elif command == "edit":
                self.controller.edit_transcript(" ".join(args))
            elif command == "edit-translation":
                self.controller.edit_translation(" ".join(args))
            elif command == "ok":
                self.controller.dismiss_alert()
            else:
                self.console.print(f"Unknown command: {command}", style="red")
        except (PolyscribeError, ValueError) as e:
            logger.warning(f"Command '{command}' failed: {e}")
            self.console.print(f"❌ {e}", style="bold red")
        return True

    def _follow_progress(self) -> None:
        """Pump the UI timeline and redraw on every published change until both stages are idle."""
        state = self.controller.state
        self.needs_refresh = False
        with Live(self.render(), console=self.console, refresh_per_second=8) as live:
            try:
                while state.is_transcribing or state.is_translating:
                    self.controller.dispatcher.process_pending(timeout=0.1)
                    if self.needs_refresh:
                        self.needs_refresh = False
                        live.update(self.render())
            except KeyboardInterrupt:
                self.controller.cancel_transcription()
                if state.is_translating:
                    self.controller.end_translation_session()
            live.update(self.render())

    def run(self) -> None:
        """Run the interactive loop."""
        self.running = True
        if self.autoload_sample:
            self.controller.load_sample()
        try:
            while self.running:
                self.show_status()
                line = Prompt.ask("Command", console=self.console, default="")
                self.running = self.handle_command(line)
                self.controller.dispatcher.process_pending()
        except (KeyboardInterrupt, EOFError):
            self.running = False
        finally:
            self.controller.shutdown()
            self.close()
            self.console.print("\n👋 Session ended", style="bold blue")
            logger.info("WorkflowScreen cleanup completed")
