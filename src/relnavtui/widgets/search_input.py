"""Search input widget for filtering data and entering commands."""

from textual.widgets import Input
from textual.message import Message


class SearchInput(Input):
    """Input widget for filtering; text starting with ':' is a command."""

    class FilterChanged(Message):
        """Message sent when filter text changes."""

        def __init__(self, filter_text: str) -> None:
            super().__init__()
            self.filter_text = filter_text

    class CommandSubmitted(Message):
        """Message sent when a ':' command is submitted with Enter."""

        def __init__(self, command_text: str) -> None:
            super().__init__()
            self.command_text = command_text

    def __init__(self, **kwargs):
        super().__init__(placeholder="Type to filter, or :help for commands...", **kwargs)

    def on_input_changed(self, event: Input.Changed) -> None:
        """Handle input changes and emit filter message."""
        # Commands being typed don't filter the view
        filter_text = "" if event.value.startswith(":") else event.value
        self.post_message(self.FilterChanged(filter_text))

    def on_input_submitted(self, event: Input.Submitted) -> None:
        self.submit_command()

    def submit_command(self) -> None:
        """Emit the current text as a command if it starts with ':'."""
        if self.value.startswith(":"):
            self.post_message(self.CommandSubmitted(self.value))
            self.value = ""
