"""Append-only conversation history.

Hides how the message sequence is held in memory. Callers get read-only
snapshots; the only mutation is ``append``.
"""

from collections.abc import Iterator

from .models import Message, Role


class ConversationHistory:
    """Ordered, append-only sequence of messages for one session.

    There is exactly one writer per session (the orchestrator), so no
    locking or merge logic is needed here.
    """

    def __init__(self, messages: list[Message] | None = None):
        self._messages: list[Message] = list(messages or [])

    def append(self, message: Message) -> Message:
        """Append a message to the end of the history.

        Args:
            message: The message to append

        Returns:
            The appended message
        """
        if not isinstance(message, Message):
            raise TypeError(f"Expected Message, got {type(message).__name__}")
        self._messages.append(message)
        return message

    def snapshot(self) -> tuple[Message, ...]:
        """Return an immutable view of the current sequence."""
        return tuple(self._messages)

    def is_extension_of(self, snapshot: tuple[Message, ...]) -> bool:
        """Check that ``snapshot`` is a prefix of the current sequence.

        Args:
            snapshot: A sequence previously returned by ``snapshot()``

        Returns:
            True if no message of the snapshot was reordered or dropped
        """
        if len(snapshot) > len(self._messages):
            return False
        return all(a == b for a, b in zip(snapshot, self._messages))

    def last(self, role: Role | None = None) -> Message | None:
        """Return the most recent message, optionally of a given role."""
        for message in reversed(self._messages):
            if role is None or message.role == role:
                return message
        return None

    def to_transcript(self) -> str:
        """Render the history as plain text, one message per block."""
        return "\n\n".join(
            f"{message.role.value}: {message.content}" for message in self._messages
        )

    def __len__(self) -> int:
        return len(self._messages)

    def __iter__(self) -> Iterator[Message]:
        return iter(tuple(self._messages))

    def __getitem__(self, index: int) -> Message:
        return self._messages[index]
