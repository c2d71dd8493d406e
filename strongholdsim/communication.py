"""Messages sent between players, held in a bounded queue."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import TextIO

from strongholdsim.kingdom import (
    SaveReader,
    StrongholdError,
    _read_tokens,
    _skip_blank,
    _skip_header,
    _to_int,
)

MAX_MESSAGES = 10

_FIELD = re.compile(r"Message(\d+)_(\w+):(.*)")


@dataclass
class Message:
    """A message from one player to another."""

    sender_id: int = -1
    recipient_id: int = -1
    content: str = ""
    active: bool = False


def _field_value(raw: str) -> str:
    return raw[1:] if raw.startswith(" ") else raw


def _read_fields(reader: SaveReader) -> dict[int, dict[str, str]]:
    fields: dict[int, dict[str, str]] = {}
    while (line := reader.peek()) is not None and (match := _FIELD.fullmatch(line)):
        reader.readline()
        fields.setdefault(int(match[1]), {})[match[2]] = _field_value(match[3])
    return fields


def _checked_count(count: int) -> int:
    if not 0 <= count <= MAX_MESSAGES:
        raise StrongholdError(f"message count out of range: {count}")
    return count


class Communication:
    """The message queue shared by all players."""

    def __init__(self) -> None:
        self.messages: list[Message] = []

    def send_message(self, sender_id: int, recipient_id: int, content: str) -> str:
        """Queue a message; raise if the queue is full, the recipient is the sender, or it is empty."""
        if len(self.messages) >= MAX_MESSAGES or sender_id == recipient_id or not content:
            raise StrongholdError(
                "Cannot send message: queue full, invalid recipient, or empty content."
            )
        self.messages.append(Message(sender_id, recipient_id, content, True))
        return "Message sent."

    def messages_for(self, player_id: int) -> list[Message]:
        """Active messages addressed to a player, oldest first."""
        return [m for m in self.messages if m.active and m.recipient_id == player_id]

    def view_messages(self, player_id: int) -> str:
        lines = [f"Messages for Player {player_id}:"]
        received = [f"From Player {m.sender_id}: {m.content}" for m in self.messages_for(player_id)]
        lines.extend(received or ["No messages."])
        return "\n".join(lines)

    def save(self, out: TextIO) -> None:
        out.write("# Communication\n")
        out.write(f"MessageCount: {len(self.messages)}\n")
        for index, message in enumerate(self.messages):
            if message.active:
                out.write(f"Message{index}_Sender: {message.sender_id}\n")
                out.write(f"Message{index}_Recipient: {message.recipient_id}\n")
                out.write(f"Message{index}_Content: {message.content}\n")
        out.write("\n")

    def load(self, reader: SaveReader) -> None:
        """Read the queue in the keyed layout or the older bare-value layout."""
        _skip_header(reader, "Communication")
        first = reader.peek()
        if first is None:
            raise StrongholdError("missing Communication data")
        if first.startswith("MessageCount:"):
            count = _checked_count(_to_int(reader.readline().partition(":")[2].strip()))
            messages = [Message() for _ in range(count)]
            for index, values in _read_fields(reader).items():
                if index >= count:
                    raise StrongholdError(f"message {index} beyond count {count}")
                try:
                    messages[index] = Message(
                        _to_int(values["Sender"]),
                        _to_int(values["Recipient"]),
                        values["Content"],
                        True,
                    )
                except KeyError as exc:
                    raise StrongholdError(f"message {index} lacks {exc.args[0]}") from None
        else:
            (count_text,) = _read_tokens(reader, 1)
            count = _checked_count(_to_int(count_text))
            messages = []
            for _ in range(count):
                sender, recipient = _read_tokens(reader, 2)
                content = reader.readline()
                messages.append(Message(_to_int(sender), _to_int(recipient), content, True))
        _skip_blank(reader)
        self.messages = messages