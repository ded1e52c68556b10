"""
An in-process stand-in for the authenticated channels between participants.

The Mailbox is an explicit (sender, recipient) -> payload mapping. The
protocol objects never touch it; the code driving a ceremony moves round
messages through it, so a network transport can take its place without
changing any protocol logic.
"""

from typing import Any, Dict, Iterable, List, Tuple


class Mailbox:
    """Holds at most one payload per (sender, recipient) pair."""

    def __init__(self):
        self._messages: Dict[Tuple[int, int], Any] = {}

    def send(self, sender: int, recipient: int, payload: Any) -> None:
        """
        Deliver a payload from sender to recipient.

        Raises:
        ValueError: If sender and recipient are the same, or a payload from
        sender to recipient was already delivered.
        """
        if sender == recipient:
            raise ValueError("A participant cannot send to itself.")
        key = (sender, recipient)
        if key in self._messages:
            raise ValueError(
                f"Participant {sender} already sent a message to participant {recipient}."
            )
        self._messages[key] = payload

    def broadcast(self, sender: int, payload: Any, recipients: Iterable[int]) -> None:
        """Send the same payload to every recipient other than the sender."""
        for recipient in recipients:
            if recipient != sender:
                self.send(sender, recipient, payload)

    def receive(self, recipient: int) -> List[Any]:
        """
        Remove and return every payload addressed to recipient, ordered by
        sender.
        """
        keys = sorted(key for key in self._messages if key[1] == recipient)
        return [self._messages.pop(key) for key in keys]

    def __len__(self) -> int:
        return len(self._messages)
