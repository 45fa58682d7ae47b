from __future__ import annotations
import threading
from typing import Optional
import requests

PUSHOVER_URL = "https://api.pushover.net/1/messages.json"

# Pushover priorities
QUIET = -1
NORMAL = 0


def win_message(chance: int, draw: int, wins_recent: int, next_chance: int, feeds_total: int) -> str:
    """Body of a jackpot-win push."""
    lines = [
        f"Jackpot! Drew {draw} against a {chance}% chance.",
        f"{wins_recent} win(s) in the current window, {feeds_total} feed(s) since start.",
    ]
    if next_chance <= 0:
        lines.append("Win cap reached: the wheel stops counting until older wins expire.")
    elif next_chance < chance:
        lines.append(f"Next jackpot chance: {next_chance}%.")
    return "\n".join(lines)


class Notifier:
    """Optional Pushover push notifications for jackpot wins.

    Routine wins go out at quiet priority; the win that closes the game until
    older wins expire goes out at normal priority. Posting happens on a daemon
    thread so the game loop never waits on the network."""
    def __init__(self, enabled: bool, pushover_token: Optional[str], pushover_user: Optional[str], timeout_s: float = 5.0):
        self.enabled = enabled and bool(pushover_token and pushover_user)
        self._token = pushover_token
        self._user = pushover_user
        self._timeout = timeout_s

    def send(self, title: str, message: str, priority: int = NORMAL):
        if not self.enabled:
            return
        threading.Thread(target=self._send_sync, args=(title, message, priority), daemon=True).start()

    def jackpot_won(self, chance: int, draw: int, wins_recent: int, next_chance: int, feeds_total: int):
        priority = NORMAL if next_chance <= 0 else QUIET
        self.send(
            f"Cat wheel jackpot #{wins_recent}",
            win_message(chance, draw, wins_recent, next_chance, feeds_total),
            priority=priority,
        )

    def _send_sync(self, title: str, message: str, priority: int):
        try:
            requests.post(
                PUSHOVER_URL,
                data={
                    "token": self._token,
                    "user": self._user,
                    "title": title,
                    "message": message,
                    "priority": priority,
                },
                timeout=self._timeout,
            )
        except requests.RequestException:
            # Notifications are best effort; the feed already happened.
            pass
