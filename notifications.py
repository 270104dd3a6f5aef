"""
Toast-style notifications shown after every mutation or failed fetch.

The stores push into a ToastQueue; the Flask layer drains it once per
response, flashing each toast for HTML pages or returning the list in JSON.
"""

from dataclasses import dataclass, asdict
from typing import List


@dataclass(frozen=True)
class Toast:
    title: str
    description: str
    destructive: bool = False

    @property
    def category(self) -> str:
        # flash() categories used by the templates
        return "danger" if self.destructive else "success"

    def to_dict(self) -> dict:
        data = asdict(self)
        data["variant"] = "destructive" if self.destructive else "default"
        return data


def error_toast(description: str, title: str = "Error") -> Toast:
    return Toast(title=title, description=description, destructive=True)


class ToastQueue:
    def __init__(self):
        self._pending: List[Toast] = []

    def push(self, toast: Toast) -> None:
        self._pending.append(toast)

    def drain(self) -> List[Toast]:
        toasts, self._pending = self._pending, []
        return toasts

    def peek(self) -> List[Toast]:
        return list(self._pending)

    def __len__(self):
        return len(self._pending)
