"""Fake hosts that simulate the X feed for the automaton tests."""

from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple

import pytest

from config import CleanerConfig
from host import HostError, StaleHandleError
from snapshot import Handle, Snapshot


@dataclass
class FakeItem:
    text: str
    repost: bool = False
    has_control: bool = True
    has_delete_entry: bool = True
    has_confirm: bool = True
    native_confirm: bool = False
    explode_on_click: bool = False
    key: str = ""


def node(uid="", tag="div", role="", testid="", label="", text="", key="", children=()):
    return {
        "uid": uid,
        "tag": tag,
        "role": role,
        "testid": testid,
        "label": label,
        "text": text,
        "key": key,
        "children": list(children),
    }


class FakeHost:
    """
    Stateful stand-in for a logged-in X page.

    Clicks are routed by the target's meaning (caret, delete entry, confirm
    button...). Like the real host, every mutating call bumps the generation
    and clicking a handle from an older generation raises StaleHandleError.
    """

    def __init__(self, items: List[FakeItem], container_testid: str = "tweet", menu_text: str = "Delete"):
        self.items = list(items)
        self.container_testid = container_testid
        self.menu_text = menu_text
        self.generation = 0
        self.open_menu: Optional[FakeItem] = None
        self.open_confirm: Optional[FakeItem] = None
        self.accepted_dialog = False
        self.targets: Dict[str, Tuple[str, FakeItem]] = {}
        self.calls: List[Tuple[str, Any]] = []
        self.stale_attempts = 0
        self.removed: List[str] = []

    # -- primitives ---------------------------------------------------------
    async def navigate(self, url):
        self.generation += 1
        self.calls.append(("navigate", url))

    async def capture_snapshot(self):
        self.generation += 1
        self.calls.append(("snapshot", self.generation))
        return Snapshot.from_payload(self._render(), self.generation)

    async def click(self, handle: Handle):
        if handle.generation != self.generation:
            self.stale_attempts += 1
            raise StaleHandleError(handle, self.generation)
        self.generation += 1
        self.accepted_dialog = False
        target, item = self.targets[handle.uid]
        self.calls.append(("click", target))

        if item.explode_on_click:
            raise HostError("Element is not attached to the DOM")

        if target == "caret":
            self.open_menu = item
        elif target == "delete":
            self.open_menu = None
            if item.native_confirm:
                # the real host accepts native dialogs while the click is pending
                self.accepted_dialog = True
                self._remove(item)
            elif item.has_confirm:
                self.open_confirm = item
        elif target == "unretweet":
            if item.has_confirm:
                self.open_confirm = item
        elif target == "confirm":
            self.open_confirm = None
            self._remove(item)

    async def accept_dialog(self):
        accepted, self.accepted_dialog = self.accepted_dialog, False
        self.calls.append(("accept_dialog", accepted))
        return accepted

    async def dismiss_dialog(self):
        self.generation += 1
        self.calls.append(("dismiss_dialog", None))
        self.open_menu = None
        self.open_confirm = None
        self.accepted_dialog = False

    async def run_script(self, source, arg=None):
        self.generation += 1
        self.calls.append(("scroll", arg))

    async def sleep(self, seconds):
        self.calls.append(("sleep", seconds))

    # -- helpers ------------------------------------------------------------
    def call_names(self) -> List[str]:
        return [name for name, _ in self.calls if name != "sleep"]

    def scans(self) -> int:
        return sum(1 for name, _ in self.calls if name == "snapshot")

    def _remove(self, item):
        if item in self.items:
            self.items.remove(item)
            self.removed.append(item.text)

    def _render(self):
        counter = iter(range(10_000))
        self.targets = {}

        def uid(target, item):
            value = f"{self.generation}-{next(counter)}"
            self.targets[value] = (target, item)
            return value

        children = []
        for item in self.items:
            text = ("You reposted\n" if item.repost else "") + item.text
            controls = []
            if item.has_control:
                if item.repost:
                    controls.append(node(uid("unretweet", item), tag="button", testid="unretweet", label="Undo repost"))
                else:
                    controls.append(node(uid("caret", item), tag="button", testid="caret", label="More"))
            controls.append(node(uid("reply", item), tag="button", testid="reply", label="Reply"))
            children.append(node(
                uid("container", item), tag="article", testid=self.container_testid,
                text=text, key=item.key, children=controls,
            ))

        if self.open_menu is not None:
            entries = [node(uid("pin", self.open_menu), role="menuitem", text="Pin to your profile")]
            if self.open_menu.has_delete_entry:
                entries.append(node(uid("delete", self.open_menu), role="menuitem", text=self.menu_text))
            children.append(node(uid("menu", self.open_menu), role="menu", children=entries))

        if self.open_confirm is not None:
            if self.open_confirm.repost:
                confirm = node(uid("confirm", self.open_confirm), role="menuitem", testid="unretweetConfirm", text="Undo repost")
            else:
                confirm = node(uid("confirm", self.open_confirm), tag="button", role="button", testid="confirmationSheetConfirm", text="Delete")
            children.append(node(uid("sheet", self.open_confirm), role="dialog", children=[confirm]))

        return node(tag="body", children=children)


class ScriptedHost(FakeHost):
    """Shows a fixed item list per scan, whatever the actions did."""

    def __init__(self, scans: List[List[FakeItem]], **kwargs):
        super().__init__([], **kwargs)
        self.script = list(scans)

    async def capture_snapshot(self):
        if not (self.open_menu or self.open_confirm):
            self.items = list(self.script.pop(0)) if self.script else []
        return await super().capture_snapshot()


@pytest.fixture
def fast_config():
    return CleanerConfig(menu_settle=0, after_deletion=0, scroll_load=0, between_items=0)
