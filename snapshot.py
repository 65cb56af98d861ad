"""
Snapshot model and interpreter.

A snapshot is a typed tree of the elements the in-page capture script
considered interesting. The interpreter walks that tree to find feed item
containers and the controls nested inside them. Nothing here touches the
page: every function is pure and works on one snapshot at a time.
"""

from __future__ import annotations

import hashlib
import re
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Dict, Iterator, List, Optional, Tuple

from config import SELECTORS, TEXT_PATTERNS, ContentView


# =============================================================================
# DATA CLASSES
# =============================================================================
@dataclass(frozen=True)
class Handle:
    """Opaque reference to one element of one snapshot generation."""
    generation: int
    uid: str

    def __str__(self) -> str:
        return f"{self.uid}@{self.generation}"


@dataclass(frozen=True)
class SnapshotNode:
    """One captured element."""
    uid: str
    tag: str = ""
    role: str = ""
    testid: str = ""
    label: str = ""
    text: str = ""
    key: str = ""
    children: Tuple["SnapshotNode", ...] = ()

    @classmethod
    def from_payload(cls, payload: Dict[str, Any]) -> "SnapshotNode":
        return cls(
            uid=str(payload.get("uid") or ""),
            tag=str(payload.get("tag") or "").lower(),
            role=str(payload.get("role") or ""),
            testid=str(payload.get("testid") or ""),
            label=str(payload.get("label") or ""),
            text=str(payload.get("text") or ""),
            key=str(payload.get("key") or ""),
            children=tuple(cls.from_payload(c) for c in payload.get("children") or ()),
        )

    def walk(self, stop_testid: Optional[str] = None) -> Iterator["SnapshotNode"]:
        """
        Depth-first walk over descendants (self excluded).

        Nodes whose testid equals ``stop_testid`` are yielded but not entered,
        which keeps a search inside one container scope.
        """
        for child in self.children:
            yield child
            if stop_testid and child.testid == stop_testid:
                continue
            yield from child.walk(stop_testid)


@dataclass(frozen=True)
class Snapshot:
    """Immutable structural read of the page at one instant."""
    generation: int
    root: SnapshotNode

    @classmethod
    def from_payload(cls, payload: Optional[Dict[str, Any]], generation: int) -> "Snapshot":
        root = SnapshotNode.from_payload(payload or {"uid": "", "tag": "body"})
        return cls(generation=generation, root=root)

    def handle(self, node: SnapshotNode) -> Handle:
        return Handle(generation=self.generation, uid=node.uid)

    def find(self, uid: str) -> Optional[SnapshotNode]:
        for node in self.root.walk():
            if node.uid == uid:
                return node
        return None


class ElementRole(str, Enum):
    ITEM = "item"
    ACTION_CONTROL = "action_control"
    CONFIRM_CONTROL = "confirm_control"


class ItemKind(str, Enum):
    ORDINARY_POST = "ordinary_post"
    REPOST = "repost"


@dataclass(frozen=True)
class AddressableElement:
    handle: Handle
    role: ElementRole
    raw_context: str = ""


@dataclass(frozen=True)
class CandidateItem:
    """A feed item found in a snapshot, with its nested action control if any."""
    element: AddressableElement
    kind: ItemKind = ItemKind.ORDINARY_POST
    action_control: Optional[AddressableElement] = None
    key: str = ""
    fingerprint: str = field(default="", compare=False)

    @property
    def handle(self) -> Handle:
        return self.element.handle

    @property
    def is_deletable(self) -> bool:
        return self.action_control is not None

    @property
    def preview(self) -> str:
        text = " ".join(self.element.raw_context.split())
        return text[:60] + "..." if len(text) > 60 else text


# =============================================================================
# CLASSIFICATION
# =============================================================================
_REPOST_RE = re.compile(TEXT_PATTERNS["repost_markers"])


def classify_item(raw_context: str) -> ItemKind:
    """Repost if the item's text carries a repost marker, otherwise ordinary."""
    if raw_context and _REPOST_RE.search(raw_context):
        return ItemKind.REPOST
    return ItemKind.ORDINARY_POST


def fingerprint(raw_context: str, key: str = "") -> str:
    """Stable id for an item across snapshots: its link plus its normalized text."""
    normalized = " ".join(raw_context.split())
    digest = hashlib.sha1(key.encode("utf-8") + b"\n" + normalized.encode("utf-8"))
    return digest.hexdigest()[:16]


# =============================================================================
# INTERPRETER
# =============================================================================
class SnapshotInterpreter:
    """
    Turns snapshots into candidates and controls for one content view.

    Usage:
        interpreter = SnapshotInterpreter(CONTENT_VIEWS["posts"])
        candidates = interpreter.extract_candidates(snapshot)
    """

    def __init__(self, view: ContentView):
        self.view = view
        self.container_testid = view.container_testid

    def extract_candidates(self, snapshot: Snapshot) -> List[CandidateItem]:
        """
        Every item container in document order. Returns an empty list when the
        feed shows nothing, which the controller treats as a normal signal.
        """
        candidates = []
        for container in self._containers(snapshot.root):
            raw_context = container.text or container.label
            kind = classify_item(raw_context) if self.view.detect_reposts else ItemKind.ORDINARY_POST
            item = CandidateItem(
                element=AddressableElement(snapshot.handle(container), ElementRole.ITEM, raw_context),
                kind=kind,
                key=container.key,
                fingerprint=fingerprint(raw_context, container.key),
            )
            candidates.append(replace(item, action_control=self.find_action_control(snapshot, item)))
        return candidates

    def find_action_control(self, snapshot: Snapshot, item: CandidateItem) -> Optional[AddressableElement]:
        """Action control nested in ``item``'s container, looked up in ``snapshot``."""
        if item.handle.generation != snapshot.generation:
            return None
        container = snapshot.find(item.handle.uid)
        if container is None:
            return None
        control = self._scoped_action_control(container, item.kind)
        if control is None:
            return None
        return AddressableElement(snapshot.handle(control), ElementRole.ACTION_CONTROL, control.label or control.text)

    def find_menu_control(self, snapshot: Snapshot) -> Optional[AddressableElement]:
        """The destructive entry of an open dropdown menu."""
        patterns = [p.lower() for p in self.view.menu_patterns]
        for node in snapshot.root.walk():
            if node.role != SELECTORS["menu_item_role"]:
                continue
            text = (node.text or node.label).lower()
            if any(p in text for p in patterns):
                return AddressableElement(snapshot.handle(node), ElementRole.ACTION_CONTROL, node.text)
        return None

    def find_confirm_control(self, snapshot: Snapshot) -> Optional[AddressableElement]:
        """Confirmation button of a delete sheet or an undo-repost menu."""
        wanted = (SELECTORS["confirm_button"], SELECTORS["unretweet_confirm"])
        for node in snapshot.root.walk():
            if node.testid in wanted:
                return AddressableElement(snapshot.handle(node), ElementRole.CONFIRM_CONTROL, node.text)
        return None

    def _containers(self, root: SnapshotNode) -> Iterator[SnapshotNode]:
        # Nested containers (quoted items) belong to their outer item
        for node in root.walk(stop_testid=self.container_testid):
            if node.testid == self.container_testid:
                yield node

    def _scoped_action_control(self, container: SnapshotNode, kind: ItemKind) -> Optional[SnapshotNode]:
        if kind is ItemKind.REPOST:
            return self._first_in_scope(container, lambda n: n.testid == SELECTORS["unretweet"])
        return self._first_in_scope(container, self._is_more_button)

    def _first_in_scope(self, container: SnapshotNode, predicate) -> Optional[SnapshotNode]:
        for node in container.walk(stop_testid=self.container_testid):
            if node.testid == self.container_testid:
                continue
            if predicate(node):
                return node
        return None

    @staticmethod
    def _is_more_button(node: SnapshotNode) -> bool:
        if node.testid in (SELECTORS["caret"], SELECTORS["user_actions"]):
            return True
        return node.tag == "button" and node.label == TEXT_PATTERNS["more_label"]
