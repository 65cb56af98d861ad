from config import CONTENT_VIEWS
from conftest import node
from snapshot import (
    ElementRole,
    ItemKind,
    Snapshot,
    SnapshotInterpreter,
    classify_item,
    fingerprint,
)


def posts():
    return SnapshotInterpreter(CONTENT_VIEWS["posts"])


def tweet(uid, text, *children):
    return node(uid, tag="article", testid="tweet", text=text, children=children)


def caret(uid):
    return node(uid, tag="button", testid="caret", label="More")


def test_adjacent_items_keep_their_own_controls():
    snapshot = Snapshot.from_payload(node(children=[
        tweet("a", "first post", caret("a-caret")),
        tweet("b", "second post", caret("b-caret")),
    ]), generation=1)
    interpreter = posts()

    first, second = interpreter.extract_candidates(snapshot)

    assert first.action_control.handle.uid == "a-caret"
    assert second.action_control.handle.uid == "b-caret"
    assert interpreter.find_action_control(snapshot, first).handle.uid == "a-caret"
    assert interpreter.find_action_control(snapshot, second).handle.uid == "b-caret"


def test_item_without_control_is_returned_but_not_deletable():
    snapshot = Snapshot.from_payload(node(children=[
        tweet("a", "promoted thing"),
        tweet("b", "mine", caret("b-caret")),
    ]), generation=3)

    first, second = posts().extract_candidates(snapshot)

    assert not first.is_deletable
    assert first.action_control is None
    assert second.is_deletable


def test_control_of_a_nested_container_does_not_leak_to_the_outer_item():
    quoted = tweet("inner", "quoted post", caret("inner-caret"))
    snapshot = Snapshot.from_payload(node(children=[tweet("outer", "quote", quoted)]), generation=1)

    candidates = posts().extract_candidates(snapshot)

    assert [c.handle.uid for c in candidates] == ["outer"]
    assert not candidates[0].is_deletable


def test_controls_found_through_wrapper_nodes():
    wrapped = node("group", role="group", children=[node("wrap", children=[caret("deep-caret")])])
    snapshot = Snapshot.from_payload(node(children=[tweet("a", "post", wrapped)]), generation=1)

    (item,) = posts().extract_candidates(snapshot)

    assert item.action_control.handle.uid == "deep-caret"
    assert item.action_control.role is ElementRole.ACTION_CONTROL
    assert item.element.role is ElementRole.ITEM


def test_repost_uses_the_undo_button():
    snapshot = Snapshot.from_payload(node(children=[
        tweet("a", "You reposted\nsomeone's post",
              node("a-undo", tag="button", testid="unretweet"),
              caret("a-caret")),
    ]), generation=1)

    (item,) = posts().extract_candidates(snapshot)

    assert item.kind is ItemKind.REPOST
    assert item.action_control.handle.uid == "a-undo"


def test_repost_without_undo_button_is_not_deletable():
    snapshot = Snapshot.from_payload(node(children=[
        tweet("a", "You reposted\nsomething", caret("a-caret")),
    ]), generation=1)

    (item,) = posts().extract_candidates(snapshot)

    assert item.kind is ItemKind.REPOST
    assert not item.is_deletable


def test_empty_snapshot_yields_no_candidates():
    assert posts().extract_candidates(Snapshot.from_payload(None, generation=1)) == []
    assert posts().extract_candidates(Snapshot.from_payload(node(children=[node("x")]), 2)) == []


def test_handles_carry_the_snapshot_generation():
    snapshot = Snapshot.from_payload(node(children=[tweet("a", "post", caret("c"))]), generation=7)

    (item,) = posts().extract_candidates(snapshot)

    assert item.handle.generation == 7
    assert item.action_control.handle.generation == 7


def test_find_action_control_refuses_items_from_another_snapshot():
    payload = node(children=[tweet("a", "post", caret("c"))])
    old = Snapshot.from_payload(payload, generation=1)
    new = Snapshot.from_payload(payload, generation=2)
    interpreter = posts()

    (item,) = interpreter.extract_candidates(old)

    assert interpreter.find_action_control(new, item) is None


def test_classification_is_stable_and_defaults_to_ordinary():
    for text in ["You reposted", "Jane Reposted", "Bob retweeted", "hello", "", "reposting is fun"]:
        assert classify_item(text) is classify_item(text)

    assert classify_item("You reposted\nA post") is ItemKind.REPOST
    assert classify_item("Sam Reposted") is ItemKind.REPOST
    assert classify_item("Ann retweeted") is ItemKind.REPOST
    assert classify_item("just a post") is ItemKind.ORDINARY_POST
    assert classify_item("") is ItemKind.ORDINARY_POST


def test_followers_view_never_classifies_reposts():
    interpreter = SnapshotInterpreter(CONTENT_VIEWS["followers"])
    cell = node("cell", testid="UserCell", text="Someone @someone\nbio: I retweeted stuff",
                children=[node("more", tag="button", testid="userActions", label="More")])

    (item,) = interpreter.extract_candidates(Snapshot.from_payload(node(children=[cell]), 1))

    assert item.kind is ItemKind.ORDINARY_POST
    assert item.action_control.handle.uid == "more"


def test_menu_control_matches_menu_items_only():
    snapshot = Snapshot.from_payload(node(children=[
        tweet("a", "Delete this later", caret("c")),
        node("menu", role="menu", children=[
            node("pin", role="menuitem", text="Pin to your profile"),
            node("del", role="menuitem", text="Delete"),
        ]),
    ]), generation=4)

    control = posts().find_menu_control(snapshot)

    assert control.handle.uid == "del"
    assert control.handle.generation == 4


def test_menu_control_for_followers():
    snapshot = Snapshot.from_payload(node(children=[
        node("menu", role="menu", children=[
            node("mute", role="menuitem", text="Mute @someone"),
            node("remove", role="menuitem", text="Remove this follower"),
        ]),
    ]), generation=1)

    control = SnapshotInterpreter(CONTENT_VIEWS["followers"]).find_menu_control(snapshot)

    assert control.handle.uid == "remove"


def test_menu_control_missing():
    snapshot = Snapshot.from_payload(node(children=[
        node("menu", role="menu", children=[node("pin", role="menuitem", text="Pin")]),
    ]), generation=1)

    assert posts().find_menu_control(snapshot) is None


def test_confirm_control_for_delete_and_undo():
    sheet = Snapshot.from_payload(node(children=[
        node("sheet", role="dialog", children=[
            node("cancel", tag="button", testid="confirmationSheetCancel", text="Cancel"),
            node("ok", tag="button", testid="confirmationSheetConfirm", text="Delete"),
        ]),
    ]), generation=1)
    undo = Snapshot.from_payload(node(children=[
        node("undo", role="menuitem", testid="unretweetConfirm", text="Undo repost"),
    ]), generation=2)

    assert posts().find_confirm_control(sheet).handle.uid == "ok"
    assert posts().find_confirm_control(undo).role is ElementRole.CONFIRM_CONTROL
    assert posts().find_confirm_control(Snapshot.from_payload(node(), 3)) is None


def test_identical_text_with_different_links_gets_different_fingerprints():
    snapshot = Snapshot.from_payload(node(children=[
        node("a", tag="article", testid="tweet", text="gm", key="/me/status/1", children=[caret("a-caret")]),
        node("b", tag="article", testid="tweet", text="gm", key="/me/status/2", children=[caret("b-caret")]),
    ]), generation=1)
    later = Snapshot.from_payload(node(children=[
        node("x", tag="article", testid="tweet", text="gm\n", key="/me/status/2", children=[caret("x-caret")]),
    ]), generation=5)

    first, second = posts().extract_candidates(snapshot)
    (again,) = posts().extract_candidates(later)

    assert first.key == "/me/status/1"
    assert first.fingerprint != second.fingerprint
    assert again.fingerprint == second.fingerprint
    assert fingerprint("gm") != fingerprint("gm", "/me/status/1")


def test_candidates_get_their_control_from_find_action_control(monkeypatch):
    snapshot = Snapshot.from_payload(node(children=[
        tweet("a", "first", caret("a-caret")),
        tweet("b", "second", caret("b-caret")),
    ]), generation=2)
    interpreter = posts()
    looked_up = []
    real_lookup = interpreter.find_action_control

    def recording_lookup(snapshot, item):
        looked_up.append(item.handle.uid)
        return real_lookup(snapshot, item) if item.handle.uid == "b" else None

    monkeypatch.setattr(interpreter, "find_action_control", recording_lookup)

    first, second = interpreter.extract_candidates(snapshot)

    assert looked_up == ["a", "b"]
    assert not first.is_deletable
    assert second.action_control.handle.uid == "b-caret"
