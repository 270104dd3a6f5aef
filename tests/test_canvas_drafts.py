"""
Tests for the per-user store of open canvases.
"""

from mindmap.canvas import MindMapCanvas
from mindmap.drafts import CanvasDrafts, is_draft_key, new_draft_key


def test_draft_keys():
    key = new_draft_key()
    assert is_draft_key(key)
    assert len(key) == len("new-") + 8
    assert not is_draft_key("3f2a9c")


class TestCanvasDrafts:

    def test_users_are_kept_apart(self):
        drafts = CanvasDrafts()
        canvas = drafts.put("u1", "new-a", MindMapCanvas())
        assert drafts.get("u1", "new-a") is canvas
        assert drafts.get("u2", "new-a") is None

    def test_least_recently_used_is_evicted(self):
        drafts = CanvasDrafts(limit=2)
        drafts.put("u1", "a", MindMapCanvas())
        drafts.put("u1", "b", MindMapCanvas())
        drafts.get("u1", "a")
        drafts.put("u1", "c", MindMapCanvas())

        assert drafts.get("u1", "b") is None
        assert drafts.get("u1", "a") is not None
        assert drafts.count("u1") == 2

    def test_limit_is_per_user(self):
        drafts = CanvasDrafts(limit=1)
        drafts.put("u1", "a", MindMapCanvas())
        drafts.put("u2", "a", MindMapCanvas())
        assert drafts.count("u1") == drafts.count("u2") == 1

    def test_rekey_after_first_save(self):
        drafts = CanvasDrafts()
        canvas = drafts.put("u1", "new-a", MindMapCanvas())
        drafts.rekey("u1", "new-a", "m1")

        assert drafts.get("u1", "new-a") is None
        assert drafts.get("u1", "m1") is canvas

    def test_rekey_unknown_is_a_no_op(self):
        drafts = CanvasDrafts()
        drafts.rekey("u1", "new-a", "m1")
        assert drafts.count("u1") == 0

    def test_discard(self):
        drafts = CanvasDrafts()
        drafts.put("u1", "m1", MindMapCanvas())
        drafts.discard("u1", "m1")
        drafts.discard("u1", "m1")
        assert drafts.get("u1", "m1") is None
